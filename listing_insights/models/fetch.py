from typing import Any, Dict, List, Optional
from pydantic import Field

from ..constants import FetchStatus
from ..utils.images import to_data_url
from .base import CamelModel


class ScrapedProductData(CamelModel):
    """Canonical product record decoded from a ScrapeOps payload."""
    asin: str
    name: str
    price: float
    original_price: Optional[float] = None
    shipping_days: int
    review_count: int
    rating: float
    image_urls: List[str] = Field(default_factory=list)
    features: str
    raw_response: Optional[Dict[str, Any]] = Field(default=None, exclude=True, repr=False)


class ImageData(CamelModel):
    """A downloaded product image held in memory for one fetch operation."""
    content: bytes = Field(exclude=True, repr=False)
    original_url: str
    size: int
    media_type: str

    def to_data_url(self) -> str:
        return to_data_url(self.media_type, self.content)


class ProcessedImages(CamelModel):
    main_image: Optional[ImageData] = None
    additional_images: List[ImageData] = Field(default_factory=list)


class ValidationResult(CamelModel):
    """
    Outcome of validating scraped data.

    Errors block the product; warnings let it through with defaults applied
    to ``data``.
    """
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    data: ScrapedProductData


class CompleteProductData(CamelModel):
    asin: str
    name: str
    price: float
    original_price: Optional[float] = None
    shipping_days: int
    review_count: int
    rating: float
    images: ProcessedImages
    features: str
    validation: ValidationResult
    raw_response: Optional[Dict[str, Any]] = Field(default=None, exclude=True, repr=False)


class ProductFetchResult(CamelModel):
    asin: str
    status: FetchStatus
    data: Optional[CompleteProductData] = None
    error: Optional[str] = None


class BulkFetchResult(CamelModel):
    """Outcome of a bulk fetch, in the order the ASINs were supplied."""
    results: List[ProductFetchResult] = Field(default_factory=list)
    success_count: int = 0
    failed_count: int = 0
    needs_review_count: int = 0
