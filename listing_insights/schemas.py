"""
Request and response bodies of the HTTP API.

Domain models live in ``listing_insights.models``; the types here only shape
what goes over the wire (images as data URLs, raw payloads dropped).
"""
from typing import List, Optional

from pydantic import Field

from .constants import FetchStatus
from .models import CamelModel, CompleteProductData, ImageData, ValidationResult


class OCRRequest(CamelModel):
    image: Optional[str] = None
    media_type: Optional[str] = None


class ScrapeRequest(CamelModel):
    """Exactly one of ``asin``, ``asins`` or ``bulk_text`` is expected."""
    asin: Optional[str] = None
    asins: Optional[List[str]] = None
    bulk_text: Optional[str] = None


class ErrorResponse(CamelModel):
    error: str
    details: Optional[str] = None


class SerializedImage(CamelModel):
    base64: str = Field(description="data: URL of the downloaded image")
    original_url: str
    type: str
    size: int

    @classmethod
    def from_image(cls, image: ImageData) -> "SerializedImage":
        return cls(
            base64=image.to_data_url(),
            original_url=image.original_url,
            type=image.media_type,
            size=image.size,
        )


class SerializedImages(CamelModel):
    main_image: Optional[SerializedImage] = None
    additional_images: List[SerializedImage] = Field(default_factory=list)


class SerializedProduct(CamelModel):
    asin: str
    name: str
    price: float
    original_price: Optional[float] = None
    shipping_days: int
    review_count: int
    rating: float
    images: SerializedImages
    features: str
    validation: ValidationResult

    @classmethod
    def from_product(cls, product: CompleteProductData) -> "SerializedProduct":
        images = product.images
        return cls(
            asin=product.asin,
            name=product.name,
            price=product.price,
            original_price=product.original_price,
            shipping_days=product.shipping_days,
            review_count=product.review_count,
            rating=product.rating,
            images=SerializedImages(
                main_image=SerializedImage.from_image(images.main_image) if images.main_image else None,
                additional_images=[SerializedImage.from_image(i) for i in images.additional_images],
            ),
            features=product.features,
            validation=product.validation,
        )


class SingleScrapeResponse(CamelModel):
    success: bool = True
    product: SerializedProduct
    validation: ValidationResult


class ItemStatus(CamelModel):
    asin: str
    status: FetchStatus
    error: Optional[str] = None


class BulkScrapeResponse(CamelModel):
    success: bool = True
    total_requested: int
    valid_count: int
    invalid_count: int
    success_count: int
    failed_count: int
    needs_review_count: int
    invalid_asins: List[str] = Field(default_factory=list, alias="invalidASINs")
    products: List[SerializedProduct] = Field(default_factory=list)
    results: List[ItemStatus] = Field(default_factory=list)


class EnvCheckResponse(CamelModel):
    """Credential presence only; values are never returned."""
    has_openai_key: bool
    openai_key_length: int
    has_scrapeops_key: bool
    scrapeops_key_length: int
    env: str
