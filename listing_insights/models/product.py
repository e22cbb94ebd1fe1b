from typing import List, Optional, Union
from pydantic import Field

from .base import CamelModel


class ImagePayload(CamelModel):
    """Image sent by the client as an object rather than a bare string."""
    base64: str
    media_type: Optional[str] = None


ImageInput = Union[str, ImagePayload]
"""A data URL, a raw base64 string, or an ``ImagePayload``."""


class Product(CamelModel):
    """Competing product as collected by the wizard (fetched or typed in)."""
    id: str
    asin: str = ""
    name: str
    price: float = 0.0
    shipping_days: int = 0
    review_count: int = 0
    rating: float = 0.0
    main_image: Optional[ImageInput] = None
    additional_images: List[ImageInput] = Field(default_factory=list)
    features: str = ""
    is_user_product: bool = False
    category: Optional[str] = None
