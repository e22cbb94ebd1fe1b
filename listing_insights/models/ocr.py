from .base import CamelModel


class OCRExtraction(CamelModel):
    """Fields read off a product page screenshot."""
    price: float
    shipping_date: str
    shipping_days: int
    reviews: int
    rating: float
