"""
Data models shared by the adapters, the orchestration agents and the API.
"""
from .base import CamelModel
from .errors import ErrorClassification
from .product import ImageInput, ImagePayload, Product
from .poll import PollRequest, PollResult, Ranking
from .ocr import OCRExtraction
from .fetch import (
    ScrapedProductData,
    ImageData,
    ProcessedImages,
    ValidationResult,
    CompleteProductData,
    ProductFetchResult,
    BulkFetchResult,
)

__all__ = [
    "CamelModel",
    "ErrorClassification",
    "ImageInput",
    "ImagePayload",
    "Product",
    "PollRequest",
    "PollResult",
    "Ranking",
    "OCRExtraction",
    "ScrapedProductData",
    "ImageData",
    "ProcessedImages",
    "ValidationResult",
    "CompleteProductData",
    "ProductFetchResult",
    "BulkFetchResult",
]
