from .ocr import extract_data_from_screenshot, validate_ocr_extraction
from .polling import run_poll_simulation, validate_poll_result
from .product_fetcher import ProductFetcher, parse_bulk_asins, validate_bulk_asins

__all__ = [
    "extract_data_from_screenshot",
    "validate_ocr_extraction",
    "run_poll_simulation",
    "validate_poll_result",
    "ProductFetcher",
    "parse_bulk_asins",
    "validate_bulk_asins",
]
