"""
Validation of scraped product data.

Errors block a product (price missing, rating out of range, no ASIN).
Warnings let it through with defaults applied and flag it for review.
"""
from typing import Dict

from ..constants import (
    ASIN_PATTERN,
    DEFAULT_SHIPPING_DAYS,
    MISSING_FEATURES_PLACEHOLDER,
    NO_FEATURES_TEXT,
    PRICE_MAX_EXCLUSIVE,
    PRICE_MIN_EXCLUSIVE,
    RATING_MAX,
    RATING_MIN,
    SHIPPING_DAYS_MAX,
    SHIPPING_DAYS_MIN,
    UNKNOWN_ASIN,
    UNKNOWN_PRODUCT_NAME,
)
from ..models import ProcessedImages, ScrapedProductData, ValidationResult

CRITICAL_WARNINGS = (
    "No main image found",
    "No features found",
    "Product name is missing",
)


class DataValidation:

    def validate_scraped_data(
        self,
        data: ScrapedProductData,
        images: ProcessedImages,
    ) -> ValidationResult:
        """
        Validate scraped product data.

        Errors (block continuation):
        - Missing price or price = 0
        - Rating outside 0-5
        - Missing ASIN

        Warnings (defaults applied):
        - Invalid review count -> 0
        - Unclear shipping -> 5 days
        - No features -> placeholder text
        - No main image / no additional images
        - Unknown product name

        Args:
            data: Parsed ScrapeOps record
            images: Downloaded images for the product

        Returns:
            ValidationResult whose ``data`` carries the defaults
        """
        errors = []
        warnings = []
        validated = data.model_copy()

        if not data.price:
            errors.append("Price is missing or invalid. Price is required to continue.")

        if not RATING_MIN <= data.rating <= RATING_MAX:
            errors.append(f"Rating is invalid ({data.rating}). Must be between 0 and 5.")

        if data.review_count is None or data.review_count < 0:
            warnings.append("Review count missing or invalid. Defaulting to 0.")
            validated.review_count = 0

        if data.shipping_days is None or not SHIPPING_DAYS_MIN <= data.shipping_days <= SHIPPING_DAYS_MAX:
            warnings.append("Shipping days unclear or invalid. Defaulting to 5 days.")
            validated.shipping_days = DEFAULT_SHIPPING_DAYS

        if not data.features or not data.features.strip() or data.features == NO_FEATURES_TEXT:
            warnings.append("No features found. Please add product features manually.")
            validated.features = MISSING_FEATURES_PLACEHOLDER

        if images.main_image is None:
            warnings.append("No main image found. Please upload a main product image.")

        if not images.additional_images:
            warnings.append("No additional images found. Consider uploading more product images.")

        if not data.asin or data.asin == UNKNOWN_ASIN:
            errors.append("ASIN is missing or invalid.")

        if not data.name or data.name == UNKNOWN_PRODUCT_NAME:
            warnings.append("Product name is missing or unclear. Please verify.")

        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            data=validated,
        )

    @staticmethod
    def validate_asin_format(asin: str) -> bool:
        return bool(ASIN_PATTERN.match(asin or ""))

    @staticmethod
    def validate_price(price: float) -> bool:
        return PRICE_MIN_EXCLUSIVE < price < PRICE_MAX_EXCLUSIVE

    @staticmethod
    def validate_rating(rating: float) -> bool:
        return RATING_MIN <= rating <= RATING_MAX

    @staticmethod
    def validate_review_count(count) -> bool:
        return isinstance(count, int) and count >= 0

    @staticmethod
    def validate_shipping_days(days) -> bool:
        return isinstance(days, int) and SHIPPING_DAYS_MIN <= days <= SHIPPING_DAYS_MAX

    @staticmethod
    def needs_manual_review(result: ValidationResult) -> bool:
        if result.errors:
            return True
        return any(
            critical in warning
            for warning in result.warnings
            for critical in CRITICAL_WARNINGS
        )

    @staticmethod
    def status_badge(result: ValidationResult) -> Dict[str, str]:
        if not result.is_valid:
            return {"label": "Needs Fix", "color": "error"}
        if result.warnings:
            return {"label": "Needs Review", "color": "warning"}
        return {"label": "Complete", "color": "success"}

    @staticmethod
    def validation_summary(result: ValidationResult) -> str:
        parts = []
        if result.errors:
            parts.append(f"Errors ({len(result.errors)}):")
            parts.extend(f"  - {error}" for error in result.errors)
        if result.warnings:
            parts.append(f"Warnings ({len(result.warnings)}):")
            parts.extend(f"  - {warning}" for warning in result.warnings)
        if result.is_valid:
            parts.append("Validation passed - data can be used")
        else:
            parts.append("Validation failed - please fix errors before continuing")
        return "\n".join(parts)

    @staticmethod
    def apply_defaults(partial: Dict) -> ScrapedProductData:
        """Complete a partially filled record (manual entry) with defaults."""
        shipping_days = partial.get("shipping_days")
        review_count = partial.get("review_count")
        rating = partial.get("rating")
        return ScrapedProductData(
            asin=partial.get("asin") or UNKNOWN_ASIN,
            name=partial.get("name") or UNKNOWN_PRODUCT_NAME,
            price=partial.get("price") or 0.0,
            original_price=partial.get("original_price") or None,
            shipping_days=DEFAULT_SHIPPING_DAYS if shipping_days is None else shipping_days,
            review_count=0 if review_count is None else review_count,
            rating=0.0 if rating is None else rating,
            image_urls=partial.get("image_urls") or [],
            features=partial.get("features") or MISSING_FEATURES_PLACEHOLDER,
        )
