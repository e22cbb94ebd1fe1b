"""
Application Constants Package.

This package centralizes all constants used throughout the application,
organized by domain/concern for better maintainability.

All constants are re-exported from this __init__.py for convenience. You can
import either from the main package or specific modules:

    from listing_insights.constants import PollType, BULK_FETCH_ITEM_DELAY
    from listing_insights.constants.enums import PollType
    from listing_insights.constants.api import BULK_FETCH_ITEM_DELAY
"""

# ============================================================================
# ENUMERATIONS
# ============================================================================

from .enums import (
    PollType,
    FetchStatus,
    ErrorKind,
)

# ============================================================================
# RETRY & BACKOFF
# ============================================================================

from .retry import (
    OCR_RETRY_INITIAL_DELAY,
    OCR_RETRY_MAX_DELAY,
    OCR_RETRY_BACKOFF_MULTIPLIER,
    OCR_RETRY_ATTEMPT_TIMEOUT,
    POLL_RETRY_INITIAL_DELAY,
    POLL_RETRY_MAX_DELAY,
    POLL_RETRY_BACKOFF_MULTIPLIER,
    POLL_RETRY_ATTEMPT_TIMEOUT,
    RETRYABLE_NETWORK_ERROR_CODES,
    AUTH_ERROR_STATUS_CODES,
    RATE_LIMIT_STATUS_CODE,
)

# ============================================================================
# API & NETWORK
# ============================================================================

from .api import (
    SCRAPEOPS_PRODUCT_URL,
    SCRAPEOPS_COUNTRY,
    SCRAPEOPS_TLD,
    SCRAPEOPS_SUCCESS_STATUS,
    DEFAULT_TIMEOUT_HTTPX,
    IMAGE_DOWNLOAD_TIMEOUT,
    DEFAULT_REQUEST_TIMEOUT,
    BULK_FETCH_ITEM_DELAY,
    MIN_IMAGE_BYTES,
    MAX_ADDITIONAL_IMAGES,
    MAX_STACK_IMAGES_PER_PRODUCT,
    MIN_BASE64_IMAGE_LENGTH,
    SUPPORTED_IMAGE_MEDIA_TYPES,
    DEFAULT_IMAGE_MEDIA_TYPE,
    THUMBNAIL_SIZE_TOKENS,
    FULL_SIZE_IMAGE_TOKEN,
)

# ============================================================================
# LLM CONFIGURATION
# ============================================================================

from .llm import (
    OPENAI_MODEL_VISION,
    LLM_TEMP_POLL_SIMULATION,
    LLM_TEMP_SCREENSHOT_EXTRACTION,
    POLL_MAX_TOKENS,
    OCR_MAX_TOKENS,
    POLL_RESPONDENT_COUNT,
    POLL_MIN_SAMPLE_RESPONSES,
    POLL_LABEL_PREFIX,
    CREDIT_EXHAUSTION_MARKERS,
    INVALID_IMAGE_MARKERS,
)

# ============================================================================
# VALIDATION
# ============================================================================

from .validation import (
    ASIN_PATTERN,
    ASIN_URL_PATTERN,
    UNKNOWN_ASIN,
    UNKNOWN_PRODUCT_NAME,
    NO_FEATURES_TEXT,
    MISSING_FEATURES_PLACEHOLDER,
    PRICE_MIN_EXCLUSIVE,
    PRICE_MAX_EXCLUSIVE,
    RATING_MIN,
    RATING_MAX,
    SHIPPING_DAYS_MIN,
    SHIPPING_DAYS_MAX,
    DEFAULT_SHIPPING_DAYS,
    IN_STOCK_SHIPPING_DAYS,
    POLL_PERCENTAGE_TOLERANCE,
)

__all__ = [
    # Enums
    "PollType",
    "FetchStatus",
    "ErrorKind",
    # Retry
    "OCR_RETRY_INITIAL_DELAY",
    "OCR_RETRY_MAX_DELAY",
    "OCR_RETRY_BACKOFF_MULTIPLIER",
    "OCR_RETRY_ATTEMPT_TIMEOUT",
    "POLL_RETRY_INITIAL_DELAY",
    "POLL_RETRY_MAX_DELAY",
    "POLL_RETRY_BACKOFF_MULTIPLIER",
    "POLL_RETRY_ATTEMPT_TIMEOUT",
    "RETRYABLE_NETWORK_ERROR_CODES",
    "AUTH_ERROR_STATUS_CODES",
    "RATE_LIMIT_STATUS_CODE",
    # API
    "SCRAPEOPS_PRODUCT_URL",
    "SCRAPEOPS_COUNTRY",
    "SCRAPEOPS_TLD",
    "SCRAPEOPS_SUCCESS_STATUS",
    "DEFAULT_TIMEOUT_HTTPX",
    "IMAGE_DOWNLOAD_TIMEOUT",
    "DEFAULT_REQUEST_TIMEOUT",
    "BULK_FETCH_ITEM_DELAY",
    "MIN_IMAGE_BYTES",
    "MAX_ADDITIONAL_IMAGES",
    "MAX_STACK_IMAGES_PER_PRODUCT",
    "MIN_BASE64_IMAGE_LENGTH",
    "SUPPORTED_IMAGE_MEDIA_TYPES",
    "DEFAULT_IMAGE_MEDIA_TYPE",
    "THUMBNAIL_SIZE_TOKENS",
    "FULL_SIZE_IMAGE_TOKEN",
    # LLM
    "OPENAI_MODEL_VISION",
    "LLM_TEMP_POLL_SIMULATION",
    "LLM_TEMP_SCREENSHOT_EXTRACTION",
    "POLL_MAX_TOKENS",
    "OCR_MAX_TOKENS",
    "POLL_RESPONDENT_COUNT",
    "POLL_MIN_SAMPLE_RESPONSES",
    "POLL_LABEL_PREFIX",
    "CREDIT_EXHAUSTION_MARKERS",
    "INVALID_IMAGE_MARKERS",
    # Validation
    "ASIN_PATTERN",
    "ASIN_URL_PATTERN",
    "UNKNOWN_ASIN",
    "UNKNOWN_PRODUCT_NAME",
    "NO_FEATURES_TEXT",
    "MISSING_FEATURES_PLACEHOLDER",
    "PRICE_MIN_EXCLUSIVE",
    "PRICE_MAX_EXCLUSIVE",
    "RATING_MIN",
    "RATING_MAX",
    "SHIPPING_DAYS_MIN",
    "SHIPPING_DAYS_MAX",
    "DEFAULT_SHIPPING_DAYS",
    "IN_STOCK_SHIPPING_DAYS",
    "POLL_PERCENTAGE_TOLERANCE",
]
