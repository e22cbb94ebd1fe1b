"""
API and Network Configuration Constants.

Endpoints, timeouts, rate limiting and image download settings.
"""

# ============================================================================
# SCRAPEOPS
# ============================================================================

SCRAPEOPS_PRODUCT_URL = "https://proxy.scrapeops.io/v1/structured-data/amazon/product"
"""Structured-data endpoint for Amazon product pages."""

SCRAPEOPS_COUNTRY = "us"
"""Marketplace country passed to ScrapeOps."""

SCRAPEOPS_TLD = "com"
"""Marketplace top-level domain passed to ScrapeOps."""

SCRAPEOPS_SUCCESS_STATUS = "parse_successful"
"""Status flag marking a trustworthy ScrapeOps payload."""


# ============================================================================
# TIMEOUTS (in seconds)
# ============================================================================

DEFAULT_TIMEOUT_HTTPX = 60
"""Default timeout for HTTP requests using httpx client."""

IMAGE_DOWNLOAD_TIMEOUT = 20
"""Timeout for downloading one product image."""

DEFAULT_REQUEST_TIMEOUT = 600
"""Wall-clock budget for one HTTP endpoint invocation."""


# ============================================================================
# RATE LIMITS
# ============================================================================

BULK_FETCH_ITEM_DELAY = 0.2
"""Pause between consecutive items of a bulk fetch (seconds)."""


# ============================================================================
# IMAGES
# ============================================================================

MIN_IMAGE_BYTES = 1000
"""Images smaller than this are treated as corrupted."""

MAX_ADDITIONAL_IMAGES = 8
"""Maximum number of additional images kept per product."""

MAX_STACK_IMAGES_PER_PRODUCT = 5
"""Additional images sent per product in an image-stack poll."""

MIN_BASE64_IMAGE_LENGTH = 20
"""Base64 payloads shorter than this are discarded."""

SUPPORTED_IMAGE_MEDIA_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")
"""Media types accepted by the vision model."""

DEFAULT_IMAGE_MEDIA_TYPE = "image/jpeg"
"""Media type assumed when none can be detected."""

THUMBNAIL_SIZE_TOKENS = ("40", "60", "100", "150", "200", "300", "400", "500")
"""Thumbnail widths in Amazon image URLs (``_AC_US{n}_``)."""

FULL_SIZE_IMAGE_TOKEN = "_AC_SL1500_"
"""URL token selecting the 1500px rendition of an Amazon image."""
