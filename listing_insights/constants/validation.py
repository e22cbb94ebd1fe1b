"""
Validation Constants.

Field patterns, sane ranges and defaults used when validating product data.
"""
import re

ASIN_PATTERN = re.compile(r"^[A-Z0-9]{10}$")
"""ASINs are exactly 10 upper-case alphanumeric characters."""

ASIN_URL_PATTERN = re.compile(
    r"/dp/([A-Z0-9]{10})|/gp/product/([A-Z0-9]{10})|asin=([A-Z0-9]{10})",
    re.IGNORECASE,
)
"""Locations of an ASIN inside an Amazon product URL."""

UNKNOWN_ASIN = "UNKNOWN"
UNKNOWN_PRODUCT_NAME = "Unknown Product"
NO_FEATURES_TEXT = "No features specified"
MISSING_FEATURES_PLACEHOLDER = "Please add product features"

# ============================================================================
# RANGES
# ============================================================================

PRICE_MIN_EXCLUSIVE = 0
PRICE_MAX_EXCLUSIVE = 100000

RATING_MIN = 0.0
RATING_MAX = 5.0

SHIPPING_DAYS_MIN = 0
SHIPPING_DAYS_MAX = 30

# ============================================================================
# DEFAULTS
# ============================================================================

DEFAULT_SHIPPING_DAYS = 5
"""Shipping days assumed when the availability text matches no pattern."""

IN_STOCK_SHIPPING_DAYS = 3
"""Shipping days assumed for plain "in stock" availability."""

POLL_PERCENTAGE_TOLERANCE = 0.1
"""Allowed deviation of the summed poll percentages from 100."""
