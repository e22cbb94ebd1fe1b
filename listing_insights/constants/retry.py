"""
Retry and Backoff Configuration Constants.

Settings for retry logic, exponential backoff, and error recovery.
Delays and timeouts are expressed in seconds.
"""

# ============================================================================
# SCREENSHOT EXTRACTION (fast, interactive)
# ============================================================================

OCR_RETRY_INITIAL_DELAY = 1.0
"""Delay before the second OCR attempt (seconds)."""

OCR_RETRY_MAX_DELAY = 30.0
"""Maximum delay between OCR retries (seconds)."""

OCR_RETRY_BACKOFF_MULTIPLIER = 2.0
"""Exponential backoff multiplier for OCR retries."""

OCR_RETRY_ATTEMPT_TIMEOUT = 30.0
"""Timeout for a single OCR attempt (seconds)."""


# ============================================================================
# POLL SIMULATION (long-running generative calls)
# ============================================================================

POLL_RETRY_INITIAL_DELAY = 2.0
"""Delay before the second poll attempt (seconds)."""

POLL_RETRY_MAX_DELAY = 60.0
"""Maximum delay between poll retries (seconds)."""

POLL_RETRY_BACKOFF_MULTIPLIER = 2.0
"""Exponential backoff multiplier for poll retries."""

POLL_RETRY_ATTEMPT_TIMEOUT = 60.0
"""Timeout for a single poll attempt (seconds)."""


# ============================================================================
# ERROR CLASSIFICATION
# ============================================================================

RETRYABLE_NETWORK_ERROR_CODES = frozenset({
    "ECONNRESET",
    "ETIMEDOUT",
    "ENOTFOUND",
    "ECONNREFUSED",
    "EPIPE",
    "EHOSTUNREACH",
})
"""Symbolic network error codes treated as transient."""

AUTH_ERROR_STATUS_CODES = frozenset({401, 403})
"""HTTP status codes that indicate a credential problem."""

RATE_LIMIT_STATUS_CODE = 429
"""HTTP status code returned when a rate limit is exceeded."""
