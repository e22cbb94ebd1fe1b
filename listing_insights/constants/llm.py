"""
LLM (Large Language Model) Configuration Constants.

Model names, temperature settings, and other LLM-specific parameters.
"""

# ============================================================================
# MODEL NAMES
# ============================================================================

OPENAI_MODEL_VISION = "gpt-4o"
"""Vision-capable model used for polls and screenshot extraction."""


# ============================================================================
# TEMPERATURE SETTINGS
# ============================================================================

LLM_TEMP_POLL_SIMULATION = 0.7
"""Temperature for simulated consumer polls (varied responses)."""

LLM_TEMP_SCREENSHOT_EXTRACTION = 0.0
"""Temperature for screenshot field extraction (deterministic)."""


# ============================================================================
# TOKEN LIMITS
# ============================================================================

POLL_MAX_TOKENS = 4000
"""Maximum tokens for a poll simulation response."""

OCR_MAX_TOKENS = 1000
"""Maximum tokens for a screenshot extraction response."""


# ============================================================================
# POLL SHAPE
# ============================================================================

POLL_RESPONDENT_COUNT = 50
"""Number of simulated respondents per poll."""

POLL_MIN_SAMPLE_RESPONSES = 50
"""Sample responses expected per poll; fewer is logged, not fatal."""

POLL_LABEL_PREFIX = "P"
"""Prefix of the anonymous product labels shown to the model (P1, P2, ...)."""


# ============================================================================
# DOMAIN ERROR MARKERS
# ============================================================================

CREDIT_EXHAUSTION_MARKERS = (
    "credit balance is too low",
    "credit balance",
    "upgrade or purchase credits",
    "insufficient_quota",
    "exceeded your current quota",
)
"""Response fragments signalling the account has no remaining credits."""

INVALID_IMAGE_MARKERS = (
    "blank",
    "white",
    "cannot extract",
    "no amazon product",
)
"""Model reply fragments signalling an unusable screenshot."""
