"""
Enumeration classes for the application.

All enum types used throughout the application for type safety and validation.
"""

from enum import Enum


class PollType(str, Enum):
    """
    Kinds of simulated consumer poll.

    - MAIN_IMAGE: respondents judge each product's main image
    - IMAGE_STACK: respondents judge each product's secondary images
    - FEATURES: respondents judge the written feature bullets
    """
    MAIN_IMAGE = "main_image"
    IMAGE_STACK = "image_stack"
    FEATURES = "features"

    @property
    def is_image_poll(self) -> bool:
        return self in (PollType.MAIN_IMAGE, PollType.IMAGE_STACK)

    @property
    def context(self) -> str:
        """Framing sentence describing what the respondents evaluate."""
        contexts = {
            PollType.MAIN_IMAGE: (
                "evaluating the MAIN PRODUCT IMAGES of these products. "
                "Focus on visual appeal, quality, and first impressions."
            ),
            PollType.IMAGE_STACK: (
                "evaluating the COMPLETE IMAGE SETS of these products. "
                "Consider the variety, quality, and helpfulness of all images together."
            ),
            PollType.FEATURES: (
                "evaluating the FEATURES AND FUNCTIONALITY of these products. "
                "Focus on practical benefits, innovation, and value."
            ),
        }
        return contexts[self]


class FetchStatus(str, Enum):
    """Per-item status of a product fetch."""
    PENDING = "pending"
    FETCHING = "fetching"
    SUCCESS = "success"
    NEEDS_REVIEW = "needs_review"
    FAILED = "failed"


class ErrorKind(str, Enum):
    """
    Classification of a failed external call.

    Only AUTH_ERROR and CLIENT_ERROR are permanent; every other kind is retried.
    """
    RATE_LIMIT = "rate_limit"
    SERVER_ERROR = "server_error"
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    AUTH_ERROR = "auth_error"
    CLIENT_ERROR = "client_error"
    PARSING_ERROR = "parsing_error"
    UNKNOWN = "unknown"

    @property
    def is_retryable(self) -> bool:
        return self not in (ErrorKind.AUTH_ERROR, ErrorKind.CLIENT_ERROR)
