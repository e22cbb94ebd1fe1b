"""
Exception hierarchy and failure classification for external calls.

Every failure raised while talking to the LLM or ScrapeOps is mapped to an
``ErrorClassification`` that decides whether the retry executor tries again.
Only authentication problems and client-side mistakes are permanent; anything
else is assumed transient.
"""
import asyncio
import errno
import json
import socket
from typing import Any, Optional

import httpx
import openai

from ..constants import (
    AUTH_ERROR_STATUS_CODES,
    RATE_LIMIT_STATUS_CODE,
    RETRYABLE_NETWORK_ERROR_CODES,
    ErrorKind,
)
from ..models.errors import ErrorClassification


class APIError(Exception):
    """Base exception for API-related errors."""
    kind: Optional[ErrorKind] = None


class TransientAPIError(APIError):
    """Transient error that should be retried."""
    pass


class RateLimitError(TransientAPIError):
    """Rate limit exceeded."""
    kind = ErrorKind.RATE_LIMIT


class ResponseParsingError(TransientAPIError):
    """The service answered with a body that could not be parsed."""
    kind = ErrorKind.PARSING_ERROR


class PermanentAPIError(APIError):
    """Permanent error that should not be retried."""
    kind = ErrorKind.CLIENT_ERROR


class InvalidInputError(PermanentAPIError):
    """The input itself is unusable (blank screenshot, bad ASIN, no images)."""
    pass


class CreditsExhaustedError(PermanentAPIError):
    """The service account has no remaining credits."""
    pass


class OperationCancelled(PermanentAPIError):
    """The caller cancelled the operation while it was retrying."""
    pass


class HTTPStatusError(APIError):
    """Non-2xx answer from an HTTP service; classified by its status code."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class ProductFetchError(APIError):
    """Fetching one ASIN failed; the cause is chained as ``__cause__``."""

    def __init__(self, asin: str, message: str):
        super().__init__(f"Failed to fetch ASIN {asin}: {message}")
        self.asin = asin


# ============================================================================
# CLASSIFICATION
# ============================================================================

_NETWORK_ERRNOS = {
    getattr(errno, name): name
    for name in RETRYABLE_NETWORK_ERROR_CODES
    if hasattr(errno, name)
}

_TIMEOUT_TYPES = (
    asyncio.TimeoutError,
    TimeoutError,
    httpx.TimeoutException,
    openai.APITimeoutError,
)

_NETWORK_TYPES = (
    ConnectionError,
    socket.gaierror,
    httpx.NetworkError,
    openai.APIConnectionError,
)

PARSING_MARKERS = ("json", "parse", "no json found")
INVALID_INPUT_MARKERS = ("invalid or blank image", "blank image", "invalid image provided")


def _status_code(error: Any) -> Optional[int]:
    for attr in ("status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    response = getattr(error, "response", None)
    value = getattr(response, "status_code", None)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def _network_code(error: Any) -> Optional[str]:
    code = getattr(error, "code", None)
    if isinstance(code, str) and code.upper() in RETRYABLE_NETWORK_ERROR_CODES:
        return code.upper()
    err_no = getattr(error, "errno", None)
    if isinstance(err_no, int) and err_no in _NETWORK_ERRNOS:
        return _NETWORK_ERRNOS[err_no]
    if isinstance(error, socket.gaierror):
        return "ENOTFOUND"
    if isinstance(error, BrokenPipeError):
        return "EPIPE"
    return None


def _is_network_error(error: Any) -> bool:
    if _network_code(error):
        return True
    if isinstance(error, _TIMEOUT_TYPES):
        return False
    return isinstance(error, _NETWORK_TYPES)


def _message(error: Any) -> str:
    if isinstance(error, BaseException):
        return str(error)
    message = getattr(error, "message", None)
    return message if isinstance(message, str) else ""


def classify_error(error: Any) -> ErrorClassification:
    """
    Classify a failure to determine whether it should be retried.

    Rules are evaluated in priority order, first match wins:
    explicit domain errors, HTTP status (429, 5xx, 401/403, other 4xx),
    network error codes, timeouts, unparsable bodies, unusable input,
    and finally an unknown (retryable) default.

    Never raises, whatever it is given.

    Args:
        error: Exception (or any value) caught around an external call

    Returns:
        ErrorClassification for this failure

    Example:
        >>> classify_error(HTTPStatusError("Too many requests", 429)).kind
        <ErrorKind.RATE_LIMIT: 'rate_limit'>
    """
    try:
        return _classify(error)
    except Exception:
        return ErrorClassification(
            is_retryable=True,
            kind=ErrorKind.UNKNOWN,
            message="Unknown error occurred",
        )


def _classify(error: Any) -> ErrorClassification:
    if isinstance(error, ProductFetchError) and error.__cause__ is not None:
        return _classify(error.__cause__)

    message = _message(error)
    lowered = message.lower()

    kind = getattr(error, "kind", None)
    if isinstance(error, APIError) and isinstance(kind, ErrorKind):
        return ErrorClassification(
            is_retryable=kind.is_retryable,
            kind=kind,
            status_code=_status_code(error),
            message=message or kind.value,
        )

    status = _status_code(error)
    if status is not None:
        if status == RATE_LIMIT_STATUS_CODE:
            return ErrorClassification(
                is_retryable=True,
                kind=ErrorKind.RATE_LIMIT,
                status_code=status,
                message="Rate limit exceeded",
            )
        if 500 <= status < 600:
            return ErrorClassification(
                is_retryable=True,
                kind=ErrorKind.SERVER_ERROR,
                status_code=status,
                message="Server error occurred",
            )
        if status in AUTH_ERROR_STATUS_CODES:
            return ErrorClassification(
                is_retryable=False,
                kind=ErrorKind.AUTH_ERROR,
                status_code=status,
                message="Authentication failed. Check the API key configured in the environment (.env)",
            )
        if 400 <= status < 500:
            return ErrorClassification(
                is_retryable=False,
                kind=ErrorKind.CLIENT_ERROR,
                status_code=status,
                message="Invalid request",
            )

    if _is_network_error(error):
        return ErrorClassification(
            is_retryable=True,
            kind=ErrorKind.NETWORK_ERROR,
            message="Network connection error",
        )

    if (
        isinstance(error, _TIMEOUT_TYPES)
        or type(error).__name__ == "TimeoutError"
        or "timeout" in lowered
        or "timed out" in lowered
    ):
        return ErrorClassification(
            is_retryable=True,
            kind=ErrorKind.TIMEOUT,
            message="Request timed out",
        )

    if isinstance(error, json.JSONDecodeError) or any(m in lowered for m in PARSING_MARKERS):
        return ErrorClassification(
            is_retryable=True,
            kind=ErrorKind.PARSING_ERROR,
            message="Failed to parse API response",
        )

    if any(m in lowered for m in INVALID_INPUT_MARKERS):
        return ErrorClassification(
            is_retryable=False,
            kind=ErrorKind.CLIENT_ERROR,
            message="Invalid image provided",
        )

    return ErrorClassification(
        is_retryable=True,
        kind=ErrorKind.UNKNOWN,
        message=message or "Unknown error occurred",
    )


USER_MESSAGES = {
    ErrorKind.RATE_LIMIT: "API rate limit reached. The system will automatically retry. Please wait...",
    ErrorKind.SERVER_ERROR: "The AI service is experiencing issues. The system will automatically retry. Please wait...",
    ErrorKind.NETWORK_ERROR: "Network connection issue detected. The system will automatically retry. Please check your internet connection.",
    ErrorKind.TIMEOUT: "Request timed out. The system will automatically retry. Please wait...",
    ErrorKind.AUTH_ERROR: "API authentication failed. Please check the API key in your .env file and restart the server.",
    ErrorKind.CLIENT_ERROR: "Invalid request. Please check the submitted data and try again.",
    ErrorKind.PARSING_ERROR: "Failed to parse API response. The system will automatically retry.",
    ErrorKind.UNKNOWN: "An error occurred. The system will automatically retry. Please wait...",
}


def user_friendly_message(error: Any) -> str:
    """
    Message suitable for the end user, chosen from the error's classification.

    Domain errors whose own message is already user-facing (exhausted
    credits, invalid input, cancellation) keep that message.
    """
    if isinstance(error, (CreditsExhaustedError, InvalidInputError, OperationCancelled)):
        return str(error)
    return USER_MESSAGES[classify_error(error).kind]
