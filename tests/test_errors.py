import asyncio
import errno
import json

import httpx
import openai
import pytest

from listing_insights.constants import ErrorKind
from listing_insights.utils.errors import (
    CreditsExhaustedError,
    HTTPStatusError,
    InvalidInputError,
    OperationCancelled,
    ProductFetchError,
    RateLimitError,
    ResponseParsingError,
    classify_error,
    user_friendly_message,
)


def _openai_status_error(status):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    response = httpx.Response(status, request=request)
    return openai.APIStatusError(f"Error code: {status}", response=response, body=None)


class CodedError(Exception):
    def __init__(self, message, code):
        super().__init__(message)
        self.code = code


@pytest.mark.parametrize(
    "status,kind,retryable",
    [
        (429, ErrorKind.RATE_LIMIT, True),
        (500, ErrorKind.SERVER_ERROR, True),
        (503, ErrorKind.SERVER_ERROR, True),
        (401, ErrorKind.AUTH_ERROR, False),
        (403, ErrorKind.AUTH_ERROR, False),
        (400, ErrorKind.CLIENT_ERROR, False),
        (404, ErrorKind.CLIENT_ERROR, False),
    ],
)
def test_classify_http_status(status, kind, retryable):
    classification = classify_error(HTTPStatusError("failed", status))
    assert classification.kind == kind
    assert classification.is_retryable is retryable
    assert classification.status_code == status


def test_classify_openai_status_errors():
    assert classify_error(_openai_status_error(429)).kind == ErrorKind.RATE_LIMIT
    assert classify_error(_openai_status_error(401)).kind == ErrorKind.AUTH_ERROR
    assert classify_error(_openai_status_error(502)).kind == ErrorKind.SERVER_ERROR


def test_classify_httpx_status_error_reads_response():
    request = httpx.Request("GET", "https://proxy.scrapeops.io/v1/")
    response = httpx.Response(503, request=request)
    error = httpx.HTTPStatusError("boom", request=request, response=response)
    assert classify_error(error).kind == ErrorKind.SERVER_ERROR


def test_auth_error_mentions_env_file():
    assert ".env" in classify_error(HTTPStatusError("denied", 401)).message


@pytest.mark.parametrize(
    "error",
    [
        CodedError("socket hang up", "ECONNRESET"),
        CodedError("lookup failed", "ENOTFOUND"),
        ConnectionResetError(errno.ECONNRESET, "reset by peer"),
        ConnectionRefusedError(errno.ECONNREFUSED, "refused"),
        httpx.ConnectError("connection failed"),
    ],
)
def test_classify_network_errors(error):
    classification = classify_error(error)
    assert classification.kind == ErrorKind.NETWORK_ERROR
    assert classification.is_retryable


@pytest.mark.parametrize(
    "error",
    [
        asyncio.TimeoutError(),
        httpx.ReadTimeout("read timed out"),
        Exception("Request timeout after 30s"),
    ],
)
def test_classify_timeouts(error):
    classification = classify_error(error)
    assert classification.kind == ErrorKind.TIMEOUT
    assert classification.is_retryable


def test_classify_parsing_errors():
    try:
        json.loads("{not json")
    except json.JSONDecodeError as e:
        decode_error = e
    assert classify_error(decode_error).kind == ErrorKind.PARSING_ERROR
    assert classify_error(Exception("Failed to parse response")).kind == ErrorKind.PARSING_ERROR
    assert classify_error(ResponseParsingError("empty")).kind == ErrorKind.PARSING_ERROR


def test_classify_invalid_image_message_is_permanent():
    classification = classify_error(Exception("Invalid or blank image provided"))
    assert classification.kind == ErrorKind.CLIENT_ERROR
    assert not classification.is_retryable


def test_domain_errors_use_their_kind():
    assert classify_error(RateLimitError("slow down")).kind == ErrorKind.RATE_LIMIT
    assert classify_error(InvalidInputError("bad asin")).kind == ErrorKind.CLIENT_ERROR
    assert classify_error(CreditsExhaustedError("no credits")).kind == ErrorKind.CLIENT_ERROR
    assert not classify_error(OperationCancelled("stop")).is_retryable


def test_product_fetch_error_classified_by_cause():
    try:
        try:
            raise HTTPStatusError("not found", 404)
        except HTTPStatusError as cause:
            raise ProductFetchError("B0ABC12345", str(cause)) from cause
    except ProductFetchError as e:
        error = e

    assert str(error) == "Failed to fetch ASIN B0ABC12345: not found"
    assert classify_error(error).kind == ErrorKind.CLIENT_ERROR


@pytest.mark.parametrize("value", [None, "plain string", 42, {"status": "weird"}, object()])
def test_classify_never_raises(value):
    classification = classify_error(value)
    assert classification.kind == ErrorKind.UNKNOWN
    assert classification.is_retryable


def test_unknown_keeps_original_message():
    classification = classify_error(ValueError("something odd"))
    assert classification.kind == ErrorKind.UNKNOWN
    assert classification.message == "something odd"


@pytest.mark.parametrize("kind", list(ErrorKind))
def test_only_auth_and_client_errors_are_permanent(kind):
    assert kind.is_retryable == (kind not in (ErrorKind.AUTH_ERROR, ErrorKind.CLIENT_ERROR))


def test_user_friendly_message():
    assert "rate limit" in user_friendly_message(HTTPStatusError("x", 429)).lower()
    assert ".env" in user_friendly_message(HTTPStatusError("x", 401))
    assert user_friendly_message(CreditsExhaustedError("No credits left")) == "No credits left"
    assert user_friendly_message(InvalidInputError("Bad screenshot")) == "Bad screenshot"
    assert user_friendly_message(OperationCancelled("Operation cancelled while waiting to retry")) == (
        "Operation cancelled while waiting to retry"
    )
