"""
Screenshot field extraction.

Reads price, delivery date, review count and star rating off an Amazon
product page screenshot with the vision model.
"""
import asyncio
import logging
from datetime import date
from typing import Any, Dict, Optional

from ..constants import (
    INVALID_IMAGE_MARKERS,
    LLM_TEMP_SCREENSHOT_EXTRACTION,
    OCR_MAX_TOKENS,
    PRICE_MAX_EXCLUSIVE,
    PRICE_MIN_EXCLUSIVE,
    RATING_MAX,
    RATING_MIN,
    SHIPPING_DAYS_MAX,
    SHIPPING_DAYS_MIN,
)
from ..models import ImagePayload, OCRExtraction
from ..prompts.ocr import SCREENSHOT_EXTRACTION_PROMPT
from ..services.llm import JSON_OBJECT_PATTERN, LLMClient, extract_json_object
from ..utils.api_helpers import DEFAULT_OCR_RETRY_POLICY, OnRetry, RetryPolicy, SleepFunc
from ..utils.dates import days_until
from ..utils.errors import InvalidInputError, ResponseParsingError
from ..utils.images import decode_image_input, normalize_media_type

logger = logging.getLogger(__name__)

INVALID_SCREENSHOT_MESSAGE = (
    "Invalid or blank image provided. Please upload a clear screenshot of an Amazon product page."
)


def calculate_shipping_days(shipping_date: str, today: Optional[date] = None) -> int:
    """
    Days from today until the delivery date shown on the page.

    Example:
        >>> calculate_shipping_days("Thursday, October 16", date(2025, 10, 10))
        6

    Dates already past are taken to be next year. Unparsable text gives 0.
    """
    days = days_until(shipping_date, today)
    if days is None:
        logger.warning(f"Could not parse shipping date '{shipping_date}', using 0 days")
        return 0
    return days


def parse_screenshot_response(text: str) -> Dict[str, Any]:
    """
    Pull the extraction JSON out of the model reply.

    A reply with no JSON that says the image is blank or not a product page
    is an input problem and is not retried; any other reply without JSON is
    a parsing failure and is retried.
    """
    if not JSON_OBJECT_PATTERN.search(text or ""):
        lowered = (text or "").lower()
        if any(marker in lowered for marker in INVALID_IMAGE_MARKERS):
            raise InvalidInputError(INVALID_SCREENSHOT_MESSAGE)
        raise ResponseParsingError("Could not extract data from screenshot: no JSON in reply")
    return extract_json_object(text)


def _number(value: Any, cast):
    if value is None or value == "":
        return cast(0)
    if isinstance(value, str):
        value = value.replace("$", "").replace(",", "").strip()
    try:
        return cast(float(value))
    except (TypeError, ValueError):
        return cast(0)


def validate_ocr_extraction(data: OCRExtraction) -> bool:
    return (
        PRICE_MIN_EXCLUSIVE < data.price < PRICE_MAX_EXCLUSIVE
        and SHIPPING_DAYS_MIN <= data.shipping_days <= SHIPPING_DAYS_MAX
        and data.reviews >= 0
        and RATING_MIN <= data.rating <= RATING_MAX
    )


async def extract_data_from_screenshot(
    image: Any,
    media_type: Optional[str],
    llm: LLMClient,
    *,
    today: Optional[date] = None,
    policy: RetryPolicy = DEFAULT_OCR_RETRY_POLICY,
    on_retry: Optional[OnRetry] = None,
    cancel: Optional[asyncio.Event] = None,
    sleep: Optional[SleepFunc] = None,
) -> OCRExtraction:
    """
    Extract product fields from one screenshot.

    Args:
        image: Data URL or bare base64 string
        media_type: Declared media type; unsupported types fall back to JPEG
        llm: LLM adapter
        today: Reference date for the delivery day count
        policy: Retry policy (interactive defaults)
        on_retry: Retry observer or callback
        cancel: Cancellation event
        sleep: Sleep override for the retry executor (tests)

    Raises:
        InvalidInputError: undecodable image, or the model reports a blank image
    """
    attachment = decode_image_input(
        ImagePayload(base64=image, media_type=normalize_media_type(media_type))
        if isinstance(image, str) and media_type
        else image
    )
    if attachment is None:
        raise InvalidInputError(INVALID_SCREENSHOT_MESSAGE)

    logger.info(f"Extracting screenshot data ({attachment.media_type}, {len(attachment.data)} chars)")

    parsed = await llm.complete(
        [attachment, SCREENSHOT_EXTRACTION_PROMPT],
        policy=policy,
        temperature=LLM_TEMP_SCREENSHOT_EXTRACTION,
        max_tokens=OCR_MAX_TOKENS,
        parse=parse_screenshot_response,
        require_images=True,
        on_retry=on_retry,
        cancel=cancel,
        sleep=sleep,
    )

    shipping_date = str(parsed.get("shippingDate") or parsed.get("shipping_date") or "")
    extraction = OCRExtraction(
        price=_number(parsed.get("price"), float),
        shipping_date=shipping_date,
        shipping_days=calculate_shipping_days(shipping_date, today),
        reviews=_number(parsed.get("reviews"), int),
        rating=_number(parsed.get("rating"), float),
    )
    logger.info(
        f"Screenshot extraction: price={extraction.price}, days={extraction.shipping_days}, "
        f"reviews={extraction.reviews}, rating={extraction.rating}"
    )
    return extraction
