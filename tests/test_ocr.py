from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from listing_insights.agents.ocr import (
    calculate_shipping_days,
    extract_data_from_screenshot,
    validate_ocr_extraction,
)
from listing_insights.models import OCRExtraction
from listing_insights.services.llm import LLMClient
from listing_insights.utils.errors import InvalidInputError

from .conftest import PNG_BASE64, PNG_DATA_URL

TODAY = date(2025, 10, 10)


def _llm(*replies):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(side_effect=[
        SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])
        for text in replies
    ])
    return LLMClient(client, "gpt-4o"), client.chat.completions.create


@pytest.mark.asyncio
async def test_extracts_fields(no_sleep):
    llm, create = _llm(
        '```json\n{"price": "$80.99", "shippingDate": "Thursday, October 16", "reviews": "1,345", "rating": 4.7}\n```'
    )

    result = await extract_data_from_screenshot(PNG_DATA_URL, "image/png", llm, today=TODAY, sleep=no_sleep)

    assert result == OCRExtraction(
        price=80.99, shipping_date="Thursday, October 16", shipping_days=6, reviews=1345, rating=4.7
    )
    assert validate_ocr_extraction(result)
    kwargs = create.await_args.kwargs
    assert kwargs["temperature"] == 0.0
    assert kwargs["messages"][0]["content"][0]["image_url"]["url"] == PNG_DATA_URL


@pytest.mark.asyncio
async def test_unsupported_media_type_falls_back_to_jpeg(no_sleep):
    llm, create = _llm('{"price": 10, "shippingDate": "", "reviews": 0, "rating": 0}')

    result = await extract_data_from_screenshot(PNG_BASE64, "image/bmp", llm, today=TODAY, sleep=no_sleep)

    url = create.await_args.kwargs["messages"][0]["content"][0]["image_url"]["url"]
    assert url.startswith("data:image/jpeg;base64,")
    assert result.shipping_days == 0


@pytest.mark.asyncio
async def test_blank_image_reply_is_permanent(no_sleep):
    llm, create = _llm("The image appears to be blank, I cannot extract any data.")

    with pytest.raises(InvalidInputError):
        await extract_data_from_screenshot(PNG_BASE64, "image/png", llm, sleep=no_sleep)

    assert create.await_count == 1
    assert no_sleep.delays == []


@pytest.mark.asyncio
async def test_reply_without_json_is_retried(no_sleep):
    llm, create = _llm(
        "Let me look at this more carefully.",
        '{"price": 12.5, "shippingDate": "October 12", "reviews": 3, "rating": 4}',
    )

    result = await extract_data_from_screenshot(PNG_BASE64, "image/png", llm, today=TODAY, sleep=no_sleep)

    assert create.await_count == 2
    assert no_sleep.delays == [1.0]
    assert result.shipping_days == 2


@pytest.mark.asyncio
async def test_undecodable_image_rejected_before_calling_model():
    llm, create = _llm()
    with pytest.raises(InvalidInputError):
        await extract_data_from_screenshot("%%%not-an-image%%%", "image/png", llm)
    create.assert_not_awaited()


@pytest.mark.parametrize(
    "text,days",
    [
        ("Thursday, October 16", 6),
        ("October 10", 0),
        ("Friday, January 2", 84),
        ("sometime soon", 0),
        ("", 0),
    ],
)
def test_calculate_shipping_days(text, days):
    assert calculate_shipping_days(text, TODAY) == days


@pytest.mark.parametrize(
    "fields,valid",
    [
        (dict(price=19.99, shipping_days=3, reviews=10, rating=4.5), True),
        (dict(price=0, shipping_days=3, reviews=10, rating=4.5), False),
        (dict(price=19.99, shipping_days=31, reviews=10, rating=4.5), False),
        (dict(price=19.99, shipping_days=3, reviews=-1, rating=4.5), False),
        (dict(price=19.99, shipping_days=3, reviews=10, rating=5.1), False),
    ],
)
def test_validate_ocr_extraction(fields, valid):
    assert validate_ocr_extraction(OCRExtraction(shipping_date="", **fields)) is valid
