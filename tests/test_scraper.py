from datetime import date

import httpx
import pytest

from listing_insights.services.scraper import ScrapeOpsClient, ScrapeOpsDataParser, is_valid_asin
from listing_insights.utils.api_helpers import RetryPolicy
from listing_insights.utils.errors import HTTPStatusError, InvalidInputError

TODAY = date(2025, 4, 10)
FAST_POLICY = RetryPolicy(initial_delay=0.01, max_delay=0.01, backoff_multiplier=2, per_attempt_timeout=5)

SAMPLE_PAYLOAD = {
    "status": "parse_successful",
    "url": "https://www.amazon.com/dp/B08WM3LMJF",
    "data": {
        "name": "Cordless Stick Vacuum",
        "pricing": "$1,177.91",
        "list_price": "$1,299.00",
        "availability_status": "FREE delivery Monday, April 15",
        "total_reviews": "12,345",
        "average_rating": "4.6 out of 5 stars",
        "images": [
            "https://m.media-amazon.com/images/I/abc._AC_US100_.jpg",
            "https://m.media-amazon.com/images/I/def.jpg",
        ],
        "feature_bullets": ["Powerful suction", "  ", "60 minute runtime"],
        "product_information": {"ASIN": "B08WM3LMJF"},
    },
}


@pytest.fixture
def parser():
    return ScrapeOpsDataParser(today=TODAY)


@pytest.mark.parametrize(
    "raw,expected",
    [("$1,177.91", 1177.91), ("$19.99", 19.99), (None, 0.0), ("", 0.0), (24.5, 24.5), ("N/A", 0.0)],
)
def test_parse_price(raw, expected):
    assert ScrapeOpsDataParser.parse_price(raw) == expected


@pytest.mark.parametrize(
    "text,days",
    [
        ("Get it today", 0),
        ("FREE delivery tomorrow", 1),
        ("In Stock", 3),
        ("Arrives: Apr 12", 2),
        ("FREE delivery Monday, April 15", 5),
        ("FREE delivery April 20", 10),
        ("Usually ships within 7 days", 7),
        ("Currently unavailable", 5),
        ("", 5),
    ],
)
def test_parse_shipping_days(parser, text, days):
    assert parser.parse_shipping_days(text) == days


def test_past_delivery_date_rolls_into_next_year():
    parser = ScrapeOpsDataParser(today=date(2025, 12, 30))
    assert parser.parse_shipping_days("Arrives: Jan 2") == 3


def test_parse_product_data(parser):
    data = parser.parse_product_data(SAMPLE_PAYLOAD)

    assert data.asin == "B08WM3LMJF"
    assert data.name == "Cordless Stick Vacuum"
    assert data.price == 1177.91
    assert data.original_price == 1299.0
    assert data.shipping_days == 5
    assert data.review_count == 12345
    assert data.rating == 4.6
    assert data.features == "1. Powerful suction\n\n2. 60 minute runtime"
    assert data.image_urls == [
        "https://m.media-amazon.com/images/I/abc._AC_SL1500_.jpg",
        "https://m.media-amazon.com/images/I/def._AC_SL1500_.jpg",
    ]


def test_parse_product_data_alternate_fields(parser):
    data = parser.parse_product_data({
        "url": "https://www.amazon.com/gp/product/b0731y59hg?th=1",
        "title": "Desk Lamp",
        "pricing": "$24.00",
        "shipping_time": "Ships within 2 days",
        "Customer Reviews": {"ratings_count": 87, "stars": 4.1},
    })

    assert data.asin == "B0731Y59HG"
    assert data.name == "Desk Lamp"
    assert data.shipping_days == 2
    assert data.review_count == 87
    assert data.rating == 4.1
    assert data.features == "No features specified"
    assert data.original_price is None


def test_parse_product_data_defaults(parser):
    data = parser.parse_product_data({"data": {}})
    assert data.asin == "UNKNOWN"
    assert data.name == "Unknown Product"
    assert data.price == 0.0


@pytest.mark.parametrize(
    "asin,valid",
    [("B08WM3LMJF", True), ("b08wm3lmjf", False), ("B08WM3LMJ", False), ("B08WM3LMJF1", False), ("", False)],
)
def test_is_valid_asin(asin, valid):
    assert is_valid_asin(asin) is valid


def _client(handler, **kwargs):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ScrapeOpsClient(http, "test-key", parser=ScrapeOpsDataParser(today=TODAY), **kwargs)


def test_client_requires_api_key():
    with pytest.raises(ValueError):
        ScrapeOpsClient(httpx.AsyncClient(), "")


@pytest.mark.asyncio
async def test_fetch_product_sends_expected_params():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json=SAMPLE_PAYLOAD)

    client = _client(handler)
    data = await client.fetch_product("B08WM3LMJF")
    await client.close()

    assert data.name == "Cordless Stick Vacuum"
    params = requests[0].url.params
    assert params["api_key"] == "test-key"
    assert params["asin"] == "B08WM3LMJF"
    assert params["country"] == "us"
    assert params["tld"] == "com"


@pytest.mark.asyncio
async def test_fetch_product_accepts_list_payload():
    client = _client(lambda request: httpx.Response(200, json=[SAMPLE_PAYLOAD]))
    data = await client.fetch_product("B08WM3LMJF")
    assert data.asin == "B08WM3LMJF"


@pytest.mark.asyncio
async def test_fetch_product_retries_unsuccessful_parse(no_sleep):
    responses = [
        httpx.Response(200, json={"status": "parse_failed"}),
        httpx.Response(500, text="upstream down"),
        httpx.Response(200, json=SAMPLE_PAYLOAD),
    ]
    client = _client(lambda request: responses.pop(0), policy=FAST_POLICY)

    data = await client.fetch_product("B08WM3LMJF", sleep=no_sleep)

    assert data.price == 1177.91
    assert len(no_sleep.delays) == 2


@pytest.mark.asyncio
async def test_fetch_product_404_is_permanent(no_sleep):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(404, text="not found")

    client = _client(handler, policy=FAST_POLICY)
    with pytest.raises(HTTPStatusError) as exc_info:
        await client.fetch_product("B08WM3LMJF", sleep=no_sleep)

    assert exc_info.value.status_code == 404
    assert len(calls) == 1
    assert no_sleep.delays == []


@pytest.mark.asyncio
async def test_fetch_product_rejects_malformed_asin():
    client = _client(lambda request: httpx.Response(200, json=SAMPLE_PAYLOAD))
    with pytest.raises(InvalidInputError):
        await client.fetch_product("not-an-asin")
