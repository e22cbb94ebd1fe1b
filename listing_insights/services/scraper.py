"""
ScrapeOps Amazon product data adapter.

ScrapeOps returns a structured record per ASIN, but field names vary between
payloads (``name``/``title``, ``total_reviews``/``total_ratings``, ...). The
parser decodes every variant once into ``ScrapedProductData``.

API Documentation: https://scrapeops.io/docs/data-api/amazon-product-api/
Rate Limits: depends on plan; bulk fetches are paced by the caller
"""
import asyncio
import logging
import re
from datetime import date
from typing import Any, Dict, List, Optional

import httpx

from ..config import Settings, get_settings
from ..constants import (
    ASIN_PATTERN,
    ASIN_URL_PATTERN,
    DEFAULT_SHIPPING_DAYS,
    DEFAULT_TIMEOUT_HTTPX,
    FULL_SIZE_IMAGE_TOKEN,
    IN_STOCK_SHIPPING_DAYS,
    NO_FEATURES_TEXT,
    SCRAPEOPS_COUNTRY,
    SCRAPEOPS_PRODUCT_URL,
    SCRAPEOPS_SUCCESS_STATUS,
    SCRAPEOPS_TLD,
    THUMBNAIL_SIZE_TOKENS,
    UNKNOWN_ASIN,
    UNKNOWN_PRODUCT_NAME,
)
from ..models import ScrapedProductData
from ..utils.api_helpers import DEFAULT_OCR_RETRY_POLICY, OnRetry, RetryPolicy, SleepFunc, with_retry
from ..utils.dates import days_until
from ..utils.errors import HTTPStatusError, InvalidInputError, ResponseParsingError

logger = logging.getLogger(__name__)

SHIPPING_PATTERNS = {
    "today": re.compile(r"\btoday\b", re.IGNORECASE),
    "tomorrow": re.compile(r"\btomorrow\b", re.IGNORECASE),
    "in_stock": re.compile(r"in stock", re.IGNORECASE),
    "arrives": re.compile(r"arrives?:?\s*(\w+,?\s*\w+\s*\d+)", re.IGNORECASE),
    "delivery": re.compile(r"delivery\s+(?:\w+,?\s+)?(\w+\s+\d+)", re.IGNORECASE),
    "ships_within": re.compile(r"ships?\s+within\s+(\d+)\s+days?", re.IGNORECASE),
}

THUMBNAIL_PATTERN = re.compile(
    r"_AC_US(?:" + "|".join(THUMBNAIL_SIZE_TOKENS) + r")_"
)


def is_valid_asin(asin: str) -> bool:
    """ASINs are exactly 10 upper-case alphanumeric characters."""
    return bool(asin) and bool(ASIN_PATTERN.match(asin))


class ScrapeOpsDataParser:
    """Decodes raw ScrapeOps payloads into ``ScrapedProductData``."""

    def __init__(self, today: Optional[date] = None):
        self._today = today

    def parse_product_data(self, api_response: Dict[str, Any]) -> ScrapedProductData:
        data = api_response.get("data") or api_response
        reviews_block = data.get("Customer Reviews") or {}
        product_info = data.get("product_information") or {}

        return ScrapedProductData(
            asin=(
                product_info.get("ASIN")
                or data.get("asin")
                or self.extract_asin_from_url(api_response.get("url", ""))
                or UNKNOWN_ASIN
            ),
            name=data.get("name") or data.get("title") or UNKNOWN_PRODUCT_NAME,
            price=self.parse_price(data.get("pricing")),
            original_price=self.parse_price(data["list_price"]) if data.get("list_price") else None,
            shipping_days=self.parse_shipping_days(
                data.get("availability_status") or data.get("shipping_time") or "Standard shipping"
            ),
            review_count=self._to_int(
                data.get("total_reviews")
                or data.get("total_ratings")
                or reviews_block.get("ratings_count")
            ),
            rating=self._to_float(data.get("average_rating") or reviews_block.get("stars")),
            image_urls=self.process_image_urls(data.get("images") or []),
            features=self.format_features(data.get("feature_bullets") or []),
            raw_response=api_response,
        )

    @staticmethod
    def parse_price(price: Any) -> float:
        """
        Parse a price string into a number.

        Example:
            >>> ScrapeOpsDataParser.parse_price("$1,177.91")
            1177.91
        """
        if price is None or price == "":
            return 0.0
        if isinstance(price, (int, float)):
            return float(price)
        cleaned = re.sub(r"[$,]", "", str(price)).strip()
        match = re.search(r"\d+(?:\.\d+)?", cleaned)
        if not match:
            return 0.0
        return float(match.group(0))

    def parse_shipping_days(self, shipping_text: str) -> int:
        """
        Derive a shipping day count from availability text.

        Same-day and next-day phrases win, then plain "in stock" (3 days),
        then explicit arrival/delivery dates, then "ships within N days".
        Anything else falls back to 5 days.
        """
        if not shipping_text:
            return DEFAULT_SHIPPING_DAYS

        if SHIPPING_PATTERNS["today"].search(shipping_text):
            return 0
        if SHIPPING_PATTERNS["tomorrow"].search(shipping_text):
            return 1
        if SHIPPING_PATTERNS["in_stock"].search(shipping_text):
            return IN_STOCK_SHIPPING_DAYS

        for key in ("arrives", "delivery"):
            match = SHIPPING_PATTERNS[key].search(shipping_text)
            if match:
                days = days_until(match.group(1), self._today)
                return DEFAULT_SHIPPING_DAYS if days is None else days

        match = SHIPPING_PATTERNS["ships_within"].search(shipping_text)
        if match:
            return int(match.group(1))

        return DEFAULT_SHIPPING_DAYS

    @staticmethod
    def format_features(bullets: List[str]) -> str:
        """Feature bullets as a numbered list separated by blank lines."""
        bullets = [b.strip() for b in bullets if isinstance(b, str) and b.strip()]
        if not bullets:
            return NO_FEATURES_TEXT
        return "\n\n".join(f"{i}. {bullet}" for i, bullet in enumerate(bullets, start=1))

    @staticmethod
    def process_image_urls(image_urls: List[Any]) -> List[str]:
        """Swap thumbnail renditions for the 1500px version of each image."""
        processed = []
        for url in image_urls:
            if not isinstance(url, str) or not url:
                continue
            upgraded = THUMBNAIL_PATTERN.sub(FULL_SIZE_IMAGE_TOKEN, url)
            if upgraded == url and "_AC_SL" not in url:
                upgraded = re.sub(r"\.jpg$", f"{FULL_SIZE_IMAGE_TOKEN}.jpg", url)
            processed.append(upgraded)
        return processed

    @staticmethod
    def extract_asin_from_url(url: str) -> Optional[str]:
        if not url:
            return None
        match = ASIN_URL_PATTERN.search(url)
        if not match:
            return None
        return next(group for group in match.groups() if group).upper()

    @staticmethod
    def _to_int(value: Any) -> int:
        if value is None or value == "":
            return 0
        if isinstance(value, str):
            value = re.sub(r"[^\d.]", "", value) or "0"
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return 0

    @staticmethod
    def _to_float(value: Any) -> float:
        if value is None or value == "":
            return 0.0
        if isinstance(value, str):
            match = re.search(r"\d+(?:\.\d+)?", value)
            return float(match.group(0)) if match else 0.0
        try:
            return float(value)
        except (TypeError, ValueError):
            return 0.0


class ScrapeOpsClient:
    """
    ScrapeOps product API client.

    Each product request is wrapped in the retry executor; a payload whose
    status flag is not ``parse_successful`` counts as a parsing failure and
    is retried.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        parser: Optional[ScrapeOpsDataParser] = None,
        policy: RetryPolicy = DEFAULT_OCR_RETRY_POLICY,
    ):
        if not api_key:
            raise ValueError("SCRAPEOPS_API_KEY not configured in environment variables")
        self._http = http_client
        self._api_key = api_key
        self.parser = parser or ScrapeOpsDataParser()
        self.policy = policy

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ScrapeOpsClient":
        settings = settings or get_settings()
        return cls(httpx.AsyncClient(timeout=DEFAULT_TIMEOUT_HTTPX), settings.scrapeops_api_key or "")

    async def close(self) -> None:
        await self._http.aclose()

    async def fetch_product(
        self,
        asin: str,
        on_retry: Optional[OnRetry] = None,
        cancel: Optional[asyncio.Event] = None,
        sleep: Optional[SleepFunc] = None,
    ) -> ScrapedProductData:
        """
        Fetch and parse one product.

        Raises:
            InvalidInputError: malformed ASIN (never sent to ScrapeOps)
            HTTPStatusError: permanent HTTP failure (4xx other than 429)
        """
        if not is_valid_asin(asin):
            raise InvalidInputError(f"Invalid ASIN format: {asin}")

        params = {
            "api_key": self._api_key,
            "asin": asin,
            "country": SCRAPEOPS_COUNTRY,
            "tld": SCRAPEOPS_TLD,
        }

        async def attempt() -> Dict[str, Any]:
            response = await self._http.get(
                SCRAPEOPS_PRODUCT_URL,
                params=params,
                headers={"Accept": "application/json"},
            )
            if not response.is_success:
                raise HTTPStatusError(
                    f"ScrapeOps API request failed: {response.status_code}",
                    response.status_code,
                )

            try:
                payload = response.json()
            except ValueError as e:
                raise ResponseParsingError(f"ScrapeOps returned a body that does not parse as JSON: {e}") from e

            if isinstance(payload, list):
                payload = payload[0] if payload else {}
            if not isinstance(payload, dict):
                raise ResponseParsingError(f"Unexpected ScrapeOps payload for ASIN {asin}")

            status = payload.get("status")
            if status != SCRAPEOPS_SUCCESS_STATUS:
                raise ResponseParsingError(f"ScrapeOps failed to parse ASIN {asin}: {status}")
            return payload

        options = {"cancel": cancel, "label": f"ScrapeOps {asin}"}
        if sleep is not None:
            options["sleep"] = sleep
        payload = await with_retry(attempt, self.policy, on_retry, **options)
        return self.parser.parse_product_data(payload)
