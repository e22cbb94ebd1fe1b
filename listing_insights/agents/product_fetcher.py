"""
Product fetch orchestration.

Combines the ScrapeOps client, the image downloader and the data validator
into one pipeline per ASIN, and runs bulk fetches sequentially with a fixed
pause between items to stay under third-party rate limits.
"""
import asyncio
import logging
import re
from typing import Callable, List, Optional, Sequence, Tuple

from ..constants import BULK_FETCH_ITEM_DELAY, FetchStatus
from ..models import BulkFetchResult, CompleteProductData, ProductFetchResult
from ..services.images import ImageProcessor
from ..services.scraper import ScrapeOpsClient, is_valid_asin
from ..services.validation import DataValidation
from ..utils.api_helpers import SleepFunc
from ..utils.errors import ProductFetchError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, FetchStatus, Optional[CompleteProductData]], None]
"""Called with (asin, status, data) as each item starts and finishes."""


def parse_bulk_asins(text: str) -> List[str]:
    """
    Split pasted ASINs on commas, newlines or spaces.

    Example:
        >>> parse_bulk_asins("b0abc12345, B0XYZ67890\\nb0abc12345")
        ['B0ABC12345', 'B0XYZ67890']
    """
    tokens = (token.strip().upper() for token in re.split(r"[,\s]+", text or ""))
    return list(dict.fromkeys(token for token in tokens if token))


def validate_bulk_asins(asins: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Partition ASINs into (valid, invalid), keeping input order."""
    valid: List[str] = []
    invalid: List[str] = []
    for asin in asins:
        (valid if is_valid_asin(asin) else invalid).append(asin)
    return valid, invalid


class ProductFetcher:
    """
    Fetch, download images for and validate Amazon products.

    Usage:
        async with ImageProcessor() as images:
            fetcher = ProductFetcher(scraper, images)
            result = await fetcher.fetch_bulk_products(["B0ABC12345"])
    """

    def __init__(
        self,
        scraper: ScrapeOpsClient,
        image_processor: ImageProcessor,
        validator: Optional[DataValidation] = None,
        item_delay: float = BULK_FETCH_ITEM_DELAY,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.scraper = scraper
        self.images = image_processor
        self.validator = validator or DataValidation()
        self.item_delay = item_delay
        self._sleep = sleep

    async def fetch_and_process_product(self, asin: str) -> CompleteProductData:
        """
        Scrape one ASIN, download its images and validate the result.

        Raises:
            ProductFetchError: any step failed; the original error is chained
        """
        try:
            logger.info(f"Fetching ASIN {asin}")
            scraped = await self.scraper.fetch_product(asin)

            processed = await self.images.process_product_images(scraped.image_urls)
            validation = self.validator.validate_scraped_data(scraped, processed)
            data = validation.data

            return CompleteProductData(
                asin=data.asin,
                name=data.name,
                price=data.price,
                original_price=data.original_price,
                shipping_days=data.shipping_days,
                review_count=data.review_count,
                rating=data.rating,
                images=processed,
                features=data.features,
                validation=validation,
                raw_response=scraped.raw_response,
            )
        except Exception as e:
            logger.error(f"Error fetching ASIN {asin}: {e}")
            raise ProductFetchError(asin, str(e)) from e

    async def fetch_bulk_products(
        self,
        asins: Sequence[str],
        on_progress: Optional[ProgressCallback] = None,
    ) -> BulkFetchResult:
        """
        Fetch several ASINs one after another.

        Individual failures are recorded and the batch carries on. Results
        keep the input order.
        """
        results: List[ProductFetchResult] = []

        for index, asin in enumerate(asins):
            self._report(on_progress, asin, FetchStatus.FETCHING, None)
            try:
                data = await self.fetch_and_process_product(asin)
            except ProductFetchError as e:
                results.append(ProductFetchResult(asin=asin, status=FetchStatus.FAILED, error=str(e)))
                self._report(on_progress, asin, FetchStatus.FAILED, None)
            else:
                if not data.validation.is_valid:
                    status = FetchStatus.FAILED
                elif data.validation.warnings:
                    status = FetchStatus.NEEDS_REVIEW
                else:
                    status = FetchStatus.SUCCESS
                error = "; ".join(data.validation.errors) if status == FetchStatus.FAILED else None
                results.append(ProductFetchResult(asin=asin, status=status, data=data, error=error))
                logger.info(f"ASIN {asin}: {status.value}")
                self._report(on_progress, asin, status, data)

            if index < len(asins) - 1 and self.item_delay > 0:
                await self._sleep(self.item_delay)

        bulk = BulkFetchResult(
            results=results,
            success_count=sum(1 for r in results if r.status == FetchStatus.SUCCESS),
            failed_count=sum(1 for r in results if r.status == FetchStatus.FAILED),
            needs_review_count=sum(1 for r in results if r.status == FetchStatus.NEEDS_REVIEW),
        )
        logger.info(
            f"Bulk fetch complete: {bulk.success_count} success, "
            f"{bulk.needs_review_count} need review, {bulk.failed_count} failed"
        )
        return bulk

    @staticmethod
    def _report(
        on_progress: Optional[ProgressCallback],
        asin: str,
        status: FetchStatus,
        data: Optional[CompleteProductData],
    ) -> None:
        if on_progress is None:
            return
        try:
            on_progress(asin, status, data)
        except Exception as e:
            logger.warning(f"Progress callback raised for {asin}: {e}")
