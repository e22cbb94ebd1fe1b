"""
Product image downloader.

Downloads the images of one product, drops corrupted and duplicate images,
and keeps a URL-keyed cache for the lifetime of one bulk operation. The
processor is an async context manager; leaving the block releases every
cached image.
"""
import logging
from typing import Dict, List, Optional

import httpx

from ..constants import IMAGE_DOWNLOAD_TIMEOUT, MAX_ADDITIONAL_IMAGES, MIN_IMAGE_BYTES
from ..models import ImageData, ProcessedImages
from ..utils.images import content_digest

logger = logging.getLogger(__name__)


class ImageProcessor:
    """
    Downloads product images and caches them per operation.

    Usage:
        async with ImageProcessor() as images:
            processed = await images.process_product_images(urls)
    """

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None):
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=IMAGE_DOWNLOAD_TIMEOUT,
            follow_redirects=True,
        )
        self._cache: Dict[str, ImageData] = {}

    async def __aenter__(self) -> "ImageProcessor":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        self.cleanup()
        if self._owns_client:
            await self._http.aclose()

    async def process_product_images(self, image_urls: List[str]) -> ProcessedImages:
        """
        Download a product's images.

        The first unique image becomes the main image and up to eight more
        become additional images. Failed downloads are skipped.
        """
        processed = ProcessedImages()
        if not image_urls:
            return processed

        unique_urls = list(dict.fromkeys(url for url in image_urls if url))

        downloaded: List[ImageData] = []
        for url in unique_urls:
            image = await self._download(url)
            if image is not None:
                downloaded.append(image)

        unique_images: List[ImageData] = []
        seen = set()
        for image in downloaded:
            digest = content_digest(image.content)
            if digest in seen:
                logger.debug(f"Dropping duplicate image content from {image.original_url}")
                continue
            seen.add(digest)
            unique_images.append(image)

        if unique_images:
            processed.main_image = unique_images[0]
            processed.additional_images = unique_images[1:1 + MAX_ADDITIONAL_IMAGES]

        logger.info(
            f"Processed {len(unique_urls)} image URLs: {len(unique_images)} unique images kept"
        )
        return processed

    async def _download(self, url: str) -> Optional[ImageData]:
        cached = self._cache.get(url)
        if cached is not None:
            if cached.size >= MIN_IMAGE_BYTES:
                return cached
            logger.warning(f"Removing corrupted cached image: {url} ({cached.size} bytes)")
            del self._cache[url]

        try:
            response = await self._http.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Failed to download image from {url}: {e}")
            return None

        media_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
        if not media_type.startswith("image/"):
            logger.warning(f"Skipping {url}: invalid image type {media_type or 'unknown'}")
            return None

        content = response.content
        if len(content) < MIN_IMAGE_BYTES:
            logger.warning(f"Skipping {url}: image too small ({len(content)} bytes), likely corrupted")
            return None

        image = ImageData(
            content=content,
            original_url=url,
            size=len(content),
            media_type=media_type,
        )
        self._cache[url] = image
        return image

    def cache_stats(self) -> Dict[str, int]:
        return {
            "images": len(self._cache),
            "bytes": sum(image.size for image in self._cache.values()),
        }

    def cleanup(self) -> None:
        """Release every cached image."""
        self._cache.clear()
