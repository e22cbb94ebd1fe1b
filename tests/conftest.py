"""Pytest configuration and fixtures."""

import base64
import os

import pytest

from listing_insights.config import get_settings
from listing_insights.models import Product

# Keep the developer's .env credentials out of the test run
os.environ["OPENAI_API_KEY"] = ""
os.environ["SCRAPEOPS_API_KEY"] = ""
os.environ["ALLOWED_API_KEYS"] = ""

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
PNG_BASE64 = base64.b64encode(PNG_BYTES).decode("ascii")
PNG_DATA_URL = f"data:image/png;base64,{PNG_BASE64}"


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def no_sleep():
    """Sleep replacement that records requested delays without waiting."""
    delays = []

    async def _sleep(seconds):
        delays.append(seconds)

    _sleep.delays = delays
    return _sleep


@pytest.fixture
def products():
    return [
        Product(id="prod-a", name="Alpha Blender", main_image=PNG_DATA_URL,
                additional_images=[PNG_DATA_URL, PNG_BASE64], features="Quiet motor"),
        Product(id="prod-b", name="Beta Blender", main_image=PNG_BASE64,
                additional_images=[PNG_DATA_URL], features="Glass jar"),
        Product(id="prod-c", name="Gamma Blender", main_image={"base64": PNG_BASE64, "mediaType": "image/png"},
                features="Six blades"),
    ]
