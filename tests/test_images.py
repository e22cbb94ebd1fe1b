import base64

import httpx
import pytest

from listing_insights.models import ImagePayload
from listing_insights.services.images import ImageProcessor
from listing_insights.utils.images import decode_image_input, normalize_media_type, sniff_media_type

JPEG = b"\xff\xd8\xff\xe0" + b"\x01" * 2000
OTHER_JPEG = b"\xff\xd8\xff\xe0" + b"\x02" * 2000


def _routes(mapping):
    """MockTransport handler serving (content_type, body) per URL path."""
    calls = []

    def handler(request):
        calls.append(request.url.path)
        if request.url.path not in mapping:
            return httpx.Response(404)
        content_type, body = mapping[request.url.path]
        return httpx.Response(200, headers={"content-type": content_type}, content=body)

    handler.calls = calls
    return handler


def _processor(handler):
    return ImageProcessor(http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
async def test_main_and_additional_images_deduplicated():
    handler = _routes({
        "/a.jpg": ("image/jpeg", JPEG),
        "/b.jpg": ("image/jpeg", JPEG),
        "/c.jpg": ("image/jpeg", OTHER_JPEG),
    })
    processor = _processor(handler)

    processed = await processor.process_product_images([
        "https://img.test/a.jpg",
        "https://img.test/a.jpg",
        "https://img.test/b.jpg",
        "https://img.test/c.jpg",
    ])

    assert processed.main_image.original_url == "https://img.test/a.jpg"
    assert [i.original_url for i in processed.additional_images] == ["https://img.test/c.jpg"]
    assert handler.calls == ["/a.jpg", "/b.jpg", "/c.jpg"]


@pytest.mark.asyncio
async def test_rejects_small_and_non_image_responses():
    handler = _routes({
        "/tiny.jpg": ("image/jpeg", b"\xff\xd8\xff" + b"\x00" * 10),
        "/page.html": ("text/html", b"<html>" + b" " * 2000),
        "/good.jpg": ("image/jpeg; charset=binary", JPEG),
    })
    processor = _processor(handler)

    processed = await processor.process_product_images([
        "https://img.test/tiny.jpg",
        "https://img.test/page.html",
        "https://img.test/missing.jpg",
        "https://img.test/good.jpg",
    ])

    assert processed.main_image.original_url == "https://img.test/good.jpg"
    assert processed.main_image.media_type == "image/jpeg"
    assert processed.additional_images == []


@pytest.mark.asyncio
async def test_additional_images_capped_at_eight():
    mapping = {f"/{n}.jpg": ("image/jpeg", bytes([0xFF, 0xD8, 0xFF, n]) * 300) for n in range(12)}
    processor = _processor(_routes(mapping))

    processed = await processor.process_product_images([f"https://img.test/{n}.jpg" for n in range(12)])

    assert processed.main_image is not None
    assert len(processed.additional_images) == 8


@pytest.mark.asyncio
async def test_cache_reused_and_released_on_exit():
    handler = _routes({"/a.jpg": ("image/jpeg", JPEG)})

    async with _processor(handler) as processor:
        await processor.process_product_images(["https://img.test/a.jpg"])
        await processor.process_product_images(["https://img.test/a.jpg"])
        assert handler.calls == ["/a.jpg"]
        assert processor.cache_stats() == {"images": 1, "bytes": len(JPEG)}

    assert processor.cache_stats() == {"images": 0, "bytes": 0}


@pytest.mark.asyncio
async def test_empty_url_list():
    processor = _processor(_routes({}))
    processed = await processor.process_product_images([])
    assert processed.main_image is None
    assert processed.additional_images == []


def test_image_data_url():
    from listing_insights.models import ImageData

    image = ImageData(content=b"abc", original_url="https://img.test/a.jpg", size=3, media_type="image/png")
    assert image.to_data_url() == "data:image/png;base64,YWJj"


def test_decode_image_input_variants():
    raw = b"\x89PNG\r\n\x1a\n" + b"\x00" * 40
    encoded = base64.b64encode(raw).decode()

    from_url = decode_image_input(f"data:image/png;base64,{encoded}")
    from_raw = decode_image_input(encoded)
    from_obj = decode_image_input(ImagePayload(base64=encoded, media_type="image/jpg"))

    assert from_url.media_type == "image/png"
    assert from_raw.media_type == "image/png"
    assert from_obj.media_type == "image/jpeg"
    assert from_url.data == from_raw.data == encoded


@pytest.mark.parametrize("value", [None, "", "not base64 at all!!", "aGk=", 12])
def test_decode_image_input_rejects_invalid(value):
    assert decode_image_input(value) is None


def test_media_type_helpers():
    assert sniff_media_type(b"GIF89a....") == "image/gif"
    assert sniff_media_type(b"RIFF\x00\x00\x00\x00WEBPVP8 ") == "image/webp"
    assert sniff_media_type(b"plain") is None
    assert normalize_media_type("image/bmp") == "image/jpeg"
    assert normalize_media_type("IMAGE/PNG") == "image/png"
