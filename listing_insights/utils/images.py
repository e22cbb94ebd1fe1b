"""
Image payload helpers.

Client images arrive in several shapes (data URL, raw base64, or an object
carrying ``base64``/``media_type``). They are decoded once here into an
``ImageAttachment`` and everything downstream works with that type only.
"""
import base64
import binascii
import hashlib
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from ..constants import (
    DEFAULT_IMAGE_MEDIA_TYPE,
    MIN_BASE64_IMAGE_LENGTH,
    SUPPORTED_IMAGE_MEDIA_TYPES,
)

logger = logging.getLogger(__name__)

DATA_URL_PATTERN = re.compile(r"^data:(image/[a-zA-Z0-9.+-]+);base64,(.+)$", re.DOTALL)


@dataclass(frozen=True)
class ImageAttachment:
    """Validated base64 image ready to be sent to the vision model."""
    media_type: str
    data: str

    @property
    def data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.data}"


def sniff_media_type(raw: bytes) -> Optional[str]:
    """Detect the image format from its magic bytes."""
    if raw.startswith(b"\x89PNG"):
        return "image/png"
    if raw.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if raw.startswith(b"GIF8"):
        return "image/gif"
    if raw.startswith(b"RIFF") and raw[8:12] == b"WEBP":
        return "image/webp"
    return None


def normalize_media_type(media_type: Optional[str]) -> str:
    """Return ``media_type`` if the vision model accepts it, JPEG otherwise."""
    if media_type:
        media_type = media_type.lower().strip()
        if media_type == "image/jpg":
            media_type = "image/jpeg"
        if media_type in SUPPORTED_IMAGE_MEDIA_TYPES:
            return media_type
    return DEFAULT_IMAGE_MEDIA_TYPE


def decode_image_input(value: Any) -> Optional[ImageAttachment]:
    """
    Decode one client image into an ``ImageAttachment``.

    Accepts a ``data:image/...;base64,`` URL, a bare base64 string, or any
    object exposing ``base64`` (and optionally ``media_type``). Returns None
    for anything that is not decodable base64 of a plausible length.

    Example:
        >>> decode_image_input("data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAAB")
        ImageAttachment(media_type='image/png', data='iVBORw0KGgoAAAANSUhEUgAAAAEAAAAB')
    """
    declared_type: Optional[str] = None
    if isinstance(value, str):
        payload = value
    elif hasattr(value, "base64"):
        payload = getattr(value, "base64")
        declared_type = getattr(value, "media_type", None)
    elif isinstance(value, dict) and isinstance(value.get("base64"), str):
        payload = value["base64"]
        declared_type = value.get("media_type") or value.get("mediaType")
    else:
        return None

    if not isinstance(payload, str) or not payload:
        return None

    payload = payload.strip()
    match = DATA_URL_PATTERN.match(payload)
    if match:
        declared_type = declared_type or match.group(1)
        payload = match.group(2)

    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        logger.warning("Discarding image with invalid base64 payload")
        return None

    if len(payload) <= MIN_BASE64_IMAGE_LENGTH:
        logger.warning(f"Discarding image payload too short ({len(payload)} characters)")
        return None

    media_type = declared_type or sniff_media_type(raw[:16])
    return ImageAttachment(media_type=normalize_media_type(media_type), data=payload)


def to_data_url(media_type: str, content: bytes) -> str:
    """Encode raw image bytes as a data URL."""
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{media_type or DEFAULT_IMAGE_MEDIA_TYPE};base64,{encoded}"


def content_digest(content: bytes) -> str:
    """Stable fingerprint used to drop byte-identical images."""
    return hashlib.sha256(content).hexdigest()
