"""Image helpers for reference screenshots and generated results.

Images travel through the service as base64 data URLs
(``data:image/png;base64,...``).  These helpers split and validate such
URLs, compute decoded sizes and read pixel dimensions with Pillow.
"""

import base64
import binascii
import io
import logging
import re
import uuid

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

_DATA_URL = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^,;]*)*),(?P<data>.*)$", re.DOTALL)


def split_data_url(data_url: str) -> tuple[str | None, str]:
    """Split a data URL into ``(mime_type, base64_payload)``.

    Bare base64 strings are returned with a ``None`` mime type.
    """
    match = _DATA_URL.match(data_url)
    if not match:
        return None, data_url
    return match.group("mime"), match.group("data")


def get_mime_type(data_url: str) -> str | None:
    return split_data_url(data_url)[0]


def is_supported_image(data_url: str, supported_formats: list[str]) -> bool:
    """Check the data URL declares one of ``supported_formats``."""
    if not data_url.startswith("data:image/"):
        return False
    mime = get_mime_type(data_url)
    return mime is not None and mime.lower() in supported_formats


def decoded_size(data_url: str) -> int:
    """Approximate decoded byte size of a base64 data URL or payload.

    Uses the padding-aware 3/4 rule so no decoding is needed for large
    payloads.
    """
    payload = split_data_url(data_url)[1].strip()
    padding = len(payload) - len(payload.rstrip("="))
    return max(0, (len(payload) * 3) // 4 - padding)


def decode_image_bytes(data_url: str) -> bytes:
    """Decode the base64 payload of a data URL.

    Raises:
        ValueError: If the payload is not valid base64.
    """
    payload = split_data_url(data_url)[1]
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 image payload: {e}") from e


def to_data_url(image_base64: str, mime_type: str = "image/png") -> str:
    """Wrap a bare base64 payload as a data URL, leaving data URLs untouched."""
    if image_base64.startswith("data:"):
        return image_base64
    return f"data:{mime_type};base64,{image_base64}"


def get_image_dimensions(image_bytes: bytes) -> tuple[int, int] | None:
    """Return ``(width, height)`` or ``None`` when Pillow cannot read the bytes."""
    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            return image.size
    except (UnidentifiedImageError, OSError) as e:
        logger.debug(f"Could not read image dimensions: {e}")
        return None


def generate_design_id() -> str:
    """Create a unique design identifier."""
    return f"design_{uuid.uuid4().hex}"
