# invoice_builder/logo.py
from __future__ import annotations

import base64
import io
import logging
import mimetypes
from typing import Optional

from PIL import Image, UnidentifiedImageError

from .config import MAX_LOGO_BYTES
from .errors import LogoRejectedError

logger = logging.getLogger(__name__)

NOT_AN_IMAGE = "Please upload an image file"
TOO_LARGE = "File size should be less than 2MB"


def _sniff_mime(data: bytes) -> Optional[str]:
    try:
        with Image.open(io.BytesIO(data)) as img:
            return Image.MIME.get(img.format or "")
    except (UnidentifiedImageError, OSError):
        return None


def resolve_mime(
    data: bytes, content_type: Optional[str] = None, filename: Optional[str] = None
) -> Optional[str]:
    """Declared content type first, then the file name, then the bytes."""
    if content_type and content_type != "application/octet-stream":
        return content_type.split(";")[0].strip().lower()
    if filename:
        guessed, _ = mimetypes.guess_type(filename)
        if guessed:
            return guessed
    return _sniff_mime(data)


def load_logo(
    data: bytes, content_type: Optional[str] = None, filename: Optional[str] = None
) -> str:
    """Validate an uploaded logo and return it as a data URL.

    Raises ``LogoRejectedError`` when the file is larger than 2 MiB or is not
    an ``image/*`` type.
    """
    if len(data) > MAX_LOGO_BYTES:
        logger.info("Rejected logo %s: %d bytes", filename or "<upload>", len(data))
        raise LogoRejectedError(TOO_LARGE)

    mime = resolve_mime(data, content_type, filename)
    if not mime or not mime.startswith("image/"):
        logger.info("Rejected logo %s: type %s", filename or "<upload>", mime)
        raise LogoRejectedError(NOT_AN_IMAGE)

    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def decode_data_url(data_url: str) -> Optional[bytes]:
    """Bytes behind a ``data:...;base64,`` URL, or None if it is not one."""
    if not data_url or not data_url.startswith("data:") or "," not in data_url:
        return None
    header, payload = data_url.split(",", 1)
    if not header.endswith(";base64"):
        return None
    try:
        return base64.b64decode(payload, validate=True)
    except ValueError:
        return None
