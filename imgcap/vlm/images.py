"""
Purpose:
- Decide the media type sent with an uploaded image.
- Browsers usually declare it; when they don't, sniff the bytes with Pillow.
"""

from __future__ import annotations
import mimetypes
from io import BytesIO
from typing import Optional

from PIL import Image, UnidentifiedImageError


def sniff_media_type(raw: bytes) -> Optional[str]:
    """Return the MIME type Pillow recognizes for `raw`, or None."""
    try:
        with Image.open(BytesIO(raw)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError, ValueError):
        return None
    return Image.MIME.get(fmt) if fmt else None


def detect_media_type(raw: bytes, declared: Optional[str] = None, filename: Optional[str] = None) -> str:
    declared = (declared or "").split(";")[0].strip().lower()
    if declared.startswith("image/"):
        return declared
    sniffed = sniff_media_type(raw)
    if sniffed:
        return sniffed
    guessed, _ = mimetypes.guess_type(filename or "")
    return guessed or declared or "application/octet-stream"
