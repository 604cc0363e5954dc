"""
Image preview generation for uploaded photos.
"""

import io
from typing import Tuple

from PIL import Image

THUMBNAIL_SIZE: Tuple[int, int] = (300, 300)
JPEG_QUALITY = 80


def is_image(mime_type: str) -> bool:
    return bool(mime_type) and mime_type.lower().startswith("image/")


def make_thumbnail(
    content: bytes,
    size: Tuple[int, int] = THUMBNAIL_SIZE,
    quality: int = JPEG_QUALITY,
) -> bytes:
    """
    Build a JPEG preview that fits inside ``size``.

    Aspect ratio is preserved and images smaller than ``size`` are never
    enlarged.

    Args:
        content: Original image bytes
        size: Bounding box (width, height)
        quality: JPEG quality

    Returns:
        JPEG encoded preview bytes
    """
    with Image.open(io.BytesIO(content)) as img:
        preview = img.convert("RGB") if img.mode not in ("RGB", "L") else img.copy()

    preview.thumbnail(size)

    buffer = io.BytesIO()
    preview.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()
