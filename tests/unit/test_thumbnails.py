"""
Tests for image preview generation.
"""

from io import BytesIO

import pytest
from PIL import Image

from yarnstash.storage import is_image, make_thumbnail


def png_bytes(width, height, mode="RGB"):
    buffer = BytesIO()
    Image.new(mode, (width, height)).save(buffer, format="PNG")
    return buffer.getvalue()


class TestMakeThumbnail:

    def test_fits_inside_bounds(self):
        preview = Image.open(BytesIO(make_thumbnail(png_bytes(1200, 600))))
        assert preview.format == "JPEG"
        assert preview.size == (300, 150)

    def test_small_images_not_enlarged(self):
        preview = Image.open(BytesIO(make_thumbnail(png_bytes(120, 80))))
        assert preview.size == (120, 80)

    def test_transparent_images_are_flattened(self):
        preview = Image.open(BytesIO(make_thumbnail(png_bytes(400, 400, mode="RGBA"))))
        assert preview.mode == "RGB"

    def test_rejects_non_images(self):
        with pytest.raises(OSError):
            make_thumbnail(b"%PDF-1.4")


@pytest.mark.parametrize("mime_type,expected", [
    ("image/png", True),
    ("IMAGE/JPEG", True),
    ("application/pdf", False),
    ("", False),
])
def test_is_image(mime_type, expected):
    assert is_image(mime_type) is expected
