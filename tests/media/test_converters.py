"""
Tests for MediaConverter.
"""

import io
from unittest.mock import patch

import pytest
from PIL import Image

from notequill.media.converters import MediaConverter


@pytest.fixture
def converter():
    return MediaConverter()


class TestDetectFormat:
    """Test cases for format detection."""

    def test_png(self, converter, png_bytes):
        assert converter.detect_format(png_bytes) == "png"

    def test_webp(self, converter, webp_bytes):
        assert converter.detect_format(webp_bytes) == "webp"

    def test_svg(self, converter):
        assert converter.detect_format(b'<?xml version="1.0"?><svg xmlns="http://www.w3.org/2000/svg"/>') == "svg"

    def test_unknown(self, converter):
        assert converter.detect_format(b"not an image") is None
        assert converter.detect_format(None) is None


class TestLoadImage:
    """Test cases for loading and the PNG fallback."""

    def test_png_loads_directly(self, converter, png_bytes):
        loaded = converter.load_image(png_bytes)

        assert loaded is not None
        assert not loaded.converted
        assert (loaded.width, loaded.height) == (40, 20)
        assert loaded.aspect_ratio == pytest.approx(0.5)

    def test_direct_failure_converts_once(self, converter, png_bytes):
        with patch.object(MediaConverter, "convert_to_png", wraps=converter.convert_to_png) as convert:
            with patch("notequill.media.converters.ImageReader", side_effect=_fail_first_reader()):
                loaded = converter.load_image(png_bytes)

        assert loaded is not None
        assert loaded.converted
        assert convert.call_count == 1

    def test_garbage_is_unresolved(self, converter):
        assert converter.load_image(b"definitely not an image") is None
        assert converter.get_conversion_stats()["errors"] == 1

    def test_empty_data(self, converter):
        assert converter.load_image(b"") is None
        assert converter.load_image(None) is None


def _fail_first_reader():
    """ImageReader stand-in that fails on the first call only."""
    from reportlab.lib.utils import ImageReader

    calls = {"count": 0}

    def factory(source):
        calls["count"] += 1
        if calls["count"] == 1:
            raise OSError("cannot identify image")
        return ImageReader(source)

    return factory


def test_convert_to_png_handles_palette_and_cmyk(converter):
    for mode in ("P", "CMYK"):
        buffer = io.BytesIO()
        fmt = "GIF" if mode == "P" else "JPEG"
        Image.new(mode, (8, 8)).save(buffer, format=fmt)

        converted = converter.convert_to_png(buffer.getvalue())

        assert converted is not None
        assert converter.detect_format(converted) == "png"


def test_get_image_info(converter, png_bytes):
    info = converter.get_image_info(png_bytes)
    assert info["width"] == 40
    assert info["height"] == 20
    assert info["format"] == "PNG"
