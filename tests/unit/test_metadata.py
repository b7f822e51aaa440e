"""
Unit tests for metadata extraction.
"""

import io

import pytest
from PIL import Image
from PyPDF2 import PdfWriter

from typst_raster.contexts.rendering.exceptions import CodecError
from typst_raster.contexts.rendering.metadata import get_metadata


def encode(image, fmt, **params):
    buffer = io.BytesIO()
    image.save(buffer, format=fmt, **params)
    return buffer.getvalue()


@pytest.mark.unit
class TestRasterMetadata:
    """Tests for Pillow-readable formats."""

    def test_png_with_alpha_and_density(self):
        data = encode(Image.new("RGBA", (40, 20)), "PNG", dpi=(192, 192))

        metadata = get_metadata(data)

        assert (metadata.width, metadata.height) == (40, 20)
        assert metadata.format == "png"
        assert metadata.space == "srgb"
        assert metadata.channels == 4
        assert metadata.depth == "uchar"
        assert metadata.has_alpha is True
        assert metadata.density == 192

    def test_jpeg_without_alpha(self):
        metadata = get_metadata(encode(Image.new("RGB", (8, 8), "white"), "JPEG"))

        assert metadata.format == "jpeg"
        assert metadata.channels == 3
        assert metadata.has_alpha is False

    def test_webp(self):
        metadata = get_metadata(encode(Image.new("RGB", (10, 5)), "WEBP"))

        assert metadata.format == "webp"
        assert (metadata.width, metadata.height) == (10, 5)


@pytest.mark.unit
class TestDocumentMetadata:
    """Tests for PDF and SVG buffers."""

    def test_pdf(self):
        writer = PdfWriter()
        writer.add_blank_page(width=200, height=100)
        writer.add_blank_page(width=200, height=100)
        buffer = io.BytesIO()
        writer.write(buffer)

        metadata = get_metadata(buffer.getvalue())

        assert metadata.format == "pdf"
        assert (metadata.width, metadata.height) == (200, 100)
        assert metadata.pages == 2

    def test_svg_with_units(self):
        svg = b'<svg xmlns="http://www.w3.org/2000/svg" width="1in" height="36pt"></svg>'

        metadata = get_metadata(svg)

        assert metadata.format == "svg"
        assert (metadata.width, metadata.height) == (72, 36)
        assert metadata.has_alpha is True

    def test_svg_view_box_fallback(self):
        svg = b'<?xml version="1.0"?>\n<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 120 45"/>'

        metadata = get_metadata(svg)

        assert (metadata.width, metadata.height) == (120, 45)


@pytest.mark.unit
class TestInvalidBuffers:
    """Tests for unreadable input."""

    @pytest.mark.parametrize(
        "data",
        [
            b"",
            b"not an image",
            b"%PDF-1.7 truncated",
            b"<svg xmlns='http://www.w3.org/2000/svg'>",
        ],
    )
    def test_raises_codec_error(self, data):
        with pytest.raises(CodecError, match="Failed to read image metadata"):
            get_metadata(data)
