"""
Unit tests for format dispatch and raster encoding.

Encoding and flattening tests only need Pillow. Rasterization tests need the
native cairo library and are skipped without it.
"""

import asyncio
import io

import pytest
from PIL import Image

from typst_raster.contexts.rendering.converter import (
    dispatch,
    encode_image,
    flatten,
    rasterize,
)
from typst_raster.contexts.rendering.exceptions import CodecError, UnsupportedStreamFormatError
from typst_raster.contexts.rendering.options import OutputFormat, normalize_request
from typst_raster.contexts.rendering.stream import RasterStream


def _cairo_available():
    try:
        import cairosvg  # noqa: F401
    except (ImportError, OSError):
        return False
    return True


requires_cairo = pytest.mark.skipif(not _cairo_available(), reason="cairo library not available")

SVG = (
    b'<svg xmlns="http://www.w3.org/2000/svg" width="72pt" height="36pt" viewBox="0 0 72 36">'
    b'<rect x="0" y="0" width="36" height="36" fill="#ff0000"/>'
    b"</svg>"
)


@pytest.fixture
def transparent_image():
    """32x16 RGBA image: left half opaque red, right half fully transparent."""
    image = Image.new("RGBA", (32, 16), (0, 0, 0, 0))
    for x in range(16):
        for y in range(16):
            image.putpixel((x, y), (255, 0, 0, 255))
    return image


def decode(data):
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


@pytest.mark.unit
class TestFlatten:
    """Tests for background flattening."""

    def test_transparent_pixels_take_background(self, transparent_image):
        flat = flatten(transparent_image, "#2b2d31")

        assert flat.mode == "RGB"
        assert flat.getpixel((0, 0)) == (255, 0, 0)
        assert flat.getpixel((31, 15)) == (0x2B, 0x2D, 0x31)

    def test_named_color(self, transparent_image):
        assert flatten(transparent_image, "white").getpixel((31, 0)) == (255, 255, 255)

    def test_invalid_color(self, transparent_image):
        with pytest.raises(CodecError, match="Invalid background color"):
            flatten(transparent_image, "not-a-color")


@pytest.mark.unit
class TestEncodeImage:
    """Tests for raster encoders."""

    def test_png_keeps_alpha_and_density(self, transparent_image):
        image = decode(encode_image(transparent_image, OutputFormat.PNG, 100, density=192.0))

        assert image.format == "PNG"
        assert image.mode == "RGBA"
        assert round(image.info["dpi"][0]) == 192

    def test_jpeg_flattens_onto_white(self, transparent_image):
        image = decode(encode_image(transparent_image, OutputFormat.JPEG, 100))

        assert image.format == "JPEG"
        assert image.mode == "RGB"
        r, g, b = image.getpixel((31, 15))
        assert min(r, g, b) > 240

    def test_jpeg_quality_affects_size(self):
        noisy = Image.effect_noise((64, 64), 64).convert("RGB")

        low = encode_image(noisy, OutputFormat.JPEG, 10)
        high = encode_image(noisy, OutputFormat.JPEG, 95)

        assert len(low) < len(high)

    def test_webp(self, transparent_image):
        image = decode(encode_image(transparent_image, OutputFormat.WEBP, 80))
        assert image.format == "WEBP"

    @pytest.mark.parametrize("fmt", [OutputFormat.SVG, OutputFormat.PDF])
    def test_vector_formats_rejected(self, transparent_image, fmt):
        with pytest.raises(CodecError):
            encode_image(transparent_image, fmt, 100)


@pytest.mark.unit
class TestDispatch:
    """Tests for format dispatch."""

    def test_svg_passes_through(self):
        request = normalize_request({"code": "x", "format": "svg"})
        assert dispatch(SVG, request) is SVG

    def test_pdf_passes_through(self):
        pdf = b"%PDF-1.7 document"
        request = normalize_request({"code": "x", "format": "pdf", "scale": 3})
        assert dispatch(pdf, request) == pdf

    @requires_cairo
    def test_png_size_follows_density(self):
        at_72 = decode(dispatch(SVG, normalize_request({"code": "x", "ppi": 72})))
        doubled = decode(dispatch(SVG, normalize_request({"code": "x", "ppi": 72, "scale": 2})))

        assert at_72.size == (72, 36)
        assert doubled.size == (144, 72)

    @requires_cairo
    def test_background_fills_transparency(self):
        data = dispatch(SVG, normalize_request({"code": "x", "ppi": 72, "background_color": "blue"}))
        image = decode(data)

        assert image.mode == "RGB"
        assert image.getpixel((60, 18)) == (0, 0, 255)

    @requires_cairo
    def test_malformed_svg(self):
        with pytest.raises(CodecError, match="Failed to rasterize SVG"):
            rasterize(b"<svg", OutputFormat.PNG, 72.0, 100)


@pytest.mark.unit
class TestRasterStream:
    """Tests for RasterStream."""

    def test_rejects_vector_formats(self):
        with pytest.raises(UnsupportedStreamFormatError):
            RasterStream(SVG, OutputFormat.SVG, 72.0, 100)

    @requires_cairo
    def test_chunks_reassemble_to_full_output(self):
        stream = RasterStream(SVG, OutputFormat.PNG, 72.0, 100, chunk_size=16)

        async def collect():
            return [chunk async for chunk in stream]

        chunks = asyncio.run(collect())

        assert len(chunks) > 1
        assert all(len(chunk) <= 16 for chunk in chunks)
        assert b"".join(chunks) == rasterize(SVG, OutputFormat.PNG, 72.0, 100)

    @requires_cairo
    def test_consumed_once(self):
        stream = RasterStream(SVG, OutputFormat.JPEG, 72.0, 90)

        async def consume_twice():
            await stream.read()
            await stream.read()

        with pytest.raises(RuntimeError, match="only be consumed once"):
            asyncio.run(consume_twice())
