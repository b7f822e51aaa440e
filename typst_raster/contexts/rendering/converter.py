"""
Format dispatch and raster conversion.

PDF and SVG outputs are already final and pass through unchanged. Raster
formats are produced by rasterizing the SVG with cairosvg at ppi x scale,
optionally flattening transparency onto a background color, and encoding
with Pillow.
"""

import io
from typing import Optional

from PIL import Image, ImageColor

from typst_raster.contexts.rendering.exceptions import CodecError
from typst_raster.contexts.rendering.options import NormalizedRequest, OutputFormat

PNG_COMPRESSION_LEVEL = 9
# JPEG cannot carry alpha; transparent areas land on this color when no background is set
JPEG_DEFAULT_BACKGROUND = "white"


def svg_to_image(svg: bytes, density: float) -> Image.Image:
    """
    Rasterize SVG bytes at the given density (pixels per inch).

    Raises:
        CodecError: If the SVG cannot be rasterized
    """
    try:
        # cairosvg loads the native cairo library at import time
        import cairosvg
    except (ImportError, OSError) as e:
        raise CodecError(f"SVG rasterizer unavailable: {e}", e) from e

    try:
        png_bytes = cairosvg.svg2png(bytestring=svg, dpi=density)
        image = Image.open(io.BytesIO(png_bytes))
        image.load()
    except Exception as e:
        raise CodecError(f"Failed to rasterize SVG: {e}", e) from e

    return image.convert("RGBA")


def flatten(image: Image.Image, background_color: str) -> Image.Image:
    """
    Composite an image onto an opaque background color.

    Raises:
        CodecError: If the color string cannot be parsed
    """
    try:
        color = ImageColor.getrgb(background_color)
    except ValueError as e:
        raise CodecError(f"Invalid background color: {background_color!r}", e) from e

    rgba = image.convert("RGBA")
    canvas = Image.new("RGBA", rgba.size, color[:3] + (255,))
    canvas.alpha_composite(rgba)
    return canvas.convert("RGB")


def encode_image(
    image: Image.Image,
    format: OutputFormat,
    quality: int,
    density: Optional[float] = None,
) -> bytes:
    """
    Encode an image as PNG, JPEG or WebP.

    Quality applies to JPEG and WebP; PNG is lossless and always written at
    maximum compression. The density is embedded as DPI where the format
    supports it.

    Raises:
        CodecError: If encoding fails
    """
    buffer = io.BytesIO()
    dpi = (density, density) if density else None

    try:
        if format is OutputFormat.PNG:
            params = {"compress_level": PNG_COMPRESSION_LEVEL}
            if dpi:
                params["dpi"] = dpi
            image.save(buffer, format="PNG", **params)
        elif format is OutputFormat.JPEG:
            if image.mode != "RGB":
                image = flatten(image, JPEG_DEFAULT_BACKGROUND)
            params = {"quality": quality}
            if dpi:
                params["dpi"] = dpi
            image.save(buffer, format="JPEG", **params)
        elif format is OutputFormat.WEBP:
            image.save(buffer, format="WEBP", quality=quality)
        else:
            raise CodecError(f"Not a raster format: {format.value}")
    except CodecError:
        raise
    except Exception as e:
        raise CodecError(f"Failed to encode {format.value}: {e}", e) from e

    return buffer.getvalue()


def rasterize(
    svg: bytes,
    format: OutputFormat,
    density: float,
    quality: int,
    background_color: Optional[str] = None,
) -> bytes:
    """Rasterize SVG bytes and encode them in a raster format."""
    image = svg_to_image(svg, density)
    if background_color:
        image = flatten(image, background_color)
    return encode_image(image, format, quality, density)


def dispatch(payload: bytes, request: NormalizedRequest) -> bytes:
    """
    Produce the final output bytes for a compiled document.

    Args:
        payload: SVG bytes, or PDF bytes when the request format is PDF
        request: Normalized request carrying format and raster options

    Returns:
        Encoded output
    """
    if not request.format.is_raster:
        return payload
    return rasterize(
        payload,
        request.format,
        request.density,
        request.quality,
        request.background_color,
    )
