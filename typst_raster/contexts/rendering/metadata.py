"""
Metadata extraction for rendered outputs.

Reads PNG, JPEG and WebP with Pillow, PDF with PyPDF2, and SVG from its root
element geometry. Works on any buffer previously produced by the renderer.
"""

import io
import re
import xml.etree.ElementTree as ElementTree
from dataclasses import dataclass
from typing import Optional, Tuple

from PIL import Image
from PyPDF2 import PdfReader

from typst_raster.contexts.rendering.exceptions import CodecError

PDF_MAGIC = b"%PDF-"
# Bytes inspected when sniffing for an SVG root element
SVG_SNIFF_LENGTH = 2048

# Pillow mode -> (color space, bit depth)
MODE_INFO = {
    "1": ("b-w", "uchar"),
    "L": ("b-w", "uchar"),
    "LA": ("b-w", "uchar"),
    "P": ("srgb", "uchar"),
    "RGB": ("srgb", "uchar"),
    "RGBA": ("srgb", "uchar"),
    "CMYK": ("cmyk", "uchar"),
    "I;16": ("grey16", "ushort"),
    "I": ("b-w", "int"),
    "F": ("b-w", "float"),
}

_LENGTH_PATTERN = re.compile(r"^\s*([0-9]*\.?[0-9]+)\s*([a-z%]*)\s*$")
# Conversion of SVG length units to CSS pixels at 72 ppi
_UNIT_TO_PX = {"": 1.0, "px": 1.0, "pt": 1.0, "in": 72.0, "cm": 72.0 / 2.54, "mm": 72.0 / 25.4}


@dataclass
class ImageMetadata:
    """
    Metadata describing an encoded output.

    Attributes:
        width: Width in pixels (points for PDF and SVG)
        height: Height in pixels (points for PDF and SVG)
        format: Format name (png, jpeg, webp, svg, pdf)
        space: Color space (e.g., srgb)
        channels: Number of channels
        depth: Sample type (e.g., uchar)
        density: Pixels per inch, when recorded
        has_alpha: Whether the image carries an alpha channel
        pages: Page count (PDF only)
    """

    width: Optional[int] = None
    height: Optional[int] = None
    format: Optional[str] = None
    space: Optional[str] = None
    channels: Optional[int] = None
    depth: Optional[str] = None
    density: Optional[float] = None
    has_alpha: Optional[bool] = None
    pages: Optional[int] = None


def _svg_length(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    match = _LENGTH_PATTERN.match(value.lower())
    if not match or match.group(2) not in _UNIT_TO_PX:
        return None
    return float(match.group(1)) * _UNIT_TO_PX[match.group(2)]


def _svg_size(buffer: bytes) -> Tuple[float, float]:
    root = ElementTree.fromstring(buffer)
    if not root.tag.endswith("svg"):
        raise ValueError(f"Root element is <{root.tag}>, not <svg>")

    width = _svg_length(root.get("width"))
    height = _svg_length(root.get("height"))

    if width is None or height is None:
        view_box = (root.get("viewBox") or "").replace(",", " ").split()
        if len(view_box) != 4:
            raise ValueError("SVG has neither width/height nor a viewBox")
        width = width if width is not None else float(view_box[2])
        height = height if height is not None else float(view_box[3])

    return width, height


def _svg_metadata(buffer: bytes) -> ImageMetadata:
    width, height = _svg_size(buffer)
    return ImageMetadata(
        width=round(width),
        height=round(height),
        format="svg",
        space="srgb",
        channels=4,
        depth="uchar",
        density=72.0,
        has_alpha=True,
    )


def _pdf_metadata(buffer: bytes) -> ImageMetadata:
    reader = PdfReader(io.BytesIO(buffer))
    first_page = reader.pages[0]
    return ImageMetadata(
        width=round(float(first_page.mediabox.width)),
        height=round(float(first_page.mediabox.height)),
        format="pdf",
        density=72.0,
        pages=len(reader.pages),
    )


def _raster_metadata(buffer: bytes) -> ImageMetadata:
    with Image.open(io.BytesIO(buffer)) as image:
        image.load()
        bands = image.getbands()
        space, depth = MODE_INFO.get(image.mode, (None, None))
        dpi = image.info.get("dpi")

        return ImageMetadata(
            width=image.width,
            height=image.height,
            format=(image.format or "").lower() or None,
            space=space,
            channels=len(bands),
            depth=depth,
            density=round(float(dpi[0]), 2) if dpi else None,
            has_alpha="A" in bands or "transparency" in image.info,
        )


def _looks_like_svg(buffer: bytes) -> bool:
    head = buffer[:SVG_SNIFF_LENGTH].lstrip()
    return head.startswith(b"<") and b"<svg" in head


def get_metadata(buffer: bytes) -> ImageMetadata:
    """
    Extract metadata from an encoded output.

    Args:
        buffer: Bytes returned by a previous render

    Returns:
        ImageMetadata

    Raises:
        CodecError: If the buffer is not a readable image, SVG or PDF
    """
    buffer = bytes(buffer)

    try:
        if buffer.startswith(PDF_MAGIC):
            return _pdf_metadata(buffer)
        if _looks_like_svg(buffer):
            return _svg_metadata(buffer)
        return _raster_metadata(buffer)
    except Exception as e:
        raise CodecError(f"Failed to read image metadata: {e}", e) from e
