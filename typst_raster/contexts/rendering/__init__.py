"""
Rendering Context

Responsibilities:
- Normalizes render options and assembles the effective Typst source
- Owns the Typst compiler session and serializes access to it
- Converts compiled SVG to raster formats, or passes SVG/PDF through
- Streams raster output and extracts metadata from rendered buffers

Owns: Typst compilation, format conversion, render error taxonomy
Never: Decides cache policy details (delegates to the caching context)
"""

from typst_raster.contexts.rendering.exceptions import (
    CodecError,
    CompileError,
    InvalidOptionError,
    TypstRasterError,
    TypstRenderError,
    UnsupportedStreamFormatError,
)
from typst_raster.contexts.rendering.metadata import ImageMetadata, get_metadata
from typst_raster.contexts.rendering.options import OutputFormat, RenderRequest
from typst_raster.contexts.rendering.renderer import TypstRenderer
from typst_raster.contexts.rendering.stream import RasterStream

__all__ = [
    "CodecError",
    "CompileError",
    "ImageMetadata",
    "InvalidOptionError",
    "OutputFormat",
    "RasterStream",
    "RenderRequest",
    "TypstRasterError",
    "TypstRenderError",
    "TypstRenderer",
    "UnsupportedStreamFormatError",
    "get_metadata",
]
