"""
typst_raster - Typst markup to images

Compiles Typst documents with the typst engine and converts the result to
PNG, JPEG, WebP, SVG or PDF. Identical requests are memoized, and all access
to the engine is serialized through a single FIFO queue per renderer.

Architecture:
- Rendering Context: option normalization, compiler session, format conversion
- Caching Context: cache keys and LRU storage of encoded outputs
"""

from typst_raster.contexts.rendering import (
    CodecError,
    CompileError,
    ImageMetadata,
    InvalidOptionError,
    OutputFormat,
    RasterStream,
    RenderRequest,
    TypstRasterError,
    TypstRenderError,
    TypstRenderer,
    UnsupportedStreamFormatError,
    get_metadata,
)

__version__ = "0.1.0"

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
