"""Streaming raster output."""

import asyncio
from typing import AsyncIterator, Optional

from typst_raster.contexts.rendering.converter import rasterize
from typst_raster.contexts.rendering.exceptions import UnsupportedStreamFormatError
from typst_raster.contexts.rendering.options import OutputFormat

CHUNK_SIZE = 64 * 1024


class RasterStream:
    """
    Async iterable over the encoded bytes of a rasterized document.

    Rasterization and encoding run in a worker thread when the stream is first
    consumed; codec errors therefore surface during iteration.

    Example:
        stream = await renderer.render_stream({"code": "$ x^2 $", "snippet": True})
        async for chunk in stream:
            out.write(chunk)
    """

    def __init__(
        self,
        svg: bytes,
        format: OutputFormat,
        density: float,
        quality: int,
        background_color: Optional[str] = None,
        chunk_size: int = CHUNK_SIZE,
    ):
        if not format.is_raster:
            raise UnsupportedStreamFormatError(format.value)

        self.format = format
        self.density = density
        self.quality = quality
        self.background_color = background_color
        self.chunk_size = chunk_size
        self._svg = svg
        self._consumed = False

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._chunks()

    async def _chunks(self) -> AsyncIterator[bytes]:
        if self._consumed:
            raise RuntimeError("RasterStream can only be consumed once")
        self._consumed = True

        encoded = await asyncio.to_thread(
            rasterize, self._svg, self.format, self.density, self.quality, self.background_color
        )
        self._svg = b""

        for start in range(0, len(encoded), self.chunk_size):
            yield encoded[start : start + self.chunk_size]

    async def read(self) -> bytes:
        """Consume the whole stream and return the encoded bytes."""
        chunks = [chunk async for chunk in self]
        return b"".join(chunks)
