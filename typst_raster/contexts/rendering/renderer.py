"""
Typst renderer facade.

Composes option normalization, the output cache, the serialization queue,
the compiler session and format dispatch:

    render(request)
      -> normalize -> cache lookup
      -> [queue] compile (svg/pdf) -> dispatch/encode
      -> cache store -> bytes
"""

import asyncio
import functools
import time
from typing import Any, List, Mapping, Optional, Sequence, Union

from typst_raster.contexts.caching import LRUCache, derive_cache_key
from typst_raster.contexts.rendering.converter import dispatch
from typst_raster.contexts.rendering.exceptions import (
    CodecError,
    TypstRenderError,
    UnsupportedStreamFormatError,
)
from typst_raster.contexts.rendering.logger import (
    _log_debug,
    log_render_failure,
    log_render_result,
    log_render_start,
)
from typst_raster.contexts.rendering.options import (
    NormalizedRequest,
    OutputFormat,
    RenderRequest,
    normalize_request,
)
from typst_raster.contexts.rendering.queue import SerializationQueue
from typst_raster.contexts.rendering.session import CompilerSession, EngineFactory
from typst_raster.contexts.rendering.stream import RasterStream
from typst_raster.utils.config import RendererConfig

RequestLike = Union[RenderRequest, Mapping[str, Any]]


class TypstRenderer:
    """
    Render Typst markup to PNG, JPEG, WebP, SVG or PDF.

    Each renderer owns one compiler session, one output cache and one
    serialization queue. Operations submitted to the same renderer reach the
    compiler strictly in submission order, one at a time.

    Args:
        font_path: Directory of fonts for the engine (defaults to bundled fonts)
        cache: Memoize outputs of identical requests
        cache_size: Maximum number of cached outputs
        engine_factory: Builds an engine handle from font paths (for testing
            or alternative engines)

    Example:
        async with TypstRenderer() as renderer:
            png = await renderer.render({"code": "$ 1 + 1 = 2 $", "snippet": True})
    """

    def __init__(
        self,
        font_path: Optional[str] = None,
        cache: bool = True,
        cache_size: int = 100,
        engine_factory: Optional[EngineFactory] = None,
    ):
        self.font_path = font_path
        self.cache_enabled = cache
        self.cache = LRUCache(cache_size)
        self.session = CompilerSession(font_path=font_path, engine_factory=engine_factory)
        self.queue = SerializationQueue()

    @classmethod
    def from_config(
        cls, config: RendererConfig, engine_factory: Optional[EngineFactory] = None
    ) -> "TypstRenderer":
        """Build a renderer from a RendererConfig."""
        return cls(
            font_path=config.font_path,
            cache=config.cache,
            cache_size=config.cache_size,
            engine_factory=engine_factory,
        )

    async def _produce(self, request: NormalizedRequest) -> bytes:
        """Compile and encode one request. Runs inside the serialization queue."""
        log_render_start(request)
        start_time = time.perf_counter()

        try:
            if request.format is OutputFormat.PDF:
                output = await self.session.compile_to_document(request.source, request.variables)
            else:
                svg = await self.session.compile_to_vector(request.source, request.variables)
                if request.format.is_raster:
                    output = await asyncio.to_thread(dispatch, svg, request)
                else:
                    output = dispatch(svg, request)
        except CodecError as e:
            # The session already discards itself on compile errors
            self.session.discard()
            log_render_failure(request, e, time.perf_counter() - start_time)
            raise
        except TypstRenderError as e:
            log_render_failure(request, e, time.perf_counter() - start_time)
            raise

        log_render_result(request, len(output), time.perf_counter() - start_time)
        return output

    async def render(self, request: RequestLike) -> bytes:
        """
        Render a single request.

        Args:
            request: RenderRequest or mapping with the same keys

        Returns:
            Encoded output bytes

        Raises:
            InvalidOptionError: If an option is unusable (nothing is compiled)
            CompileError: If the engine rejects the source
            CodecError: If rasterization or encoding fails
        """
        normalized = normalize_request(request)

        key = derive_cache_key(normalized) if self.cache_enabled else None
        if key is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        output = await self.queue.submit(functools.partial(self._produce, normalized))

        if key is not None:
            self.cache.put(key, output)
        return output

    async def render_batch(self, requests: Sequence[RequestLike]) -> List[bytes]:
        """
        Render requests one after another, preserving order.

        Stops at the first failure and raises it; outputs rendered before the
        failure stay cached but are not returned.
        """
        results = []
        for index, request in enumerate(requests):
            _log_debug(f"Batch item {index + 1}/{len(requests)}")
            results.append(await self.render(request))
        return results

    async def render_stream(self, request: RequestLike) -> RasterStream:
        """
        Render a request to a stream of encoded raster bytes.

        Only PNG, JPEG and WebP can be streamed. Streams are not cached.

        Raises:
            UnsupportedStreamFormatError: For SVG or PDF, before any compiler work
        """
        normalized = normalize_request(request)
        if not normalized.format.is_raster:
            raise UnsupportedStreamFormatError(normalized.format.value)

        svg = await self.queue.submit(
            functools.partial(
                self.session.compile_to_vector, normalized.source, normalized.variables
            )
        )
        return RasterStream(
            svg,
            normalized.format,
            normalized.density,
            normalized.quality,
            normalized.background_color,
        )

    def clear_cache(self) -> None:
        """Drop every cached output."""
        self.cache.clear()

    async def close(self) -> None:
        """Wait for queued work, then stop the queue worker and the engine thread."""
        await self.queue.close()
        self.session.close()

    async def __aenter__(self) -> "TypstRenderer":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
