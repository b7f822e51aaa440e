"""
Compiler session management.

A CompilerSession owns at most one live Typst engine handle. The handle is
created lazily on first use and discarded whenever a compile fails, so any
state corrupted by the failure never reaches the next request. The next call
after a failure transparently builds a fresh handle.

    UNBORN --first compile--> LIVE --compile failure--> POISONED
    POISONED --next compile--> LIVE (new handle)

All engine work runs on a dedicated single-thread executor: the handle is
created and used on one OS thread. Callers are expected to serialize access
through a SerializationQueue; the session itself does no locking.
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Callable, Dict, List, Optional, Union

import typst

from typst_raster.contexts.rendering.exceptions import CompileError
from typst_raster.contexts.rendering.fonts import resolve_font_paths
from typst_raster.contexts.rendering.logger import _log_debug, _log_info, _log_warning
from typst_raster.contexts.rendering.options import OutputFormat


class SessionState(str, Enum):
    """Lifecycle states of a compiler session."""

    UNBORN = "unborn"
    LIVE = "live"
    POISONED = "poisoned"


class TypstEngine:
    """
    Engine handle backed by the ``typst`` Python bindings.

    Holds the resolved font directories so every compile uses the same fonts.

    Attributes:
        font_paths: Font directories passed to the compiler
    """

    def __init__(self, font_paths: List[str]):
        self.font_paths = list(font_paths)

    def compile(
        self, source: bytes, format: str, sys_inputs: Dict[str, str]
    ) -> Union[bytes, List[bytes]]:
        """Compile source bytes to the given format ("svg" or "pdf")."""
        return typst.compile(
            source,
            format=format,
            font_paths=self.font_paths,
            sys_inputs=sys_inputs,
        )


EngineFactory = Callable[[List[str]], TypstEngine]


def _engine_diagnostic(error: BaseException) -> tuple[str, List[str]]:
    """Extract message and hints from a Typst engine error."""
    message = getattr(error, "message", None) or str(error) or "Unknown Typst error"
    hints = getattr(error, "hints", None) or []
    return str(message).strip(), [str(hint) for hint in hints]


class CompilerSession:
    """
    Lazily created, self-healing wrapper around one Typst engine handle.

    Attributes:
        font_path: Caller-supplied font directory (None to probe bundled fonts)
        generation: Number of engine handles created so far
    """

    def __init__(
        self,
        font_path: Optional[str] = None,
        engine_factory: Optional[EngineFactory] = None,
    ):
        self.font_path = font_path
        self.generation = 0
        self._engine_factory = engine_factory or TypstEngine
        self._handle: Optional[TypstEngine] = None
        self._state = SessionState.UNBORN
        self._executor: Optional[ThreadPoolExecutor] = None

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="typst-engine")
        return self._executor

    @property
    def state(self) -> SessionState:
        return self._state

    def _acquire(self) -> TypstEngine:
        """Return the live handle, creating one if the session is unborn or poisoned."""
        if self._state is not SessionState.LIVE or self._handle is None:
            font_paths = resolve_font_paths(self.font_path)
            self._handle = self._engine_factory(font_paths)
            self._state = SessionState.LIVE
            self.generation += 1
            _log_info(f"Typst compiler initialized (generation {self.generation})")
        return self._handle

    def discard(self) -> None:
        """Drop the current handle; the next compile creates a new one."""
        if self._handle is not None:
            _log_warning(f"Discarding Typst compiler (generation {self.generation})")
        self._handle = None
        self._state = SessionState.POISONED

    def _compile_blocking(self, source: str, format: OutputFormat, variables: Dict[str, str]) -> bytes:
        try:
            handle = self._acquire()
            output = handle.compile(source.encode("utf-8"), format.value, dict(variables))
        except Exception as e:
            message, hints = _engine_diagnostic(e)
            raise CompileError(f"Failed to render Typst code: {message}", e, hints) from e

        # Multi-page SVG output arrives as one document per page
        if isinstance(output, (list, tuple)):
            if not output:
                raise CompileError("Failed to render Typst code: engine produced no pages")
            _log_debug(f"Engine returned {len(output)} pages, keeping the first")
            output = output[0]

        return bytes(output)

    async def _compile(self, source: str, format: OutputFormat, variables: Dict[str, str]) -> bytes:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(
                self._get_executor(), self._compile_blocking, source, format, variables
            )
        except CompileError:
            self.discard()
            raise

    async def compile_to_vector(self, source: str, variables: Dict[str, str]) -> bytes:
        """Compile source to SVG bytes."""
        return await self._compile(source, OutputFormat.SVG, variables)

    async def compile_to_document(self, source: str, variables: Dict[str, str]) -> bytes:
        """Compile source to PDF bytes."""
        return await self._compile(source, OutputFormat.PDF, variables)

    def close(self) -> None:
        """Discard the handle and stop the engine thread."""
        self._handle = None
        self._state = SessionState.UNBORN
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
