"""
Serialization queue for compiler access.

A single worker task drains a FIFO queue and runs one operation at a time.
Producers call submit() and await their own result; a failing operation only
fails its own caller and the worker moves on to the next item.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional, Tuple, TypeVar

from typst_raster.contexts.rendering.logger import _log_debug

T = TypeVar("T")

Operation = Callable[[], Awaitable[Any]]


class SerializationQueue:
    """
    FIFO admission gate that allows exactly one in-flight operation.

    The worker is started lazily on the running event loop. If the queue is
    used from a different loop later (e.g., successive asyncio.run() calls),
    a fresh queue and worker are created on that loop.

    Attributes:
        name: Label used in log messages
        admitted: Number of operations started so far
    """

    def __init__(self, name: str = "compiler"):
        self.name = name
        self.admitted = 0
        self._queue: Optional["asyncio.Queue[Tuple[Operation, asyncio.Future]]"] = None
        self._worker: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def pending(self) -> int:
        """Number of operations waiting for admission."""
        return self._queue.qsize() if self._queue is not None else 0

    def _ensure_worker(self) -> asyncio.AbstractEventLoop:
        loop = asyncio.get_running_loop()
        if self._loop is not loop or self._worker is None or self._worker.done():
            self._loop = loop
            self._queue = asyncio.Queue()
            self._worker = loop.create_task(self._run(self._queue), name=f"{self.name}-queue")
        return loop

    async def submit(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Enqueue an operation and wait for its result.

        Args:
            operation: Zero-argument callable returning an awaitable

        Returns:
            The operation's result

        Raises:
            Whatever the operation raised
        """
        loop = self._ensure_worker()
        future = loop.create_future()
        self._queue.put_nowait((operation, future))
        # The operation still runs to completion if this caller is cancelled
        return await asyncio.shield(future)

    async def _run(self, queue: "asyncio.Queue[Tuple[Operation, asyncio.Future]]") -> None:
        while True:
            operation, future = await queue.get()
            self.admitted += 1
            _log_debug(f"{self.name} queue admitted operation #{self.admitted} ({queue.qsize()} waiting)")
            try:
                result = await operation()
            except Exception as e:
                if not future.done():
                    future.set_exception(e)
            else:
                if not future.done():
                    future.set_result(result)
            finally:
                queue.task_done()

    async def join(self) -> None:
        """Wait until every submitted operation has finished."""
        if self._queue is not None and self._loop is asyncio.get_running_loop():
            await self._queue.join()

    async def close(self) -> None:
        """Stop the worker task once pending operations have drained."""
        await self.join()
        if self._worker is not None and self._loop is asyncio.get_running_loop():
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        self._worker = None
        self._queue = None
        self._loop = None
