# pkg/queue/local_queue.py
"""
Single-worker FIFO for calls against one shared local compute backend.

Operations run strictly one at a time in submission order. A failing
operation rejects only its own caller; the queue moves on to the next item.
"""

import asyncio
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Deque, Dict, Optional, TypeVar

T = TypeVar("T")


@dataclass
class QueuedTask:
    execute: Callable[[], Awaitable[Any]]
    future: asyncio.Future


class LocalQueue:
    def __init__(self):
        self._pending: Deque[QueuedTask] = deque()
        self._processing = False
        self._drain_task: Optional[asyncio.Task] = None

    async def enqueue(self, operation: Callable[[], Awaitable[T]]) -> T:
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._pending.append(QueuedTask(execute=operation, future=future))

        # Flag is flipped synchronously so two enqueues in the same tick cannot start two drains.
        if not self._processing:
            self._start_drain()

        return await future

    def _start_drain(self) -> None:
        self._processing = True
        self._drain_task = asyncio.get_running_loop().create_task(self._drain())

    async def _drain(self) -> None:
        try:
            while self._pending:
                task = self._pending.popleft()
                if task.future.cancelled():
                    continue
                try:
                    result = await task.execute()
                except BaseException as exc:
                    if not task.future.done():
                        if isinstance(exc, asyncio.CancelledError):
                            task.future.cancel()
                        else:
                            task.future.set_exception(exc)
                    if not isinstance(exc, Exception):
                        raise
                else:
                    if not task.future.done():
                        task.future.set_result(result)
        finally:
            self._processing = False
            # A drain that ended on cancellation hands the remaining items to a fresh one.
            if self._pending:
                self._start_drain()

    def queue_size(self) -> int:
        return len(self._pending)

    def is_processing(self) -> bool:
        return self._processing

    def status(self) -> Dict[str, Any]:
        return {"queueSize": self.queue_size(), "processing": self.is_processing()}
