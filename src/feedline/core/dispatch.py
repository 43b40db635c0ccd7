"""
Serialized dispatch of API calls

All network work goes through one queue drained by a single worker task, so
the server observes requests in the order they were issued and at most one
request is in flight at a time. Results are handed back on a designated
callback loop.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Completion = Callable[[Optional[Any], Optional[BaseException]], None]
Job = Callable[[], Awaitable[None]]


class CallState(str, Enum):
    """Per-call lifecycle"""
    IDLE = "idle"
    BUILT = "built"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


TERMINAL_STATES = frozenset({CallState.SUCCEEDED, CallState.FAILED})

_TRANSITIONS = {
    CallState.IDLE: {CallState.BUILT},
    CallState.BUILT: {CallState.IN_FLIGHT},
    CallState.IN_FLIGHT: {CallState.SUCCEEDED, CallState.FAILED},
    CallState.SUCCEEDED: set(),
    CallState.FAILED: set(),
}


class Call(Generic[T]):
    """One public operation; resolves exactly once"""

    def __init__(
        self,
        name: str,
        callback_loop: asyncio.AbstractEventLoop,
        completion: Optional[Completion] = None,
    ):
        self.name = name
        self.state = CallState.IDLE
        self.completion = completion
        self.callback_loop = callback_loop
        self.future: "asyncio.Future[T]" = callback_loop.create_future()
        # The future may never be awaited; mark its exception retrieved.
        self.future.add_done_callback(lambda f: f.cancelled() or f.exception())

    @property
    def is_finished(self) -> bool:
        return self.state in TERMINAL_STATES

    def advance(self, state: CallState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"{self.name}: illegal transition {self.state.value} -> {state.value}")
        self.state = state

    def resolve(self, result: Optional[T], error: Optional[BaseException]) -> None:
        """Move to the terminal state and schedule delivery on the callback loop"""
        self.advance(CallState.FAILED if error is not None else CallState.SUCCEEDED)
        self.callback_loop.call_soon_threadsafe(self._deliver, result, error)

    def _deliver(self, result: Optional[T], error: Optional[BaseException]) -> None:
        if not self.future.done():
            if error is not None:
                self.future.set_exception(error)
            else:
                self.future.set_result(result)
        if self.completion is not None:
            self.completion(result, error)


class SerialDispatcher:
    """FIFO queue with exactly one worker"""

    def __init__(self, name: str = "API.HTTP"):
        self.name = name
        self._queue: Optional["asyncio.Queue[Job]"] = None
        self._worker: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def pending(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    def start(self) -> None:
        if self.is_running:
            return
        self._queue = asyncio.Queue()
        self._worker = asyncio.get_running_loop().create_task(self._run(), name=self.name)
        logger.debug(f"Dispatcher {self.name} started")

    def submit(self, job: Job) -> None:
        if not self.is_running:
            raise RuntimeError("Dispatcher not running. Use the client as an async context manager.")
        self._queue.put_nowait(job)

    async def _run(self) -> None:
        while True:
            job = await self._queue.get()
            try:
                await job()
            except Exception:
                logger.exception(f"Dispatcher {self.name}: job failed")
            finally:
                self._queue.task_done()

    async def drain(self) -> None:
        """Wait until every submitted job has finished"""
        if self._queue is not None:
            await self._queue.join()

    async def stop(self) -> None:
        if self._worker is None:
            return
        await self.drain()
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        logger.debug(f"Dispatcher {self.name} stopped")
