import asyncio
from typing import Awaitable, Dict, Set, TypeVar

from utils.logger import get_logger

_logger = get_logger(__name__)

T = TypeVar("T")


class RequestSuperseded(Exception):
    """The request was cancelled because a newer one for the same key started."""

    def __init__(self, key: str):
        super().__init__(f"Request '{key}' superseded")
        self.key = key


class RequestTracker:
    """
    Keeps at most one in-flight task per resource key.

    Starting a request under a key cancels the previous one still running
    under that key; its caller gets RequestSuperseded instead of a result.
    Only reads go through here, mutations are never cancelled mid-flight.
    """

    def __init__(self) -> None:
        self._tasks: Dict[str, asyncio.Task] = {}
        self._superseded: Set[asyncio.Task] = set()

    def in_flight(self, key: str) -> bool:
        task = self._tasks.get(key)
        return task is not None and not task.done()

    async def run(self, key: str, call: Awaitable[T]) -> T:
        previous = self._tasks.get(key)
        if previous is not None and not previous.done():
            _logger.debug(f"Cancelling superseded request '{key}'")
            self._superseded.add(previous)
            previous.cancel()

        task = asyncio.ensure_future(call)
        self._tasks[key] = task
        try:
            return await task
        except asyncio.CancelledError:
            if task in self._superseded:
                raise RequestSuperseded(key) from None
            raise
        finally:
            self._superseded.discard(task)
            if self._tasks.get(key) is task:
                del self._tasks[key]

    async def cancel_all(self) -> None:
        pending = [t for t in self._tasks.values() if not t.done()]
        for task in pending:
            self._superseded.add(task)
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            _logger.debug(f"Cancelled {len(pending)} in-flight request(s)")
