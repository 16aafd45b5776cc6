"""Per-user turn serialization."""

import asyncio
import contextlib
from typing import Any, Awaitable, Callable, Dict, Optional

import structlog

logger = structlog.get_logger()


class TurnQueue:
    """Runs turns for the same user one at a time, in arrival order.

    Turns for different users run concurrently, up to ``max_concurrent``.
    ``asyncio.Lock`` wakes waiters first-in first-out, which gives the
    per-user ordering.
    """

    def __init__(self, max_concurrent: int = 10) -> None:
        self.max_concurrent = max_concurrent
        self.semaphore = asyncio.Semaphore(max_concurrent)
        self.active_turns = 0
        self._lock = asyncio.Lock()
        self._user_locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}
        logger.info("turn_queue_initialized", max_concurrent=max_concurrent)

    @contextlib.asynccontextmanager
    async def _user_slot(self, user_id: str):
        async with self._lock:
            lock = self._user_locks.setdefault(user_id, asyncio.Lock())
            self._waiters[user_id] = self._waiters.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            async with self._lock:
                self._waiters[user_id] -= 1
                if not self._waiters[user_id]:
                    del self._waiters[user_id]
                    del self._user_locks[user_id]

    async def run(
        self,
        user_id: str,
        task: Callable[..., Awaitable[Any]],
        *args: Any,
        **kwargs: Any
    ) -> Any:
        """Wait for the user's earlier turns, then run ``task``."""
        async with self._user_slot(user_id):
            async with self.semaphore:
                self.active_turns += 1
                try:
                    return await task(*args, **kwargs)
                finally:
                    self.active_turns -= 1

    def pending_for(self, user_id: str) -> int:
        return self._waiters.get(user_id, 0)


_turn_queue: Optional[TurnQueue] = None


def get_turn_queue(max_concurrent: int = 10) -> TurnQueue:
    """Get the global turn queue instance."""
    global _turn_queue
    if _turn_queue is None:
        _turn_queue = TurnQueue(max_concurrent=max_concurrent)
    return _turn_queue
