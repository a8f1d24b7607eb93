import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass
class CacheEntry:
    expires_at: float
    value: Any


class TTLCache:
    """
    In-memory store for raw source responses with a per-key TTL.

    Expiry is lazy: an expired entry reads as a miss and is dropped on access.
    ``purge()`` sweeps every expired entry and may be run periodically.
    """

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self._clock = clock or time.monotonic
        self._store: Dict[str, CacheEntry] = {}
        self._sweeper: Optional[asyncio.Task] = None

    def get(self, key: str) -> Optional[Any]:
        entry = self._store.get(key)
        if entry is None:
            return None

        if entry.expires_at <= self._clock():
            self._store.pop(key, None)
            return None

        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        if ttl_seconds <= 0 or value is None:
            return

        self._store[key] = CacheEntry(expires_at=self._clock() + ttl_seconds, value=value)

    def flush_all(self) -> None:
        count = len(self._store)
        self._store.clear()
        logger.info("Cache flushed (%d entries dropped)", count)

    def purge(self) -> int:
        now = self._clock()
        expired = [k for k, v in self._store.items() if v.expires_at <= now]
        for k in expired:
            self._store.pop(k, None)
        return len(expired)

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    # ---------- Background Sweep ----------

    async def start_sweeper(self, interval_seconds: float) -> None:
        if self._sweeper is None and interval_seconds > 0:
            self._sweeper = asyncio.create_task(self._sweep_loop(interval_seconds))

    async def stop_sweeper(self) -> None:
        if self._sweeper:
            self._sweeper.cancel()
            try:
                await self._sweeper
            except asyncio.CancelledError:
                pass
            self._sweeper = None

    async def _sweep_loop(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            dropped = self.purge()
            if dropped:
                logger.debug("Cache sweep dropped %d expired entries", dropped)
