import asyncio
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from catalog.utils.logging import get_logger

logger = get_logger()

DEFAULT_TTL_SECONDS = 60 * 60
DEFAULT_SWEEP_INTERVAL_SECONDS = 10 * 60


@dataclass(slots=True)
class CacheEntry:
    data: Any
    created_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class TTLCache:
    """Process-local key/value store with per-entry expiry.

    Absence is always reported as ``None``; nothing here raises for a miss.
    Every operation runs under one lock, so the lazy delete in ``get`` can
    never race a concurrent ``set`` on the same key.
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            now = self._clock()
            if entry.is_expired(now):
                del self._entries[key]
                logger.debug(f"Cache entry expired for key: {key}")
                return None
        logger.debug(f"Cache HIT for key: {key} (age: {round(now - entry.created_at)}s)")
        return entry.data

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        with self._lock:
            now = self._clock()
            self._entries[key] = CacheEntry(
                data=value, created_at=now, expires_at=now + ttl
            )
        logger.debug(f"Cached data for key: {key} (TTL: {ttl}s)")

    def invalidate(self, key: str) -> None:
        with self._lock:
            removed = self._entries.pop(key, None)
        if removed is not None:
            logger.info(f"Invalidated cache for key: {key}")

    def clear(self) -> int:
        with self._lock:
            size = len(self._entries)
            self._entries.clear()
        logger.info(f"Cleared {size} cache entries")
        return size

    def stats(self) -> dict:
        with self._lock:
            now = self._clock()
            entries = list(self._entries.items())
        return {
            "total_entries": len(entries),
            "entries": [
                {
                    "key": key,
                    "age": round(now - entry.created_at),
                    "expires_in": round(entry.expires_at - now),
                    "expired": entry.is_expired(now),
                }
                for key, entry in entries
            ],
        }

    def sweep(self) -> int:
        """Remove all expired entries and return how many were dropped."""
        with self._lock:
            now = self._clock()
            expired_keys = [
                key for key, entry in self._entries.items() if entry.is_expired(now)
            ]
            for key in expired_keys:
                del self._entries[key]

        if expired_keys:
            logger.info(f"Cleaned up {len(expired_keys)} expired cache entries")
        return len(expired_keys)


async def run_periodic_sweep(
    cache: TTLCache, interval: float = DEFAULT_SWEEP_INTERVAL_SECONDS
) -> None:
    """Sweep ``cache`` every ``interval`` seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        try:
            cache.sweep()
        except Exception as e:
            logger.exception(f"Cache sweep failed: {e}")
