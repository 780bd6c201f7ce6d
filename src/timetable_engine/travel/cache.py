"""In-memory cache of travel times between coordinate pairs."""

import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass

from ..constants import (
    FALLBACK_MODE_ORDER,
    TRAVEL_CACHE_MAX_SIZE,
    TRAVEL_CACHE_TTL_SECONDS,
    TransportMode,
)
from ..models import Coordinates

logger = logging.getLogger(__name__)

CacheKey = tuple[tuple[float, float], tuple[float, float], TransportMode]


@dataclass
class _CacheEntry:
    minutes: int
    stored_at: float


class TravelTimeCache:
    """Travel times keyed by rounded origin, destination and mode.

    Entries expire after ``ttl_seconds``. When full, the oldest entry is
    evicted first.
    """

    def __init__(
        self,
        ttl_seconds: int = TRAVEL_CACHE_TTL_SECONDS,
        max_size: int = TRAVEL_CACHE_MAX_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._entries: OrderedDict[CacheKey, _CacheEntry] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    @staticmethod
    def make_key(origin: Coordinates, destination: Coordinates, mode: TransportMode) -> CacheKey:
        return (origin.rounded(), destination.rounded(), mode)

    def get(self, origin: Coordinates, destination: Coordinates, mode: TransportMode) -> int | None:
        """Return cached minutes, or None if missing or expired."""
        key = self.make_key(origin, destination, mode)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.stored_at > self.ttl_seconds:
            del self._entries[key]
            logger.debug(f"Expired travel time for {key}")
            return None
        return entry.minutes

    def get_from_any_mode(
        self,
        origin: Coordinates,
        destination: Coordinates,
        exclude: TransportMode | None = None,
    ) -> int | None:
        """Look for a cached value under another mode (transit, driving, walking, bicycling)."""
        for mode in FALLBACK_MODE_ORDER:
            if mode == exclude:
                continue
            minutes = self.get(origin, destination, mode)
            if minutes is not None:
                logger.debug(f"Using cached {mode.value} time {minutes}min in place of {exclude}")
                return minutes
        return None

    def set(
        self, origin: Coordinates, destination: Coordinates, mode: TransportMode, minutes: int
    ) -> None:
        key = self.make_key(origin, destination, mode)
        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Travel cache full, evicted {evicted}")
        self._entries[key] = _CacheEntry(minutes=minutes, stored_at=self._clock())

    def cleanup(self) -> int:
        """Drop expired entries.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [k for k, e in self._entries.items() if now - e.stored_at > self.ttl_seconds]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> dict[str, int]:
        return {"size": len(self._entries), "max_size": self.max_size, "ttl_seconds": self.ttl_seconds}
