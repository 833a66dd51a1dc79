"""
In-memory cache of the printing lists fetched per card name.

Entries expire after a fixed age. When the cache is full, the oldest share of
entries is dropped before a new name is added.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterable
from typing import Any

from loguru import logger

from utils.printing import PrintingRecord
from utils.service_config import (
    PRINTINGS_CACHE_EVICT_FRACTION,
    PRINTINGS_CACHE_MAX_ENTRIES,
    PRINTINGS_CACHE_TTL_SECONDS,
)


class PrintingsCache:
    """Size-capped, expiring cache of printing lists keyed by card name."""

    def __init__(
        self,
        max_entries: int = PRINTINGS_CACHE_MAX_ENTRIES,
        ttl_seconds: float = PRINTINGS_CACHE_TTL_SECONDS,
        evict_fraction: float = PRINTINGS_CACHE_EVICT_FRACTION,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the printings cache.

        Args:
            max_entries: Maximum number of card names held at once
            ttl_seconds: Age after which an entry is treated as missing
            evict_fraction: Share of max_entries dropped when the cache is full
            clock: Time source, seconds since the epoch
        """
        if max_entries < 1:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self.evict_fraction = evict_fraction
        self._clock = clock
        # Insertion order is cache age order; set() re-inserts refreshed names
        self._entries: dict[str, tuple[float, tuple[PrintingRecord, ...]]] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    def _is_expired(self, cached_at: float, now: float) -> bool:
        return now - cached_at > self.ttl_seconds

    def get(self, card_name: str) -> list[PrintingRecord] | None:
        """
        Get the cached printings for a card.

        Returns:
            List of PrintingRecords, or None if missing or expired
        """
        with self._lock:
            entry = self._entries.get(card_name)
            if entry is None:
                self._misses += 1
                logger.debug(f"Cache MISS for printings of {card_name}")
                return None
            cached_at, records = entry
            if self._is_expired(cached_at, self._clock()):
                del self._entries[card_name]
                self._expirations += 1
                self._misses += 1
                logger.debug(f"Cache EXPIRED for printings of {card_name}")
                return None
            self._hits += 1
        logger.debug(f"Cache HIT for printings of {card_name}")
        return list(records)

    def has(self, card_name: str) -> bool:
        """Whether a fresh entry exists; does not count as a hit or miss."""
        with self._lock:
            entry = self._entries.get(card_name)
            return entry is not None and not self._is_expired(entry[0], self._clock())

    def set(self, card_name: str, records: Iterable[PrintingRecord]) -> None:
        with self._lock:
            if card_name in self._entries:
                del self._entries[card_name]
            elif len(self._entries) >= self.max_entries:
                self._evict_oldest()
            self._entries[card_name] = (self._clock(), tuple(records))

    def _evict_oldest(self) -> None:
        count = max(1, int(self.max_entries * self.evict_fraction))
        for card_name in list(self._entries)[:count]:
            del self._entries[card_name]
        self._evictions += count
        logger.debug(f"Printings cache full; evicted {count} oldest entries")

    def remove(self, card_name: str) -> None:
        with self._lock:
            self._entries.pop(card_name, None)

    def purge_expired(self) -> int:
        """
        Drop every expired entry.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            expired = [
                name for name, (cached_at, _) in self._entries.items()
                if self._is_expired(cached_at, now)
            ]
            for card_name in expired:
                del self._entries[card_name]
            self._expirations += len(expired)
        if expired:
            logger.info(f"Removed {len(expired)} expired printings cache entries")
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.info("Printings cache cleared")

    def get_stats(self) -> dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dictionary with entries, max_entries, hits, misses, evictions,
            expirations and oldest_age_seconds
        """
        with self._lock:
            oldest = next(iter(self._entries.values()), None)
            return {
                "entries": len(self._entries),
                "max_entries": self.max_entries,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "expirations": self._expirations,
                "oldest_age_seconds": (
                    round(self._clock() - oldest[0], 3) if oldest is not None else None
                ),
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["PrintingsCache"]
