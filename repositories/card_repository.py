"""
Card Repository - Data access layer for card printing information.

This module handles all card-related data access including:
- Printing lookups by id, by name and by set/collector number
- The canonical (default) printing of a card name
- Bounded in-memory caches of printing records and per-name printing lists
- Prefetching printing lists for a batch of card names

Provider failures are logged here and surface as ``None`` / empty lists so
callers can fall back to placeholders.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from collections.abc import Callable, Iterable
from typing import Any

from loguru import logger

from utils.errors import PrintingSyncError, UnknownCardError
from utils.printing import PrintingRecord
from utils.printings_cache import PrintingsCache
from utils.scryfall_client import ScryfallClient
from utils.service_config import MAX_CACHED_RECORDS


class CardRepository:
    """Repository for card printing lookups backed by the card data API."""

    def __init__(
        self,
        client: ScryfallClient | None = None,
        printings_cache: PrintingsCache | None = None,
        max_records: int = MAX_CACHED_RECORDS,
    ):
        """
        Initialize the card repository.

        Args:
            client: ScryfallClient instance. If None, one is created on first use.
            printings_cache: Cache for per-name printing lists. If None, a default one is used.
            max_records: Maximum number of printing records and default ids held in memory
        """
        self._client = client
        self.printings_cache = printings_cache or PrintingsCache()
        self.max_records = max_records
        self._records: OrderedDict[str, PrintingRecord] = OrderedDict()
        self._default_ids: OrderedDict[str, str] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def client(self) -> ScryfallClient:
        """Get or create the ScryfallClient instance."""
        if self._client is None:
            self._client = ScryfallClient()
        return self._client

    # ============= Cache Operations =============

    def _trim(self, cache: OrderedDict) -> None:
        while len(cache) > self.max_records:
            cache.popitem(last=False)

    def remember(self, record: PrintingRecord) -> PrintingRecord:
        """Cache a printing record; records are immutable once fetched."""
        with self._lock:
            existing = self._records.get(record.printing_id)
            if existing is not None:
                return existing
            self._records[record.printing_id] = record
            self._trim(self._records)
            return record

    def seed_records(self, records: Iterable[PrintingRecord]) -> int:
        """
        Remember records already embedded in deck data.

        Only single records are seeded; a card's printing list is always
        fetched in full so a seeded printing never stands in for the list.

        Returns:
            Number of records that were not cached before
        """
        seeded = 0
        for record in records:
            if self.cached_printing(record.printing_id) is None:
                self.remember(record)
                seeded += 1
        if seeded:
            logger.debug(f"Seeded {seeded} printing records from deck data")
        return seeded

    def cached_printing(self, printing_id: str | None) -> PrintingRecord | None:
        """Return a cached record without touching the network."""
        if not printing_id:
            return None
        with self._lock:
            return self._records.get(printing_id)

    def clear_cache(self) -> None:
        with self._lock:
            self._records.clear()
            self._default_ids.clear()
        self.printings_cache.clear()

    def get_cache_stats(self) -> dict[str, Any]:
        with self._lock:
            stats = {
                "records": len(self._records),
                "default_ids": len(self._default_ids),
                "max_records": self.max_records,
            }
        stats["printings"] = self.printings_cache.get_stats()
        return stats

    # ============= Printing Lookups =============

    def get_printing(self, printing_id: str) -> PrintingRecord | None:
        """
        Get a single printing by id.

        Args:
            printing_id: Opaque printing id

        Returns:
            PrintingRecord or None if unknown / unreachable
        """
        cached = self.cached_printing(printing_id)
        if cached is not None:
            return cached
        try:
            payload = self.client.get_card_by_id(printing_id)
            return self.remember(PrintingRecord.from_api(payload))
        except UnknownCardError:
            logger.info(f"No printing found for id {printing_id}")
            return None
        except (PrintingSyncError, ValueError) as exc:
            logger.warning(f"Failed to fetch printing {printing_id}: {exc}")
            return None

    def get_default_printing(self, card_name: str) -> PrintingRecord | None:
        """
        Get the provider's canonical printing for a card name.

        Args:
            card_name: Exact card name

        Returns:
            PrintingRecord or None if unknown / unreachable
        """
        with self._lock:
            default_id = self._default_ids.get(card_name)
            if default_id is not None and default_id in self._records:
                return self._records[default_id]
        try:
            payload = self.client.get_named_card(card_name)
            record = self.remember(PrintingRecord.from_api(payload))
        except UnknownCardError:
            logger.info(f"No card data for {card_name}")
            return None
        except (PrintingSyncError, ValueError) as exc:
            logger.warning(f"Failed to fetch default printing for {card_name}: {exc}")
            return None
        with self._lock:
            self._default_ids[card_name] = record.printing_id
            self._default_ids.move_to_end(card_name)
            self._trim(self._default_ids)
        return record

    def _load_printings(self, card_name: str) -> list[PrintingRecord] | None:
        """Fetch and cache every printing of a card; None when the card is unknown or unreachable."""
        try:
            payloads = self.client.search_printings(card_name)
        except UnknownCardError:
            logger.info(f"No printings found for {card_name}")
            return None
        except PrintingSyncError as exc:
            logger.warning(f"Failed to get printings for {card_name}: {exc}")
            return None

        records: list[PrintingRecord] = []
        for payload in payloads:
            try:
                records.append(self.remember(PrintingRecord.from_api(payload)))
            except ValueError:
                continue
        self.printings_cache.set(card_name, records)
        return records

    def get_printings(
        self,
        card_name: str,
        set_code: str | None = None,
        collector_number: str | None = None,
    ) -> list[PrintingRecord]:
        """
        Get all printings for a card, optionally narrowed to a set / collector number.

        Returns:
            List of PrintingRecords, newest first (empty on failure)
        """
        cached = self.printings_cache.get(card_name)

        if set_code and collector_number:
            if cached is not None:
                matches = [
                    record for record in cached
                    if record.set_code.lower() == set_code.lower()
                    and record.collector_number == str(collector_number)
                ]
                if matches:
                    return matches
            try:
                payload = self.client.get_card_by_set_number(set_code, collector_number)
                return [self.remember(PrintingRecord.from_api(payload))]
            except UnknownCardError:
                return []
            except (PrintingSyncError, ValueError) as exc:
                logger.warning(f"Failed to get {set_code} #{collector_number} for {card_name}: {exc}")
                return []

        records = cached if cached is not None else self._load_printings(card_name)
        if not records:
            return []
        if set_code:
            return [record for record in records if record.set_code.lower() == set_code.lower()]
        return records

    def warm_up(self, card_name: str) -> bool:
        """Make sure a card's printing list is cached; True when it is."""
        if self.printings_cache.has(card_name):
            return True
        return self._load_printings(card_name) is not None

    def prefetch_printings(
        self,
        card_names: Iterable[str],
        on_progress: Callable[[int, int], None] | None = None,
    ) -> int:
        """
        Fetch printing lists for every uncached card name.

        Args:
            card_names: Card names, duplicates allowed
            on_progress: Called with (completed, total) after each fetch

        Returns:
            Number of card names fetched successfully
        """
        pending = [
            name for name in dict.fromkeys(card_names)
            if name and not self.printings_cache.has(name)
        ]
        if not pending:
            return 0

        logger.info(f"Prefetching printings for {len(pending)} cards")
        fetched = 0
        for completed, card_name in enumerate(pending, start=1):
            if self._load_printings(card_name) is not None:
                fetched += 1
            if on_progress is not None:
                try:
                    on_progress(completed, len(pending))
                except Exception:
                    logger.exception("Prefetch progress callback failed")
        logger.info(f"Prefetched printings for {fetched}/{len(pending)} cards")
        return fetched


# Global instance for backward compatibility
_default_repository = None


def get_card_repository() -> CardRepository:
    """Get the default card repository instance."""
    global _default_repository
    if _default_repository is None:
        _default_repository = CardRepository()
    return _default_repository


def reset_card_repository() -> None:
    """
    Reset the global card repository instance.

    This is primarily useful for testing to ensure test isolation
    and prevent state leakage between tests.
    """
    global _default_repository
    _default_repository = None
