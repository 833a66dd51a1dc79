"""
Preference Store - Durable per-card printing choices.

All preferences live as one mapping under a single storage key:

    {"<card name>": {"id", "set", "collector_number", "image_uris", "selectedAt", ...}}

Mutations always rewrite the full mapping so that saving one card never drops
another card's entry. A choice whose write failed is held in memory, served by
``get``/``list_all`` and written again with the next successful save.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from services.store_service import StoreService, get_store_service
from utils.constants import PRINTING_PREFERENCES_KEY
from utils.errors import MalformedStorageError
from utils.pricing import normalize_modal_price
from utils.printing import CardIdentity, Preference, PrintingRecord, require_card_identity


@dataclass(frozen=True)
class RecentSelection:
    card_identity: CardIdentity
    set_code: str
    selected_at: float
    count: int


@dataclass(frozen=True)
class SelectionPatterns:
    """Aggregate view of the user's printing choices."""

    preferred_sets: dict[str, int] = field(default_factory=dict)
    recent_selections: list[RecentSelection] = field(default_factory=list)
    total_selections: int = 0

    def top_sets(self, limit: int = 5) -> list[tuple[str, int]]:
        ranked = sorted(self.preferred_sets.items(), key=lambda item: (-item[1], item[0]))
        return ranked[:limit]


class PreferenceStore:
    """Repository for the user's preferred printing per card name."""

    def __init__(
        self,
        store_service: StoreService | None = None,
        storage_key: str = PRINTING_PREFERENCES_KEY,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store_service or get_store_service()
        self.storage_key = storage_key
        self._clock = clock
        self._unsaved: dict[CardIdentity, Preference] = {}
        self._lock = threading.RLock()

    # ============= Storage helpers =============

    def _coerce_mapping(self, raw: Any) -> dict[str, Any]:
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            logger.warning(
                f"Malformed printing preferences under {self.storage_key!r}; treating as empty"
            )
            return {}
        return raw

    def _load_mapping(self) -> dict[str, Any]:
        return self._coerce_mapping(self._store.get_item(self.storage_key))

    def _parse_entry(self, card_name: str, payload: Any) -> Preference | None:
        try:
            return Preference.from_storage(card_name, payload)
        except MalformedStorageError as exc:
            logger.warning(f"Ignoring malformed preference for {card_name}: {exc}")
            return None

    @staticmethod
    def _previous_count(previous: Any) -> int:
        if isinstance(previous, Preference):
            return previous.selection_count
        if isinstance(previous, dict):
            try:
                return int(previous.get("selectionCount") or 0)
            except (TypeError, ValueError):
                return 0
        return 0

    # ============= Public API =============

    def get(self, card_name: CardIdentity) -> Preference | None:
        require_card_identity(card_name)
        with self._lock:
            unsaved = self._unsaved.get(card_name)
        if unsaved is not None:
            return unsaved
        payload = self._load_mapping().get(card_name)
        if payload is None:
            return None
        return self._parse_entry(card_name, payload)

    def has(self, card_name: CardIdentity) -> bool:
        return self.get(card_name) is not None

    def has_unsaved(self) -> bool:
        with self._lock:
            return bool(self._unsaved)

    def set(
        self,
        card_name: CardIdentity,
        record: PrintingRecord,
        modal_price: object = None,
    ) -> Preference:
        """
        Save a user's explicit printing choice, replacing any previous one.

        Args:
            card_name: Canonical card name
            record: The printing the user picked
            modal_price: Price the user confirmed alongside the choice (optional)

        Returns:
            The stored Preference (held in memory if the write failed)
        """
        require_card_identity(card_name)
        saved: list[Preference] = []

        with self._lock:
            pending = dict(self._unsaved)

            def mutate(current: Any) -> dict[str, Any]:
                mapping = self._coerce_mapping(current)
                for name, preference in pending.items():
                    mapping[name] = preference.to_storage()
                previous = pending.get(card_name) or mapping.get(card_name)
                preference = Preference(
                    card_identity=card_name,
                    printing_id=record.printing_id,
                    snapshot=record,
                    selected_at=self._clock(),
                    modal_price=normalize_modal_price(modal_price),
                    selection_count=self._previous_count(previous) + 1,
                )
                mapping[card_name] = preference.to_storage()
                saved.append(preference)
                return mapping

            if self._store.update_item(self.storage_key, mutate):
                self._unsaved.clear()
                logger.info(
                    f"Saved printing preference for {card_name}: "
                    f"{record.set_code.upper()} #{record.collector_number}"
                )
            else:
                self._unsaved[card_name] = saved[-1]
                logger.warning(
                    f"Preference for {card_name} kept in memory only; storage write failed"
                )
        return saved[-1]

    def clear(self, card_name: CardIdentity | None = None) -> None:
        """Remove one card's preference, or every preference when no name is given."""
        if card_name is None:
            with self._lock:
                self._unsaved.clear()
                self._store.remove_item(self.storage_key)
            logger.info("Cleared all printing preferences")
            return

        require_card_identity(card_name)

        def mutate(current: Any) -> dict[str, Any]:
            mapping = self._coerce_mapping(current)
            mapping.pop(card_name, None)
            return mapping

        with self._lock:
            self._unsaved.pop(card_name, None)
            self._store.update_item(self.storage_key, mutate)
        logger.info(f"Cleared printing preference for {card_name}")

    def list_all(self) -> list[Preference]:
        preferences: dict[CardIdentity, Preference] = {}
        for card_name, payload in self._load_mapping().items():
            preference = self._parse_entry(card_name, payload)
            if preference is not None:
                preferences[card_name] = preference
        with self._lock:
            preferences.update(self._unsaved)
        return list(preferences.values())

    def patterns(self) -> SelectionPatterns:
        """Summarise which sets the user picks and what they picked most recently."""
        preferred_sets: dict[str, int] = {}
        recent: list[RecentSelection] = []
        total = 0
        for preference in self.list_all():
            set_code = preference.snapshot.set_code
            count = preference.selection_count
            preferred_sets[set_code] = preferred_sets.get(set_code, 0) + count
            recent.append(
                RecentSelection(preference.card_identity, set_code, preference.selected_at, count)
            )
            total += count
        recent.sort(key=lambda selection: selection.selected_at, reverse=True)
        return SelectionPatterns(preferred_sets, recent, total)


__all__ = ["PreferenceStore", "RecentSelection", "SelectionPatterns"]
