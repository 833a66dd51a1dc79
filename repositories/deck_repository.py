"""
Deck Repository - Read side of the deck persistence service.

Deck documents are owned by the deck service (MongoDB). Printing resolution
only reads each card entry's ``printing``, ``foil``, ``modalPrice`` and
embedded ``scryfall_json`` fields; ``update_entry_printing`` exists for the
host application to persist a deck-level choice after a selection.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

import pymongo
from bson import ObjectId
from bson.errors import InvalidId
from loguru import logger

from utils.printing import CardContext, PrintingRecord
from utils.service_config import MONGODB_DATABASE, MONGODB_URI


def _entry_name(entry: dict[str, Any]) -> str:
    name = entry.get("name")
    if not name and isinstance(entry.get("card"), dict):
        name = entry["card"].get("name")
    return str(name or "").strip()


def _entry_printing_id(entry: dict[str, Any]) -> str | None:
    printing = entry.get("printing")
    if isinstance(printing, str) and printing:
        return printing
    scryfall_json = entry.get("scryfall_json")
    if isinstance(scryfall_json, dict) and scryfall_json.get("id"):
        return str(scryfall_json["id"])
    return None


def entry_to_context(entry: Any) -> CardContext | None:
    """Translate one deck card entry into a resolver context."""
    if not isinstance(entry, dict):
        return None
    name = _entry_name(entry)
    if not name:
        return None
    modal_price = entry.get("modalPrice")
    return CardContext(
        card_identity=name,
        deck_entry_printing_id=_entry_printing_id(entry),
        foil=entry.get("foil") is True,
        modal_price=str(modal_price) if modal_price is not None else None,
    )


def entry_to_record(entry: Any) -> PrintingRecord | None:
    """Return the card data snapshot a deck entry embeds, if it is usable."""
    if not isinstance(entry, dict):
        return None
    snapshot = entry.get("scryfall_json")
    if not isinstance(snapshot, dict) and isinstance(entry.get("card"), dict):
        snapshot = entry["card"].get("scryfall_json")
    if not isinstance(snapshot, dict):
        return None
    try:
        return PrintingRecord.from_api(snapshot)
    except ValueError as exc:
        logger.debug(f"Skipping unusable card data on deck entry {_entry_name(entry)!r}: {exc}")
        return None


class DeckRepository:
    """Repository for deck documents stored by the deck persistence service."""

    def __init__(
        self,
        mongo_client: pymongo.MongoClient | None = None,
        database: str = MONGODB_DATABASE,
        collection: str = "decks",
    ):
        """
        Initialize the deck repository.

        Args:
            mongo_client: MongoDB client instance. If None, creates a default client.
            database: Database holding the deck collection
            collection: Deck collection name
        """
        self._client = mongo_client
        self._database = database
        self._collection_name = collection
        self._collection = None

    def _get_collection(self):
        """Get or create the deck collection handle."""
        if self._collection is None:
            if self._client is None:
                self._client = pymongo.MongoClient(MONGODB_URI)
            self._collection = self._client.get_database(self._database)[self._collection_name]
        return self._collection

    @staticmethod
    def _object_id(deck_id) -> ObjectId | None:
        if isinstance(deck_id, ObjectId):
            return deck_id
        try:
            return ObjectId(str(deck_id))
        except (InvalidId, TypeError):
            logger.warning(f"Invalid deck id {deck_id!r}")
            return None

    def load_deck(self, deck_id) -> dict[str, Any] | None:
        """
        Load a deck document by id.

        Args:
            deck_id: MongoDB ObjectId or string ID

        Returns:
            Deck document or None if not found
        """
        object_id = self._object_id(deck_id)
        if object_id is None:
            return None
        deck = self._get_collection().find_one({"_id": object_id})
        if deck is None:
            logger.warning(f"Deck with ID {deck_id} not found")
        return deck

    def iter_entry_contexts(self, deck_id) -> list[CardContext]:
        """Return one resolver context per distinct card name in the deck."""
        deck = self.load_deck(deck_id)
        if not deck:
            return []
        contexts: list[CardContext] = []
        seen: set[str] = set()
        for entry in deck.get("cards") or []:
            context = entry_to_context(entry)
            if context is None or context.card_identity in seen:
                continue
            seen.add(context.card_identity)
            contexts.append(context)
        return contexts

    def iter_entry_records(self, deck_id) -> list[PrintingRecord]:
        """Return the distinct printing records embedded in a deck's entries."""
        deck = self.load_deck(deck_id)
        if not deck:
            return []
        records: dict[str, PrintingRecord] = {}
        for entry in deck.get("cards") or []:
            record = entry_to_record(entry)
            if record is not None:
                records.setdefault(record.printing_id, record)
        return list(records.values())

    def get_entry_context(self, deck_id, card_name: str) -> CardContext | None:
        for context in self.iter_entry_contexts(deck_id):
            if context.card_identity == card_name:
                return context
        return None

    def update_entry_printing(self, deck_id, card_name: str, printing_id: str) -> bool:
        """
        Persist a printing on a deck's card entry.

        Returns:
            True if an entry was updated
        """
        object_id = self._object_id(deck_id)
        if object_id is None:
            return False
        result = self._get_collection().update_one(
            {"_id": object_id, "cards.name": card_name},
            {"$set": {"cards.$.printing": printing_id, "updatedAt": datetime.now()}},
        )
        if result.modified_count > 0:
            logger.info(f"Saved printing {printing_id} for {card_name} on deck {deck_id}")
            return True
        logger.warning(f"No entry for {card_name} on deck {deck_id} to update")
        return False


# Global instance for backward compatibility
_default_repository = None


def get_deck_repository() -> DeckRepository:
    """Get the default deck repository instance."""
    global _default_repository
    if _default_repository is None:
        _default_repository = DeckRepository()
    return _default_repository


def reset_deck_repository() -> None:
    """
    Reset the global deck repository instance.

    This is primarily useful for testing to ensure test isolation
    and prevent state leakage between tests.
    """
    global _default_repository
    _default_repository = None
