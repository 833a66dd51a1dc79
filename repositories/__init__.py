"""
Repositories package - Data access layer.

This package contains repository classes that handle all data persistence
and retrieval operations: stored printing preferences, printing records from
the card data API and deck entries from the deck service.
"""

from repositories.card_repository import CardRepository, get_card_repository
from repositories.deck_repository import DeckRepository, get_deck_repository
from repositories.preference_store import PreferenceStore, SelectionPatterns

__all__ = [
    "CardRepository",
    "DeckRepository",
    "PreferenceStore",
    "SelectionPatterns",
    "get_card_repository",
    "get_deck_repository",
]
