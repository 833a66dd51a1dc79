"""Value types shared by the preference store, resolver and display coordinator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from utils.errors import MalformedStorageError
from utils.game_constants import is_basic_land
from utils.service_config import DEFAULT_IMAGE_SIZE, SCRYFALL_API_BASE, SCRYFALL_IMAGE_CDN

CardIdentity = str


def require_card_identity(card_name: Any) -> CardIdentity:
    """Return the card name unchanged, rejecting empty identities."""
    if not isinstance(card_name, str) or not card_name.strip():
        raise ValueError(f"Card identity must be a non-empty string, got {card_name!r}")
    return card_name


def image_url_for(printing_id: str | None, size: str = DEFAULT_IMAGE_SIZE) -> str | None:
    """Build a direct image URL for a printing id without a metadata lookup."""
    if not printing_id:
        return None
    if len(printing_id) >= 36:
        return f"{SCRYFALL_IMAGE_CDN}/{size}/front/{printing_id[0]}/{printing_id[1]}/{printing_id}.jpg"
    return f"{SCRYFALL_API_BASE}/cards/{printing_id}?format=image&version={size}"


def _parse_finishes(value: Any) -> tuple[str, ...] | None:
    """Return finishes as a tuple, or None when the value is not a list of strings."""
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)) or not all(isinstance(item, str) for item in value):
        return None
    return tuple(value)


class PrintingSource(str, Enum):
    """Why a printing is being shown."""

    USER_PREFERENCE = "user_preference"
    BASIC_LAND_DEFAULT = "basic_land_default"
    DECK_ENTRY_PRINTING = "deck_entry_printing"
    FALLBACK_DEFAULT = "fallback_default"


@dataclass(frozen=True)
class PrintingRecord:
    """A specific printing of a card as returned by the card data API."""

    printing_id: str
    set_code: str = ""
    collector_number: str = ""
    image_refs: dict[str, str] = field(default_factory=dict)
    price_refs: dict[str, str | None] = field(default_factory=dict)
    name: str = ""
    set_name: str = ""
    finishes: tuple[str, ...] = ()

    def image_url(self, size: str = DEFAULT_IMAGE_SIZE) -> str | None:
        return self.image_refs.get(size) or image_url_for(self.printing_id, size)

    @classmethod
    def from_api(cls, card: dict[str, Any]) -> PrintingRecord:
        """Build a record from a card object of the card data API."""
        printing_id = card.get("id")
        if not printing_id:
            raise ValueError("Card payload has no printing id")
        finishes = _parse_finishes(card.get("finishes"))
        if finishes is None:
            raise ValueError(f"Card {printing_id} has invalid finishes: {card.get('finishes')!r}")
        image_uris = card.get("image_uris")
        if not isinstance(image_uris, dict) or not image_uris:
            # Multi-faced layouts carry images per face; the front face is shown.
            faces = card.get("card_faces")
            if not isinstance(faces, list):
                faces = []
            image_uris = next(
                (
                    face["image_uris"]
                    for face in faces
                    if isinstance(face, dict) and isinstance(face.get("image_uris"), dict)
                ),
                {},
            )
        prices = card.get("prices")
        return cls(
            printing_id=str(printing_id),
            set_code=card.get("set") or "",
            collector_number=str(card.get("collector_number") or ""),
            image_refs=dict(image_uris),
            price_refs=dict(prices) if isinstance(prices, dict) else {},
            name=card.get("name") or "",
            set_name=card.get("set_name") or "",
            finishes=finishes,
        )

    def to_storage(self) -> dict[str, Any]:
        return {
            "id": self.printing_id,
            "name": self.name,
            "set": self.set_code,
            "set_name": self.set_name,
            "collector_number": self.collector_number,
            "image_uris": dict(self.image_refs),
            "prices": dict(self.price_refs),
            "finishes": list(self.finishes),
        }

    @classmethod
    def from_storage(cls, payload: Any) -> PrintingRecord:
        if not isinstance(payload, dict):
            raise MalformedStorageError(f"Printing snapshot is not a mapping: {payload!r}")
        printing_id = payload.get("id")
        if not isinstance(printing_id, str) or not printing_id:
            raise MalformedStorageError(f"Printing snapshot has no id: {payload!r}")
        finishes = _parse_finishes(payload.get("finishes"))
        if finishes is None:
            raise MalformedStorageError(
                f"Printing snapshot {printing_id} has invalid finishes: {payload.get('finishes')!r}"
            )
        image_uris = payload.get("image_uris")
        prices = payload.get("prices")
        return cls(
            printing_id=printing_id,
            set_code=str(payload.get("set") or ""),
            collector_number=str(payload.get("collector_number") or ""),
            image_refs=dict(image_uris) if isinstance(image_uris, dict) else {},
            price_refs=dict(prices) if isinstance(prices, dict) else {},
            name=str(payload.get("name") or ""),
            set_name=str(payload.get("set_name") or ""),
            finishes=finishes,
        )


@dataclass(frozen=True)
class Preference:
    """A user's explicit printing choice for one card name."""

    card_identity: CardIdentity
    printing_id: str
    snapshot: PrintingRecord
    selected_at: float
    modal_price: str | None = None
    selection_count: int = 1

    def to_storage(self) -> dict[str, Any]:
        payload = self.snapshot.to_storage()
        payload["modalPrice"] = self.modal_price
        # Milliseconds, matching the browser client's Date.now() stamps
        payload["selectedAt"] = int(round(self.selected_at * 1000))
        payload["selectionCount"] = self.selection_count
        return payload

    @classmethod
    def from_storage(cls, card_identity: CardIdentity, payload: Any) -> Preference:
        snapshot = PrintingRecord.from_storage(payload)
        try:
            selected_at = float(payload.get("selectedAt") or 0) / 1000
            selection_count = int(payload.get("selectionCount") or 1)
        except (TypeError, ValueError) as exc:
            raise MalformedStorageError(f"Bad preference metadata for {card_identity}") from exc
        modal_price = payload.get("modalPrice")
        return cls(
            card_identity=card_identity,
            printing_id=snapshot.printing_id,
            snapshot=snapshot,
            selected_at=selected_at,
            modal_price=str(modal_price) if modal_price is not None else None,
            selection_count=selection_count,
        )


@dataclass(frozen=True)
class CardContext:
    """Everything the resolver needs to know about one card on one surface."""

    card_identity: CardIdentity
    deck_entry_printing_id: str | None = None
    is_basic_land: bool | None = None
    foil: bool = False
    modal_price: str | None = None

    @property
    def basic_land(self) -> bool:
        """Whether a missing live price falls back to the basic land price."""
        if self.is_basic_land is not None:
            return self.is_basic_land
        return is_basic_land(self.card_identity)


@dataclass(frozen=True)
class ResolvedPrinting:
    """The printing a surface should display, and why."""

    printing_id: str | None
    image_url: str | None
    price_value: str | None
    source: PrintingSource
    modal_price: str | None = None
    snapshot: PrintingRecord | None = None

    @property
    def is_placeholder(self) -> bool:
        return self.printing_id is None


def placeholder_printing() -> ResolvedPrinting:
    """Neutral result used whenever no printing can be determined."""
    return ResolvedPrinting(
        printing_id=None,
        image_url=None,
        price_value=None,
        source=PrintingSource.FALLBACK_DEFAULT,
    )


__all__ = [
    "CardIdentity",
    "CardContext",
    "Preference",
    "PrintingRecord",
    "PrintingSource",
    "ResolvedPrinting",
    "image_url_for",
    "placeholder_printing",
    "require_card_identity",
]
