"""
Printing Resolver - Decides which printing of a card to display.

Resolution order, first applicable wins:
1. The user's stored preference for the card name
2. The fixed default printing for basic lands
3. The printing the deck entry already carries
4. The card data API's canonical printing for the name

Step 2 matches the card name against the basic land table only. The
context's ``is_basic_land`` flag never picks a printing; it only decides
whether a missing live price falls back to the basic land price.

The same inputs always produce the same ``ResolvedPrinting``. Provider
failures end in a placeholder result rather than an exception.
"""

from __future__ import annotations

from collections.abc import Mapping

from loguru import logger

from repositories.card_repository import CardRepository
from repositories.preference_store import PreferenceStore
from utils.game_constants import BASIC_LAND_PRINTINGS
from utils.pricing import normalize_modal_price, select_price
from utils.printing import (
    CardContext,
    Preference,
    PrintingRecord,
    PrintingSource,
    ResolvedPrinting,
    image_url_for,
    placeholder_printing,
    require_card_identity,
)


class PrintingResolver:
    """Applies the printing priority policy to a card context."""

    def __init__(
        self,
        preference_store: PreferenceStore,
        card_repository: CardRepository,
        basic_land_printings: Mapping[str, str] = BASIC_LAND_PRINTINGS,
    ) -> None:
        self.preference_store = preference_store
        self.card_repository = card_repository
        self.basic_land_printings = basic_land_printings

    def _build(
        self,
        context: CardContext,
        printing_id: str,
        record: PrintingRecord | None,
        source: PrintingSource,
        modal_price: object,
        price_record: PrintingRecord | None = None,
    ) -> ResolvedPrinting:
        confirmed = normalize_modal_price(modal_price)
        image_url = record.image_url() if record is not None else image_url_for(printing_id)
        price = select_price(
            price_record or record,
            modal_price=confirmed,
            foil=context.foil,
            basic_land=context.basic_land,
        )
        return ResolvedPrinting(
            printing_id=printing_id,
            image_url=image_url,
            price_value=price,
            source=source,
            modal_price=confirmed,
            snapshot=record,
        )

    def resolve_preference(self, context: CardContext, preference: Preference) -> ResolvedPrinting:
        """Resolve a known preference without any network access."""
        # Prices come from a fetched record when one is cached, else the snapshot
        modal_price = preference.modal_price
        if modal_price is None:
            modal_price = context.modal_price
        return self._build(
            context,
            preference.printing_id,
            preference.snapshot,
            PrintingSource.USER_PREFERENCE,
            modal_price,
            price_record=self.card_repository.cached_printing(preference.printing_id),
        )

    def resolve(self, context: CardContext) -> ResolvedPrinting:
        """
        Resolve the printing to display for a card.

        Args:
            context: Card name plus whatever the deck entry knows about it

        Returns:
            ResolvedPrinting tagged with the step that produced it
        """
        card_name = require_card_identity(context.card_identity)

        preference = self.preference_store.get(card_name)
        if preference is not None:
            logger.debug(f"Resolved {card_name} from stored preference {preference.printing_id}")
            return self.resolve_preference(context, preference)

        basic_id = self.basic_land_printings.get(card_name)
        if basic_id is not None:
            record = self.card_repository.get_printing(basic_id)
            logger.debug(f"Resolved {card_name} to basic land default {basic_id}")
            return self._build(
                context, basic_id, record, PrintingSource.BASIC_LAND_DEFAULT, context.modal_price
            )

        if context.deck_entry_printing_id:
            printing_id = context.deck_entry_printing_id
            record = self.card_repository.get_printing(printing_id)
            logger.debug(f"Resolved {card_name} to deck entry printing {printing_id}")
            return self._build(
                context, printing_id, record, PrintingSource.DECK_ENTRY_PRINTING, context.modal_price
            )

        record = self.card_repository.get_default_printing(card_name)
        if record is None:
            logger.info(f"No printing available for {card_name}; showing placeholder")
            return placeholder_printing()
        return self._build(
            context,
            record.printing_id,
            record,
            PrintingSource.FALLBACK_DEFAULT,
            context.modal_price,
        )


__all__ = ["PrintingResolver"]
