"""
Display Sync Coordinator - Keeps every surface showing a card on one printing.

List rows, hover previews and detail modals subscribe per card name. A
selection made in any surface is stored as the user's preference and pushed
to every subscriber of that card before ``select`` returns.

Background resolutions are tagged with a per-card generation. Any later
``select`` or ``invalidate`` for the same card bumps the generation, so a slow
lookup finishing afterwards is discarded instead of overwriting newer state.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable

from loguru import logger

from repositories.card_repository import CardRepository
from repositories.deck_repository import DeckRepository
from repositories.preference_store import PreferenceStore
from services.printing_resolver import PrintingResolver
from utils.background_worker import BackgroundWorker
from utils.printing import (
    CardContext,
    CardIdentity,
    PrintingRecord,
    ResolvedPrinting,
    placeholder_printing,
    require_card_identity,
)

PrintingCallback = Callable[[ResolvedPrinting], None]
SelectionListener = Callable[[CardIdentity, ResolvedPrinting], None]


class _Subscription:
    __slots__ = ("card_name", "callback", "active")

    def __init__(self, card_name: CardIdentity, callback: PrintingCallback) -> None:
        self.card_name = card_name
        self.callback = callback
        self.active = True


class DisplaySyncCoordinator:
    """Publish/subscribe hub between the resolver and the display surfaces."""

    def __init__(
        self,
        resolver: PrintingResolver,
        preference_store: PreferenceStore | None = None,
        card_repository: CardRepository | None = None,
        worker: BackgroundWorker | None = None,
    ) -> None:
        self.resolver = resolver
        self.preference_store = preference_store or resolver.preference_store
        self.card_repository = card_repository or resolver.card_repository
        self.worker = worker or BackgroundWorker()

        self._lock = threading.RLock()
        self._subscriptions: dict[CardIdentity, list[_Subscription]] = {}
        self._contexts: dict[CardIdentity, CardContext] = {}
        self._current: dict[CardIdentity, ResolvedPrinting] = {}
        self._generation: dict[CardIdentity, int] = {}
        self._pending: dict[CardIdentity, int] = {}
        self._selection_listeners: list[SelectionListener] = []

    # ------------------------------------------------------------------ subscriptions

    def subscribe(
        self,
        card_name: CardIdentity,
        callback: PrintingCallback,
        context: CardContext | None = None,
    ) -> Callable[[], None]:
        """
        Register a surface for updates to one card's resolved printing.

        Args:
            card_name: Canonical card name
            callback: Receives every new ResolvedPrinting for the card
            context: Deck entry details for the card (optional)

        Returns:
            A function that removes the subscription; safe to call twice
        """
        require_card_identity(card_name)
        if context is not None and context.card_identity != card_name:
            raise ValueError(
                f"Context is for {context.card_identity!r}, not {card_name!r}"
            )

        subscription = _Subscription(card_name, callback)
        with self._lock:
            self._subscriptions.setdefault(card_name, []).append(subscription)
            if context is not None and self._contexts.get(card_name) != context:
                if card_name in self._contexts or card_name in self._current:
                    self._current.pop(card_name, None)
                    self._pending.pop(card_name, None)
                self._contexts[card_name] = context
            current = self._current.get(card_name)
            needs_resolution = current is None and card_name not in self._pending
            if needs_resolution:
                generation = self._next_generation(card_name)
                self._pending[card_name] = generation

        if current is not None:
            self._notify(card_name, current, [subscription])
        elif needs_resolution:
            self._schedule(card_name, generation)

        def unsubscribe() -> None:
            self._unsubscribe(subscription)

        return unsubscribe

    def _unsubscribe(self, subscription: _Subscription) -> None:
        with self._lock:
            subscription.active = False
            subscriptions = self._subscriptions.get(subscription.card_name)
            if subscriptions and subscription in subscriptions:
                subscriptions.remove(subscription)
                if not subscriptions:
                    del self._subscriptions[subscription.card_name]

    def subscriber_count(self, card_name: CardIdentity) -> int:
        with self._lock:
            return len(self._subscriptions.get(card_name, []))

    def add_selection_listener(self, listener: SelectionListener) -> Callable[[], None]:
        """Register a host hook run after each selection (e.g. to persist it on the deck)."""
        with self._lock:
            self._selection_listeners.append(listener)

        def remove() -> None:
            with self._lock:
                if listener in self._selection_listeners:
                    self._selection_listeners.remove(listener)

        return remove

    # ------------------------------------------------------------------ reads

    def current(self, card_name: CardIdentity) -> ResolvedPrinting | None:
        with self._lock:
            return self._current.get(card_name)

    def is_pending(self, card_name: CardIdentity) -> bool:
        with self._lock:
            return card_name in self._pending

    # ------------------------------------------------------------------ writes

    def select(
        self,
        card_name: CardIdentity,
        record: PrintingRecord,
        modal_price: object = None,
    ) -> ResolvedPrinting:
        """
        Apply a user's printing choice and push it to every surface.

        Args:
            card_name: Canonical card name
            record: The printing the user picked
            modal_price: Price the user confirmed with it (optional)

        Returns:
            The ResolvedPrinting every subscriber has just received
        """
        require_card_identity(card_name)
        preference = self.preference_store.set(card_name, record, modal_price)
        self.card_repository.remember(record)

        with self._lock:
            context = self._contexts.get(card_name) or CardContext(card_name)
            resolved = self.resolver.resolve_preference(context, preference)
            self._next_generation(card_name)
            self._pending.pop(card_name, None)
            self._current[card_name] = resolved
            subscriptions = list(self._subscriptions.get(card_name, []))
            listeners = list(self._selection_listeners)

        self._notify(card_name, resolved, subscriptions)
        for listener in listeners:
            try:
                listener(card_name, resolved)
            except Exception:
                logger.exception(f"Selection listener failed for {card_name}")
        return resolved

    def invalidate(self, card_name: CardIdentity) -> None:
        """Drop the current value and recompute it for the card's subscribers."""
        require_card_identity(card_name)
        with self._lock:
            self._current.pop(card_name, None)
            generation = self._next_generation(card_name)
            if not self._subscriptions.get(card_name):
                self._pending.pop(card_name, None)
                return
            self._pending[card_name] = generation
        self._schedule(card_name, generation)

    def clear_preference(self, card_name: CardIdentity | None = None) -> None:
        """Clear one or all stored preferences and refresh the affected cards."""
        self.preference_store.clear(card_name)
        if card_name is not None:
            self.invalidate(card_name)
            return
        with self._lock:
            affected = set(self._current) | set(self._subscriptions)
        for name in sorted(affected):
            self.invalidate(name)

    # ------------------------------------------------------------------ prefetch

    def prefetch(
        self,
        card_names: Iterable[CardIdentity],
        on_progress: Callable[[int, int], None] | None = None,
        on_done: Callable[[int], None] | None = None,
    ) -> None:
        """Fetch printing lists for the given cards on the worker."""
        names = list(dict.fromkeys(name for name in card_names if name))
        if not names:
            return

        def on_error(exc: Exception) -> None:
            logger.warning(f"Prefetch of {len(names)} cards failed: {exc}")

        self.worker.submit(
            self.card_repository.prefetch_printings,
            names,
            on_progress,
            on_success=on_done,
            on_error=on_error,
        )

    def prepare_deck(
        self,
        deck_repository: DeckRepository,
        deck_id,
        on_done: Callable[[int], None] | None = None,
    ) -> list[CardContext]:
        """
        Get a deck ready for display.

        Card data embedded in the deck is remembered right away and the
        printing lists of its cards are fetched in the background.

        Returns:
            One CardContext per distinct card, for subscribing surfaces
        """
        contexts = deck_repository.iter_entry_contexts(deck_id)
        self.card_repository.seed_records(deck_repository.iter_entry_records(deck_id))
        self.prefetch([context.card_identity for context in contexts], on_done=on_done)
        return contexts

    def shutdown(self, timeout: float = 10.0) -> None:
        self.worker.shutdown(timeout=timeout)

    # ------------------------------------------------------------------ internals

    def _next_generation(self, card_name: CardIdentity) -> int:
        generation = self._generation.get(card_name, 0) + 1
        self._generation[card_name] = generation
        return generation

    def _schedule(self, card_name: CardIdentity, generation: int) -> None:
        with self._lock:
            context = self._contexts.get(card_name) or CardContext(card_name)

        def on_success(resolved: ResolvedPrinting) -> None:
            self._deliver(card_name, generation, resolved)

        def on_error(exc: Exception) -> None:
            logger.warning(f"Resolution failed for {card_name}: {exc}")
            self._deliver(card_name, generation, placeholder_printing())

        self.worker.submit(
            self.resolver.resolve, context, on_success=on_success, on_error=on_error
        )

    def _deliver(
        self, card_name: CardIdentity, generation: int, resolved: ResolvedPrinting
    ) -> None:
        with self._lock:
            if self._generation.get(card_name) != generation:
                logger.debug(f"Discarding superseded resolution for {card_name}")
                return
            self._pending.pop(card_name, None)
            self._current[card_name] = resolved
            subscriptions = list(self._subscriptions.get(card_name, []))
        self._notify(card_name, resolved, subscriptions)

    @staticmethod
    def _notify(
        card_name: CardIdentity,
        resolved: ResolvedPrinting,
        subscriptions: list[_Subscription],
    ) -> None:
        for subscription in subscriptions:
            if not subscription.active:
                continue
            try:
                subscription.callback(resolved)
            except Exception:
                logger.exception(f"Display callback failed for {card_name}")


def create_display_sync(
    preference_store: PreferenceStore | None = None,
    card_repository: CardRepository | None = None,
    worker: BackgroundWorker | None = None,
) -> DisplaySyncCoordinator:
    """Wire a coordinator from its collaborators, creating defaults where omitted."""
    store = preference_store or PreferenceStore()
    cards = card_repository or CardRepository()
    resolver = PrintingResolver(store, cards)
    return DisplaySyncCoordinator(resolver, store, cards, worker=worker)


__all__ = ["DisplaySyncCoordinator", "create_display_sync"]
