"""Tests for the printing priority policy."""

from unittest.mock import Mock

import pytest
from test_helpers import make_card_payload, make_record

from repositories.card_repository import CardRepository
from repositories.preference_store import PreferenceStore
from services.printing_resolver import PrintingResolver
from utils.errors import ProviderUnavailableError, UnknownCardError
from utils.game_constants import BASIC_LAND_PRINTINGS
from utils.printing import CardContext, PrintingSource


def _named_card(name, set_code=None):
    if name == "Not A Card":
        raise UnknownCardError(name)
    return make_card_payload(f"default-{name}", name=name, prices={"usd": "0.99"})


@pytest.fixture
def mock_client():
    client = Mock()
    client.get_card_by_id = Mock(
        side_effect=lambda printing_id: make_card_payload(printing_id, prices={"usd": "0.25"})
    )
    client.get_named_card = Mock(side_effect=_named_card)
    return client


@pytest.fixture
def preference_store(store_service):
    return PreferenceStore(store_service, clock=lambda: 1_700_000_000.0)


@pytest.fixture
def card_repository(mock_client):
    return CardRepository(client=mock_client)


@pytest.fixture
def resolver(preference_store, card_repository):
    return PrintingResolver(preference_store, card_repository)


def test_preference_wins_over_everything(resolver, preference_store):
    preference_store.set("Island", make_record("chosen", name="Island"))
    context = CardContext("Island", deck_entry_printing_id="deck-printing")

    resolved = resolver.resolve(context)

    assert resolved.printing_id == "chosen"
    assert resolved.source is PrintingSource.USER_PREFERENCE


def test_preference_resolution_needs_no_network(resolver, preference_store, mock_client):
    preference_store.set("Sol Ring", make_record("chosen", name="Sol Ring"))

    resolved = resolver.resolve(CardContext("Sol Ring"))

    assert resolved.image_url == "https://img.example/normal/chosen.jpg"
    assert resolved.price_value == "1.25"
    mock_client.get_card_by_id.assert_not_called()
    mock_client.get_named_card.assert_not_called()


def test_basic_land_uses_default_table(resolver):
    resolved = resolver.resolve(CardContext("Island"))

    assert resolved.printing_id == BASIC_LAND_PRINTINGS["Island"]
    assert resolved.source is PrintingSource.BASIC_LAND_DEFAULT


def test_basic_land_default_beats_deck_entry(resolver):
    resolved = resolver.resolve(CardContext("Forest", deck_entry_printing_id="deck-forest"))

    assert resolved.printing_id == BASIC_LAND_PRINTINGS["Forest"]


def test_basic_land_without_provider_still_resolves(resolver, mock_client):
    mock_client.get_card_by_id = Mock(side_effect=ProviderUnavailableError("offline"))
    island_id = BASIC_LAND_PRINTINGS["Island"]

    resolved = resolver.resolve(CardContext("Island"))

    assert resolved.printing_id == island_id
    assert resolved.image_url.endswith(f"/{island_id}.jpg")
    assert resolved.price_value == "0.10"


def test_deck_entry_printing(resolver, mock_client):
    resolved = resolver.resolve(CardContext("Sol Ring", deck_entry_printing_id="deck-ring"))

    assert resolved.printing_id == "deck-ring"
    assert resolved.source is PrintingSource.DECK_ENTRY_PRINTING
    assert resolved.price_value == "0.25"
    mock_client.get_named_card.assert_not_called()


def test_fallback_default(resolver):
    resolved = resolver.resolve(CardContext("Sol Ring"))

    assert resolved.printing_id == "default-Sol Ring"
    assert resolved.source is PrintingSource.FALLBACK_DEFAULT
    assert resolved.price_value == "0.99"


def test_unknown_card_yields_placeholder(resolver):
    resolved = resolver.resolve(CardContext("Not A Card"))

    assert resolved.is_placeholder
    assert resolved.image_url is None
    assert resolved.price_value is None
    assert resolved.source is PrintingSource.FALLBACK_DEFAULT


def test_provider_down_yields_placeholder(resolver, mock_client):
    mock_client.get_named_card = Mock(side_effect=ProviderUnavailableError("offline"))

    resolved = resolver.resolve(CardContext("Sol Ring"))

    assert resolved.is_placeholder


def test_resolve_is_idempotent(resolver):
    context = CardContext("Sol Ring", deck_entry_printing_id="deck-ring")

    assert resolver.resolve(context) == resolver.resolve(context)


def test_cleared_preference_falls_through_to_fallback(resolver, preference_store):
    preference_store.set("Arcane Signet", make_record("p1"))
    preference_store.clear("Arcane Signet")

    resolved = resolver.resolve(CardContext("Arcane Signet"))

    assert resolved.printing_id == "default-Arcane Signet"
    assert resolved.source is PrintingSource.FALLBACK_DEFAULT


def test_preference_modal_price_is_shown(resolver, preference_store):
    preference_store.set("Sol Ring", make_record("chosen"), modal_price="$3.33")

    resolved = resolver.resolve(CardContext("Sol Ring", modal_price="9.99"))

    assert resolved.modal_price == "3.33"
    assert resolved.price_value == "3.33"


def test_deck_modal_price_applies_without_preference_price(resolver, preference_store):
    preference_store.set("Sol Ring", make_record("chosen"))

    resolved = resolver.resolve(CardContext("Sol Ring", modal_price="9.99"))

    assert resolved.price_value == "9.99"


def test_invalid_deck_modal_price_uses_live_price(resolver):
    resolved = resolver.resolve(
        CardContext("Sol Ring", deck_entry_printing_id="deck-ring", modal_price="1e9")
    )

    assert resolved.modal_price is None
    assert resolved.price_value == "0.25"


def test_foil_context_uses_foil_price(resolver, mock_client):
    mock_client.get_card_by_id = Mock(
        side_effect=lambda printing_id: make_card_payload(
            printing_id, prices={"usd": "0.25", "usd_foil": "4.00"}
        )
    )

    resolved = resolver.resolve(
        CardContext("Sol Ring", deck_entry_printing_id="deck-ring", foil=True)
    )

    assert resolved.price_value == "4.00"


def test_live_record_price_beats_snapshot_price(resolver, preference_store, card_repository):
    preference_store.set("Sol Ring", make_record("chosen", prices={"usd": "1.00"}))
    card_repository.remember(make_record("chosen", prices={"usd": "2.00"}))

    resolved = resolver.resolve(CardContext("Sol Ring"))

    assert resolved.price_value == "2.00"


def test_empty_identity_raises(resolver):
    with pytest.raises(ValueError):
        resolver.resolve(CardContext(""))


def test_undecodable_storage_resolves_as_if_empty(resolver, store_service):
    store_service.path.write_bytes(b'{"mtg_printing_preferences": {"\xff\xfe": 1}}')

    resolved = resolver.resolve(CardContext("Arcane Signet"))

    assert resolved.printing_id == "default-Arcane Signet"
    assert resolved.source is PrintingSource.FALLBACK_DEFAULT


def test_stored_entry_with_bad_finishes_is_skipped(resolver, store_service):
    store_service.set_item(
        "mtg_printing_preferences", {"Arcane Signet": {"id": "p1", "finishes": 5}}
    )

    resolved = resolver.resolve(CardContext("Arcane Signet"))

    assert resolved.printing_id == "default-Arcane Signet"
    assert resolved.source is PrintingSource.FALLBACK_DEFAULT


def test_preference_held_after_failed_write_still_resolves(
    resolver, preference_store, store_service, monkeypatch
):
    monkeypatch.setattr(store_service, "save_store", lambda data: False)
    preference_store.set("Arcane Signet", make_record("chosen"))

    resolved = resolver.resolve(CardContext("Arcane Signet"))

    assert resolved.printing_id == "chosen"
    assert resolved.source is PrintingSource.USER_PREFERENCE


def test_basic_land_flag_only_affects_price_fallback(resolver, mock_client):
    mock_client.get_named_card = Mock(
        side_effect=lambda name, set_code=None: make_card_payload(
            f"default-{name}", name=name, prices={}
        )
    )

    resolved = resolver.resolve(CardContext("Tropical Island", is_basic_land=True))

    assert resolved.printing_id == "default-Tropical Island"
    assert resolved.source is PrintingSource.FALLBACK_DEFAULT
    assert resolved.price_value == "0.10"


def test_table_name_picks_basic_printing_even_when_flag_is_false(resolver, mock_client):
    mock_client.get_card_by_id = Mock(side_effect=ProviderUnavailableError("offline"))

    resolved = resolver.resolve(CardContext("Island", is_basic_land=False))

    assert resolved.printing_id == BASIC_LAND_PRINTINGS["Island"]
    assert resolved.source is PrintingSource.BASIC_LAND_DEFAULT
    assert resolved.price_value is None
