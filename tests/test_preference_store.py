"""Tests for PreferenceStore persistence of per-card printing choices."""

import json

import pytest
from test_helpers import make_record

from repositories.preference_store import PreferenceStore
from utils.constants import PRINTING_PREFERENCES_KEY


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(store_service, clock):
    return PreferenceStore(store_service, clock=clock)


def _raw_file(store_service) -> dict:
    return json.loads(store_service.path.read_text(encoding="utf-8"))


def test_get_missing_returns_none(store):
    assert store.get("Lightning Bolt") is None
    assert store.has("Lightning Bolt") is False


def test_set_then_get_round_trip(store):
    record = make_record("p1", name="Arcane Signet")

    saved = store.set("Arcane Signet", record)
    loaded = store.get("Arcane Signet")

    assert loaded == saved
    assert loaded.printing_id == "p1"
    assert loaded.snapshot.set_code == "cmr"
    assert loaded.snapshot.collector_number == "297"
    assert loaded.selected_at == pytest.approx(1_700_000_000.0)
    assert store.has("Arcane Signet")


def test_storage_format_uses_single_namespaced_key(store, store_service):
    store.set("Arcane Signet", make_record("p1"), modal_price="$2.50")

    raw = _raw_file(store_service)
    entry = raw[PRINTING_PREFERENCES_KEY]["Arcane Signet"]

    assert list(raw) == [PRINTING_PREFERENCES_KEY]
    assert entry["id"] == "p1"
    assert entry["set"] == "cmr"
    assert entry["collector_number"] == "297"
    assert entry["image_uris"]["normal"].endswith("p1.jpg")
    assert entry["selectedAt"] == 1_700_000_000_000
    assert entry["selectionCount"] == 1
    assert entry["modalPrice"] == "2.50"


def test_set_overwrites_and_counts_selections(store, clock):
    store.set("Sol Ring", make_record("old", name="Sol Ring"))
    clock.now += 60
    store.set("Sol Ring", make_record("new", name="Sol Ring"))

    preference = store.get("Sol Ring")

    assert preference.printing_id == "new"
    assert preference.selection_count == 2
    assert preference.selected_at == pytest.approx(1_700_000_060.0)


def test_invalid_modal_price_is_not_stored(store):
    preference = store.set("Sol Ring", make_record("p1"), modal_price="5000")

    assert preference.modal_price is None


def test_set_does_not_alter_other_cards(store):
    store.set("Sol Ring", make_record("ring"))
    before = store.get("Sol Ring")

    store.set("Arcane Signet", make_record("signet"))
    store.set("Command Tower", make_record("tower"))
    store.clear("Command Tower")

    assert store.get("Sol Ring") == before


def test_clear_single_card(store):
    store.set("Sol Ring", make_record("ring"))
    store.set("Arcane Signet", make_record("signet"))

    store.clear("Arcane Signet")

    assert store.get("Arcane Signet") is None
    assert store.get("Sol Ring").printing_id == "ring"


def test_clear_all_preserves_unrelated_keys(store, store_service):
    store_service.set_item("deck_notes", {"Burn": "side in Kor Firewalker"})
    store.set("Sol Ring", make_record("ring"))
    store.set("Arcane Signet", make_record("signet"))

    store.clear()

    assert store.list_all() == []
    assert store_service.get_item("deck_notes") == {"Burn": "side in Kor Firewalker"}


def test_list_all_returns_every_preference(store):
    store.set("Sol Ring", make_record("ring"))
    store.set("Fire // Ice", make_record("fire-ice", name="Fire // Ice"))

    names = sorted(pref.card_identity for pref in store.list_all())

    assert names == ["Fire // Ice", "Sol Ring"]


def test_multi_faced_names_are_used_verbatim(store):
    store.set("Fire // Ice", make_record("fire-ice", name="Fire // Ice"))

    assert store.get("Fire // Ice").printing_id == "fire-ice"
    assert store.get("Fire") is None


def test_unparsable_file_reads_as_empty(store, store_service):
    store_service.path.write_text("{not json", encoding="utf-8")

    assert store.get("Sol Ring") is None
    assert store.list_all() == []


def test_non_mapping_namespace_reads_as_empty(store, store_service):
    store_service.set_item(PRINTING_PREFERENCES_KEY, ["not", "a", "mapping"])

    assert store.get("Sol Ring") is None

    store.set("Sol Ring", make_record("ring"))
    assert store.get("Sol Ring").printing_id == "ring"


def test_malformed_entry_is_skipped(store, store_service):
    store.set("Sol Ring", make_record("ring"))
    store_service.update_item(
        PRINTING_PREFERENCES_KEY,
        lambda mapping: {**mapping, "Broken": {"set": "cmr"}, "Garbage": 42},
    )

    assert store.get("Broken") is None
    assert store.get("Garbage") is None
    assert [pref.card_identity for pref in store.list_all()] == ["Sol Ring"]


def test_empty_card_name_is_rejected(store):
    with pytest.raises(ValueError):
        store.get("")
    with pytest.raises(ValueError):
        store.set("   ", make_record("p1"))


def test_failed_write_keeps_preference_in_memory(store, store_service, monkeypatch):
    monkeypatch.setattr(store_service, "save_store", lambda data: False)

    preference = store.set("Sol Ring", make_record("ring"))

    assert preference.printing_id == "ring"
    assert store.get("Sol Ring") == preference
    assert [pref.printing_id for pref in store.list_all()] == ["ring"]
    assert store.has_unsaved()
    assert not store_service.path.exists()


def test_unsaved_preference_overrides_stored_entry(store, store_service, monkeypatch):
    store.set("Sol Ring", make_record("old"))
    monkeypatch.setattr(store_service, "save_store", lambda data: False)

    preference = store.set("Sol Ring", make_record("new"))

    assert store.get("Sol Ring").printing_id == "new"
    assert preference.selection_count == 2
    assert [pref.printing_id for pref in store.list_all()] == ["new"]


def test_next_successful_write_persists_unsaved_preference(store, store_service, monkeypatch):
    real_save = store_service.save_store
    monkeypatch.setattr(store_service, "save_store", lambda data: False)
    store.set("Sol Ring", make_record("ring"))
    store.set("Sol Ring", make_record("ring-again"))

    monkeypatch.setattr(store_service, "save_store", real_save)
    store.set("Arcane Signet", make_record("signet"))

    raw = _raw_file(store_service)[PRINTING_PREFERENCES_KEY]
    assert raw["Sol Ring"]["id"] == "ring-again"
    assert raw["Sol Ring"]["selectionCount"] == 2
    assert raw["Arcane Signet"]["id"] == "signet"
    assert not store.has_unsaved()


def test_clear_drops_unsaved_preference(store, store_service, monkeypatch):
    monkeypatch.setattr(store_service, "save_store", lambda data: False)
    store.set("Sol Ring", make_record("ring"))
    store.set("Arcane Signet", make_record("signet"))

    store.clear("Sol Ring")
    assert store.get("Sol Ring") is None
    assert store.get("Arcane Signet").printing_id == "signet"

    store.clear()
    assert store.list_all() == []
    assert not store.has_unsaved()


def test_patterns_empty(store):
    patterns = store.patterns()

    assert patterns.preferred_sets == {}
    assert patterns.recent_selections == []
    assert patterns.total_selections == 0


def test_patterns_counts_sets_and_orders_recent(store, clock):
    store.set("Sol Ring", make_record("ring", set_code="cmr"))
    clock.now += 10
    store.set("Arcane Signet", make_record("signet", set_code="cmr"))
    clock.now += 10
    store.set("Lightning Bolt", make_record("bolt", set_code="m11"))
    clock.now += 10
    store.set("Sol Ring", make_record("ring-2", set_code="cmr"))

    patterns = store.patterns()

    assert patterns.preferred_sets == {"cmr": 3, "m11": 1}
    assert patterns.total_selections == 4
    assert [sel.card_identity for sel in patterns.recent_selections] == [
        "Sol Ring",
        "Lightning Bolt",
        "Arcane Signet",
    ]
    assert patterns.recent_selections[0].count == 2
    assert patterns.top_sets(1) == [("cmr", 3)]
