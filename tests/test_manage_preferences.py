"""Tests for the preference maintenance script."""

from test_helpers import make_record

from repositories.preference_store import PreferenceStore
from scripts.manage_preferences import main
from services.store_service import StoreService


def _seed(path):
    store = PreferenceStore(StoreService(path), clock=lambda: 1_700_000_000.0)
    store.set("Sol Ring", make_record("ring", name="Sol Ring", set_code="c21", collector_number="263"))
    store.set("Arcane Signet", make_record("signet"), modal_price="2.50")
    return store


def test_list_shows_every_preference(tmp_path, capsys):
    path = tmp_path / "local_storage.json"
    _seed(path)

    assert main(["--storage", str(path), "list"]) == 0

    out = capsys.readouterr().out
    assert "2 printing preference(s)" in out
    assert "Sol Ring | C21 #263" in out
    assert "Arcane Signet | CMR #297" in out
    assert "2.50" in out
    assert out.index("Arcane Signet") < out.index("Sol Ring")


def test_list_empty_store(tmp_path, capsys):
    assert main(["--storage", str(tmp_path / "empty.json"), "list"]) == 0

    assert "No printing preferences stored." in capsys.readouterr().out


def test_clear_one(tmp_path):
    path = tmp_path / "local_storage.json"
    store = _seed(path)

    assert main(["--storage", str(path), "clear", "Sol Ring"]) == 0

    assert store.get("Sol Ring") is None
    assert store.get("Arcane Signet") is not None


def test_clear_unknown_card_reports_failure(tmp_path, capsys):
    path = tmp_path / "local_storage.json"
    _seed(path)

    assert main(["--storage", str(path), "clear", "Black Lotus"]) == 1
    assert "No printing preference stored for 'Black Lotus'" in capsys.readouterr().out


def test_clear_all(tmp_path):
    path = tmp_path / "local_storage.json"
    store = _seed(path)

    assert main(["--storage", str(path), "clear"]) == 0

    assert store.list_all() == []


def test_patterns_summarises_sets(tmp_path, capsys):
    path = tmp_path / "local_storage.json"
    store = _seed(path)
    store.set("Command Tower", make_record("tower", name="Command Tower", set_code="cmr"))

    assert main(["--storage", str(path), "patterns", "--limit", "1"]) == 0

    out = capsys.readouterr().out
    assert "3 selection(s) across 3 card(s)" in out
    assert "- CMR: 2" in out
    assert "C21" not in out.split("Recent picks:")[0]


def test_patterns_empty_store(tmp_path, capsys):
    assert main(["--storage", str(tmp_path / "empty.json"), "patterns"]) == 0

    assert "No printing preferences stored." in capsys.readouterr().out
