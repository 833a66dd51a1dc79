#!/usr/bin/env python3
"""List, summarise or clear the stored printing preferences."""

from __future__ import annotations

import argparse
import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from repositories.preference_store import PreferenceStore  # noqa: E402
from services.store_service import StoreService  # noqa: E402
from utils.constants import LOCAL_STORAGE_FILE  # noqa: E402
from utils.pricing import format_price  # noqa: E402


def build_store(storage: str | None) -> PreferenceStore:
    path = Path(storage).expanduser() if storage else LOCAL_STORAGE_FILE
    return PreferenceStore(StoreService(path))


def list_preferences(store: PreferenceStore) -> int:
    preferences = sorted(store.list_all(), key=lambda pref: pref.card_identity.lower())
    if not preferences:
        print("No printing preferences stored.")
        return 0

    print(f"{len(preferences)} printing preference(s):")
    for pref in preferences:
        snapshot = pref.snapshot
        selected = datetime.fromtimestamp(pref.selected_at).strftime("%Y-%m-%d %H:%M")
        price = f" | {format_price(pref.modal_price)}" if pref.modal_price else ""
        print(
            f"- {pref.card_identity} | {snapshot.set_code.upper()} #{snapshot.collector_number}"
            f" | picked {pref.selection_count}x, last {selected}{price}"
        )
    return 0


def show_patterns(store: PreferenceStore, limit: int) -> int:
    patterns = store.patterns()
    if not patterns.total_selections:
        print("No printing preferences stored.")
        return 0

    print(f"{patterns.total_selections} selection(s) across {len(patterns.recent_selections)} card(s)")
    print("Most picked sets:")
    for set_code, count in patterns.top_sets(limit):
        print(f"- {set_code.upper()}: {count}")
    print("Recent picks:")
    for selection in patterns.recent_selections[:limit]:
        selected = datetime.fromtimestamp(selection.selected_at).strftime("%Y-%m-%d %H:%M")
        print(f"- {selection.card_identity} ({selection.set_code.upper()}) {selected}")
    return 0


def clear_preferences(store: PreferenceStore, name: str | None) -> int:
    if name is None:
        store.clear()
        print("Cleared all printing preferences.")
        return 0
    if not store.has(name):
        print(f"No printing preference stored for {name!r}.")
        return 1
    store.clear(name)
    print(f"Cleared printing preference for {name}.")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--storage",
        help=f"Path to the local storage file (defaults to {LOCAL_STORAGE_FILE})",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("list", help="Show every stored preference")
    patterns_parser = subparsers.add_parser("patterns", help="Summarise which sets get picked")
    patterns_parser.add_argument("--limit", type=int, default=5, help="Rows per section")
    clear_parser = subparsers.add_parser("clear", help="Remove one or all preferences")
    clear_parser.add_argument("name", nargs="?", help="Card name (omit to clear everything)")
    args = parser.parse_args(argv)

    store = build_store(args.storage)
    if args.command == "list":
        return list_preferences(store)
    if args.command == "patterns":
        return show_patterns(store, args.limit)
    return clear_preferences(store, args.name)


if __name__ == "__main__":
    raise SystemExit(main())
