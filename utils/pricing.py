"""Price selection shared by every surface that shows a card price.

Order: a confirmed modal price, then the live price of the resolved printing,
then the basic land fallback, then nothing.
"""

from __future__ import annotations

import math
from collections.abc import Mapping

from utils.printing import PrintingRecord
from utils.service_config import BASIC_LAND_FALLBACK_PRICE, MAX_VALID_MODAL_PRICE


def _parse_price(price: object) -> float | None:
    if price is None or isinstance(price, bool):
        return None
    text = str(price).strip()
    if text.startswith("$"):
        text = text[1:]
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def is_valid_modal_price(price: object) -> bool:
    value = _parse_price(price)
    return value is not None and 0 <= value <= MAX_VALID_MODAL_PRICE


def normalize_modal_price(price: object) -> str | None:
    """Return a valid modal price as a plain decimal string, else None."""
    if not is_valid_modal_price(price):
        return None
    return str(price).strip().lstrip("$")


def _is_foil_only(finishes: tuple[str, ...]) -> bool:
    return bool(finishes) and "nonfoil" not in finishes


def live_price(record: PrintingRecord | None, *, foil: bool = False) -> str | None:
    """Pick the finish-appropriate USD price from a printing's price map."""
    if record is None:
        return None
    prices: Mapping[str, str | None] = record.price_refs or {}
    if not prices:
        return None

    finishes = record.finishes
    if foil or _is_foil_only(finishes):
        if finishes and "foil" not in finishes and "etched" in finishes:
            keys = ("usd_etched", "usd_foil", "usd")
        else:
            keys = ("usd_foil", "usd_etched", "usd")
    else:
        keys = ("usd",)

    for key in keys:
        value = prices.get(key)
        if value not in (None, ""):
            return str(value)
    return None


def select_price(
    record: PrintingRecord | None,
    *,
    modal_price: object = None,
    foil: bool = False,
    basic_land: bool = False,
) -> str | None:
    confirmed = normalize_modal_price(modal_price)
    if confirmed is not None:
        return confirmed
    current = live_price(record, foil=foil)
    if current is not None:
        return current
    if basic_land:
        return BASIC_LAND_FALLBACK_PRICE
    return None


def format_price(price: object, *, show_currency: bool = True, precision: int = 2) -> str:
    value = _parse_price(price)
    if value is None:
        return "N/A"
    formatted = f"{value:.{precision}f}"
    return f"${formatted}" if show_currency else formatted


__all__ = [
    "format_price",
    "is_valid_modal_price",
    "live_price",
    "normalize_modal_price",
    "select_price",
]
