"""Service-level configuration defaults shared across modules."""

from __future__ import annotations

import os

from loguru import logger


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}")
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}")
        return default


def _env_status_codes(name: str, default: tuple[int, ...]) -> tuple[int, ...]:
    raw = os.getenv(name)
    if not raw:
        return default
    codes: list[int] = []
    for token in raw.split(","):
        token = token.strip()
        if not token:
            continue
        try:
            codes.append(int(token))
        except ValueError:
            continue
    return tuple(codes) or default


# Card data API (Scryfall)
SCRYFALL_API_BASE = "https://api.scryfall.com"
SCRYFALL_IMAGE_CDN = "https://cards.scryfall.io"
SCRYFALL_USER_AGENT = os.getenv("SCRYFALL_UA", "MTGPrintingSync/1.0")
REQUEST_TIMEOUT = _env_float("SCRYFALL_HTTP_TIMEOUT", 30.0)
HTTP_RETRY_TOTAL = _env_int("SCRYFALL_HTTP_RETRIES", 5)
HTTP_RETRY_BACKOFF = _env_float("SCRYFALL_HTTP_BACKOFF", 0.5)
HTTP_STATUS_FORCELIST = _env_status_codes(
    "SCRYFALL_HTTP_STATUS_FORCELIST", (429, 500, 502, 503, 504)
)
# Scryfall asks for 50-100 ms between requests
MIN_REQUEST_INTERVAL_SECONDS = _env_float("SCRYFALL_MIN_INTERVAL", 0.1)

# Deck persistence service
MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017/")
MONGODB_DATABASE = os.getenv("MONGODB_DATABASE", "deckbuilder")

# In-memory caches for card data
PRINTINGS_CACHE_MAX_ENTRIES = _env_int("PRINTINGS_CACHE_MAX_ENTRIES", 1000)
PRINTINGS_CACHE_TTL_SECONDS = _env_float("PRINTINGS_CACHE_TTL_SECONDS", 24 * 60 * 60)
# Share of the printings cache dropped, oldest first, when it is full
PRINTINGS_CACHE_EVICT_FRACTION = 0.2
MAX_CACHED_RECORDS = _env_int("MAX_CACHED_RECORDS", 5000)

# Pricing
BASIC_LAND_FALLBACK_PRICE = "0.10"
MAX_VALID_MODAL_PRICE = 1000.0
DEFAULT_IMAGE_SIZE = "normal"

__all__ = [
    "SCRYFALL_API_BASE",
    "SCRYFALL_IMAGE_CDN",
    "SCRYFALL_USER_AGENT",
    "REQUEST_TIMEOUT",
    "HTTP_RETRY_TOTAL",
    "HTTP_RETRY_BACKOFF",
    "HTTP_STATUS_FORCELIST",
    "MIN_REQUEST_INTERVAL_SECONDS",
    "MONGODB_URI",
    "MONGODB_DATABASE",
    "PRINTINGS_CACHE_MAX_ENTRIES",
    "PRINTINGS_CACHE_TTL_SECONDS",
    "PRINTINGS_CACHE_EVICT_FRACTION",
    "MAX_CACHED_RECORDS",
    "BASIC_LAND_FALLBACK_PRICE",
    "MAX_VALID_MODAL_PRICE",
    "DEFAULT_IMAGE_SIZE",
]
