"""HTTP client for the Scryfall card data API.

Requests share one session with retry/backoff on throttling and server errors
(honouring ``Retry-After``) and are paced client-side so bursts from several
surfaces never exceed the documented request rate.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any

import requests
from loguru import logger
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from utils.errors import ProviderUnavailableError, UnknownCardError
from utils.service_config import (
    HTTP_RETRY_BACKOFF,
    HTTP_RETRY_TOTAL,
    HTTP_STATUS_FORCELIST,
    MIN_REQUEST_INTERVAL_SECONDS,
    REQUEST_TIMEOUT,
    SCRYFALL_API_BASE,
    SCRYFALL_USER_AGENT,
)


def build_session(
    total: int = HTTP_RETRY_TOTAL,
    backoff_factor: float = HTTP_RETRY_BACKOFF,
    status_forcelist: tuple[int, ...] = HTTP_STATUS_FORCELIST,
) -> requests.Session:
    """Return a requests Session with UA headers and retry config."""
    retries = Retry(
        total=total,
        backoff_factor=backoff_factor,
        status_forcelist=status_forcelist,
        allowed_methods=frozenset(["GET", "HEAD"]),
        respect_retry_after_header=True,
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retries)
    session = requests.Session()
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update({"User-Agent": SCRYFALL_USER_AGENT, "Accept": "application/json"})
    return session


class ScryfallClient:
    """Thin, paced wrapper around the card endpoints we need."""

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        base_url: str = SCRYFALL_API_BASE,
        min_interval: float = MIN_REQUEST_INTERVAL_SECONDS,
        timeout: float = REQUEST_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.session = session or build_session()
        self.base_url = base_url.rstrip("/")
        self.min_interval = min_interval
        self.timeout = timeout
        self._clock = clock
        self._sleep = sleep
        self._pace_lock = threading.Lock()
        self._last_request: float | None = None

    def _pace(self) -> None:
        with self._pace_lock:
            now = self._clock()
            if self._last_request is not None:
                wait = self.min_interval - (now - self._last_request)
                if wait > 0:
                    self._sleep(wait)
                    now = self._clock()
            self._last_request = now

    def _get_json(self, url: str, params: dict[str, Any] | None, lookup: str) -> dict[str, Any]:
        self._pace()
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning(f"Card data request for {lookup!r} failed: {exc}")
            raise ProviderUnavailableError(f"Card data request failed: {exc}") from exc

        if resp.status_code == 404:
            raise UnknownCardError(lookup)
        if resp.status_code >= 400:
            logger.warning(f"Card data request for {lookup!r} returned HTTP {resp.status_code}")
            raise ProviderUnavailableError(f"Card data API returned HTTP {resp.status_code}")
        try:
            payload = resp.json()
        except ValueError as exc:
            raise ProviderUnavailableError("Card data API returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise ProviderUnavailableError("Card data API returned an unexpected payload")
        return payload

    # ============= Card lookups =============

    def get_card_by_id(self, printing_id: str) -> dict[str, Any]:
        return self._get_json(f"{self.base_url}/cards/{printing_id}", None, printing_id)

    def get_named_card(self, name: str, set_code: str | None = None) -> dict[str, Any]:
        """Return the API's canonical printing for an exact card name."""
        params = {"exact": name}
        if set_code:
            params["set"] = set_code.lower()
        return self._get_json(f"{self.base_url}/cards/named", params, name)

    def get_card_by_set_number(self, set_code: str, collector_number: str) -> dict[str, Any]:
        lookup = f"{set_code.upper()} #{collector_number}"
        url = f"{self.base_url}/cards/{set_code.lower()}/{collector_number}"
        return self._get_json(url, None, lookup)

    def search_printings(self, name: str) -> list[dict[str, Any]]:
        """Return every printing of a card, newest first."""
        escaped = name.replace('"', '\\"')
        params: dict[str, Any] | None = {
            "q": f'!"{escaped}"',
            "unique": "prints",
            "order": "released",
            "dir": "desc",
        }
        url: str | None = f"{self.base_url}/cards/search"
        cards: list[dict[str, Any]] = []
        while url:
            try:
                page = self._get_json(url, params, name)
            except UnknownCardError:
                # The search endpoint answers 404 for "no results"
                break
            cards.extend(card for card in page.get("data") or [] if isinstance(card, dict))
            url = page.get("next_page") if page.get("has_more") else None
            params = None
        logger.debug(f"Found {len(cards)} printings for {name}")
        return cards


__all__ = ["ScryfallClient", "build_session"]
