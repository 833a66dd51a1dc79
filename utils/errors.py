"""Error taxonomy for printing resolution.

None of these escape the resolver or the display coordinator; they are raised
by the data-access layer and recovered into a placeholder ``ResolvedPrinting``.
"""

from __future__ import annotations


class PrintingSyncError(RuntimeError):
    """Base class for recoverable printing resolution failures."""


class ProviderUnavailableError(PrintingSyncError):
    """Raised when the card data API cannot be reached or keeps failing."""


class UnknownCardError(PrintingSyncError):
    """Raised when the card data API has no record for a name or printing id."""

    def __init__(self, lookup: str) -> None:
        super().__init__(f"No card data for {lookup!r}")
        self.lookup = lookup


class MalformedStorageError(PrintingSyncError):
    """Raised when persisted preference data cannot be interpreted."""


__all__ = [
    "PrintingSyncError",
    "ProviderUnavailableError",
    "UnknownCardError",
    "MalformedStorageError",
]
