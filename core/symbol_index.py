"""
Symbol Index - lowercase ticker symbol -> provider id.

Rebuilt wholesale from the provider catalog (hourly). The mapping is swapped in
as a whole under the shared exclusive lock, so readers see either the old or
the new map, never a partial one. A failed refresh leaves the previous map and
readiness untouched.
"""

import threading
from contextlib import contextmanager
from typing import Callable, ContextManager, Iterable, Iterator, Optional

from core.errors import NotReady, UpstreamFailure
from core.logging_utils import get_logger
from core.models import CoinListing

logger = get_logger(__name__)

ListingSource = Callable[[], Iterable[CoinListing]]


def build_mapping(listings: Iterable[CoinListing]) -> dict[str, str]:
    """Lowercase every symbol; on duplicates the later listing wins."""
    mapping: dict[str, str] = {}
    for listing in listings:
        mapping[listing.symbol.lower()] = listing.id
    return mapping


class SymbolIndex:
    """
    Shared symbol table owned by the core.

    The lock is reentrant and exposed through ``exclusive()`` because the price
    run holds it for its whole iteration and calls ``lookup`` from inside.
    """

    def __init__(self, source: ListingSource, lock: Optional[ContextManager] = None):
        self._source = source
        self._lock = lock or threading.RLock()
        self._mapping: dict[str, str] = {}
        self._ready = False

    @contextmanager
    def exclusive(self) -> Iterator["SymbolIndex"]:
        """Hold the index lock for a block of work."""
        with self._lock:
            yield self

    @property
    def ready(self) -> bool:
        return self._ready

    def __len__(self) -> int:
        return len(self._mapping)

    def refresh(self) -> int:
        """
        Fetch the catalog and replace the mapping.

        Returns the number of symbols in the new mapping. Raises UpstreamFailure
        (with prior state retained) if the fetch or build fails.
        """
        with self._lock:
            logger.debug("[INDEX] Fetching provider catalog...")
            try:
                mapping = build_mapping(self._source())
            except UpstreamFailure:
                logger.error("[INDEX] Refresh failed, keeping %d cached symbols", len(self._mapping))
                raise
            except (KeyError, TypeError, AttributeError, ValueError) as e:
                logger.error("[INDEX] Refresh failed, keeping %d cached symbols", len(self._mapping))
                raise UpstreamFailure("symbol-index", f"malformed catalog: {e!r}") from e

            # Single reference swap; the old dict is never mutated
            self._mapping = mapping
            self._ready = True
            logger.info("[INDEX] Mapped %d symbols", len(mapping))
            return len(mapping)

    def lookup(self, symbol: str) -> Optional[str]:
        """Provider id for ``symbol`` or None. Raises NotReady before first refresh."""
        if not self._ready:
            raise NotReady()
        return self._mapping.get(symbol.lower())
