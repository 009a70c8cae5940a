"""In-memory caches with time-based expiry.

Two named caches are used per application:
    paths   - the current path index snapshot
    pages   - full page documents keyed by page id

Values are stored by reference and returned as-is. Entries expire after
their TTL; writes to the store do not evict page entries, so a page may be
served up to ``ttl`` seconds stale.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pagetree.core.errors import PageNotFoundError
from pagetree.core.page import Page
from pagetree.core.types import PageId

if TYPE_CHECKING:
    from pagetree.core.store import TreeStore

logger = logging.getLogger(__name__)

DEFAULT_TTL = 30.0


@dataclass
class _Entry:
    value: Any
    expires_at: float | None


class MemoryCache:
    """Key-value cache with per-entry expiry.

    A ``None`` TTL keeps entries until they are deleted.
    """

    def __init__(
        self,
        default_ttl: float | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize cache.

        Args:
            default_ttl: Seconds an entry lives when ``set`` gets no TTL
            clock: Monotonic clock, injectable for tests
        """
        self._default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, _Entry] = {}

    def get(self, key: str) -> Any | None:
        """Retrieve a value if present and not expired.

        Args:
            key: Cache key

        Returns:
            Cached value, None on miss or expiry
        """
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and self._clock() >= entry.expires_at:
            self._entries.pop(key, None)
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store a value.

        Args:
            key: Cache key
            value: Value to store (not copied)
            ttl: Seconds until expiry, defaults to ``default_ttl``
        """
        effective_ttl = ttl if ttl is not None else self._default_ttl
        expires_at = self._clock() + effective_ttl if effective_ttl is not None else None
        self._entries[key] = _Entry(value=value, expires_at=expires_at)

    def delete(self, key: str) -> bool:
        """Remove an entry. Returns True if it existed."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Remove all entries."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class PageCache:
    """Page documents by id, loaded from the store on miss.

    Missing pages are not cached, so repeated misses hit the store again.
    Concurrent misses for the same id may both load; the last one stored wins.
    """

    def __init__(self, store: "TreeStore", cache: MemoryCache) -> None:
        self._store = store
        self._cache = cache

    async def get(self, page_id: PageId) -> Page:
        """Get a page, loading it from the store when not cached.

        Args:
            page_id: Page id to load

        Returns:
            Page document

        Raises:
            PageNotFoundError: If the store has no page with this id
        """
        key = str(page_id)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        page = await self._store.find_by_id(page_id)
        if page is None:
            raise PageNotFoundError(page_id)

        self._cache.set(key, page)
        logger.debug(f"Cached page {page_id}")
        return page

    def invalidate(self, page_id: PageId) -> None:
        self._cache.delete(str(page_id))
