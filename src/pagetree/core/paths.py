"""Page path resolution and the path index.

Every page resolves to a full URL path built from its own slug and the
slugs of its ancestors. The path index maps pages to paths and paths back
to pages. It is rebuilt wholesale from a full read of the store and swapped
in by single assignment, so readers see either the old or the new snapshot.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING

from pagetree.core.errors import CycleDetectedError
from pagetree.core.page import Page
from pagetree.core.types import ROOT_PATH, PageId, URLPath

if TYPE_CHECKING:
    from pagetree.core.cache import MemoryCache
    from pagetree.core.store import TreeStore

logger = logging.getLogger(__name__)

PATH_SEPARATOR = "/"

_INDEX_CACHE_KEY = "index"


@dataclass(frozen=True)
class PagePath:
    """Resolved path of a page."""

    parts: tuple[str, ...]
    full: URLPath

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {"parts": list(self.parts), "full": self.full}


ROOT_PAGE_PATH = PagePath(parts=(), full=ROOT_PATH)


def format_full_path(parts: Iterable[str]) -> URLPath:
    """Join path parts into a canonical full path.

    Empty parts are skipped, so a root page with an empty slug resolves
    to ``/`` and its children to ``/child/``.

    Args:
        parts: Slugs from root to page

    Returns:
        Full path wrapped in separators (e.g., "/about/team/")
    """
    segments = [part for part in parts if part]
    if not segments:
        return ROOT_PATH
    return URLPath(PATH_SEPARATOR + PATH_SEPARATOR.join(segments) + PATH_SEPARATOR)


def get_path_parts(pages_by_id: Mapping[PageId, Page], page: Page) -> list[str]:
    """Collect slugs from the root down to a page.

    A parent id that does not resolve to a page ends the walk, leaving the
    page at root level.

    Args:
        pages_by_id: All pages keyed by id
        page: Page to resolve

    Returns:
        Ordered slugs, root first

    Raises:
        CycleDetectedError: If the parent chain is longer than the page count
    """
    parts = [page.slug]
    limit = len(pages_by_id)
    hops = 0
    current = page
    while current.parent is not None:
        parent = pages_by_id.get(current.parent)
        if parent is None:
            break
        hops += 1
        if hops > limit:
            raise CycleDetectedError(page.id)
        parts.append(parent.slug)
        current = parent
    parts.reverse()
    return parts


class PathIndex:
    """Immutable snapshot of page paths.

    Provides O(1) lookups in both directions.
    """

    __slots__ = ("_by_page", "_by_path")

    def __init__(
        self,
        by_page: Mapping[PageId, PagePath],
        by_path: Mapping[URLPath, PageId],
    ) -> None:
        self._by_page = MappingProxyType(dict(by_page))
        self._by_path = MappingProxyType(dict(by_path))

    @classmethod
    def empty(cls) -> "PathIndex":
        return cls({}, {})

    @property
    def by_page(self) -> Mapping[PageId, PagePath]:
        return self._by_page

    @property
    def by_path(self) -> Mapping[URLPath, PageId]:
        return self._by_path

    def lookup(self, full_path: str) -> PageId | None:
        """Get page id for a canonical full path."""
        return self._by_path.get(URLPath(full_path))

    def path_of(self, page_id: PageId) -> PagePath | None:
        """Get resolved path for a page id."""
        return self._by_page.get(page_id)

    def __len__(self) -> int:
        return len(self._by_page)

    def __contains__(self, page_id: object) -> bool:
        return page_id in self._by_page

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PathIndex):
            return NotImplemented
        return self._by_page == other._by_page and self._by_path == other._by_path

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"PathIndex(pages={len(self._by_page)})"


def build_path_index(pages: Iterable[Page]) -> PathIndex:
    """Resolve every page's path and build a new index.

    When two pages resolve to the same full path (only possible with empty
    slugs), the first page keeps the path.

    Args:
        pages: Full, current list of pages

    Returns:
        New PathIndex snapshot

    Raises:
        CycleDetectedError: If stored parent links form a cycle
    """
    page_list = list(pages)
    pages_by_id = {page.id: page for page in page_list}

    by_page: dict[PageId, PagePath] = {}
    by_path: dict[URLPath, PageId] = {}
    for page in page_list:
        parts = tuple(get_path_parts(pages_by_id, page))
        full = format_full_path(parts)
        by_page[page.id] = PagePath(parts=parts, full=full)
        if full in by_path:
            logger.warning(f"Path {full} of page {page.id} already used by page {by_path[full]}")
            continue
        by_path[full] = page.id

    return PathIndex(by_page, by_path)


def page_path(page: Page, index: PathIndex) -> PagePath:
    """Return the resolved path of a page, or the root path if it isn't indexed."""
    return index.path_of(page.id) or ROOT_PAGE_PATH


class PathIndexLoader:
    """Owns the current path index and rebuilds it from the store.

    With ``ttl == 0`` every ``load()`` rebuilds, which gives one rebuild per
    request. A positive ``ttl`` keeps the snapshot in the ``paths`` cache for
    that many seconds. Store writes call ``invalidate()``.
    """

    def __init__(
        self,
        store: "TreeStore",
        cache: "MemoryCache",
        *,
        ttl: float = 0.0,
    ) -> None:
        """Initialize loader.

        Args:
            store: Page store to read from
            cache: Cache backend holding the current snapshot
            ttl: Seconds a snapshot stays fresh (0 rebuilds on every load)
        """
        self._store = store
        self._cache = cache
        self._ttl = ttl
        self._index = PathIndex.empty()

    @property
    def index(self) -> PathIndex:
        """Most recently built snapshot, without touching the store."""
        return self._index

    async def load(self) -> PathIndex:
        """Return a fresh path index, rebuilding it if needed."""
        if self._ttl > 0:
            cached = self._cache.get(_INDEX_CACHE_KEY)
            if cached is not None:
                return cached
        return await self.rebuild()

    async def rebuild(self) -> PathIndex:
        """Rebuild the index from a full read of the store."""
        pages = await self._store.find_all()
        index = build_path_index(pages)
        self._index = index
        if self._ttl > 0:
            self._cache.set(_INDEX_CACHE_KEY, index, self._ttl)
        logger.debug(f"Rebuilt path index with {len(index)} pages")
        return index

    def invalidate(self) -> None:
        """Mark the cached snapshot stale."""
        self._cache.delete(_INDEX_CACHE_KEY)
