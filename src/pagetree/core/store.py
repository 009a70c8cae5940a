"""Page stores.

The tree core reads pages through the narrow ``TreeStore`` protocol. Two
implementations are provided: an in-memory store and a store persisted to a
JSON file. Both validate every write before committing it and notify
subscribers afterwards so derived state (the path index) can be refreshed.
"""

import asyncio
import json
import logging
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any, Protocol

from pagetree.core.errors import PageNotFoundError, StoreError
from pagetree.core.page import DEFAULT_TEMPLATE, Page, new_page_id, normalize_slug
from pagetree.core.templates import TemplateRegistry
from pagetree.core.types import PageId
from pagetree.core.validation import validate_page_write

logger = logging.getLogger(__name__)

ChangeListener = Callable[[], None]


class TreeStore(Protocol):
    """Document store holding page records."""

    async def find_all(self) -> list[Page]: ...

    async def find_by_id(self, page_id: PageId) -> Page | None: ...

    async def find_by_parent(self, parent: PageId | None) -> list[Page]: ...

    async def count(self) -> int: ...

    async def save(self, page: Page) -> Page: ...

    async def delete(self, page_id: PageId) -> None: ...


class MemoryTreeStore:
    """Store keeping pages in a dict, in insertion order."""

    def __init__(
        self,
        pages: Iterable[Page] = (),
        *,
        templates: TemplateRegistry | None = None,
    ) -> None:
        """Initialize store.

        Initial pages are loaded as-is, without validation.

        Args:
            pages: Initial pages
            templates: Registry whose validators run on every write
        """
        self._pages: dict[PageId, Page] = {page.id: page for page in pages}
        self._templates = templates
        self._listeners: list[ChangeListener] = []
        self._write_lock = asyncio.Lock()

    def subscribe(self, listener: ChangeListener) -> None:
        """Call ``listener`` after every committed write."""
        self._listeners.append(listener)

    async def find_all(self) -> list[Page]:
        return list(self._pages.values())

    async def find_by_id(self, page_id: PageId) -> Page | None:
        return self._pages.get(page_id)

    async def find_by_parent(self, parent: PageId | None) -> list[Page]:
        children = [page for page in self._pages.values() if page.parent == parent]
        return sorted(children, key=lambda page: page.sort_order)

    async def count(self) -> int:
        return len(self._pages)

    async def save(self, page: Page) -> Page:
        """Validate and persist a page.

        The slug is normalized before validation. Writes are serialized so
        validation always sees the committed state of earlier writes.

        Args:
            page: Page to create or replace

        Returns:
            Page as stored

        Raises:
            PageTreeError: If validation rejects the write
        """
        page = page.with_changes(slug=normalize_slug(page.slug))
        async with self._write_lock:
            await validate_page_write(page, self, self._templates)

            previous = self._pages.get(page.id)
            self._pages[page.id] = page
            try:
                await self._commit()
            except BaseException:
                if previous is None:
                    del self._pages[page.id]
                else:
                    self._pages[page.id] = previous
                raise

        action = "Updated" if previous is not None else "Created"
        logger.info(f'{action} page "{page.title}" ({page.id})')
        self._notify()
        return page

    async def delete(self, page_id: PageId) -> None:
        """Delete a page. Its children keep their now dangling parent id.

        Raises:
            PageNotFoundError: If no page has this id
        """
        async with self._write_lock:
            page = self._pages.pop(page_id, None)
            if page is None:
                raise PageNotFoundError(page_id)
            try:
                await self._commit()
            except BaseException:
                self._pages[page_id] = page
                raise

        logger.info(f'Deleted page "{page.title}" ({page_id})')
        self._notify()

    async def _commit(self) -> None:
        """Persist the current state. No-op for the in-memory store."""

    def _notify(self) -> None:
        for listener in self._listeners:
            listener()


class JsonTreeStore(MemoryTreeStore):
    """Store persisted to a JSON file.

    File format::

        {"pages": [{"id": "...", "title": "...", "slug": "...", ...}]}
    """

    def __init__(
        self,
        path: Path,
        pages: Iterable[Page] = (),
        *,
        templates: TemplateRegistry | None = None,
    ) -> None:
        super().__init__(pages, templates=templates)
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    @classmethod
    def open(cls, path: Path, *, templates: TemplateRegistry | None = None) -> "JsonTreeStore":
        """Load a store from a JSON file. A missing file gives an empty store.

        Args:
            path: JSON file path
            templates: Registry whose validators run on every write

        Returns:
            JsonTreeStore instance

        Raises:
            StoreError: If the file is not a valid page store
        """
        if not path.exists():
            return cls(path, templates=templates)

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise StoreError(f"Invalid JSON in page store {path}: {e}") from e

        return cls(path, _parse_pages(data, path), templates=templates)

    async def _commit(self) -> None:
        payload = {"pages": [page.to_dict() for page in self._pages.values()]}
        await asyncio.to_thread(self._write, json.dumps(payload, indent=2))

    def _write(self, content: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(content, encoding="utf-8")
        tmp_path.replace(self._path)


def _parse_pages(data: object, path: Path) -> list[Page]:
    if not isinstance(data, dict):
        raise StoreError(f"Page store {path} must be a JSON object")
    records = data.get("pages", [])
    if not isinstance(records, list):
        raise StoreError(f"Page store {path}: pages must be a list")
    pages: list[Page] = []
    for record in records:
        if not isinstance(record, dict):
            raise StoreError(f"Page store {path}: page records must be objects")
        pages.append(Page.from_dict(record))
    return pages


async def create_page(
    store: TreeStore,
    title: str,
    *,
    slug: str | None = None,
    parent: PageId | None = None,
    template: str = DEFAULT_TEMPLATE,
    sort_order: int | None = None,
    fields: Mapping[str, Any] | None = None,
) -> Page:
    """Create a page with a new id.

    Args:
        store: Store to write to
        title: Page title
        slug: Path segment, derived from the title when None
        parent: Parent page id, None for a root-level page
        template: Template name
        sort_order: Position among siblings, appended last when None
        fields: Template field values

    Returns:
        Created page

    Raises:
        PageTreeError: If validation rejects the page
    """
    if sort_order is None:
        sort_order = len(await store.find_by_parent(parent))
    page = Page(
        id=new_page_id(),
        title=title,
        slug=normalize_slug(title) if slug is None else slug,
        parent=parent,
        template=template,
        sort_order=sort_order,
        fields=dict(fields or {}),
    )
    return await store.save(page)
