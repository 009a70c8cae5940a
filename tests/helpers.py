"""Test helpers for building pages and stores."""

from typing import Any

from pagetree.core.page import Page
from pagetree.core.store import MemoryTreeStore
from pagetree.core.types import PageId


def make_page(page_id: str, slug: str, parent: str | None = None, **kwargs: Any) -> Page:
    """Build a page with the title defaulting to the slug."""
    kwargs.setdefault("title", slug.title() or "Home")
    return Page(
        id=PageId(page_id),
        slug=slug,
        parent=PageId(parent) if parent else None,
        **kwargs,
    )


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingStore(MemoryTreeStore):
    """Memory store counting read round-trips."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.find_by_id_calls = 0
        self.find_all_calls = 0

    async def find_by_id(self, page_id: PageId) -> Page | None:
        self.find_by_id_calls += 1
        return await super().find_by_id(page_id)

    async def find_all(self) -> list[Page]:
        self.find_all_calls += 1
        return await super().find_all()
