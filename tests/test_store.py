"""Tests for page stores."""

import asyncio
import json
from pathlib import Path

import pytest
from pagetree.core.errors import DuplicateSlugError, PageNotFoundError, StoreError
from pagetree.core.page import Page
from pagetree.core.paths import build_path_index
from pagetree.core.store import JsonTreeStore, MemoryTreeStore, create_page
from pagetree.core.templates import TemplateRegistry

from tests.helpers import make_page


class TestMemoryTreeStore:
    """Tests for MemoryTreeStore."""

    @pytest.mark.asyncio
    async def test__save__normalizes_slug(self) -> None:
        """Normalize slug on every write."""
        store = MemoryTreeStore()

        saved = await store.save(make_page("p", "About Us!"))

        assert saved.slug == "about-us"
        assert (await store.find_by_id("p")).slug == "about-us"

    @pytest.mark.asyncio
    async def test__find_by_parent__sorted_by_sort_order(
        self, site_store: MemoryTreeStore
    ) -> None:
        """Return children ordered by sort order."""
        children = await site_store.find_by_parent("home")

        assert [page.id for page in children] == ["blog", "about"]

    @pytest.mark.asyncio
    async def test__find_by_parent_none__returns_roots(
        self, site_store: MemoryTreeStore
    ) -> None:
        """None parent selects root-level pages."""
        roots = await site_store.find_by_parent(None)

        assert [page.id for page in roots] == ["home"]

    @pytest.mark.asyncio
    async def test__delete__leaves_children_dangling(
        self, site_store: MemoryTreeStore
    ) -> None:
        """Children of a deleted page resolve as root pages."""
        await site_store.delete("about")

        index = build_path_index(await site_store.find_all())

        assert (await site_store.find_by_id("team")).parent == "about"
        assert index.lookup("/team/") == "team"

    @pytest.mark.asyncio
    async def test__delete_missing__raises_page_not_found(self) -> None:
        """Reject deleting an unknown page."""
        with pytest.raises(PageNotFoundError):
            await MemoryTreeStore().delete("nope")

    @pytest.mark.asyncio
    async def test__listeners__notified_on_committed_writes(self) -> None:
        """Notify after save and delete, not after rejected writes."""
        store = MemoryTreeStore()
        calls: list[str] = []
        store.subscribe(lambda: calls.append("changed"))

        page = await create_page(store, "About")
        with pytest.raises(DuplicateSlugError):
            await create_page(store, "About")
        await store.delete(page.id)

        assert calls == ["changed", "changed"]


class TestCreatePage:
    """Tests for create_page()."""

    @pytest.mark.asyncio
    async def test__no_slug__derived_from_title(self) -> None:
        """Derive slug from title."""
        page = await create_page(MemoryTreeStore(), "Meet the Team")

        assert page.slug == "meet-the-team"
        assert page.template == "default"

    @pytest.mark.asyncio
    async def test__empty_slug__kept_for_home_page(self) -> None:
        """Explicit empty slug is not replaced by the title."""
        page = await create_page(MemoryTreeStore(), "Home", slug="")

        assert page.slug == ""

    @pytest.mark.asyncio
    async def test__sort_order__appended_after_siblings(self) -> None:
        """Place new pages after existing siblings."""
        store = MemoryTreeStore()
        first = await create_page(store, "First")
        second = await create_page(store, "Second")
        child = await create_page(store, "Child", parent=first.id)

        assert first.sort_order == 0
        assert second.sort_order == 1
        assert child.sort_order == 0

    @pytest.mark.asyncio
    async def test__new_pages__get_distinct_ids(self) -> None:
        """Assign a fresh id to every page."""
        store = MemoryTreeStore()
        a = await create_page(store, "A")
        b = await create_page(store, "B")

        assert a.id != b.id


class TestJsonTreeStore:
    """Tests for JsonTreeStore."""

    @pytest.mark.asyncio
    async def test__missing_file__opens_empty(self, tmp_path: Path) -> None:
        """Start empty when the file doesn't exist."""
        store = JsonTreeStore.open(tmp_path / "pages.json")

        assert store.path == tmp_path / "pages.json"
        assert await store.count() == 0
        assert not store.path.exists()

    @pytest.mark.asyncio
    async def test__save__persists_across_reopen(self, tmp_path: Path) -> None:
        """Written pages load back from the file."""
        path = tmp_path / "data" / "pages.json"
        store = JsonTreeStore.open(path)
        about = await create_page(store, "About", fields={"intro": "Hello"})
        team = await create_page(store, "Team", parent=about.id)

        reopened = JsonTreeStore.open(path)
        pages = await reopened.find_all()

        assert [page.id for page in pages] == [about.id, team.id]
        assert pages[0].fields["intro"] == "Hello"
        assert pages[1].parent == about.id

    @pytest.mark.asyncio
    async def test__delete__persisted(self, tmp_path: Path) -> None:
        """Deleted pages are gone after reopen."""
        path = tmp_path / "pages.json"
        store = JsonTreeStore.open(path)
        page = await create_page(store, "About")

        await store.delete(page.id)

        assert await JsonTreeStore.open(path).count() == 0

    @pytest.mark.asyncio
    async def test__rejected_write__not_persisted(self, tmp_path: Path) -> None:
        """Validation failures leave the file untouched."""
        path = tmp_path / "pages.json"
        store = JsonTreeStore.open(path)
        await create_page(store, "About")
        before = path.read_text()

        with pytest.raises(DuplicateSlugError):
            await create_page(store, "About")

        assert path.read_text() == before

    @pytest.mark.asyncio
    async def test__file_format__pages_list(self, tmp_path: Path) -> None:
        """Load the documented file format."""
        path = tmp_path / "pages.json"
        path.write_text(
            json.dumps(
                {
                    "pages": [
                        {"id": "home", "title": "Home", "slug": ""},
                        {"id": "about", "title": "About", "parent": "home"},
                    ]
                }
            )
        )

        store = JsonTreeStore.open(path)

        about = await store.find_by_id("about")
        assert about is not None
        assert about.slug == "about"
        assert about.template == "default"

    def test__invalid_json__raises_store_error(self, tmp_path: Path) -> None:
        """Reject unparsable files."""
        path = tmp_path / "pages.json"
        path.write_text("{not json")

        with pytest.raises(StoreError, match="Invalid JSON"):
            JsonTreeStore.open(path)

    def test__pages_not_list__raises_store_error(self, tmp_path: Path) -> None:
        """Reject files whose pages entry isn't a list."""
        path = tmp_path / "pages.json"
        path.write_text(json.dumps({"pages": {"id": "x"}}))

        with pytest.raises(StoreError, match="must be a list"):
            JsonTreeStore.open(path)

    @pytest.mark.asyncio
    async def test__loaded_pages__resolve_paths(self, tmp_path: Path) -> None:
        """Pages loaded from file resolve to full paths."""
        path = tmp_path / "pages.json"
        pages: list[Page] = [
            make_page("home", "", title="Home"),
            make_page("about", "about", "home"),
        ]
        path.write_text(json.dumps({"pages": [p.to_dict() for p in pages]}))

        index = build_path_index(await JsonTreeStore.open(path).find_all())

        assert index.by_path == {"/": "home", "/about/": "about"}


async def _yielding_validator(page: Page) -> str | None:
    await asyncio.sleep(0)
    return None


class TestConcurrentWrites:
    """Tests for writes running concurrently on one store."""

    @pytest.mark.asyncio
    async def test__same_slug_creates__one_rejected(self) -> None:
        """Concurrent creates of one slug leave a single page."""
        templates = TemplateRegistry()
        templates.register("default", validator=_yielding_validator)
        store = MemoryTreeStore(templates=templates)

        results = await asyncio.gather(
            create_page(store, "About"),
            create_page(store, "About"),
            return_exceptions=True,
        )

        errors = [r for r in results if isinstance(r, BaseException)]
        assert len(errors) == 1
        assert isinstance(errors[0], DuplicateSlugError)
        assert await store.count() == 1

    @pytest.mark.asyncio
    async def test__json_store__file_matches_memory(self, tmp_path: Path) -> None:
        """Concurrent writes persist the same pages the store holds."""
        path = tmp_path / "pages.json"
        store = JsonTreeStore.open(path)

        results = await asyncio.gather(
            create_page(store, "About"),
            create_page(store, "About"),
            create_page(store, "Blog"),
            return_exceptions=True,
        )

        assert sum(isinstance(r, DuplicateSlugError) for r in results) == 1
        in_memory = {page.id for page in await store.find_all()}
        on_disk = {page.id for page in await JsonTreeStore.open(path).find_all()}
        assert on_disk == in_memory
        assert len(in_memory) == 2
