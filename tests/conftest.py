"""Shared test fixtures."""

from pathlib import Path

import pytest
from pagetree.config import CacheConfig, Config, PagesConfig, ServerConfig
from pagetree.core.page import Page
from pagetree.core.store import MemoryTreeStore

from tests.helpers import make_page


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    """Create a test configuration with tmp_path directories."""
    views_dir = tmp_path / "views"
    views_dir.mkdir(exist_ok=True)

    return Config(
        server=ServerConfig(),
        pages=PagesConfig(store_file=tmp_path / "pages.json", views_dir=views_dir),
        cache=CacheConfig(),
    )


@pytest.fixture
def site_pages() -> list[Page]:
    """Home page with about/team and blog sections.

    /              home
    /about/        about
    /about/team/   team
    /blog/         blog
    """
    return [
        make_page("home", "", title="Home"),
        make_page("about", "about", "home", sort_order=1),
        make_page("team", "team", "about"),
        make_page("blog", "blog", "home", sort_order=0, template="Blog Index"),
    ]


@pytest.fixture
def site_store(site_pages: list[Page]) -> MemoryTreeStore:
    return MemoryTreeStore(site_pages)
