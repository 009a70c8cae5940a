"""CLI interface for pagetree.

Command-line tool for serving pages and editing the page store.
"""

import asyncio
import logging
import sys
from collections.abc import Coroutine
from pathlib import Path
from typing import Any, NoReturn, TypeVar

import click

from pagetree.config import Config
from pagetree.core.errors import PageTreeError
from pagetree.core.navigation import build_navigation
from pagetree.core.page import Page
from pagetree.core.paths import PathIndex, build_path_index
from pagetree.core.store import JsonTreeStore, create_page
from pagetree.core.types import PageId

T = TypeVar("T")

config_option = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: auto-discover pagetree.toml)",
)

store_option = click.option(
    "--store",
    "-s",
    "store_file",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Page store JSON file (overrides config)",
)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """pagetree - hierarchical pages for aiohttp sites."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@config_option
@store_option
@click.option(
    "--views-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Directory of template files (overrides config)",
)
@click.option("--host", default=None, help="Host to bind to (overrides config)")
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    help="Port to bind to (overrides config)",
)
def serve(
    config_path: Path | None,
    store_file: Path | None,
    views_dir: Path | None,
    host: str | None,
    port: int | None,
) -> None:
    """Start the page server."""
    from pagetree.server import run_server

    config = _load_config(config_path).with_overrides(
        host=host,
        port=port,
        store_file=store_file,
        views_dir=views_dir,
    )

    click.echo(f"Starting server on {config.server.host}:{config.server.port}")
    click.echo(f"Page store: {config.pages.store_file}")
    if config.pages.views_dir is not None:
        click.echo(f"Views directory: {config.pages.views_dir}")
    if config.cache.path_ttl > 0:
        click.echo(f"Path index refresh: every {config.cache.path_ttl:g}s")
    else:
        click.echo("Path index refresh: every request")

    run_server(config)


@cli.command()
@config_option
@store_option
def paths(config_path: Path | None, store_file: Path | None) -> None:
    """List the full path of every page."""
    store = _open_store(config_path, store_file)
    pages = _run(store.find_all())
    index = _build_index(pages)

    titles = {page.id: page.title for page in pages}
    for full, page_id in sorted(index.by_path.items()):
        click.echo(f"{full}\t{page_id}\t{titles[page_id]}")


@cli.command()
@config_option
@store_option
def tree(config_path: Path | None, store_file: Path | None) -> None:
    """Print the page tree."""
    store = _open_store(config_path, store_file)
    pages = _run(store.find_all())
    index = _build_index(pages)

    stack = [(item, 0) for item in reversed(build_navigation(pages, index))]
    while stack:
        item, depth = stack.pop()
        click.echo(f"{'  ' * depth}{item.title} ({item.path})")
        stack.extend((child, depth + 1) for child in reversed(item.children))


@cli.command()
@click.argument("title")
@click.option("--slug", default=None, help="Path segment (default: derived from title)")
@click.option("--parent", default=None, help="Parent page id (default: root level)")
@click.option("--template", "-t", default="default", help="Template name")
@click.option("--sort-order", type=int, default=None, help="Position among siblings")
@config_option
@store_option
def add(
    title: str,
    slug: str | None,
    parent: str | None,
    template: str,
    sort_order: int | None,
    config_path: Path | None,
    store_file: Path | None,
) -> None:
    """Create a page."""
    store = _open_store(config_path, store_file)
    page = _run(
        create_page(
            store,
            title,
            slug=slug,
            parent=PageId(parent) if parent else None,
            template=template,
            sort_order=sort_order,
        )
    )
    index = _build_index(_run(store.find_all()))
    path = index.path_of(page.id)

    click.echo(click.style("Page created", fg="green", bold=True))
    click.echo(f"ID: {page.id}")
    click.echo(f"Path: {path.full if path else '/'}")


@cli.command()
@click.argument("page_id")
@click.option("--parent", default=None, help="New parent page id")
@click.option("--root", is_flag=True, help="Move the page to root level")
@click.option("--slug", default=None, help="New slug")
@config_option
@store_option
def move(
    page_id: str,
    parent: str | None,
    root: bool,
    slug: str | None,
    config_path: Path | None,
    store_file: Path | None,
) -> None:
    """Reparent or rename a page."""
    if root and parent:
        _fail("--parent and --root are mutually exclusive")
    if not root and parent is None and slug is None:
        _fail("Nothing to change: give --parent, --root or --slug")

    store = _open_store(config_path, store_file)
    page = _run(store.find_by_id(PageId(page_id)))
    if page is None:
        _fail(f"Page not found: {page_id}")

    changes: dict[str, Any] = {}
    if root:
        changes["parent"] = None
    elif parent is not None:
        changes["parent"] = PageId(parent)
    if slug is not None:
        changes["slug"] = slug

    updated = _run(store.save(page.with_changes(**changes)))
    index = _build_index(_run(store.find_all()))
    path = index.path_of(updated.id)
    click.echo(click.style("Page moved", fg="green", bold=True))
    click.echo(f"Path: {path.full if path else '/'}")


@cli.command()
@click.argument("page_id")
@config_option
@store_option
def remove(page_id: str, config_path: Path | None, store_file: Path | None) -> None:
    """Delete a page. Its children keep the dangling parent and resolve as root pages."""
    store = _open_store(config_path, store_file)
    _run(store.delete(PageId(page_id)))
    click.echo(click.style("Page deleted", fg="green", bold=True))


@cli.command()
@config_option
@store_option
def check(config_path: Path | None, store_file: Path | None) -> None:
    """Check the stored tree for cycles, duplicate slugs and dangling parents."""
    store = _open_store(config_path, store_file)
    pages = _run(store.find_all())
    _build_index(pages)

    problems: list[str] = []
    known = {page.id for page in pages}
    seen: dict[tuple[PageId | None, str], PageId] = {}
    for page in pages:
        key = (page.parent, page.slug)
        if key in seen:
            problems.append(f'Duplicate slug "{page.slug}": {seen[key]} and {page.id}')
        else:
            seen[key] = page.id
        if page.parent is not None and page.parent not in known:
            problems.append(f"Page {page.id} has missing parent {page.parent}")

    if problems:
        for problem in problems:
            click.echo(click.style(problem, fg="yellow"), err=True)
        sys.exit(1)

    click.echo(click.style(f"{len(pages)} pages OK", fg="green"))


def _load_config(config_path: Path | None) -> Config:
    try:
        return Config.load(config_path)
    except (FileNotFoundError, ValueError) as e:
        _fail(str(e))


def _open_store(config_path: Path | None, store_file: Path | None) -> JsonTreeStore:
    config = _load_config(config_path).with_overrides(store_file=store_file)
    try:
        return JsonTreeStore.open(config.pages.store_file)
    except PageTreeError as e:
        _fail(str(e))


def _run(coro: Coroutine[Any, Any, T]) -> T:
    try:
        return asyncio.run(coro)
    except PageTreeError as e:
        _fail(str(e))


def _build_index(pages: list[Page]) -> PathIndex:
    try:
        return build_path_index(pages)
    except PageTreeError as e:
        _fail(str(e))


def _fail(message: str) -> NoReturn:
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(1)
