"""aiohttp server for pagetree.

Application factory wiring the page store, caches, path index loader and
view dispatcher into an aiohttp application.
"""

import logging

from aiohttp import web

from pagetree.api.navigation import create_navigation_routes
from pagetree.api.pages import create_pages_routes
from pagetree.app_keys import (
    config_key,
    dispatcher_key,
    page_cache_key,
    path_loader_key,
    store_key,
    templates_key,
)
from pagetree.config import Config
from pagetree.core.cache import MemoryCache, PageCache
from pagetree.core.paths import PathIndexLoader
from pagetree.core.store import JsonTreeStore, MemoryTreeStore
from pagetree.core.templates import TemplateRegistry
from pagetree.core.views import TemplateFileView, ViewDispatcher, ViewRegistry
from pagetree.middleware import page_middleware

logger = logging.getLogger(__name__)


def create_app(
    config: Config,
    *,
    store: MemoryTreeStore | None = None,
    views: ViewRegistry | None = None,
    templates: TemplateRegistry | None = None,
) -> web.Application:
    """Create aiohttp application.

    Args:
        config: Application configuration
        store: Page store, opened from ``pages.store_file`` when None
        views: View registry, imported from ``pages.views_package`` when None
        templates: Template registry, only the default template when None

    Returns:
        Configured aiohttp application
    """
    app = web.Application(middlewares=[page_middleware])

    if templates is None:
        templates = TemplateRegistry()
    if store is None:
        store = JsonTreeStore.open(config.pages.store_file, templates=templates)
    if views is None:
        views = (
            ViewRegistry.from_package(config.pages.views_package)
            if config.pages.views_package
            else ViewRegistry()
        )

    paths_cache = MemoryCache()
    pages_cache = MemoryCache(default_ttl=config.cache.page_ttl)

    path_loader = PathIndexLoader(store, paths_cache, ttl=config.cache.path_ttl)
    store.subscribe(path_loader.invalidate)

    app[config_key] = config
    app[store_key] = store
    app[templates_key] = templates
    app[path_loader_key] = path_loader
    app[page_cache_key] = PageCache(store, pages_cache)
    app[dispatcher_key] = ViewDispatcher(views, TemplateFileView(config.pages.views_dir))

    app.router.add_routes(create_pages_routes())
    app.router.add_routes(create_navigation_routes())

    return app


def run_server(config: Config) -> None:
    """Run the server.

    Args:
        config: Application configuration
    """
    app = create_app(config)
    logger.info(f"Serving pages from {config.pages.store_file}")
    web.run_app(app, host=config.server.host, port=config.server.port)
