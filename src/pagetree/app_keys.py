"""Application keys for type-safe app configuration access."""

from aiohttp import web

from pagetree.config import Config
from pagetree.core.cache import PageCache
from pagetree.core.paths import PathIndexLoader
from pagetree.core.store import MemoryTreeStore
from pagetree.core.templates import TemplateRegistry
from pagetree.core.views import ViewDispatcher

config_key = web.AppKey("config", Config)
store_key = web.AppKey("store", MemoryTreeStore)
path_loader_key = web.AppKey("path_loader", PathIndexLoader)
page_cache_key = web.AppKey("page_cache", PageCache)
dispatcher_key = web.AppKey("dispatcher", ViewDispatcher)
templates_key = web.AppKey("templates", TemplateRegistry)

# Request key holding the PageContext of a served page
PAGE_CONTEXT = "page"
