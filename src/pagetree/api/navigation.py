"""Navigation API endpoint."""

from aiohttp import web

from pagetree.app_keys import path_loader_key, store_key
from pagetree.core.navigation import build_navigation


def create_navigation_routes() -> list[web.RouteDef]:
    return [web.get("/api/navigation", get_navigation)]


async def get_navigation(request: web.Request) -> web.Response:
    pages = await request.app[store_key].find_all()
    index = await request.app[path_loader_key].load()
    nav_items = build_navigation(pages, index)
    return web.json_response({"items": [item.to_dict() for item in nav_items]})
