"""Pages API endpoints.

Read-only inspection of pages and their resolved paths.
"""

from aiohttp import web

from pagetree.app_keys import path_loader_key, store_key, templates_key
from pagetree.core.navigation import get_breadcrumbs, load_children
from pagetree.core.paths import page_path
from pagetree.core.types import PageId


def create_pages_routes() -> list[web.RouteDef]:
    return [
        web.get("/api/paths", get_paths),
        web.get("/api/pages/{page_id}", get_page),
        web.get("/api/templates", get_templates),
    ]


async def get_paths(request: web.Request) -> web.Response:
    index = await request.app[path_loader_key].load()
    return web.json_response({"paths": dict(index.by_path)})


async def get_page(request: web.Request) -> web.Response:
    page_id = PageId(request.match_info["page_id"])
    store = request.app[store_key]

    page = await store.find_by_id(page_id)
    if page is None:
        return web.json_response(
            {"error": "Page not found", "id": page_id},
            status=404,
        )

    pages = await store.find_all()
    index = await request.app[path_loader_key].load()
    pages_by_id = {p.id: p for p in pages}
    children = await load_children(store, page, max_depth=1)

    return web.json_response(
        {
            "page": page.to_dict(),
            "path": page_path(page, index).to_dict(),
            "breadcrumbs": [b.to_dict() for b in get_breadcrumbs(pages_by_id, index, page.id)],
            "children": [
                {
                    "id": node.page.id,
                    "title": node.page.title,
                    "path": page_path(node.page, index).full,
                }
                for node in children
            ],
        }
    )


async def get_templates(request: web.Request) -> web.Response:
    templates = request.app[templates_key]
    return web.json_response({"templates": [o.to_dict() for o in templates.options()]})
