"""Request pipeline serving pages.

For each GET or HEAD request outside the API, the middleware refreshes the
path index, matches the request path to a page, loads the page through the
page cache and hands it to the view selected by its template. When any of
these steps fails to resolve, the request continues to the next handler.
"""

import logging

from aiohttp import web
from aiohttp.typedefs import Handler

from pagetree.app_keys import (
    PAGE_CONTEXT,
    config_key,
    dispatcher_key,
    page_cache_key,
    path_loader_key,
)
from pagetree.core.errors import PageIdNotFoundError, PageNotFoundError, ViewNotFoundError
from pagetree.core.matcher import match_path
from pagetree.core.paths import page_path
from pagetree.core.views import PageContext

logger = logging.getLogger(__name__)

API_PREFIX = "/api/"

_SERVED_METHODS = frozenset({"GET", "HEAD"})


@web.middleware
async def page_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    if request.method not in _SERVED_METHODS or request.path.startswith(API_PREFIX):
        return await handler(request)

    app = request.app
    index = await app[path_loader_key].load()

    try:
        match = match_path(index, request.path)
        if not match.exact and not app[config_key].pages.match_partial:
            raise PageIdNotFoundError(request.path)
        page = await app[page_cache_key].get(match.page_id)
        view = app[dispatcher_key].select(page)
    except (PageIdNotFoundError, PageNotFoundError, ViewNotFoundError) as e:
        logger.debug(f"Passing {request.path} on: {e}")
        return await handler(request)

    context = PageContext(page=page, path=page_path(page, index), match=match)
    request[PAGE_CONTEXT] = context
    try:
        return await view(request, context)
    except ViewNotFoundError as e:
        logger.debug(f"Passing {request.path} on: {e}")
        del request[PAGE_CONTEXT]
        return await handler(request)
