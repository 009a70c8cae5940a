"""Exceptions raised by page tree operations.

Resolution errors (``PageIdNotFoundError``, ``PageNotFoundError``,
``ViewNotFoundError``) make the request pipeline pass the request on.
Write errors (``CircularParentError``, ``DuplicateSlugError``,
``TemplateValidationError``) abort the write before anything is persisted.
"""


class PageTreeError(Exception):
    """Base class for page tree errors."""


class PageIdNotFoundError(PageTreeError):
    """No page path matches a request path, even after prefix backoff."""

    def __init__(self, path: str) -> None:
        super().__init__(f"No page found for path: {path}")
        self.path = path


class PageNotFoundError(PageTreeError):
    """A page id does not correspond to a stored record."""

    def __init__(self, page_id: str) -> None:
        super().__init__(f"Page not found: {page_id}")
        self.page_id = page_id


class ViewNotFoundError(PageTreeError):
    """No view is registered for a template and no template file exists."""

    def __init__(self, template: str) -> None:
        super().__init__(f"Could not find view for template: {template}")
        self.template = template


class ViewRenderError(PageTreeError):
    """A template file exists but could not be read or rendered."""


class CircularParentError(PageTreeError):
    """Setting a parent would make a page its own ancestor."""


class DuplicateSlugError(PageTreeError):
    """Another page under the same parent already uses the slug."""

    def __init__(self, slug: str, parent: str | None) -> None:
        super().__init__("Slug must be unique")
        self.slug = slug
        self.parent = parent


class CycleDetectedError(PageTreeError):
    """A parent chain is longer than the page count.

    Only reachable when stored data bypassed write validation.
    """

    def __init__(self, page_id: str) -> None:
        super().__init__(f"Parent cycle detected while resolving page: {page_id}")
        self.page_id = page_id


class TemplateValidationError(PageTreeError):
    """A template-specific validator rejected a page."""


class StoreError(PageTreeError):
    """The backing store holds malformed data."""
