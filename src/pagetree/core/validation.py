"""Write-time validation of the page tree.

Runs before every store commit and rejects writes that would break the tree:
a slug already used by a sibling, a page parented to itself or to one of
its descendants, or a template-specific validation failure.
"""

from typing import TYPE_CHECKING

from pagetree.core.errors import (
    CircularParentError,
    CycleDetectedError,
    DuplicateSlugError,
    PageNotFoundError,
)
from pagetree.core.page import Page
from pagetree.core.types import PageId

if TYPE_CHECKING:
    from pagetree.core.store import TreeStore
    from pagetree.core.templates import TemplateRegistry


async def validate_page_write(
    page: Page,
    store: "TreeStore",
    templates: "TemplateRegistry | None" = None,
) -> None:
    """Validate a page before it is persisted.

    Args:
        page: Page as it would be written
        store: Store holding the current tree
        templates: Registry providing template validators

    Raises:
        DuplicateSlugError: If a sibling already uses the slug
        CircularParentError: If the parent is the page itself or a descendant
        PageNotFoundError: If the proposed parent does not exist
        CycleDetectedError: If stored parent links already form a cycle
        TemplateValidationError: If the template's validator rejects the page
    """
    await check_unique_slug(page, store)
    await check_parent(page, store)
    if templates is not None:
        await templates.validate(page)


async def check_unique_slug(page: Page, store: "TreeStore") -> None:
    siblings = await store.find_by_parent(page.parent)
    for sibling in siblings:
        if sibling.id != page.id and sibling.slug == page.slug:
            raise DuplicateSlugError(page.slug, page.parent)


async def check_parent(page: Page, store: "TreeStore") -> None:
    if page.parent is None:
        return
    if page.parent == page.id:
        raise CircularParentError("Page cannot be a child of itself")

    parent = await store.find_by_id(page.parent)
    if parent is None:
        raise PageNotFoundError(page.parent)

    if await has_ancestor(parent, page.id, store):
        raise CircularParentError("Circular parent path detected")


async def has_ancestor(page: Page, search: PageId, store: "TreeStore") -> bool:
    """Check whether ``search`` is the page itself or one of its ancestors.

    The walk stops at a root page, at a dangling parent reference, or after
    as many steps as there are pages.

    Args:
        page: Page to start from
        search: Page id to look for
        store: Store holding the current tree

    Returns:
        True if ``search`` is on the page's parent chain

    Raises:
        CycleDetectedError: If the chain is longer than the page count
    """
    limit = await store.count()
    current: Page | None = page
    for _ in range(limit + 1):
        if current is None:
            return False
        if current.id == search:
            return True
        if current.parent is None:
            return False
        current = await store.find_by_id(current.parent)
    raise CycleDetectedError(page.id)
