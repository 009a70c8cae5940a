"""Navigation over the page tree.

Builds navigation trees, child listings and breadcrumbs from pages and the
current path index for UI presentation.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypedDict

from pagetree.core.errors import CycleDetectedError
from pagetree.core.page import Page
from pagetree.core.paths import PathIndex, page_path
from pagetree.core.types import PageId, URLPath

if TYPE_CHECKING:
    from pagetree.core.store import TreeStore


class NavItemDict(TypedDict, total=False):
    """Dictionary representation of a navigation item."""

    id: str
    title: str
    path: str
    children: list["NavItemDict"]


@dataclass
class NavItem:
    """Navigation item with children for UI tree."""

    id: PageId
    title: str
    path: URLPath
    children: list["NavItem"] = field(default_factory=list)

    def to_dict(self) -> NavItemDict:
        """Convert to dictionary for JSON serialization."""
        result: NavItemDict = {"id": self.id, "title": self.title, "path": self.path}
        if self.children:
            result["children"] = [child.to_dict() for child in self.children]
        return result


@dataclass(frozen=True)
class BreadcrumbItem:
    """Breadcrumb navigation item."""

    title: str
    path: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {"title": self.title, "path": self.path}


@dataclass
class PageNode:
    """Page with its loaded descendants."""

    page: Page
    children: list["PageNode"] = field(default_factory=list)


def _sort_key(page: Page) -> tuple[int, str]:
    return (page.sort_order, page.title.lower())


def _group_by_parent(pages: Iterable[Page]) -> dict[PageId | None, list[Page]]:
    """Group pages by parent id. Pages with a dangling parent count as roots."""
    page_list = list(pages)
    known = {page.id for page in page_list}
    groups: dict[PageId | None, list[Page]] = {}
    for page in page_list:
        parent = page.parent if page.parent in known else None
        groups.setdefault(parent, []).append(page)
    for children in groups.values():
        children.sort(key=_sort_key)
    return groups


def build_navigation(pages: Iterable[Page], index: PathIndex) -> list[NavItem]:
    """Build navigation tree from pages.

    Args:
        pages: All pages
        index: Path index for page paths

    Returns:
        List of NavItem trees for navigation UI, one per root page
    """
    groups = _group_by_parent(pages)
    roots = [_nav_item(page, index) for page in groups.get(None, [])]

    stack = list(roots)
    while stack:
        item = stack.pop()
        item.children = [_nav_item(child, index) for child in groups.get(item.id, [])]
        stack.extend(item.children)
    return roots


def _nav_item(page: Page, index: PathIndex) -> NavItem:
    return NavItem(id=page.id, title=page.title, path=page_path(page, index).full)


def get_breadcrumbs(
    pages_by_id: Mapping[PageId, Page],
    index: PathIndex,
    page_id: PageId,
) -> list[BreadcrumbItem]:
    """Build breadcrumbs for a page.

    Returns breadcrumbs starting with "Home", followed by ancestor pages.
    The current page is not included. Unknown pages get just [Home].

    Args:
        pages_by_id: All pages keyed by id
        index: Path index for page paths
        page_id: Page to build breadcrumbs for

    Returns:
        List of BreadcrumbItem for ancestor navigation
    """
    breadcrumbs = [BreadcrumbItem(title="Home", path="/")]
    page = pages_by_id.get(page_id)
    if page is None:
        return breadcrumbs

    # Walk up parent chain
    ancestors: list[Page] = []
    current = pages_by_id.get(page.parent) if page.parent is not None else None
    while current is not None:
        if len(ancestors) >= len(pages_by_id):
            raise CycleDetectedError(page_id)
        ancestors.append(current)
        current = pages_by_id.get(current.parent) if current.parent is not None else None

    ancestors.reverse()
    for ancestor in ancestors:
        path = page_path(ancestor, index).full
        if path == "/":
            # Home already covers a root page with an empty slug
            continue
        breadcrumbs.append(BreadcrumbItem(title=ancestor.title, path=path))
    return breadcrumbs


async def load_children(
    store: "TreeStore",
    page: Page,
    *,
    max_depth: int | None = None,
) -> list[PageNode]:
    """Load the descendants of a page, sorted by sort order.

    Args:
        store: Store to read from
        page: Page whose descendants to load
        max_depth: Levels to load (1 loads direct children), None for all

    Returns:
        Child nodes with their own children populated

    Raises:
        CycleDetectedError: If more pages are reached than the store holds
    """
    limit = await store.count()
    root = PageNode(page=page)
    queue: list[tuple[PageNode, int]] = [(root, 1)]
    loaded = 0
    while queue:
        node, depth = queue.pop(0)
        if max_depth is not None and depth > max_depth:
            continue
        children = await store.find_by_parent(node.page.id)
        for child in sorted(children, key=_sort_key):
            loaded += 1
            if loaded > limit:
                raise CycleDetectedError(page.id)
            child_node = PageNode(page=child)
            node.children.append(child_node)
            queue.append((child_node, depth + 1))
    return root.children
