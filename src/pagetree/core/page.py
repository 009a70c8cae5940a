"""Page records.

A page is a node in the page tree. Records are immutable; writes go through
the store, which normalizes the slug and validates the tree before commit.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, TypedDict
from uuid import uuid4

from pagetree.core.errors import StoreError
from pagetree.core.types import PageId

DEFAULT_TEMPLATE = "default"

_SLUG_INVALID_RE = re.compile(r"[^a-z0-9]+")


class PageDict(TypedDict):
    """Serialized page record."""

    id: str
    title: str
    slug: str
    parent: str | None
    template: str
    sort_order: int
    fields: dict[str, Any]


def normalize_slug(value: str | None) -> str:
    """Normalize a slug or title into a URL path segment.

    Lowercases, collapses every run of characters outside ``[a-z0-9]``
    into a single dash and trims dashes from both ends.

    Args:
        value: Raw slug or title

    Returns:
        Normalized slug, empty string for empty input
    """
    slug = (value or "").strip().lower()
    if not slug:
        return ""
    return _SLUG_INVALID_RE.sub("-", slug).strip("-")


def new_page_id() -> PageId:
    return PageId(uuid4().hex)


@dataclass(frozen=True)
class Page:
    """Page document."""

    id: PageId
    title: str
    slug: str
    parent: PageId | None = None
    template: str = DEFAULT_TEMPLATE
    sort_order: int = 0
    fields: Mapping[str, Any] = field(default_factory=dict)

    def with_changes(self, **changes: Any) -> "Page":
        """Return a copy with the given attributes replaced."""
        return replace(self, **changes)

    def to_dict(self) -> PageDict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "parent": self.parent,
            "template": self.template,
            "sort_order": self.sort_order,
            "fields": dict(self.fields),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Page":
        """Build a page from a serialized record.

        Args:
            data: Record with at least ``id`` and ``title``

        Returns:
            Page instance

        Raises:
            StoreError: If required keys are missing or have the wrong type
        """
        page_id = data.get("id")
        if not isinstance(page_id, str) or not page_id:
            raise StoreError(f"Page record has no valid id: {data!r}")

        title = data.get("title")
        if not isinstance(title, str):
            raise StoreError(f"Page {page_id} has no valid title")

        slug = data.get("slug")
        if slug is None:
            slug = normalize_slug(title)
        if not isinstance(slug, str):
            raise StoreError(f"Page {page_id} slug must be a string")

        parent = data.get("parent")
        if parent is not None and not isinstance(parent, str):
            raise StoreError(f"Page {page_id} parent must be a string or null")

        template = data.get("template", DEFAULT_TEMPLATE)
        if not isinstance(template, str):
            raise StoreError(f"Page {page_id} template must be a string")

        sort_order = data.get("sort_order", 0)
        if not isinstance(sort_order, int):
            raise StoreError(f"Page {page_id} sort_order must be an integer")

        fields = data.get("fields") or {}
        if not isinstance(fields, dict):
            raise StoreError(f"Page {page_id} fields must be an object")

        return cls(
            id=PageId(page_id),
            title=title,
            slug=slug,
            parent=PageId(parent) if parent else None,
            template=template,
            sort_order=sort_order,
            fields=MappingProxyType(dict(fields)),
        )
