"""Tests for page records."""

import pytest
from pagetree.core.errors import StoreError
from pagetree.core.page import Page, new_page_id, normalize_slug


class TestNormalizeSlug:
    """Tests for normalize_slug()."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("About Us", "about-us"),
            ("  Hello,  World!! ", "hello-world"),
            ("already-ok", "already-ok"),
            ("Team_2021/Summer", "team-2021-summer"),
            ("", ""),
            (None, ""),
            ("---", ""),
        ],
    )
    def test__values__normalized(self, value: str | None, expected: str) -> None:
        """Lowercase and collapse separators."""
        assert normalize_slug(value) == expected


class TestNewPageId:
    """Tests for new_page_id()."""

    def test__ids__are_unique(self) -> None:
        """Generate distinct ids."""
        assert new_page_id() != new_page_id()


class TestPageFromDict:
    """Tests for Page.from_dict()."""

    def test__full_record__builds_page(self) -> None:
        """Build page from every field."""
        page = Page.from_dict(
            {
                "id": "p1",
                "title": "About",
                "slug": "about",
                "parent": "root",
                "template": "standard",
                "sort_order": 3,
                "fields": {"intro": "Hello"},
            }
        )

        assert page.id == "p1"
        assert page.parent == "root"
        assert page.template == "standard"
        assert page.sort_order == 3
        assert page.fields["intro"] == "Hello"

    def test__missing_slug__derived_from_title(self) -> None:
        """Derive slug from title when record has none."""
        page = Page.from_dict({"id": "p1", "title": "Our Team"})

        assert page.slug == "our-team"
        assert page.parent is None
        assert page.template == "default"

    def test__missing_id__raises_store_error(self) -> None:
        """Reject records without id."""
        with pytest.raises(StoreError, match="no valid id"):
            Page.from_dict({"title": "About"})

    def test__bad_parent__raises_store_error(self) -> None:
        """Reject non-string parent."""
        with pytest.raises(StoreError, match="parent"):
            Page.from_dict({"id": "p1", "title": "About", "parent": 5})

    def test__to_dict__restores_same_page(self) -> None:
        """Serialized page loads back equal."""
        page = Page.from_dict(
            {"id": "p1", "title": "About", "slug": "about", "fields": {"a": 1}}
        )

        assert Page.from_dict(page.to_dict()) == page
