"""Page templates.

A template name selects which fields a page carries and which view renders
it. Each template may register a dataclass describing its fields and a
validator run before the page is written.
"""

import dataclasses
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from pagetree.core.errors import TemplateValidationError
from pagetree.core.page import DEFAULT_TEMPLATE, Page, normalize_slug

# Returns an error message, or None when the page is valid
TemplateValidator = Callable[[Page], Awaitable[str | None]]


def template_key(name: str) -> str:
    """Normalize a template name so "Blog Post" and "blog-post" match."""
    return normalize_slug(name)


@dataclass(frozen=True)
class TemplateOption:
    """Template choice for authoring surfaces."""

    label: str
    value: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {"label": self.label, "value": self.value}


@dataclass(frozen=True)
class _Template:
    name: str
    fields_type: type | None
    validator: TemplateValidator | None


class TemplateRegistry:
    """Registered templates keyed by normalized name."""

    def __init__(self) -> None:
        self._templates: dict[str, _Template] = {}
        self.register(DEFAULT_TEMPLATE)

    def register(
        self,
        name: str,
        fields_type: type | None = None,
        validator: TemplateValidator | None = None,
    ) -> None:
        """Register or replace a template.

        Args:
            name: Template name as stored on pages
            fields_type: Dataclass describing the template's fields
            validator: Coroutine checking a page before it is written

        Raises:
            TypeError: If fields_type is not a dataclass
        """
        if fields_type is not None and not dataclasses.is_dataclass(fields_type):
            raise TypeError(f"Fields type for template {name!r} must be a dataclass")
        self._templates[template_key(name)] = _Template(
            name=name,
            fields_type=fields_type,
            validator=validator,
        )

    def names(self) -> list[str]:
        return sorted(template.name for template in self._templates.values())

    def options(self) -> list[TemplateOption]:
        """List templates as label/value pairs sorted by name."""
        return [
            TemplateOption(label=_titlecase(name), value=name) for name in self.names()
        ]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and template_key(name) in self._templates

    def fields_for(self, page: Page) -> Any:
        """Build the typed fields of a page.

        Keys of the page's field bag that the template's dataclass does not
        declare are ignored. Without a registered dataclass, the field bag
        is returned as a read-only mapping.

        Args:
            page: Page whose fields to read

        Returns:
            Instance of the template's fields dataclass, or a mapping
        """
        template = self._templates.get(template_key(page.template))
        if template is None or template.fields_type is None:
            return MappingProxyType(dict(page.fields))
        return _construct(template.fields_type, page.fields)

    async def validate(self, page: Page) -> None:
        """Run the page template's validator.

        Raises:
            TemplateValidationError: If the validator returns an error message
        """
        template = self._templates.get(template_key(page.template))
        if template is None or template.validator is None:
            return
        error = await template.validator(page)
        if error:
            raise TemplateValidationError(error)


def _construct(fields_type: type, values: Mapping[str, Any]) -> Any:
    names = {f.name for f in dataclasses.fields(fields_type) if f.init}
    return fields_type(**{key: value for key, value in values.items() if key in names})


def _titlecase(name: str) -> str:
    words = name.replace("-", " ").replace("_", " ").split()
    return " ".join(word[:1].upper() + word[1:] for word in words)
