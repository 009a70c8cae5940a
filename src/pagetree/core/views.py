"""View selection for resolved pages.

Views are looked up by the page's template name, normalized to slug form
so "Blog Post", "blog post" and "blog-post" select the same view. Templates
without a registered view fall back to an HTML file named after the
template in the views directory.
"""

import importlib
import logging
import pkgutil
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from string import Template

from aiohttp import web

from pagetree.core.errors import ViewNotFoundError, ViewRenderError
from pagetree.core.matcher import PathMatch
from pagetree.core.page import Page
from pagetree.core.paths import PagePath
from pagetree.core.templates import template_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageContext:
    """Everything a view needs to render a resolved page."""

    page: Page
    path: PagePath
    match: PathMatch

    @property
    def exact(self) -> bool:
        return self.match.exact


View = Callable[[web.Request, PageContext], Awaitable[web.StreamResponse]]


def view_key(template: str) -> str:
    """Normalize a template name to a view lookup key."""
    return template_key(template)


class ViewRegistry:
    """Views keyed by normalized template name."""

    def __init__(self) -> None:
        self._views: dict[str, View] = {}

    def register(self, template: str, view: View) -> None:
        self._views[view_key(template)] = view

    def view(self, template: str) -> Callable[[View], View]:
        """Decorator registering a view for a template.

        Example:
            @views.view("blog post")
            async def blog_post(request, context): ...
        """

        def decorator(func: View) -> View:
            self.register(template, func)
            return func

        return decorator

    def resolve(self, template: str) -> View | None:
        return self._views.get(view_key(template))

    def __contains__(self, template: object) -> bool:
        return isinstance(template, str) and view_key(template) in self._views

    def __len__(self) -> int:
        return len(self._views)

    @classmethod
    def from_package(cls, package: str) -> "ViewRegistry":
        """Register the ``render`` coroutine of every module in a package.

        Each module's name, in slug form, is its template key, so
        ``views/blog_post.py`` serves pages with template "Blog Post".

        Args:
            package: Dotted name of an importable package

        Returns:
            ViewRegistry with one view per module defining ``render``
        """
        registry = cls()
        root = importlib.import_module(package)
        for module_info in pkgutil.iter_modules(getattr(root, "__path__", [])):
            module = importlib.import_module(f"{package}.{module_info.name}")
            render = getattr(module, "render", None)
            if render is None:
                continue
            registry.register(module_info.name, render)
            logger.debug(f"Registered view {module_info.name} from {package}")
        return registry


class TemplateFileView:
    """Render a template file from the views directory.

    Looks for ``<views_dir>/<key>.html`` and substitutes ``$title``,
    ``$slug``, ``$path``, ``$template`` and the page's fields using
    ``string.Template``. Unknown placeholders are left as they are.
    """

    def __init__(self, views_dir: Path | None) -> None:
        self._views_dir = views_dir

    def find(self, template: str) -> Path | None:
        """Locate the template file for a template name."""
        if self._views_dir is None:
            return None
        key = view_key(template)
        if not key:
            return None
        candidate = self._views_dir / f"{key}.html"
        return candidate if candidate.is_file() else None

    async def __call__(
        self, request: web.Request, context: PageContext
    ) -> web.StreamResponse:
        source_path = self.find(context.page.template)
        if source_path is None:
            raise ViewNotFoundError(context.page.template)

        try:
            source = source_path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ViewNotFoundError(context.page.template) from e
        except OSError as e:
            raise ViewRenderError(f"Could not read view {source_path}: {e}") from e

        values = {key: str(value) for key, value in context.page.fields.items()}
        values.update(
            title=context.page.title,
            slug=context.page.slug,
            path=context.path.full,
            template=context.page.template,
        )
        return web.Response(
            text=Template(source).safe_substitute(values),
            content_type="text/html",
        )


class ViewDispatcher:
    """Selects the view rendering a page."""

    def __init__(self, registry: ViewRegistry, fallback: TemplateFileView) -> None:
        self._registry = registry
        self._fallback = fallback

    @property
    def registry(self) -> ViewRegistry:
        return self._registry

    def select(self, page: Page) -> View:
        """Pick the view for a page's template.

        Args:
            page: Resolved page

        Returns:
            Registered view, or the template file fallback

        Raises:
            ViewNotFoundError: If no view is registered and no template file exists
        """
        view = self._registry.resolve(page.template)
        if view is not None:
            return view
        if self._fallback.find(page.template) is not None:
            return self._fallback
        raise ViewNotFoundError(page.template)
