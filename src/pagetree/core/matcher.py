"""Request path matching.

Maps an incoming request path to the most specific page whose full path is
a prefix of it, backing off one segment at a time towards the root.
"""

from dataclasses import dataclass

from pagetree.core.errors import PageIdNotFoundError
from pagetree.core.paths import PATH_SEPARATOR, PathIndex, format_full_path
from pagetree.core.types import PageId, URLPath


@dataclass(frozen=True)
class PathMatch:
    """Result of matching a request path."""

    page_id: PageId
    path: URLPath
    exact: bool


def split_request_path(path: str) -> list[str]:
    """Split a request path into non-empty segments, dropping query and fragment."""
    path = path.split("#", 1)[0].split("?", 1)[0]
    return [segment for segment in path.split(PATH_SEPARATOR) if segment]


def normalize_request_path(path: str) -> URLPath:
    """Normalize a request path to the canonical ``/a/b/`` form.

    Args:
        path: Request path (e.g., "/about/team", "about//team/?q=1")

    Returns:
        Canonical path, ``/`` for the empty path
    """
    return format_full_path(split_request_path(path))


def match_path(index: PathIndex, request_path: str) -> PathMatch:
    """Find the page for a request path.

    Tries the exact path first, then strips trailing segments until a page
    path matches or the root has been tried.

    Args:
        index: Current path index
        request_path: Incoming request path

    Returns:
        PathMatch with ``exact`` False for prefix matches

    Raises:
        PageIdNotFoundError: If no page path is a prefix of the request path
    """
    segments = split_request_path(request_path)
    for end in range(len(segments), -1, -1):
        candidate = format_full_path(segments[:end])
        page_id = index.lookup(candidate)
        if page_id is not None:
            return PathMatch(
                page_id=page_id,
                path=candidate,
                exact=end == len(segments),
            )
    raise PageIdNotFoundError(normalize_request_path(request_path))
