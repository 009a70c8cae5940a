"""Core type definitions."""

from typing import NewType

# Stable page identifier assigned by the store on creation
PageId = NewType("PageId", str)

# Canonical URL path of a page (e.g., "/", "/about/team/")
# Distinct from request paths, which may lack the trailing slash
URLPath = NewType("URLPath", str)

ROOT_PATH = URLPath("/")
