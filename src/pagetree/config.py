"""Configuration management for pagetree.

Supports TOML configuration format with auto-discovery.
"""

import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path

from pagetree.core.cache import DEFAULT_TTL

CONFIG_FILENAME = "pagetree.toml"


@dataclass
class ServerConfig:
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8080


@dataclass
class PagesConfig:
    """Page store and view configuration."""

    store_file: Path = field(default_factory=lambda: Path("pages.json"))
    views_dir: Path | None = field(default_factory=lambda: Path("views"))
    views_package: str | None = None
    match_partial: bool = True


@dataclass
class CacheConfig:
    """Cache configuration.

    ``path_ttl`` of 0 rebuilds the path index on every request.
    """

    page_ttl: float = DEFAULT_TTL
    path_ttl: float = 0.0


@dataclass
class Config:
    """Application configuration."""

    server: ServerConfig
    pages: PagesConfig
    cache: CacheConfig
    config_path: Path | None = None

    @classmethod
    def load(cls, config_path: Path | None = None) -> "Config":
        """Load configuration from file.

        If config_path is provided, loads from that file.
        Otherwise, searches for pagetree.toml in current directory and parents.

        Args:
            config_path: Optional explicit path to config file

        Returns:
            Config instance with defaults for missing sections

        Raises:
            FileNotFoundError: If explicit config_path doesn't exist
            ValueError: If configuration is invalid
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return cls._load_from_file(config_path)

        discovered_path = cls._discover_config()
        if discovered_path is None:
            return cls._default()

        return cls._load_from_file(discovered_path)

    @classmethod
    def _discover_config(cls) -> Path | None:
        """Search for config file in current directory and parents."""
        current = Path.cwd()
        while True:
            candidate = current / CONFIG_FILENAME
            if candidate.exists():
                return candidate
            parent = current.parent
            if parent == current:
                return None
            current = parent

    @classmethod
    def _default(cls) -> "Config":
        return cls(
            server=ServerConfig(),
            pages=PagesConfig(),
            cache=CacheConfig(),
        )

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        """Load configuration from a specific file.

        Args:
            path: Path to TOML configuration file

        Returns:
            Config instance

        Raises:
            ValueError: If configuration is invalid
        """
        with path.open("rb") as f:
            try:
                data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ValueError(f"Invalid TOML in {path}: {e}") from e

        config_dir = path.parent

        return cls(
            server=cls._parse_server(data.get("server")),
            pages=cls._parse_pages(data.get("pages"), config_dir),
            cache=cls._parse_cache(data.get("cache")),
            config_path=path,
        )

    @classmethod
    def _parse_server(cls, data: object) -> ServerConfig:
        if data is None:
            return ServerConfig()

        if not isinstance(data, dict):
            raise ValueError("server section must be a dictionary")

        host = data.get("host", "127.0.0.1")
        if not isinstance(host, str):
            raise ValueError("server.host must be a string")

        port = data.get("port", 8080)
        if not isinstance(port, int) or isinstance(port, bool):
            raise ValueError("server.port must be an integer")

        return ServerConfig(host=host, port=port)

    @classmethod
    def _parse_pages(cls, data: object, config_dir: Path) -> PagesConfig:
        """Parse pages configuration section.

        Args:
            data: Raw pages section data
            config_dir: Directory containing config file (for relative paths)

        Returns:
            PagesConfig instance
        """
        if data is None:
            return PagesConfig(
                store_file=config_dir / "pages.json",
                views_dir=config_dir / "views",
            )

        if not isinstance(data, dict):
            raise ValueError("pages section must be a dictionary")

        store_file = data.get("store_file", "pages.json")
        if not isinstance(store_file, str):
            raise ValueError("pages.store_file must be a string")

        views_dir = data.get("views_dir", "views")
        if not isinstance(views_dir, str):
            raise ValueError("pages.views_dir must be a string")

        views_package = data.get("views_package")
        if views_package is not None and not isinstance(views_package, str):
            raise ValueError("pages.views_package must be a string")

        match_partial = data.get("match_partial", True)
        if not isinstance(match_partial, bool):
            raise ValueError("pages.match_partial must be a boolean")

        return PagesConfig(
            store_file=config_dir / store_file,
            views_dir=config_dir / views_dir,
            views_package=views_package,
            match_partial=match_partial,
        )

    @classmethod
    def _parse_cache(cls, data: object) -> CacheConfig:
        if data is None:
            return CacheConfig()

        if not isinstance(data, dict):
            raise ValueError("cache section must be a dictionary")

        page_ttl = data.get("page_ttl", DEFAULT_TTL)
        if not isinstance(page_ttl, (int, float)) or isinstance(page_ttl, bool):
            raise ValueError("cache.page_ttl must be a number")
        if page_ttl < 0:
            raise ValueError("cache.page_ttl must not be negative")

        path_ttl = data.get("path_ttl", 0.0)
        if not isinstance(path_ttl, (int, float)) or isinstance(path_ttl, bool):
            raise ValueError("cache.path_ttl must be a number")
        if path_ttl < 0:
            raise ValueError("cache.path_ttl must not be negative")

        return CacheConfig(page_ttl=float(page_ttl), path_ttl=float(path_ttl))

    def with_overrides(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        store_file: Path | None = None,
        views_dir: Path | None = None,
    ) -> "Config":
        """Create a new Config with CLI overrides applied.

        Only non-None values override the existing config. The original
        Config is not modified.

        Args:
            host: Override server.host
            port: Override server.port
            store_file: Override pages.store_file
            views_dir: Override pages.views_dir

        Returns:
            New Config instance with overrides applied
        """
        server = self.server
        if host is not None or port is not None:
            server = replace(
                self.server,
                host=host if host is not None else self.server.host,
                port=port if port is not None else self.server.port,
            )

        pages = self.pages
        if store_file is not None or views_dir is not None:
            pages = replace(
                self.pages,
                store_file=store_file if store_file is not None else self.pages.store_file,
                views_dir=views_dir if views_dir is not None else self.pages.views_dir,
            )

        return replace(self, server=server, pages=pages)
