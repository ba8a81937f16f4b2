"""Configuration management for the page editor.

Supports TOML configuration format with auto-discovery. Configuration is
built once at startup and passed to every component that needs it.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path, PurePath

from pageeditor.core.sandbox import normalize
from pageeditor.core.types import FileType
from pageeditor.errors import ConfigError

CONFIG_FILENAME = "pageeditor.toml"


@dataclass(frozen=True)
class ServerConfig:
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8000
    client_max_size: int = 1024**2


@dataclass(frozen=True)
class RootsConfig:
    """Read and write roots.

    GET requests may reach anything under ``read_root``. PUT, POST, DELETE
    and MKCOL are confined to ``write_root``.
    """

    read_root: Path = field(default_factory=lambda: Path.cwd())
    write_subroot: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "read_root", normalize(self.read_root))
        if self.write_subroot is not None:
            validate_write_subroot(self.write_subroot)

    @property
    def write_root(self) -> Path:
        if not self.write_subroot:
            return self.read_root
        return normalize(self.read_root / self.write_subroot)


@dataclass(frozen=True)
class PagesConfig:
    """Page editor layout and command tokens.

    Directory names are relative to the read root.
    """

    editor_dir: str = "page_editor"
    template_dir: str = "template_page"
    user_pages_dir: str = "user_pages"
    template_name: str = "start"
    restore_command: str = "pageEditor_restore"
    create_command: str = "pageEditor_create"
    rewrite_all_references: bool = False

    def template_filename(self, file_type: FileType) -> str:
        return f"{self.template_name}.{file_type}"

    def template_path(self, root: Path, file_type: FileType) -> Path:
        return root / self.editor_dir / self.template_dir / self.template_filename(file_type)

    def user_pages_path(self, root: Path) -> Path:
        return root / self.editor_dir / self.user_pages_dir

    def page_path(self, root: Path, page_name: str, file_type: FileType) -> Path:
        return self.user_pages_path(root) / f"{page_name}.{file_type}"

    @property
    def user_pages_url(self) -> str:
        """URL path of the user pages directory, e.g. ``/page_editor/user_pages``."""
        return f"/{self.editor_dir}/{self.user_pages_dir}"


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"


@dataclass(frozen=True)
class Config:
    """Application configuration."""

    server: ServerConfig
    roots: RootsConfig
    pages: PagesConfig
    logging: LoggingConfig
    config_path: Path | None = None

    @classmethod
    def load(cls, config_path: Path | None = None) -> Config:
        """Load configuration from file.

        If config_path is provided, loads from that file.
        Otherwise, searches for pageeditor.toml in current directory and parents.

        Args:
            config_path: Optional explicit path to config file

        Returns:
            Config instance with defaults for missing sections

        Raises:
            FileNotFoundError: If explicit config_path doesn't exist
            ConfigError: If configuration is invalid
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return cls._load_from_file(config_path)

        discovered_path = cls._discover_config()
        if discovered_path is None:
            return cls.default()

        return cls._load_from_file(discovered_path)

    @classmethod
    def _discover_config(cls) -> Path | None:
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
    def default(cls, read_root: Path | None = None) -> Config:
        """Create config with all defaults.

        Args:
            read_root: Read root (default: current working directory)
        """
        roots = RootsConfig() if read_root is None else RootsConfig(read_root=read_root)
        return cls(
            server=ServerConfig(),
            roots=roots,
            pages=PagesConfig(),
            logging=LoggingConfig(),
        )

    @classmethod
    def _load_from_file(cls, path: Path) -> Config:
        with path.open("rb") as f:
            data = tomllib.load(f)

        config_dir = path.parent

        return cls(
            server=cls._parse_server(data.get("server")),
            roots=cls._parse_roots(data.get("roots"), config_dir),
            pages=cls._parse_pages(data.get("pages")),
            logging=cls._parse_logging(data.get("logging")),
            config_path=path,
        )

    @classmethod
    def _parse_server(cls, data: object) -> ServerConfig:
        if data is None:
            return ServerConfig()

        if not isinstance(data, dict):
            raise ConfigError("server section must be a dictionary")

        host = data.get("host", "127.0.0.1")
        if not isinstance(host, str):
            raise ConfigError("server.host must be a string")

        port = data.get("port", 8000)
        if not isinstance(port, int):
            raise ConfigError("server.port must be an integer")

        client_max_size = data.get("client_max_size", 1024**2)
        if not isinstance(client_max_size, int) or client_max_size <= 0:
            raise ConfigError("server.client_max_size must be a positive integer")

        return ServerConfig(host=host, port=port, client_max_size=client_max_size)

    @classmethod
    def _parse_roots(cls, data: object, config_dir: Path) -> RootsConfig:
        """Parse roots section. A relative read_root is taken from the config file's directory."""
        if data is None:
            return RootsConfig(read_root=config_dir)

        if not isinstance(data, dict):
            raise ConfigError("roots section must be a dictionary")

        read_root = data.get("read_root", ".")
        if not isinstance(read_root, str):
            raise ConfigError("roots.read_root must be a string")

        write_subroot = data.get("write_subroot")
        if write_subroot is not None and not isinstance(write_subroot, str):
            raise ConfigError("roots.write_subroot must be a string")

        return RootsConfig(read_root=config_dir / read_root, write_subroot=write_subroot)

    @classmethod
    def _parse_pages(cls, data: object) -> PagesConfig:
        if data is None:
            return PagesConfig()

        if not isinstance(data, dict):
            raise ConfigError("pages section must be a dictionary")

        defaults = PagesConfig()
        values: dict[str, str | bool] = {}
        for name in (
            "editor_dir",
            "template_dir",
            "user_pages_dir",
            "template_name",
            "restore_command",
            "create_command",
        ):
            value = data.get(name, getattr(defaults, name))
            if not isinstance(value, str) or not value:
                raise ConfigError(f"pages.{name} must be a non-empty string")
            values[name] = value

        rewrite_all = data.get("rewrite_all_references", False)
        if not isinstance(rewrite_all, bool):
            raise ConfigError("pages.rewrite_all_references must be a boolean")
        values["rewrite_all_references"] = rewrite_all

        return PagesConfig(**values)  # type: ignore[arg-type]

    @classmethod
    def _parse_logging(cls, data: object) -> LoggingConfig:
        if data is None:
            return LoggingConfig()

        if not isinstance(data, dict):
            raise ConfigError("logging section must be a dictionary")

        level = data.get("level", "INFO")
        if not isinstance(level, str):
            raise ConfigError("logging.level must be a string")

        return LoggingConfig(level=level.upper())

    def with_overrides(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        read_root: Path | None = None,
        write_subroot: str | None = None,
        log_level: str | None = None,
    ) -> Config:
        """Create a new Config with CLI overrides applied.

        Only non-None values override the existing config. The original
        Config is not modified.

        Raises:
            ConfigError: If the write subroot is invalid
        """
        server = self.server
        if host is not None or port is not None:
            server = replace(
                self.server,
                host=host if host is not None else self.server.host,
                port=port if port is not None else self.server.port,
            )

        roots = self.roots
        if read_root is not None or write_subroot is not None:
            roots = replace(
                self.roots,
                read_root=read_root if read_root is not None else self.roots.read_root,
                write_subroot=(
                    write_subroot if write_subroot is not None else self.roots.write_subroot
                ),
            )

        logging = self.logging
        if log_level is not None:
            logging = replace(self.logging, level=log_level.upper())

        return replace(self, server=server, roots=roots, logging=logging)


def validate_write_subroot(write_subroot: str) -> None:
    """Reject write subroots that could point outside the read root.

    Raises:
        ConfigError: If the subroot is absolute or contains ``..`` segments
    """
    if ".." in PurePath(write_subroot).parts:
        raise ConfigError(
            f"relative root directory may not contain parent path elements: {write_subroot}"
        )
    if PurePath(write_subroot).is_absolute():
        raise ConfigError(f"write subroot must be a relative path: {write_subroot}")
