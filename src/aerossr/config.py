"""Application configuration.

AppConfig is a frozen dataclass. Values are validated once, at construction,
and paths derived from ``project_path`` are exposed as properties.
"""

from dataclasses import dataclass, field
from pathlib import Path

from aerossr.bundling.options import BundleOptions
from aerossr.errors import ConfigurationError

_DOT_FILE_POLICIES = ("ignore", "allow", "deny")
_LOG_FORMATS = ("text", "json")


@dataclass(frozen=True, slots=True)
class MetaTags:
    """Head metadata injected into server-rendered pages."""

    title: str = "AeroSSR App"
    description: str = "Built with the aerossr bundler"
    charset: str = "UTF-8"
    viewport: str = "width=device-width, initial-scale=1.0"


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(port=8080, project_path="./site", compression=False)
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 3000
    debug: bool = False
    workers: int = 0  # 0 = auto-detect from CPU count

    # Project layout
    project_path: str | Path = "."  # Bundle root: entry points resolve under it
    public_dir: str = "public"  # Relative to project_path

    # Bundle distribution
    dist_path: str = "/dist"
    compression: bool = True
    cache_max_age: int = 3600
    bundle_cache_size: int | None = 100
    bundle_cache_ttl: float | None = None
    build_timeout: float | None = 30.0
    bundle: BundleOptions = field(
        default_factory=lambda: BundleOptions(minify=True, target="browser")
    )

    # Static files
    static_enabled: bool = True
    static_prefix: str = "/"
    static_max_age: int = 86400
    static_index: tuple[str, ...] = ("index.html",)
    dot_files: str = "ignore"
    static_etag: bool = True

    # Security
    cors_origins: tuple[str, ...] = ()
    security_headers: bool = True

    # Pages
    meta: MetaTags = field(default_factory=MetaTags)
    default_page: bool = True  # Serve public/index.html for unmatched GETs

    # Logging
    log_level: str = "info"
    log_format: str = "text"
    log_file: str | None = "logs/server.log"  # Relative to project_path
    access_log: bool = True

    def __post_init__(self) -> None:
        if not 0 <= self.port <= 65535:
            msg = f"Invalid port number: {self.port}"
            raise ConfigurationError(msg)
        if self.cache_max_age < 0:
            msg = "cache_max_age cannot be negative"
            raise ConfigurationError(msg)
        if self.static_max_age < 0:
            msg = "static_max_age cannot be negative"
            raise ConfigurationError(msg)
        if self.bundle_cache_size is not None and self.bundle_cache_size < 1:
            msg = "bundle_cache_size must be at least 1 (or None for unbounded)"
            raise ConfigurationError(msg)
        if self.build_timeout is not None and self.build_timeout <= 0:
            msg = "build_timeout must be positive (or None to disable)"
            raise ConfigurationError(msg)
        if self.dot_files not in _DOT_FILE_POLICIES:
            msg = f"dot_files must be one of {_DOT_FILE_POLICIES}, got {self.dot_files!r}"
            raise ConfigurationError(msg)
        if self.log_format not in _LOG_FORMATS:
            msg = f"log_format must be one of {_LOG_FORMATS}, got {self.log_format!r}"
            raise ConfigurationError(msg)
        if not self.dist_path.startswith("/"):
            msg = f"dist_path must start with '/', got {self.dist_path!r}"
            raise ConfigurationError(msg)

    # -- Derived paths --

    @property
    def root(self) -> Path:
        """Absolute project root."""
        return Path(self.project_path).resolve()

    @property
    def public_root(self) -> Path:
        """Absolute directory served by the static file middleware."""
        return self.root / self.public_dir

    @property
    def log_path(self) -> Path | None:
        """Absolute log file path, or None when file logging is off."""
        if self.log_file is None:
            return None
        return self.root / self.log_file
