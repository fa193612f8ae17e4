"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All knobs in one dataclass, overridable from the environment
(12-factor style).

=============================================================================
HOW THE STATIC SETTINGS COMBINE
=============================================================================

    url_root            = "/shop"           Application.url_root
    static_root         = "/srv/shop/"      Application.static_root_path
    static_url_prefix   = "/assets"         entry URL prefix (relative)
    static_dir          = "public"          entry directory  (relative)

    GET /shop/assets/app.js  →  /srv/shop/public/app.js

Leave static_root empty and static_dir is used as written, relative to
the working directory. With static_dir unset no static interceptor is
installed at all.

=============================================================================
ENVIRONMENT VARIABLES
=============================================================================

    HTTP_HOST            host
    HTTP_PORT            port
    HTTP_WORKERS         max_workers
    HTTP_TIMEOUT         timeout (seconds)
    HTTP_URL_ROOT        url_root
    HTTP_STATIC_ROOT     static_root
    HTTP_STATIC_DIR      static_dir
    HTTP_STATIC_PREFIX   static_url_prefix
    HTTP_STATIC_MAX_AGE  static_cache_max_age (seconds)
    HTTP_INDEX_FILES     index_files, comma separated
    HTTP_LOG_LEVEL       log_level
    HTTP_LOG_FORMAT      log_format ("text" or "json")

=============================================================================
"""

import os
from dataclasses import dataclass, field
from typing import Optional, List

from .interceptors.static_file import StaticFileInterceptor


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP server and its static file stage.

    Development:
        ServerConfig(static_dir="public", log_level="DEBUG")

    Production:
        ServerConfig(host="0.0.0.0", port=80, max_workers=32,
                     static_dir="/srv/www", static_cache_max_age=86400)
    """

    # Network
    host: str = "127.0.0.1"
    port: int = 8080
    backlog: int = 128
    buffer_size: int = 8192
    timeout: Optional[float] = 30.0

    # HTTP
    keep_alive: bool = True
    keep_alive_timeout: float = 5.0
    max_request_size: int = 10 * 1024 * 1024

    # Threading
    min_workers: int = 4
    max_workers: int = 16

    # Application roots
    url_root: str = ""
    """URL path the application is mounted at; "" means "/"."""

    static_root: str = ""
    """
    Filesystem directory relative static directories hang off.
    Include the trailing separator: static_dir is appended to it as-is.
    """

    # Static files
    static_dir: Optional[str] = None
    """Directory served under static_url_prefix. None disables static serving."""

    static_url_prefix: str = "/static"
    static_cache_max_age: int = 300
    """Seconds for Cache-Control: public, max-age=N on served files."""

    index_files: List[str] = field(default_factory=lambda: ["index.html"])
    """Default filenames tried, in order, for directory URLs."""

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"

    server_name: str = "webpipe/1.0"

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Build a config from HTTP_* environment variables (see module docstring)."""
        index_files = os.getenv("HTTP_INDEX_FILES")
        return cls(
            host=os.getenv("HTTP_HOST", "127.0.0.1"),
            port=int(os.getenv("HTTP_PORT", "8080")),
            max_workers=int(os.getenv("HTTP_WORKERS", "16")),
            timeout=float(os.getenv("HTTP_TIMEOUT", "30")),
            url_root=os.getenv("HTTP_URL_ROOT", ""),
            static_root=os.getenv("HTTP_STATIC_ROOT", ""),
            static_dir=os.getenv("HTTP_STATIC_DIR"),
            static_url_prefix=os.getenv("HTTP_STATIC_PREFIX", "/static"),
            static_cache_max_age=int(os.getenv("HTTP_STATIC_MAX_AGE", "300")),
            index_files=(
                [name.strip() for name in index_files.split(",") if name.strip()]
                if index_files is not None
                else ["index.html"]
            ),
            log_level=os.getenv("HTTP_LOG_LEVEL", "INFO"),
            log_format=os.getenv("HTTP_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Fail fast on nonsense values.

        Raises:
            ValueError: Describing the first bad setting
        """
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 1-65535.")
        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")
        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")
        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")
        if self.static_cache_max_age < 0:
            raise ValueError("static_cache_max_age must be >= 0")
        if self.log_format not in ("text", "json"):
            raise ValueError(f"Invalid log_format: {self.log_format!r}")
        if self.url_root and not self.url_root.startswith("/"):
            raise ValueError(f"url_root must start with '/': {self.url_root!r}")

    def build_static_interceptor(self) -> Optional[StaticFileInterceptor]:
        """A StaticFileInterceptor for static_dir, or None if it is unset."""
        if self.static_dir is None:
            return None
        return (StaticFileInterceptor(cache_max_age=self.static_cache_max_age)
            .add_entry(self.static_url_prefix, self.static_dir)
            .add_default_filenames(self.index_files))
