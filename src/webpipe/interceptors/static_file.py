"""
=============================================================================
STATIC FILE INTERCEPTOR
=============================================================================

Serves files from disk for URL prefixes mapped onto directories. Runs in
both pipeline phases:

    REQUEST PHASE                         RESPONSE PHASE
    ─────────────                         ──────────────
    GET only                              ctx.static_file Claimed?
    first entry whose prefix matches      existence check (+ default files)
    build candidate path                  open, set Content-Type,
    ctx.static_file = Claimed(path)       Cache-Control, stream in chunks
    ctx.stop()  (router skipped)          ctx.static_file = UNCLAIMED

=============================================================================
PATH RESOLUTION
=============================================================================

Entries map a URL prefix to a directory root. Each side can be ABSOLUTE
(used as written) or RELATIVE (joined onto an application root):

    app.url_root         = "/shop"
    app.static_root_path = "/srv/shop/"
    entry                = ("/assets", "public")

    RELATIVE prefix  → matches URLs starting with "/shop/assets"
    RELATIVE dir     → directory root "/srv/shop/public"

    GET /shop/assets/css/site.css
                    └─────┬──────┘ remainder
    candidate = "/srv/shop/public" + "/css/site.css"

A directory root and the URL remainder are joined with exactly one "/"
between them; a bare prefix ("GET /shop/assets") names the directory
itself. Roots are still built by concatenation (static_root_path +
dir_root), so static_root_path carries its own trailing separator.

Prefix matching ignores case; the first matching entry wins, there is no
longest-prefix rule.

=============================================================================
DEFAULT FILENAMES
=============================================================================

When the candidate has no filename ("/srv/shop/public/docs/" or ends with
"/."), each default filename is tried in the order added:

    /srv/shop/public/docs/ + index.html  → exists? serve it
                           + index.htm   → exists? serve it
                           nothing       → 404

A candidate that does have a filename is never completed with a default
name: "/docs" naming a directory is served as-is and fails to open (500).

=============================================================================
STREAMING
=============================================================================

    read 2 KiB ──► buffer ──(> 128 KiB?)──► one chunk on the wire
        ▲             │
        └─────────────┘
    EOF: flush whatever is left as the last data chunk

Memory per request stays under 128 KiB + one read buffer no matter how
big the file is. A zero-byte file sends the head and the last-chunk
marker only.

=============================================================================
OUTCOMES
=============================================================================

    ┌──────────────────────────────┬────────┬──────────────────────────┐
    │ situation                    │ status │ response phase continues │
    ├──────────────────────────────┼────────┼──────────────────────────┤
    │ not GET / no prefix matches  │   -    │ yes (never claimed)      │
    │ claimed path is empty        │  400   │ no                       │
    │ nothing exists               │  404   │ yes                      │
    │ stat() raised                │  500   │ yes (logged)             │
    │ open() raised                │  500   │ yes (logged)             │
    │ streamed                     │  200   │ yes                      │
    └──────────────────────────────┴────────┴──────────────────────────┘

=============================================================================
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, TYPE_CHECKING
import os
import logging

from .base import Interceptor
from ..context import Claimed, UNCLAIMED
from ..http.mime_types import extension_of, get_content_type

if TYPE_CHECKING:
    from ..application import Application
    from ..context import Context


logger = logging.getLogger(__name__)


READ_BUFFER_SIZE = 2 * 1024
CHUNK_FLUSH_THRESHOLD = 128 * 1024


class PathResolve(Enum):
    """How an entry's URL prefix or directory root is interpreted."""

    ABSOLUTE = "absolute"
    RELATIVE = "relative"


@dataclass(frozen=True)
class StaticEntry:
    url_prefix: str
    dir_root: str


class StaticFileInterceptor(Interceptor):
    """
    Maps URL prefixes onto directories and streams the files found there.

    Configure before the server starts; the interceptor is shared by all
    worker threads and only read while serving.

        static = (StaticFileInterceptor(cache_max_age=3600)
            .add_entry("/static", "static")
            .add_entry("/", "public")
            .add_default_filenames(["index.html", "index.htm"]))
        app.intercept(static)

    Args:
        cache_max_age: Seconds sent as Cache-Control max-age
        default_filename: Optional first default filename
        url_resolve: How entry URL prefixes are read
        dir_resolve: How entry directory roots are read
    """

    def __init__(
        self,
        cache_max_age: int = 300,
        default_filename: Optional[str] = None,
        url_resolve: PathResolve = PathResolve.RELATIVE,
        dir_resolve: PathResolve = PathResolve.RELATIVE,
    ):
        self._cache_max_age = cache_max_age
        self._url_resolve = url_resolve
        self._dir_resolve = dir_resolve
        self._entries: List[StaticEntry] = []
        self._default_filenames: List[str] = []

        if default_filename:
            self.add_default_filename(default_filename)

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    def add_entry(self, url_prefix: str, dir_root: str = "") -> "StaticFileInterceptor":
        """
        Append a prefix → directory mapping. Paths are not checked here;
        a missing directory just means 404s later.
        """
        self._entries.append(StaticEntry(url_prefix, dir_root))
        logger.debug(f"Static entry: {url_prefix!r} -> {dir_root!r}")
        return self

    def add_default_filename(self, name: str) -> "StaticFileInterceptor":
        """Append a directory default filename; adding one twice is a no-op."""
        if name not in self._default_filenames:
            self._default_filenames.append(name)
        return self

    def add_default_filenames(self, names: Iterable[str]) -> "StaticFileInterceptor":
        for name in names:
            self.add_default_filename(name)
        return self

    @property
    def entries(self) -> tuple[StaticEntry, ...]:
        return tuple(self._entries)

    @property
    def default_filenames(self) -> tuple[str, ...]:
        return tuple(self._default_filenames)

    @property
    def cache_max_age(self) -> int:
        return self._cache_max_age

    @property
    def url_resolve(self) -> PathResolve:
        return self._url_resolve

    @property
    def dir_resolve(self) -> PathResolve:
        return self._dir_resolve

    # =========================================================================
    # REQUEST PHASE
    # =========================================================================

    def on_request(self, ctx: "Context") -> None:
        if ctx.request.method != "GET":
            ctx.proceed()
            return

        file = self.resolve(ctx.request.path, ctx.app)
        if file is None:
            ctx.proceed()
            return

        logger.debug(f"[{ctx.request_id}] {ctx.request.path} claimed as {file!r}")
        ctx.static_file = Claimed(file)
        ctx.stop()

    def resolve(self, url: str, app: "Application") -> Optional[str]:
        """
        Candidate filesystem path for *url*, or None if no entry matches.
        """
        for entry in self._entries:
            if self._url_resolve is PathResolve.RELATIVE:
                prefix = app.url_root + entry.url_prefix
            else:
                prefix = entry.url_prefix

            if url[:len(prefix)].lower() != prefix.lower():
                continue

            if self._dir_resolve is PathResolve.RELATIVE:
                dir_root = app.static_root_path + entry.dir_root
            else:
                dir_root = entry.dir_root

            return _join(dir_root, url[len(prefix):])

        return None

    # =========================================================================
    # RESPONSE PHASE
    # =========================================================================

    def on_response(self, ctx: "Context") -> None:
        claim = ctx.static_file
        if not isinstance(claim, Claimed):
            ctx.proceed()
            return

        if not claim.file:
            ctx.render_bad_request()
            ctx.stop()
            return

        try:
            file = self._find_existing(claim.file)
        except (OSError, ValueError) as e:
            logger.error(f"[{ctx.request_id}] Error checking {claim.file!r}: {e}")
            ctx.render_internal_server_error()
            ctx.proceed()
            return

        if file is None:
            ctx.render_not_found()
            ctx.proceed()
            return

        try:
            f = open(file, "rb")
        except OSError as e:
            logger.error(f"[{ctx.request_id}] Error opening {file!r}: {e}")
            ctx.render_internal_server_error()
            ctx.proceed()
            return

        with f:
            content_type = get_content_type(extension_of(file))
            if content_type:
                ctx.response.set_content_type(content_type)
            ctx.response.cache_control_max_age(self._cache_max_age)

            ctx.start_chunked_response()
            self._stream(ctx, f, file)

        ctx.static_file = UNCLAIMED
        ctx.stop_chunked_response()
        ctx.proceed()

    def _find_existing(self, file: str) -> Optional[str]:
        """
        The file to serve: *file* itself, or *file* + a default filename
        when *file* names a directory. None if nothing exists.
        """
        if _has_filename(file):
            return file if _exists(file) else None

        for name in self._default_filenames:
            candidate = os.path.join(file, name)
            if _has_filename(candidate) and _exists(candidate):
                return candidate
        return None

    @staticmethod
    def _stream(ctx: "Context", f, file: str) -> None:
        buffer = bytearray()
        while True:
            try:
                data = f.read(READ_BUFFER_SIZE)
            except OSError as e:
                logger.error(f"[{ctx.request_id}] Error reading {file!r}: {e}")
                break
            if not data:
                break

            buffer += data
            if len(buffer) > CHUNK_FLUSH_THRESHOLD:
                ctx.continue_chunked_response(bytes(buffer))
                buffer.clear()

        if buffer:
            ctx.continue_chunked_response(bytes(buffer))


def _join(dir_root: str, remainder: str) -> str:
    """
    Append the URL remainder to a directory root with exactly one "/"
    between them. An empty remainder names the directory itself.
    """
    if not dir_root:
        return remainder
    if not remainder:
        return dir_root if dir_root.endswith("/") else dir_root + "/"
    if dir_root.endswith("/"):
        return dir_root + remainder.lstrip("/")
    if remainder.startswith("/"):
        return dir_root + remainder
    return dir_root + "/" + remainder


def _has_filename(path: str) -> bool:
    # pathlib would drop the trailing separator, so stay on strings
    return os.path.basename(path) not in ("", ".")


def _exists(path: str) -> bool:
    """os.path.exists that lets anything but 'not there' raise."""
    try:
        os.stat(path)
    except (FileNotFoundError, NotADirectoryError):
        return False
    return True
