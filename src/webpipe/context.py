"""
=============================================================================
REQUEST CONTEXT
=============================================================================

One Context per request. It is what every interceptor receives, in both
phases, and it carries everything that has to survive from the request
phase to the response phase.

    ┌───────────────────────────────────────────────────────────────────┐
    │ Context                                                           │
    ├───────────────────────────────────────────────────────────────────┤
    │ request        parsed HTTPRequest (read-only by convention)       │
    │ response       HTTPResponse being built, replaced by render_*()   │
    │ app            the Application (url_root, static_root_path)       │
    │ static_file    UNCLAIMED | Claimed(file)                          │
    │ control        PASS / STOP for the phase currently running        │
    │ writer         where chunked segments go                          │
    └───────────────────────────────────────────────────────────────────┘

=============================================================================
STATIC FILE CLAIM
=============================================================================

The static file interceptor decides in the request phase and does the
I/O in the response phase. The decision travels on a typed field, never
through a string-keyed bag:

    request phase            response phase
    ─────────────            ──────────────
    UNCLAIMED ──match──► Claimed("/srv/www/css/a.css") ──streamed──► UNCLAIMED
        │                        │
        no match                 400 / 404 / 500: left as is, the context
        │                        dies with the request
        ▼
    UNCLAIMED (router runs)

=============================================================================
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union, TYPE_CHECKING
import time
import uuid

from .http.request import HTTPRequest
from .http.response import HTTPResponse, bad_request, not_found, internal_error
from .http.chunked import ChunkedWriter, BufferedChunkedWriter

if TYPE_CHECKING:
    from .application import Application


class Control(Enum):
    """Outcome of one interceptor call."""

    PASS = "pass"
    STOP = "stop"


class _Unclaimed:
    """No static file interceptor has claimed the request."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNCLAIMED"

    def __bool__(self) -> bool:
        return False


UNCLAIMED = _Unclaimed()


@dataclass(frozen=True)
class Claimed:
    """
    The request was claimed for static serving.

    ``file`` is the candidate filesystem path built at claim time; it may
    still be a directory (ends with "/") awaiting a default filename, or
    may not exist at all.
    """

    file: str


StaticFileState = Union[_Unclaimed, Claimed]


class Context:
    """
    Per-request state shared by the interceptors and the final handler.

    Args:
        request: The parsed request
        app: Owning application; interceptors read its root paths
        writer: Chunked sink; defaults to a BufferedChunkedWriter that
                records segments on ``response.chunks``
    """

    def __init__(
        self,
        request: HTTPRequest,
        app: "Application",
        writer: Optional[ChunkedWriter] = None,
    ):
        self.request = request
        self.app = app
        self.response = HTTPResponse()
        self.static_file: StaticFileState = UNCLAIMED

        self.request_id = str(uuid.uuid4())[:8]
        self.started_at = time.perf_counter()

        self._writer = writer or BufferedChunkedWriter()
        self._control = Control.PASS

    # =========================================================================
    # PIPELINE CONTROL
    # =========================================================================

    def proceed(self) -> None:
        """Let the rest of the current phase run."""
        self._control = Control.PASS

    def stop(self) -> None:
        """Halt the current phase. Stopping the request phase skips routing."""
        self._control = Control.STOP

    def reset_control(self) -> None:
        self._control = Control.PASS

    @property
    def control(self) -> Control:
        return self._control

    @property
    def stopped(self) -> bool:
        return self._control is Control.STOP

    # =========================================================================
    # ERROR RENDERING
    # =========================================================================

    def render_bad_request(self, message: str = "Bad Request") -> None:
        self.response = bad_request(message)

    def render_not_found(self, message: str = "Not Found") -> None:
        self.response = not_found(message)

    def render_internal_server_error(self, message: str = "Internal Server Error") -> None:
        self.response = internal_error(message)

    # =========================================================================
    # CHUNKED STREAMING
    # =========================================================================

    def start_chunked_response(self) -> None:
        """Send (or record) the response head with Transfer-Encoding: chunked."""
        self._writer.start(self.response)

    def continue_chunked_response(self, data: bytes) -> None:
        self._writer.write(data)

    def stop_chunked_response(self) -> None:
        """Terminate the body with the last-chunk marker."""
        self._writer.finish()

    @property
    def streamed(self) -> bool:
        """True once a chunked response head has gone out."""
        return self._writer.started

    @property
    def chunk_count(self) -> int:
        return self._writer.segments

    @property
    def bytes_sent(self) -> int:
        """Payload bytes of the response, streamed or buffered."""
        if self.streamed:
            return self._writer.bytes_written
        return len(self.response.body)

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.started_at) * 1000
