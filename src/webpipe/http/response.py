"""
=============================================================================
HTTP RESPONSE
=============================================================================

HTTPResponse holds what goes back to the client; ResponseBuilder and the
shortcut functions at the bottom build the common ones.

=============================================================================
TWO WAYS A BODY LEAVES THE SERVER
=============================================================================

1. BUFFERED (router handlers, error pages)

       HTTP/1.1 404 Not Found\\r\\n
       Content-Type: application/json; charset=utf-8\\r\\n
       Content-Length: 21\\r\\n            ← computed from body
       \\r\\n
       {"error": "Not Found"}

2. CHUNKED (static files)

   The body is not known up front. The head goes out first with
   Transfer-Encoding instead of Content-Length, then each segment is
   framed with its size in hex:

       HTTP/1.1 200 OK\\r\\n
       Content-Type: text/css; charset=utf-8\\r\\n
       Cache-Control: public, max-age=300\\r\\n
       Transfer-Encoding: chunked\\r\\n
       \\r\\n
       20800\\r\\n                         ← 133120 bytes follow
       <133120 bytes>\\r\\n
       1a2\\r\\n
       <418 bytes>\\r\\n
       0\\r\\n                             ← last chunk
       \\r\\n

   A zero-byte file is just the head followed by "0\\r\\n\\r\\n".

   Segments are sent by a ChunkedWriter (see http/chunked.py). When no
   socket is attached they are recorded in ``HTTPResponse.chunks`` and
   to_bytes() frames them, which is what the unit tests look at.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List, Union
import json

from .status_codes import HTTPStatus


LAST_CHUNK = b"0\r\n\r\n"


def encode_chunk(data: bytes) -> bytes:
    """Frame one chunk: hex size, CRLF, payload, CRLF."""
    return b"%x\r\n" % len(data) + data + b"\r\n"


@dataclass
class HTTPResponse:
    """
    An HTTP response.

    ``chunked`` switches serialization to Transfer-Encoding: chunked;
    ``chunks`` holds the segments recorded while no socket is attached.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    chunked: bool = False
    chunks: List[bytes] = field(default_factory=list)

    @property
    def status_line(self) -> str:
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    @property
    def body_length(self) -> int:
        """Bytes of payload, counting recorded chunks for chunked responses."""
        if self.chunked:
            return sum(len(chunk) for chunk in self.chunks)
        return len(self.body)

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        self.headers[name] = value
        return self

    def set_content_type(self, content_type: str) -> "HTTPResponse":
        return self.set_header("Content-Type", content_type)

    def cache_control_max_age(self, seconds: int) -> "HTTPResponse":
        """Allow any cache to keep this response for *seconds*."""
        return self.set_header("Cache-Control", f"public, max-age={seconds}")

    def start_chunked(self) -> "HTTPResponse":
        """Switch to chunked transfer encoding; any buffered body is dropped."""
        self.chunked = True
        self.body = b""
        self.chunks = []
        self.headers.pop("Content-Length", None)
        self.headers["Transfer-Encoding"] = "chunked"
        return self

    def head_bytes(self, server_name: str = "webpipe/1.0") -> bytes:
        """
        Serialize the status line and headers, up to and including the
        blank line.

        Content-Length is filled in for buffered responses only. Date and
        Server are added unless already set.
        """
        response_headers = dict(self.headers)

        if not self.chunked and "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(len(self.body))
        if "Date" not in response_headers:
            response_headers["Date"] = format_http_date(datetime.now(timezone.utc))
        if "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        lines.extend(f"{name}: {value}" for name, value in response_headers.items())
        lines.append("")
        return "\r\n".join(lines).encode("utf-8") + b"\r\n"

    def to_bytes(self, server_name: str = "webpipe/1.0") -> bytes:
        head = self.head_bytes(server_name)
        if self.chunked:
            return head + b"".join(encode_chunk(c) for c in self.chunks) + LAST_CHUNK
        return head + self.body


class ResponseBuilder:
    """
    Fluent builder for buffered responses.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .json({"status": "ok"})
            .cache(max_age=60)
            .build())
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def text(self, text: str, content_type: str = "text/plain; charset=utf-8") -> "ResponseBuilder":
        self._body = text.encode("utf-8")
        self._headers["Content-Type"] = content_type
        return self

    def html(self, html: str) -> "ResponseBuilder":
        return self.text(html, "text/html; charset=utf-8")

    def json(self, data: Any, pretty: bool = False) -> "ResponseBuilder":
        indent = 2 if pretty else None
        self._body = json.dumps(data, indent=indent, ensure_ascii=False).encode("utf-8")
        self._headers["Content-Type"] = "application/json; charset=utf-8"
        return self

    def redirect(self, location: str, permanent: bool = False) -> "ResponseBuilder":
        """301 when *permanent*, otherwise 302, with a Location header."""
        self._status = HTTPStatus.MOVED_PERMANENTLY if permanent else HTTPStatus.FOUND
        self._headers["Location"] = location
        return self

    def cache(self, max_age: int = 3600) -> "ResponseBuilder":
        self._headers["Cache-Control"] = f"public, max-age={max_age}"
        return self

    def no_cache(self) -> "ResponseBuilder":
        self._headers["Cache-Control"] = "no-store, no-cache, must-revalidate"
        self._headers["Pragma"] = "no-cache"
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
        )


def format_http_date(dt: datetime) -> str:
    """
    Format a UTC datetime as an HTTP-date, e.g. ``Thu, 15 Jan 2026 12:30:45 GMT``.
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# SHORTCUTS
# =============================================================================
#
# Error shortcuts all answer with {"error": message} so clients can tell
# a webpipe error page from a served file.
#
# =============================================================================

def ok(body: Union[str, bytes, dict, list] = "", content_type: Optional[str] = None) -> HTTPResponse:
    """
    200 OK. dict/list bodies become JSON, str becomes text/plain, bytes are
    sent as-is with *content_type* if given.
    """
    builder = ResponseBuilder().status(HTTPStatus.OK)
    if isinstance(body, (dict, list)):
        builder.json(body)
    elif isinstance(body, str):
        builder.text(body, content_type or "text/plain; charset=utf-8")
    else:
        builder.body(body)
        if content_type:
            builder.content_type(content_type)
    return builder.build()


def redirect(location: str, permanent: bool = False) -> HTTPResponse:
    return ResponseBuilder().redirect(location, permanent).build()


def error_response(status: HTTPStatus, message: Optional[str] = None) -> HTTPResponse:
    return ResponseBuilder().status(status).json({"error": message or status.phrase}).build()


def bad_request(message: str = "Bad Request") -> HTTPResponse:
    return error_response(HTTPStatus.BAD_REQUEST, message)


def not_found(message: str = "Not Found") -> HTTPResponse:
    return error_response(HTTPStatus.NOT_FOUND, message)


def method_not_allowed(allowed_methods: list[str]) -> HTTPResponse:
    """405 with the Allow header the RFC requires."""
    return (ResponseBuilder()
        .status(HTTPStatus.METHOD_NOT_ALLOWED)
        .header("Allow", ", ".join(allowed_methods))
        .json({"error": "Method Not Allowed", "allowed": allowed_methods})
        .build())


def internal_error(message: str = "Internal Server Error") -> HTTPResponse:
    return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, message)
