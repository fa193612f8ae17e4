"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Bytes in, bytes out. Nothing in here knows about interceptors.

    ┌──────────────────┬──────────────────────────────────────────────────┐
    │ request.py       │ raw bytes → HTTPRequest (HTTPParseError on bad)  │
    │ response.py      │ HTTPResponse, builder, error shortcuts, chunk    │
    │                  │ framing (encode_chunk, LAST_CHUNK)               │
    │ chunked.py       │ where streamed segments go (socket or buffer)    │
    │ mime_types.py    │ extension → Content-Type ("" when unknown)       │
    │ status_codes.py  │ HTTPStatus with reason phrases                   │
    │ router.py        │ final handler for requests nobody claimed        │
    └──────────────────┴──────────────────────────────────────────────────┘

=============================================================================
"""

from .request import HTTPRequest, HTTPParseError, RequestParser, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    LAST_CHUNK,
    encode_chunk,
    ok,
    redirect,
    bad_request,
    not_found,
    method_not_allowed,
    internal_error,
)
from .chunked import ChunkedWriter, BufferedChunkedWriter, SocketChunkedWriter
from .status_codes import HTTPStatus
from .mime_types import get_mime_type, get_content_type
from .router import Router, Route, RouteMatch

__all__ = [
    "HTTPRequest",
    "HTTPParseError",
    "RequestParser",
    "parse_request",
    "HTTPResponse",
    "ResponseBuilder",
    "LAST_CHUNK",
    "encode_chunk",
    "ok",
    "redirect",
    "bad_request",
    "not_found",
    "method_not_allowed",
    "internal_error",
    "ChunkedWriter",
    "BufferedChunkedWriter",
    "SocketChunkedWriter",
    "HTTPStatus",
    "get_mime_type",
    "get_content_type",
    "Router",
    "Route",
    "RouteMatch",
]
