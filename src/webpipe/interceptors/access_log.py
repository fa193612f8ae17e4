"""
=============================================================================
ACCESS LOG INTERCEPTOR
=============================================================================

Writes one line per request to the "webpipe.access" logger.

Register it FIRST. The response phase runs in reverse order, so the first
interceptor is the last one called and sees the final outcome, including
the 404/500 pages and the byte counts of streamed static files:

    app.intercept(AccessLogInterceptor())     # sees everything
    app.intercept(StaticFileInterceptor(...))

    127.0.0.1 - - [19/Oct/2026:10:01:02 +0000] "GET /static/app.js" 200 48213 3.12ms chunks=1

=============================================================================
"""

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING
import json
import time
import logging

from .base import Interceptor

if TYPE_CHECKING:
    from ..context import Context


logger = logging.getLogger("webpipe.access")


@dataclass
class RequestLog:
    """One access log entry."""

    request_id: str
    method: str
    path: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    chunks: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "method": self.method,
            "path": self.path,
            "client_ip": self.client_ip,
            "user_agent": self.user_agent,
            "status_code": self.status_code,
            "content_length": self.content_length,
            "chunks": self.chunks,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp,
        }

    def to_text(self) -> str:
        """Apache-style line with duration and chunk count appended."""
        text = (
            f'{self.client_ip or "-"} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )
        if self.chunks:
            text += f" chunks={self.chunks}"
        return text


class AccessLogInterceptor(Interceptor):
    """
    Args:
        log_format: "text" (Apache style) or "json"
        include_request_id: Add X-Request-ID to buffered responses. Streamed
                            responses already sent their head, so they
                            only carry the id in the log line.
        log_level: Level for successful requests; 4xx/5xx go out as WARNING
                   when that is higher
        skip_paths: Paths never logged
    """

    def __init__(
        self,
        log_format: str = "text",
        include_request_id: bool = True,
        log_level: int = logging.INFO,
        skip_paths: Optional[list[str]] = None,
    ):
        self.log_format = log_format
        self.include_request_id = include_request_id
        self.log_level = log_level
        self.skip_paths = set(skip_paths or [])

    def on_request(self, ctx: "Context") -> None:
        ctx.proceed()

    def on_response(self, ctx: "Context") -> None:
        request = ctx.request
        response = ctx.response

        if self.include_request_id and not ctx.streamed:
            response.headers["X-Request-ID"] = ctx.request_id

        if request.path in self.skip_paths:
            ctx.proceed()
            return

        entry = RequestLog(
            request_id=ctx.request_id,
            method=request.method,
            path=request.path,
            client_ip=request.client_address[0],
            user_agent=request.user_agent or "-",
            status_code=int(response.status),
            content_length=ctx.bytes_sent,
            chunks=ctx.chunk_count,
            duration_ms=ctx.elapsed_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        level = self.log_level
        if entry.status_code >= 400:
            level = max(level, logging.WARNING)

        if self.log_format == "json":
            logger.log(level, json.dumps(entry.to_dict()))
        else:
            logger.log(level, entry.to_text())

        ctx.proceed()
