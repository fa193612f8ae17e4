"""
Chunked response writers.

A ChunkedWriter is where ``Context.continue_chunked_response()`` ends up.
The server hands each request a SocketChunkedWriter bound to its
connection; without one (unit tests, embedding) the Context falls back to
a BufferedChunkedWriter that records the segments on the response.

    Context.start_chunked_response()    → writer.start(response)
    Context.continue_chunked_response() → writer.write(data)
    Context.stop_chunked_response()     → writer.finish()
"""

from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional
import logging

from .response import HTTPResponse, LAST_CHUNK, encode_chunk


logger = logging.getLogger(__name__)


class ChunkedWriter(ABC):
    """Base writer; keeps the counters the access log reports."""

    def __init__(self):
        self.started = False
        self.finished = False
        self.segments = 0
        self.bytes_written = 0
        self._response: Optional[HTTPResponse] = None

    def start(self, response: HTTPResponse) -> None:
        if self.started:
            raise RuntimeError("chunked response already started")
        response.start_chunked()
        self._response = response
        self.started = True
        self._start(response)

    def write(self, data: bytes) -> None:
        if not self.started or self.finished:
            raise RuntimeError("chunked response is not open")
        if not data:
            return
        self._write(data)
        self.segments += 1
        self.bytes_written += len(data)

    def finish(self) -> None:
        if not self.started or self.finished:
            raise RuntimeError("chunked response is not open")
        self._finish()
        self.finished = True

    @abstractmethod
    def _start(self, response: HTTPResponse) -> None:
        ...

    @abstractmethod
    def _write(self, data: bytes) -> None:
        ...

    @abstractmethod
    def _finish(self) -> None:
        ...


class BufferedChunkedWriter(ChunkedWriter):
    """Records segments in ``response.chunks``; nothing touches the network."""

    def _start(self, response: HTTPResponse) -> None:
        pass

    def _write(self, data: bytes) -> None:
        self._response.chunks.append(bytes(data))

    def _finish(self) -> None:
        pass


class SocketChunkedWriter(ChunkedWriter):
    """
    Streams straight to a connection.

    Args:
        send: Callable taking bytes and returning False when the peer is
              gone (``Connection.send_response``)
        server_name: Value of the Server header
        extra_headers: Headers merged into the head without overriding
                       ones the pipeline set (Connection, Keep-Alive)
    """

    def __init__(
        self,
        send: Callable[[bytes], bool],
        server_name: str = "webpipe/1.0",
        extra_headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__()
        self._send = send
        self._server_name = server_name
        self._extra_headers = extra_headers or {}

    def _start(self, response: HTTPResponse) -> None:
        for name, value in self._extra_headers.items():
            response.headers.setdefault(name, value)
        self._send_or_raise(response.head_bytes(self._server_name))

    def _write(self, data: bytes) -> None:
        self._send_or_raise(encode_chunk(data))

    def _finish(self) -> None:
        self._send_or_raise(LAST_CHUNK)

    def _send_or_raise(self, data: bytes) -> None:
        if not self._send(data):
            logger.debug("Peer went away during chunked response")
            raise ConnectionError("client disconnected during chunked response")
