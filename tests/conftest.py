"""
pytest configuration and fixtures.
"""

import socket
import threading
import time
from pathlib import Path
from typing import Generator, Optional
import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from webpipe import Application, HTTPServer, ServerConfig
from webpipe.http import HTTPRequest


BIG_FILE_SIZE = 300_000


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /api/users?page=1&limit=10 HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: application/json\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with JSON body."""
    body = b'{"name": "John", "email": "john@example.com"}'
    return (
        b"POST /api/users HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: application/json\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"Connection: close\r\n"
        + b"\r\n"
    ) + body


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def config(free_port: int) -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=free_port,
        min_workers=2,
        max_workers=4,
        timeout=5.0,
        log_level="WARNING",
    )


@pytest.fixture
def static_site(tmp_path: Path) -> Path:
    """
    A small site on disk:

        site/
          index.html
          about.txt
          empty.css            (0 bytes)
          data.xyz             (unknown extension)
          big.bin              (300 000 bytes)
          docs/index.html
          docs/guide/intro.html
          nodefault/readme.md
    """
    root = tmp_path / "site"
    (root / "docs" / "guide").mkdir(parents=True)
    (root / "nodefault").mkdir()

    (root / "index.html").write_bytes(b"<h1>home</h1>")
    (root / "about.txt").write_bytes(b"about us")
    (root / "empty.css").write_bytes(b"")
    (root / "data.xyz").write_bytes(b"opaque")
    (root / "big.bin").write_bytes(bytes(i % 251 for i in range(BIG_FILE_SIZE)))
    (root / "docs" / "index.html").write_bytes(b"<h1>docs</h1>")
    (root / "docs" / "guide" / "intro.html").write_bytes(b"<p>intro</p>")
    (root / "nodefault" / "readme.md").write_bytes(b"# readme")
    return root


@pytest.fixture
def site_app(static_site: Path) -> Application:
    """Application whose static root is the test site (with trailing slash)."""
    return Application(url_root="", static_root_path=str(static_site) + "/")


class LiveServer:
    """Runs an HTTPServer in a background thread."""

    def __init__(self, server: HTTPServer, port: int):
        self.server = server
        self.port = port
        self._thread: Optional[threading.Thread] = None

    def start(self):
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"port": self.port},
            daemon=True,
        )
        self._thread.start()

        # Wait for server to be ready
        for _ in range(50):
            try:
                with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                    s.connect(("127.0.0.1", self.port))
                    return
            except ConnectionRefusedError:
                time.sleep(0.1)

        raise RuntimeError("Server failed to start")

    def stop(self):
        if self.server.is_running:
            self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def live_server(config: ServerConfig, static_site: Path) -> Generator[LiveServer, None, None]:
    """Server with access log, static files under /static and one API route."""
    from webpipe.server import create_app
    from webpipe.http import ok

    config.static_root = str(static_site)
    config.static_dir = ""
    config.static_url_prefix = "/static"
    config.index_files = ["index.html"]
    config.static_cache_max_age = 60

    server = create_app(config)

    @server.get("/api/ping")
    def ping(request: HTTPRequest):
        return ok({"pong": True})

    srv = LiveServer(server, config.port)
    srv.start()

    yield srv

    srv.stop()
