"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the pieces together: SocketServer accepts, ThreadPool runs one task
per connection, RequestParser parses, the Application runs its two-phase
interceptor pipeline around the router, and the result goes back over the
same Connection.

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    1. accept                      SocketServer
    2. queue                       ThreadPool.submit(_process_connection)
    3. read + parse                Connection.read_request, RequestParser
    4. build Context               request, app, SocketChunkedWriter(conn)
    5. request phase               interceptors in order; a stop skips 6
    6. route                       Router.handle
    7. response phase              interceptors in reverse order
    8. send                        buffered: response.to_bytes()
                                   streamed: already on the wire
    9. keep-alive or close

Step 8 is where static files differ: the static file interceptor writes
the head and every chunk during step 7, so there is nothing left to send.

=============================================================================
ERRORS
=============================================================================

    HTTPParseError          → its status code, connection closed
    first read timed out    → 408, connection closed
    handler / interceptor   → logged with traceback; 500 if nothing was
      raised                  streamed yet, otherwise the connection is
                              dropped (the head is already out)
    peer disconnected       → connection closed

=============================================================================
"""

import logging
from typing import Optional, Dict

from .application import Application
from .config import ServerConfig
from .context import Context
from .core import SocketServer, Connection, ThreadPool
from .http import (
    HTTPRequest, RequestParser, HTTPParseError,
    HTTPStatus, ResponseBuilder, SocketChunkedWriter,
)
from .interceptors import Interceptor, AccessLogInterceptor


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    Threaded HTTP/1.1 server running an Application.

        app = Application()
        app.intercept(AccessLogInterceptor())
        app.intercept(StaticFileInterceptor().add_entry("/", "public/"))

        HTTPServer(ServerConfig(port=8000), app).run()

    Without an app, an empty one is built from the config's url_root and
    static_root.
    """

    def __init__(self, config: Optional[ServerConfig] = None, app: Optional[Application] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self.app = app or Application(
            url_root=self.config.url_root,
            static_root_path=self.config.static_root,
        )

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
        )
        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._running = False

    def use(self, interceptor: Interceptor) -> "HTTPServer":
        """Append an interceptor to the application's pipeline."""
        self.app.intercept(interceptor)
        return self

    @property
    def router(self):
        return self.app.router

    def route(self, path: str, method: Optional[str] = None):
        return self.app.route(path, method)

    def get(self, path: str):
        return self.app.get(path)

    def post(self, path: str):
        return self.app.post(path)

    @property
    def is_running(self) -> bool:
        return self._running

    def run(self, host: Optional[str] = None, port: Optional[int] = None):
        """Serve until SIGINT/SIGTERM or shutdown(). Blocks."""
        if host:
            self.config.host = host
        if port:
            self.config.port = port

        self._running = True
        self._setup_logging()
        self._thread_pool.start()

        logger.info(
            f"Starting {self.config.server_name} on {self.config.host}:{self.config.port} "
            f"({self.app!r})"
        )

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """Ask a running server to stop; run() returns once workers drain."""
        self._socket_server.shutdown()

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("webpipe").setLevel(level)

    def _shutdown(self):
        logger.info(f"Shutting down server... (pool: {self._thread_pool.stats})")
        self._running = False
        self._thread_pool.shutdown(wait=True, timeout=30.0)
        logger.info("Server stopped")

    def _handle_connection(self, conn: Connection):
        submitted = self._thread_pool.submit(
            self._process_connection,
            args=(conn,),
            timeout=self.config.timeout,
            block=False,
        )
        if not submitted:
            logger.warning(f"[{conn.id}] Thread pool full, rejecting connection")
            self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded")
            conn.close()

    def _process_connection(self, conn: Connection):
        """Keep-alive loop for one connection (worker thread)."""
        with conn:
            while self._running:
                try:
                    raw_request = conn.read_request()
                    if raw_request is None:
                        break

                    try:
                        request = self._parser.parse(raw_request, conn.address)
                    except HTTPParseError as e:
                        self._send_error(conn, HTTPStatus(e.status_code), str(e))
                        break

                    if not self._serve(conn, request):
                        break

                    if not self._keep_alive(request):
                        break
                    conn.set_keep_alive()

                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
                    break
                except ValueError as e:
                    logger.warning(f"[{conn.id}] {e}")
                    self._send_error(conn, HTTPStatus.PAYLOAD_TOO_LARGE, str(e))
                    break
                except ConnectionError as e:
                    logger.debug(f"[{conn.id}] Client went away: {e}")
                    break

    def _serve(self, conn: Connection, request: HTTPRequest) -> bool:
        """
        Run one request through the application and make sure a complete
        response went out.

        Returns:
            False if the connection must be closed
        """
        connection_headers = self._connection_headers(request)
        writer = SocketChunkedWriter(
            conn.send_response,
            server_name=self.config.server_name,
            extra_headers=connection_headers,
        )
        ctx = Context(request, self.app, writer=writer)

        try:
            response = self.app.handle(ctx)
        except ConnectionError:
            raise
        except Exception as e:
            logger.exception(f"[{conn.id}] Handler error: {e}")
            if ctx.streamed:
                return False
            response = (ResponseBuilder()
                .status(HTTPStatus.INTERNAL_SERVER_ERROR)
                .json({"error": "Internal Server Error"})
                .build())

        if ctx.streamed:
            return writer.finished

        for name, value in connection_headers.items():
            response.headers.setdefault(name, value)
        return conn.send_response(response.to_bytes(self.config.server_name))

    def _keep_alive(self, request: HTTPRequest) -> bool:
        return request.is_keep_alive and self.config.keep_alive

    def _connection_headers(self, request: HTTPRequest) -> Dict[str, str]:
        if self._keep_alive(request):
            return {
                "Connection": "keep-alive",
                "Keep-Alive": f"timeout={int(self.config.keep_alive_timeout)}",
            }
        return {"Connection": "close"}

    def _send_error(self, conn: Connection, status: HTTPStatus, message: str):
        """Error page for failures outside the pipeline; always closes."""
        response = (ResponseBuilder()
            .status(status)
            .header("Connection", "close")
            .json({"error": message})
            .build())
        conn.send_response(response.to_bytes(self.config.server_name))


def create_app(config: Optional[ServerConfig] = None) -> HTTPServer:
    """
    Server with the stock pipeline for *config*: access log first, then
    the static file interceptor when ``static_dir`` is set.
    """
    config = config or ServerConfig()
    app = Application(url_root=config.url_root, static_root_path=config.static_root)
    app.intercept(AccessLogInterceptor(log_format=config.log_format))

    static = config.build_static_interceptor()
    if static is not None:
        app.intercept(static)

    return HTTPServer(config, app)
