"""
=============================================================================
webpipe
=============================================================================

A threaded HTTP/1.1 server whose requests flow through a two-phase
interceptor pipeline, with a static file interceptor that maps URL
prefixes onto directories and streams files in bounded chunks.

=============================================================================
ARCHITECTURE
=============================================================================

    ┌────────────────────────────────────────────────────────────────────┐
    │ core/          SocketServer ─► ThreadPool ─► Connection            │
    ├────────────────────────────────────────────────────────────────────┤
    │ server.py      parse, build Context, run Application, send         │
    ├────────────────────────────────────────────────────────────────────┤
    │ application.py url_root, static_root_path, router, pipeline        │
    │ context.py     per-request state, pass/stop, chunked streaming     │
    ├────────────────────────────────────────────────────────────────────┤
    │ interceptors/  AccessLogInterceptor, StaticFileInterceptor         │
    ├────────────────────────────────────────────────────────────────────┤
    │ http/          request, response, chunk writers, MIME, router      │
    └────────────────────────────────────────────────────────────────────┘

=============================================================================
QUICK START
=============================================================================

    from webpipe import Application, HTTPServer, ServerConfig
    from webpipe.interceptors import AccessLogInterceptor, StaticFileInterceptor
    from webpipe.http import ok

    app = Application(static_root_path="/srv/www/")
    app.intercept(AccessLogInterceptor())
    app.intercept(StaticFileInterceptor(cache_max_age=3600)
        .add_entry("/static", "assets")
        .add_default_filename("index.html"))

    @app.get("/api/ping")
    def ping(request):
        return ok({"pong": True})

    HTTPServer(ServerConfig(port=8000), app).run()

=============================================================================
"""

__version__ = "1.0.0"

from .application import Application
from .config import ServerConfig
from .context import Context, Claimed, UNCLAIMED
from .server import HTTPServer, create_app

__all__ = [
    "Application",
    "Context",
    "Claimed",
    "UNCLAIMED",
    "HTTPServer",
    "ServerConfig",
    "create_app",
    "__version__",
]
