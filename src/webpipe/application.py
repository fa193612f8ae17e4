"""
The Application: root paths, router and interceptor pipeline.

    app = Application(url_root="/shop", static_root_path="/srv/shop/")
    app.intercept(AccessLogInterceptor())
    app.intercept(StaticFileInterceptor().add_entry("/assets", "public"))

    @app.get("/api/health")
    def health(request):
        return ok({"status": "ok"})

Routes registered on the application live under ``url_root``, the same
root that RELATIVE static prefixes are joined onto.
"""

from typing import Callable, Optional, TYPE_CHECKING
import logging

from .http.response import HTTPResponse
from .http.router import Router, Handler
from .interceptors.base import Interceptor, InterceptorPipeline

if TYPE_CHECKING:
    from .context import Context


logger = logging.getLogger(__name__)


class Application:
    """
    Args:
        url_root: URL path the application is mounted at ("" for "/")
        static_root_path: Filesystem directory RELATIVE static entries are
                          joined onto, including its trailing separator
    """

    def __init__(self, url_root: str = "", static_root_path: str = ""):
        self._url_root = url_root
        self._static_root_path = static_root_path
        self.router = Router(prefix=url_root)
        self.pipeline = InterceptorPipeline()

    @property
    def url_root(self) -> str:
        return self._url_root

    @property
    def static_root_path(self) -> str:
        return self._static_root_path

    def intercept(self, interceptor: Interceptor) -> "Application":
        self.pipeline.add(interceptor)
        return self

    def handle(self, ctx: "Context") -> HTTPResponse:
        """Run both pipeline phases for *ctx* with the router as final handler."""
        return self.pipeline.run(ctx, self.router.handle)

    def route(self, path: str, method: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.router.route(path, method)

    def get(self, path: str) -> Callable[[Handler], Handler]:
        return self.router.get(path)

    def post(self, path: str) -> Callable[[Handler], Handler]:
        return self.router.post(path)

    def __repr__(self) -> str:
        return (
            f"Application(url_root={self._url_root!r}, "
            f"static_root_path={self._static_root_path!r}, "
            f"interceptors={len(self.pipeline)})"
        )
