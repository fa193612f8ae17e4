"""
=============================================================================
INTERCEPTOR BASE CLASS AND PIPELINE
=============================================================================

An interceptor is called twice per request: once before routing and once
before the response goes out. Each call ends with ctx.proceed() (pass)
or ctx.stop().

=============================================================================
TWO-PHASE EXECUTION
=============================================================================

    pipeline.use(AccessLog(), StaticFiles(), Auth())

    REQUEST PHASE (insertion order)
        AccessLog  ── pass ──►
        StaticFiles ── stop ─┐         (claimed a file)
        Auth         skipped │
        ROUTER       skipped │
                             ▼
    RESPONSE PHASE (reverse order)
        Auth        ── pass ──►
        StaticFiles ── pass ──►        (streamed the file)
        AccessLog   ── pass ──►        (logs 200, bytes sent)

A stop only ends the phase it happens in. The response phase always runs,
which is how the static file interceptor gets its second call even though
it stopped the request phase.

=============================================================================
INTERVIEW QUESTIONS ABOUT THE PIPELINE
=============================================================================

Q: "Why not wrap handlers like classic middleware (request, next)?"
A: "A stage that claims a request must not let routing run, but still
   needs a hook after every other stage had its say. Two explicit
   phases give that without the stage holding a reference to 'next'."

Q: "Why does the response phase run in reverse?"
A: "Same as unwinding a middleware stack: the first stage to see the
   request is the last to see the response, so an access log added
   first observes the final status."

=============================================================================
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, List, TYPE_CHECKING
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse

if TYPE_CHECKING:
    from ..context import Context


logger = logging.getLogger(__name__)


FinalHandler = Callable[[HTTPRequest], HTTPResponse]


class On(Enum):
    """Pipeline phase an interceptor is invoked for."""

    REQUEST = "request"
    RESPONSE = "response"


class Interceptor(ABC):
    """
    Base class for two-phase interceptors.

    Subclasses implement on_request and on_response. The pipeline calls
    the instance itself with the phase:

        interceptor(ctx, On.REQUEST)

    A hook that returns without calling ctx.proceed() or ctx.stop()
    passes.
    """

    def __call__(self, ctx: "Context", on: On) -> None:
        if on is On.REQUEST:
            self.on_request(ctx)
        else:
            self.on_response(ctx)

    @abstractmethod
    def on_request(self, ctx: "Context") -> None:
        ...

    @abstractmethod
    def on_response(self, ctx: "Context") -> None:
        ...

    @property
    def name(self) -> str:
        return self.__class__.__name__


class InterceptorPipeline:
    """
    Ordered interceptors plus the logic to run both phases around a final
    handler.

        pipeline = InterceptorPipeline()
        pipeline.use(AccessLogInterceptor(), StaticFileInterceptor())
        response = pipeline.run(ctx, router.handle)
    """

    def __init__(self):
        self._interceptors: List[Interceptor] = []

    def add(self, interceptor: Interceptor) -> "InterceptorPipeline":
        self._interceptors.append(interceptor)
        logger.debug(f"Added interceptor: {interceptor.name}")
        return self

    def use(self, *interceptors: Interceptor) -> "InterceptorPipeline":
        for interceptor in interceptors:
            self.add(interceptor)
        return self

    def run(self, ctx: "Context", handler: FinalHandler) -> HTTPResponse:
        """
        Run the request phase, the final handler (unless stopped) and the
        response phase.

        Args:
            ctx: The request's context
            handler: Called with the request when no interceptor stopped
                     the request phase; its result becomes ctx.response

        Returns:
            ctx.response after the response phase
        """
        if not self._run_phase(ctx, On.REQUEST, self._interceptors):
            ctx.response = handler(ctx.request)

        self._run_phase(ctx, On.RESPONSE, list(reversed(self._interceptors)))
        ctx.reset_control()
        return ctx.response

    @staticmethod
    def _run_phase(ctx: "Context", on: On, interceptors: List[Interceptor]) -> bool:
        """Returns True if an interceptor stopped the phase."""
        for interceptor in interceptors:
            ctx.reset_control()
            interceptor(ctx, on)
            if ctx.stopped:
                logger.debug(f"{interceptor.name} stopped {on.value} phase")
                return True
        return False

    def __len__(self) -> int:
        return len(self._interceptors)

    def __iter__(self):
        return iter(self._interceptors)
