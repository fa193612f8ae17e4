"""
Unit tests for the two-phase interceptor pipeline.
"""

import pytest

from webpipe import Application, Context
from webpipe.context import Control
from webpipe.http import HTTPRequest, HTTPStatus, ok
from webpipe.interceptors import Interceptor, InterceptorPipeline, On


class Recorder(Interceptor):
    """Appends (name, phase) to a shared list; optionally stops a phase."""

    def __init__(self, label, calls, stop_on=None, silent=False):
        self.label = label
        self.calls = calls
        self.stop_on = stop_on
        self.silent = silent

    def _record(self, ctx, on):
        self.calls.append((self.label, on))
        if on is self.stop_on:
            ctx.stop()
        elif not self.silent:
            ctx.proceed()

    def on_request(self, ctx):
        self._record(ctx, On.REQUEST)

    def on_response(self, ctx):
        self._record(ctx, On.RESPONSE)


def make_ctx(path="/"):
    return Context(HTTPRequest(method="GET", path=path), Application())


class TestPipelineOrder:
    """Tests for phase ordering."""

    def test_request_forward_response_reverse(self):
        """Test insertion order on the way in, reverse on the way out."""
        calls = []
        pipeline = InterceptorPipeline().use(
            Recorder("a", calls), Recorder("b", calls), Recorder("c", calls)
        )

        def handler(request):
            calls.append(("handler", None))
            return ok("hi")

        response = pipeline.run(make_ctx(), handler)

        assert calls == [
            ("a", On.REQUEST), ("b", On.REQUEST), ("c", On.REQUEST),
            ("handler", None),
            ("c", On.RESPONSE), ("b", On.RESPONSE), ("a", On.RESPONSE),
        ]
        assert response.body == b"hi"

    def test_empty_pipeline_runs_handler(self):
        """Test that without interceptors the handler's response is returned."""
        response = InterceptorPipeline().run(make_ctx(), lambda request: ok("x"))
        assert response.status == HTTPStatus.OK
        assert response.body == b"x"


class TestPipelineStop:
    """Tests for stopping a phase."""

    def test_request_stop_skips_handler_and_rest(self):
        """Test that a request-phase stop skips later interceptors and routing."""
        calls = []
        pipeline = InterceptorPipeline().use(
            Recorder("a", calls),
            Recorder("b", calls, stop_on=On.REQUEST),
            Recorder("c", calls),
        )
        handled = []

        pipeline.run(make_ctx(), lambda request: handled.append(1) or ok())

        assert handled == []
        assert ("c", On.REQUEST) not in calls

    def test_response_phase_runs_everyone_after_request_stop(self):
        """Test that the response phase still visits every interceptor."""
        calls = []
        pipeline = InterceptorPipeline().use(
            Recorder("a", calls),
            Recorder("b", calls, stop_on=On.REQUEST),
            Recorder("c", calls),
        )

        pipeline.run(make_ctx(), lambda request: ok())

        responses = [label for label, on in calls if on is On.RESPONSE]
        assert responses == ["c", "b", "a"]

    def test_response_stop_skips_outer_interceptors(self):
        """Test that a response-phase stop ends that phase."""
        calls = []
        pipeline = InterceptorPipeline().use(
            Recorder("a", calls),
            Recorder("b", calls, stop_on=On.RESPONSE),
        )

        pipeline.run(make_ctx(), lambda request: ok())

        assert ("a", On.RESPONSE) not in calls

    def test_silent_interceptor_passes(self):
        """Test that a hook calling neither proceed nor stop counts as pass."""
        calls = []
        pipeline = InterceptorPipeline().use(
            Recorder("quiet", calls, silent=True),
            Recorder("b", calls),
        )

        pipeline.run(make_ctx(), lambda request: ok())

        assert ("b", On.REQUEST) in calls
        assert ("b", On.RESPONSE) in calls

    def test_control_reset_after_run(self):
        """Test that the context is left in PASS after a stopped run."""
        calls = []
        ctx = make_ctx()
        pipeline = InterceptorPipeline().use(Recorder("a", calls, stop_on=On.RESPONSE))

        pipeline.run(ctx, lambda request: ok())

        assert ctx.control is Control.PASS


class TestApplication:
    """Tests for Application wiring."""

    def test_handle_routes_through_pipeline(self):
        """Test that the router is the final handler."""
        app = Application(url_root="/shop")

        @app.get("/items")
        def items(request):
            return ok({"items": []})

        ctx = Context(HTTPRequest(method="GET", path="/shop/items"), app)
        response = app.handle(ctx)

        assert response.status == HTTPStatus.OK
        assert ctx.response is response

    def test_intercept_is_fluent(self):
        calls = []
        app = Application().intercept(Recorder("a", calls)).intercept(Recorder("b", calls))

        assert len(app.pipeline) == 2
        assert [i.label for i in app.pipeline] == ["a", "b"]

    def test_unmatched_route_404(self):
        app = Application()
        ctx = Context(HTTPRequest(method="GET", path="/nope"), app)

        assert app.handle(ctx).status == HTTPStatus.NOT_FOUND
