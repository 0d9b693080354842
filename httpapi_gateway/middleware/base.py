"""
Middleware plumbing: deferred construction and function-style middleware.
"""

from typing import Any, Awaitable, Callable, Type

from httpapi_gateway.request import LambdaRequest
from httpapi_gateway.response import Response
from httpapi_gateway.types import RequestHandler

DispatchFunction = Callable[[LambdaRequest, RequestHandler], Awaitable[Response]]


class FunctionMiddleware:
    """Adapts ``async def dispatch(request, call_next)`` to the stack interface."""

    def __init__(self, app: RequestHandler, dispatch: DispatchFunction):
        self.app = app
        self.dispatch = dispatch

    async def __call__(self, request: LambdaRequest) -> Response:
        return await self.dispatch(request, self.app)


class Middleware:
    """
    A middleware class and the arguments to build it with.

    Nothing is instantiated until the application builds its stack on the
    first invocation, innermost layer first.
    """

    def __init__(self, middleware_class: Type, *args: Any, **kwargs: Any):
        self.cls = middleware_class
        self.args = args
        self.kwargs = kwargs

    def build(self, app: RequestHandler) -> RequestHandler:
        return self.cls(app, *self.args, **self.kwargs)

    def __repr__(self) -> str:
        options = [repr(arg) for arg in self.args] + [f"{k}={v!r}" for k, v in self.kwargs.items()]
        return f"Middleware({', '.join([self.cls.__name__, *options])})"
