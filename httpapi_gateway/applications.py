"""
Lambda entry point for an `HttpApi`.

Each invocation is bridged as:

    event -> LambdaRequest -> middleware stack
          -> Identity (from authorizer claims, fail closed)
          -> RequestContext -> router -> endpoint logic
          -> Response -> invocation result
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional, Sequence, Type

from httpapi_gateway.context import RequestContext
from httpapi_gateway.endpoints import HttpApi
from httpapi_gateway.exceptions import HttpApiError
from httpapi_gateway.identity import Identity
from httpapi_gateway.middleware.base import FunctionMiddleware, Middleware
from httpapi_gateway.middleware.cors import CORSMiddleware
from httpapi_gateway.middleware.errors import ServerErrorMiddleware
from httpapi_gateway.middleware.exceptions import ExceptionMiddleware
from httpapi_gateway.openapi_schema import get_openapi_schema
from httpapi_gateway.request import LambdaRequest
from httpapi_gateway.response import Response
from httpapi_gateway.router import LambdaRouter, Route
from httpapi_gateway.settings import Settings, get_settings
from httpapi_gateway.types import DecoratedCallable, LambdaEvent, RequestHandler
from httpapi_gateway.types import LambdaResponse as LambdaResponseDict

logger = logging.getLogger(__name__)


class HttpApiApp:
    """
    Serves the endpoints of an `HttpApi` from a single Lambda handler.

    Example:
        app = HttpApiApp(api)

        @app.handler("Organization.FetchRandomUser")
        async def fetch_random_user(path: SeedPath, identity: Identity):
            return {"name": identity.username, "randomAge": path.seed % 100}

        handler = create_lambda_handler(app)
    """

    def __init__(
        self,
        api: HttpApi,
        debug: bool = False,
        operation_id: Optional[str] = None,
        exception_handlers: Optional[Dict[Any, Callable]] = None,
        middleware: Optional[Sequence[Middleware]] = None,
        cors: bool = True,
    ):
        self.api = api
        self.debug = debug
        self.operation_id = operation_id
        self.router = LambdaRouter()
        self._openapi_schema: Optional[Dict[str, Any]] = None

        self.exception_handlers: Dict[Any, Callable] = {}
        if exception_handlers:
            self.exception_handlers.update(exception_handlers)

        # Middleware stack (lazy-built on first request)
        self.user_middleware: List[Middleware] = [] if middleware is None else list(middleware)
        if cors:
            self.user_middleware.append(Middleware(CORSMiddleware))
        self._middleware_stack: Optional[RequestHandler] = None

    def handle(self, operation_name: str, func: Callable) -> "HttpApiApp":
        """Register the logic for ``"Group.Endpoint"`` (or its sanitized id)."""
        found = self.api.find(operation_name)
        if found is None:
            raise HttpApiError(f"Unknown operation {operation_name!r}")
        group, endpoint = found
        route = Route(group, endpoint, func)
        self.router.add_route(route)
        logger.debug("Registered %s for %s %s", route.operation_id, route.method, route.path)
        return self

    def handler(self, operation_name: str) -> Callable[[DecoratedCallable], DecoratedCallable]:
        """Decorator form of `handle`."""

        def decorator(func: DecoratedCallable) -> DecoratedCallable:
            self.handle(operation_name, func)
            return func

        return decorator

    def handle_group(self, group_name: str, handlers: Mapping[str, Callable]) -> "HttpApiApp":
        """Register logic for several endpoints of one group, keyed by endpoint name."""
        for endpoint_name, func in handlers.items():
            self.handle(f"{group_name}.{endpoint_name}", func)
        return self

    def add_middleware(self, middleware_class: Type, **options: Any) -> None:
        """Add middleware to the stack, placing it as the outermost layer."""
        if self._middleware_stack is not None:  # pragma: no cover
            raise RuntimeError("Cannot add middleware after an application has started")
        self.user_middleware.insert(0, Middleware(middleware_class, **options))

    def middleware(
        self, _middleware_type: Literal["http"] = "http"
    ) -> Callable[[DecoratedCallable], DecoratedCallable]:
        """Decorator to add middleware to the stack, placing it as the outermost layer."""

        def decorator(func: DecoratedCallable) -> DecoratedCallable:
            self.add_middleware(FunctionMiddleware, dispatch=func)
            return func

        return decorator

    def build_middleware_stack(self) -> RequestHandler:
        """
        Stack order:
        User Middleware (CORS, logging, ...)
          -> ServerErrorMiddleware (undeclared errors -> UnknownException)
            -> ExceptionMiddleware (declared errors, validation, identity)
              -> authenticate + router

        User middleware is outermost so CORS headers are added to error
        responses too.
        """
        error_handler = None
        exception_handlers: Dict[Any, Callable] = {}

        for key, value in self.exception_handlers.items():
            if key in (500, Exception):
                error_handler = value
            else:
                exception_handlers[key] = value

        middleware = (
            self.user_middleware
            + [Middleware(ServerErrorMiddleware, handler=error_handler, debug=self.debug)]
            + [Middleware(ExceptionMiddleware, handlers=exception_handlers)]
        )

        async def dispatch(request: LambdaRequest) -> Response:
            # Fails closed: a missing or malformed claim stops here
            identity = Identity.from_request_context(request.request_context)
            context = RequestContext(
                request=request,
                identity=identity,
                lambda_context=request.lambda_context,
                operation_id=self.operation_id,
            )
            return await self.router.route(context)

        app: RequestHandler = dispatch
        for layer in reversed(middleware):
            app = layer.build(app)

        return app

    def openapi(self) -> Dict[str, Any]:
        "Generate and cache the OpenAPI schema."
        if self._openapi_schema is None:
            self._openapi_schema = get_openapi_schema(self.api)
        return self._openapi_schema

    async def __call__(
        self,
        event: LambdaEvent,
        context: Optional[Any] = None,
    ) -> LambdaResponseDict:
        """
        Bridge one invocation.

        This is what gets called by the Lambda handler:
            def handler(event, context):
                return asyncio.run(app(event, context))
        """
        if self._middleware_stack is None:
            self._middleware_stack = self.build_middleware_stack()

        request = LambdaRequest(event, lambda_context=context)
        response = await self._middleware_stack(request)
        return response.to_lambda_response()


def create_lambda_handler(app: HttpApiApp, settings: Optional[Settings] = None) -> Callable:
    """
    Create the shared Lambda handler for every operation binding.

    Usage:
        app = HttpApiApp(api)
        handler = create_lambda_handler(app)
    """
    settings = settings or get_settings()
    logging.getLogger().setLevel(settings.LOG_LEVEL.upper())
    if app.operation_id is None:
        app.operation_id = settings.OPERATION_ID
    app.debug = app.debug or settings.DEBUG

    def lambda_handler(event: LambdaEvent, context: Optional[Any] = None) -> LambdaResponseDict:
        return asyncio.run(app(event, context))

    return lambda_handler
