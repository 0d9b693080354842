"""
ServerErrorMiddleware - turn undeclared failures into `UnknownException` results.

Inspired by: starlette.middleware.errors.ServerErrorMiddleware
"""

import logging
import traceback
from typing import Awaitable, Callable, Optional

from httpapi_gateway.exceptions import UnknownException
from httpapi_gateway.request import LambdaRequest
from httpapi_gateway.response import JSONResponse, Response
from httpapi_gateway.types import RequestHandler

logger = logging.getLogger(__name__)


class ServerErrorMiddleware:
    """
    Outermost system layer. Anything that escapes `ExceptionMiddleware` is an
    error the endpoint did not declare: it is logged and wrapped in
    `UnknownException`, so the invocation still returns a well-formed result.

    In debug mode the original error and traceback are included in the body.
    """

    def __init__(
        self,
        app: RequestHandler,
        handler: Optional[Callable[[LambdaRequest, Exception], Awaitable[Response]]] = None,
        debug: bool = False,
    ):
        self.app = app
        self.handler = handler
        self.debug = debug

    async def __call__(self, request: LambdaRequest) -> Response:
        try:
            return await self.app(request)

        except Exception as exc:
            logger.exception("Unhandled error for %s %s", request.method, request.path)

            if self.handler is not None:
                return await self.handler(request, exc)

            error = UnknownException(cause=exc)
            if self.debug:
                return self._debug_response(error, exc)

            return JSONResponse(content=error.to_dict(), status_code=error.status)

    def _debug_response(self, error: UnknownException, exc: Exception) -> Response:
        content = error.to_dict()
        content.update(
            {
                "message": str(exc),
                "type": type(exc).__name__,
                "traceback": traceback.format_exc().split("\n"),
            }
        )
        return JSONResponse(content=content, status_code=error.status)
