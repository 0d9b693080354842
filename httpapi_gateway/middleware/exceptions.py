"""
ExceptionMiddleware - render known exceptions.

Inspired by: starlette.middleware.exceptions.ExceptionMiddleware
"""

from typing import Awaitable, Callable, Dict, Optional, Type

from httpapi_gateway.exceptions import ApiError, HTTPException, IdentityDecodeError, RequestValidationError
from httpapi_gateway.request import LambdaRequest
from httpapi_gateway.response import JSONResponse, Response


class ExceptionMiddleware:
    """
    Handle known exceptions:

    - `ApiError` (declared endpoint errors) -> its `status`, tagged body
    - `HTTPException` -> its status code
    - `RequestValidationError` -> 400
    - `IdentityDecodeError` -> 401

    Anything else bubbles up to `ServerErrorMiddleware`.
    """

    def __init__(
        self,
        app: Callable[[LambdaRequest], Awaitable[Response]],
        handlers: Optional[Dict[Type[Exception], Callable]] = None,
    ):
        self.app = app
        self._exception_handlers: Dict[Type[Exception], Callable] = {
            ApiError: self._api_error_handler,
            HTTPException: self._http_exception_handler,
            RequestValidationError: self._validation_exception_handler,
            IdentityDecodeError: self._identity_exception_handler,
        }

        if handlers is not None:
            self._exception_handlers.update(handlers)

    async def __call__(self, request: LambdaRequest) -> Response:
        try:
            return await self.app(request)

        except Exception as exc:
            handler = self._lookup_exception_handler(exc)

            if handler is None:
                raise

            return await handler(request, exc)

    def _lookup_exception_handler(self, exc: Exception) -> Optional[Callable]:
        """Find the handler for the closest class in the exception's MRO."""
        for cls in type(exc).__mro__:
            if cls in self._exception_handlers:
                return self._exception_handlers[cls]
        return None

    async def _api_error_handler(self, request: LambdaRequest, exc: ApiError) -> Response:
        return JSONResponse(content=exc.to_dict(), status_code=exc.status)

    async def _http_exception_handler(self, request: LambdaRequest, exc: HTTPException) -> Response:
        headers = getattr(exc, "headers", None)

        # 204 and 304 should not have body
        if exc.status_code in (204, 304):
            return Response(content=b"", status_code=exc.status_code, headers=headers or {})

        return JSONResponse(
            content={"detail": exc.detail},
            status_code=exc.status_code,
            headers=headers,
        )

    async def _validation_exception_handler(self, request: LambdaRequest, exc: RequestValidationError) -> Response:
        return JSONResponse(content={"detail": exc.errors()}, status_code=400)

    async def _identity_exception_handler(self, request: LambdaRequest, exc: IdentityDecodeError) -> Response:
        return JSONResponse(
            content={"detail": "Unauthorized", "errors": exc.errors()},
            status_code=exc.status_code,
        )
