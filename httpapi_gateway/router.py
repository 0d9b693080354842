"""
Lambda-native router.

Every deployed binding runs the same handler; the router is the single
dispatch table mapping a sanitized operation id (or, failing that, method
and path) to the endpoint logic registered for it.
"""

import asyncio
import inspect
import logging
import re
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Pattern, Tuple

from pydantic import TypeAdapter, ValidationError

from httpapi_gateway.context import RequestContext
from httpapi_gateway.endpoints import ApiGroup, Endpoint, full_path, operation_id, sanitize_operation_id
from httpapi_gateway.exceptions import RequestValidationError
from httpapi_gateway.identity import Identity
from httpapi_gateway.request import LambdaRequest
from httpapi_gateway.response import JSONResponse, Response

logger = logging.getLogger(__name__)

# Match parameters in URL paths, eg. '{param}'
PARAM_REGEX = re.compile(r"{([a-zA-Z_][a-zA-Z0-9_]*)}")

# Parameters filled from decoded request inputs, by name
INPUT_PARAMETERS = ("path", "urlparams", "payload")


def compile_path(path: str) -> Pattern[str]:
    """
    Compile a path template to a regex pattern.

    Example:
        "/users/random/{seed}" -> ^/users/random/(?P<seed>[^/]+)$
    """
    path_regex = "^"
    idx = 0
    for match in PARAM_REGEX.finditer(path):
        path_regex += re.escape(path[idx : match.start()])
        path_regex += f"(?P<{match.group(1)}>[^/]+)"
        idx = match.end()
    path_regex += re.escape(path[idx:]) + "$"
    return re.compile(path_regex)


def _prefixed_errors(location: str, exc: ValidationError) -> List[Dict[str, Any]]:
    errors = exc.errors(include_url=False, include_context=False, include_input=False)
    return [{**error, "loc": [location, *error["loc"]]} for error in errors]


class Route:
    """
    Endpoint definition bound to the function implementing it.
    """

    def __init__(self, group: ApiGroup, endpoint: Endpoint, func: Callable):
        self.group = group
        self.endpoint = endpoint
        self.func = func
        self.operation_id = sanitize_operation_id(operation_id(group, endpoint))
        self.path = full_path(group, endpoint)
        self.method = endpoint.method
        self.path_regex = compile_path(self.path)
        self.is_async = inspect.iscoroutinefunction(func)
        self.signature = inspect.signature(func, eval_str=True)

        self.adapters: Dict[str, Optional[TypeAdapter]] = {
            "path": TypeAdapter(endpoint.path_schema) if endpoint.path_schema is not None else None,
            "urlparams": TypeAdapter(endpoint.urlparams_schema) if endpoint.urlparams_schema is not None else None,
            "payload": TypeAdapter(endpoint.payload_schema) if endpoint.payload_schema is not None else None,
        }
        self.success_adapter: Optional[TypeAdapter] = (
            TypeAdapter(endpoint.success_schema) if endpoint.success_schema is not None else None
        )

    def matches(self, method: str, path: str) -> Optional[Dict[str, str]]:
        """
        Check if this route matches the request.

        Returns path parameters if matched, None otherwise.
        """
        if method.upper() != self.method:
            return None
        match = self.path_regex.match(path)
        if not match:
            return None
        return match.groupdict()

    def match_params(self, request: LambdaRequest) -> Dict[str, str]:
        """Path parameters for a request already dispatched to this route by operation id."""
        match = self.path_regex.match(request.path)
        if match:
            return match.groupdict()
        return dict(request.path_params)

    async def decode_inputs(self, request: LambdaRequest, path_params: Dict[str, str]) -> Dict[str, Any]:
        """Validate path, query and payload against the endpoint schemas."""
        raw: Dict[str, Any] = {"path": path_params, "urlparams": request.query_params}
        decoded: Dict[str, Any] = {}
        errors: List[Dict[str, Any]] = []

        if self.adapters["payload"] is not None:
            if not request.has_body:
                errors.append({"loc": ["body"], "msg": "Field required", "type": "missing"})
            else:
                try:
                    raw["payload"] = await request.json()
                except ValueError:
                    errors.append({"loc": ["body"], "msg": "Invalid JSON", "type": "json_invalid"})

        for name in INPUT_PARAMETERS:
            adapter = self.adapters[name]
            if adapter is None or name not in raw:
                continue
            try:
                decoded[name] = adapter.validate_python(raw[name])
            except ValidationError as exc:
                errors.extend(_prefixed_errors(name, exc))

        if errors:
            raise RequestValidationError(errors=errors, body=raw.get("payload"))
        return decoded

    def endpoint_arguments(self, context: RequestContext, decoded: Dict[str, Any]) -> Dict[str, Any]:
        """
        Inject arguments by annotation (`LambdaRequest`, `Identity`,
        `RequestContext`) or by name (`path`, `urlparams`, `payload`).
        """
        values: Dict[str, Any] = {}
        for name, param in self.signature.parameters.items():
            annotation = param.annotation
            if annotation is LambdaRequest:
                values[name] = context.request
            elif annotation is Identity:
                values[name] = context.identity
            elif annotation is RequestContext:
                values[name] = context
            elif name in INPUT_PARAMETERS:
                values[name] = decoded.get(name)
        return values

    async def handle(self, context: RequestContext, path_params: Dict[str, str]) -> Response:
        """Decode inputs, run the endpoint and render its success value."""
        decoded = await self.decode_inputs(context.request, path_params)
        values = self.endpoint_arguments(context, decoded)

        if self.is_async:
            result = await self.func(**values)
        else:
            # Run sync function in thread pool to avoid blocking event loop
            loop = asyncio.get_running_loop()
            result = await loop.run_in_executor(None, partial(self.func, **values))

        if isinstance(result, Response):
            return result

        status_code = self.endpoint.success_status
        if self.success_adapter is not None:
            serialized = self.success_adapter.dump_python(self.success_adapter.validate_python(result), mode="json")
            return JSONResponse(serialized, status_code=status_code)

        if result is None:
            return Response(status_code=status_code)

        return JSONResponse(result, status_code=status_code)


class LambdaRouter:
    """
    Dispatch table keyed by sanitized operation id.
    """

    def __init__(self) -> None:
        self.routes: List[Route] = []
        self.operations: Dict[str, Route] = {}

    def add_route(self, route: Route) -> None:
        """Register a route; re-registering an operation replaces its logic."""
        existing = self.operations.get(route.operation_id)
        if existing is not None:
            self.routes[self.routes.index(existing)] = route
        else:
            self.routes.append(route)
        self.operations[route.operation_id] = route

    def lookup(
        self,
        request: LambdaRequest,
        operation_id: Optional[str] = None,
    ) -> Optional[Tuple[Route, Dict[str, str]]]:
        if operation_id:
            route = self.operations.get(sanitize_operation_id(operation_id))
            if route is not None:
                return route, route.match_params(request)
            logger.debug("No logic registered for bound operation %s, matching by path", operation_id)

        for route in self.routes:
            path_params = route.matches(request.method, request.path)
            if path_params is not None:
                return route, path_params
        return None

    async def route(self, context: RequestContext) -> Response:
        """
        Find the matching route and execute it.

        Returns 404 if no route matches.
        """
        found = self.lookup(context.request, context.operation_id)
        if found is None:
            logger.debug("No route for %s %s", context.request.method, context.request.path)
            return JSONResponse({"detail": "Not Found"}, status_code=404)

        route, path_params = found
        return await route.handle(context, path_params)
