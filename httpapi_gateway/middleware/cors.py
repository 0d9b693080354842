"""
Lambda-side CORS.

The gateway answers preflight requests with a mock integration and only
declares ``Access-Control-Allow-Origin`` on success responses. This
middleware sets that header on every result the function produces (errors
included) and answers preflights that do reach the function with the same
`CorsPolicy` the gateway was deployed with.
"""

from typing import List, Optional

from httpapi_gateway.deploy.cors import CorsPolicy
from httpapi_gateway.request import LambdaRequest
from httpapi_gateway.response import PlainTextResponse, Response
from httpapi_gateway.types import RequestHandler

WILDCARD_POLICY = CorsPolicy(allow_origins=("*",), allow_headers=("*",))


class CORSMiddleware:
    """
    Example:
        app.add_middleware(
            CORSMiddleware,
            policy=CorsPolicy.for_stage(settings.is_production, settings.PRODUCTION_ORIGINS),
        )
    """

    def __init__(
        self,
        app: RequestHandler,
        policy: Optional[CorsPolicy] = None,
        max_age: int = 600,
    ) -> None:
        self.app = app
        self.policy = policy or WILDCARD_POLICY
        self.max_age = max_age

        self.allow_all_origins = "*" in self.policy.allow_origins
        self.allow_all_headers = "*" in self.policy.allow_headers
        self.allow_methods = {method.upper() for method in self.policy.allow_methods}
        self.allow_headers = {header.lower() for header in self.policy.allow_headers}

    def allowed_origin(self, origin: str) -> Optional[str]:
        """Value for ``Access-Control-Allow-Origin``, or None if `origin` is not allowed."""
        if self.allow_all_origins:
            return "*"
        if origin in self.policy.allow_origins:
            return origin
        return None

    async def __call__(self, request: LambdaRequest) -> Response:
        origin = request.headers.get("origin")

        if not origin:
            return await self.app(request)

        if request.method == "OPTIONS" and "access-control-request-method" in request.headers:
            return self.preflight(request, origin)

        response = await self.app(request)
        allowed = self.allowed_origin(origin)
        if allowed is not None:
            response.headers["Access-Control-Allow-Origin"] = allowed
            if allowed != "*":
                add_vary_header(response, "Origin")
        return response

    def preflight(self, request: LambdaRequest, origin: str) -> Response:
        requested_method = request.headers["access-control-request-method"].upper()
        requested_headers = request.headers.get("access-control-request-headers", "")

        headers = {
            "Access-Control-Allow-Methods": ",".join(self.policy.allow_methods),
            "Access-Control-Allow-Headers": requested_headers
            if self.allow_all_headers
            else ",".join(self.policy.allow_headers),
            "Access-Control-Max-Age": str(self.max_age),
        }
        failures: List[str] = []

        allowed = self.allowed_origin(origin)
        if allowed is None:
            failures.append("origin")
        else:
            headers["Access-Control-Allow-Origin"] = allowed

        if requested_method not in self.allow_methods:
            failures.append("method")

        if not self.allow_all_headers:
            names = [name.strip().lower() for name in requested_headers.split(",")]
            if any(name and name not in self.allow_headers for name in names):
                failures.append("headers")

        if failures:
            return PlainTextResponse("Disallowed CORS " + ", ".join(failures), status_code=400, headers=headers)
        return PlainTextResponse("OK", headers=headers)


def add_vary_header(response: Response, value: str) -> None:
    existing = [v.strip() for v in response.headers.get("Vary", "").split(",") if v.strip()]
    if value not in existing:
        existing.append(value)
    response.headers["Vary"] = ", ".join(existing)
