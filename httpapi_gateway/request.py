"""
Lambda-native Request class.

Normalizes an API Gateway REST (v1.0) proxy event into method, URL,
headers and body.
"""

import base64
import json
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from httpapi_gateway.types import APIGatewayRequestContext, LambdaEvent

BASE_URL = "http://localhost"


class LambdaRequest:
    """
    Request object built directly from an API Gateway Lambda event.
    """

    def __init__(self, event: LambdaEvent, lambda_context: Optional[Any] = None):
        self._event = event
        self.lambda_context = lambda_context
        self._body: Optional[bytes] = None
        self._json: Any = None

    @property
    def event(self) -> LambdaEvent:
        return self._event

    @property
    def request_context(self) -> APIGatewayRequestContext:
        return self._event.get("requestContext") or {}

    @property
    def method(self) -> str:
        """HTTP method (GET, POST, etc.)."""
        method = self.request_context.get("httpMethod") or self._event.get("httpMethod") or "GET"
        return method.upper()

    @property
    def path(self) -> str:
        """Request path."""
        return self._event.get("path") or "/"

    @property
    def headers(self) -> Dict[str, str]:
        """Request headers (case-insensitive)."""
        headers = self._event.get("headers") or {}
        return {k.lower(): v for k, v in headers.items() if v is not None}

    @property
    def query_params(self) -> Dict[str, str]:
        """Query string parameters; null values are dropped."""
        params = self._event.get("queryStringParameters") or {}
        return {k: v for k, v in params.items() if v is not None}

    @property
    def url(self) -> str:
        """Full request URL rebuilt from path and query parameters."""
        url = BASE_URL + self.path
        query = self.query_params
        if query:
            url += "?" + urlencode(query)
        return url

    @property
    def path_params(self) -> Dict[str, str]:
        """Path parameters from route matching."""
        return self._event.get("pathParameters") or {}

    @property
    def has_body(self) -> bool:
        return bool(self._event.get("body"))

    async def body(self) -> bytes:
        """Request body as bytes."""
        if self._body is None:
            body_str = self._event.get("body") or ""
            if self._event.get("isBase64Encoded", False):
                self._body = base64.b64decode(body_str)
            else:
                self._body = body_str.encode("utf-8")
        return self._body

    async def json(self) -> Any:
        """Parse request body as JSON."""
        if self._json is None:
            body = await self.body()
            if body:
                self._json = json.loads(body)
            else:
                self._json = None
        return self._json

    @property
    def authorizer_claims(self) -> Optional[Dict[str, Any]]:
        authorizer = self.request_context.get("authorizer") or {}
        return authorizer.get("claims")

    @property
    def client_ip(self) -> Optional[str]:
        """Client IP address."""
        identity = self.request_context.get("identity") or {}
        return identity.get("sourceIp")

    @property
    def request_id(self) -> str:
        """API Gateway request ID."""
        return self.request_context.get("requestId", "")
