"""
Lambda-native Response classes.

`Response.to_lambda_response` is the response half of the bridge: status,
flattened headers and a text body, never base64 encoded.
"""

import json
from typing import Any, Dict, Iterable, Optional

from httpapi_gateway.types import HeaderItems
from httpapi_gateway.types import LambdaResponse as LambdaResponseDict


def flatten_headers(headers: Optional[HeaderItems]) -> Dict[str, str]:
    """
    Collapse headers to one value per name.

    Repeated names are not merged: the last value wins.
    """
    if not headers:
        return {}
    items = headers.items() if isinstance(headers, dict) else headers
    flattened: Dict[str, str] = {}
    for name, value in items:
        flattened[name] = str(value)
    return flattened


class Response:
    """
    Response object that converts to the API Gateway proxy result format.
    """

    media_type: Optional[str] = None

    def __init__(
        self,
        content: Any = None,
        status_code: int = 200,
        headers: Optional[HeaderItems] = None,
        media_type: Optional[str] = None,
    ):
        self.status_code = status_code
        if media_type is not None:
            self.media_type = media_type
        self.headers = flatten_headers(headers)
        self.body = self.render(content)

        # Set content-type if not already set
        if self.media_type and "content-type" not in {k.lower() for k in self.headers.keys()}:
            self.headers["Content-Type"] = self.media_type

    def render(self, content: Any) -> str:
        """Render content to text."""
        if content is None:
            return ""
        if isinstance(content, (bytes, bytearray)):
            return bytes(content).decode("utf-8", errors="replace")
        if isinstance(content, str):
            return content
        if isinstance(content, Iterable) and not isinstance(content, dict):
            return "".join(self.render(chunk) for chunk in content)
        return str(content)

    def to_lambda_response(self) -> LambdaResponseDict:
        """Convert to API Gateway Lambda response format."""
        return {
            "statusCode": self.status_code,
            "headers": dict(self.headers),
            "body": self.body,
            "isBase64Encoded": False,
        }


class JSONResponse(Response):
    """JSON response."""

    media_type = "application/json"

    def __init__(
        self,
        content: Any,
        status_code: int = 200,
        headers: Optional[HeaderItems] = None,
    ):
        super().__init__(content=content, status_code=status_code, headers=headers)

    def render(self, content: Any) -> str:
        """Render content as JSON."""
        return json.dumps(content, ensure_ascii=False, indent=None, separators=(",", ":"))


class PlainTextResponse(Response):
    """Plain text response."""

    media_type = "text/plain"

    def __init__(
        self,
        content: str,
        status_code: int = 200,
        headers: Optional[HeaderItems] = None,
    ):
        super().__init__(content=content, status_code=status_code, headers=headers)
