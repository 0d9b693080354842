"""Test utilities and helper functions."""

import base64
import json
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel

from httpapi_gateway.types import HttpMethod, LambdaEvent, LambdaResponse


class SeedPath(BaseModel):
    seed: int


class RandomUser(BaseModel):
    name: str
    randomAge: int


class NewUser(BaseModel):
    name: str
    age: int


class Paging(BaseModel):
    limit: int = 10
    cursor: Optional[str] = None


CLAIMS: Dict[str, Any] = {
    "email": "alice@example.com",
    "sub": "123",
    "cognito:username": "alice",
    "cognito:groups": "g1,g2",
}


def make_event(
    method: HttpMethod = "GET",
    path: str = "/",
    body: Any = None,
    query: Optional[Dict[str, Optional[str]]] = None,
    headers: Optional[Dict[str, str]] = None,
    claims: Optional[Dict[str, Any]] = CLAIMS,
    path_params: Optional[Dict[str, str]] = None,
    base64_body: bool = False,
) -> LambdaEvent:
    """Create an API Gateway REST proxy event as delivered behind a Cognito authorizer."""
    raw_body = json.dumps(body) if body is not None else None
    if raw_body is not None and base64_body:
        raw_body = base64.b64encode(raw_body.encode()).decode()

    request_context: Dict[str, Any] = {"httpMethod": method, "requestId": "test-123", "identity": {}}
    if claims is not None:
        request_context["authorizer"] = {"claims": dict(claims)}

    return {
        "path": path,
        "headers": headers or {},
        "queryStringParameters": query,
        "pathParameters": path_params,
        "body": raw_body,
        "isBase64Encoded": base64_body,
        "requestContext": request_context,  # type: ignore[typeddict-item]
    }


def parse_response(response: Union[Dict[str, Any], LambdaResponse]) -> Tuple[int, Dict[str, Any]]:
    """Parse Lambda response into status code and body dict."""
    status_code = response["statusCode"]
    body = json.loads(response["body"]) if response.get("body") else {}
    return status_code, body
