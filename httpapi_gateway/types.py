"""
Lambda-native types for API Gateway events and invocation results.

Only the fields read or written by the request/response bridges are declared.
"""

from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Literal,
    Optional,
    Tuple,
    TypedDict,
    TypeVar,
    Union,
)

DecoratedCallable = TypeVar("DecoratedCallable", bound=Callable[..., Any])

HttpMethod = Literal[
    "GET",
    "HEAD",
    "POST",
    "PUT",
    "DELETE",
    "OPTIONS",
    "PATCH",
]
"""HTTP methods supported by API Gateway."""


class AuthorizerContext(TypedDict, total=False):
    """Authorizer output attached by a Cognito user pool authorizer."""

    claims: Dict[str, Any]


class APIGatewayRequestContext(TypedDict, total=False):
    """API Gateway request context (minimal, only used fields)."""

    httpMethod: HttpMethod
    requestId: str
    stage: str
    identity: Dict[str, Any]
    authorizer: AuthorizerContext


class LambdaEvent(TypedDict, total=False):
    """
    API Gateway REST API (v1.0) proxy event (minimal, only used fields).
    """

    httpMethod: HttpMethod
    path: str
    resource: str

    headers: Optional[Dict[str, str]]
    queryStringParameters: Optional[Dict[str, Optional[str]]]
    pathParameters: Optional[Dict[str, str]]
    body: Optional[str]
    isBase64Encoded: bool

    requestContext: APIGatewayRequestContext


class LambdaResponse(TypedDict):
    """API Gateway proxy integration result."""

    statusCode: int
    headers: Dict[str, str]
    body: str
    isBase64Encoded: bool


HeaderItems = Union[Dict[str, str], List[Tuple[str, str]]]
"""Response headers, either a mapping or a list of ``(name, value)`` pairs."""


if TYPE_CHECKING:
    from httpapi_gateway.request import LambdaRequest
    from httpapi_gateway.response import Response

RequestHandler = Callable[["LambdaRequest"], Awaitable["Response"]]
"""Async handler that processes a Lambda request and returns a response."""
