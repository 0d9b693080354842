import http
from typing import Any, ClassVar, Dict, Optional, Sequence

from typing_extensions import Annotated, Doc


class HttpApiError(RuntimeError):
    """
    A generic, framework-specific error (misconfigured API or application).
    """


class SynthesisError(HttpApiError):
    """
    Raised while turning an `HttpApi` into a gateway spec.

    Fatal to the deploy: no partial spec is returned once this is raised.
    """


class HTTPException(Exception):
    """
    An HTTP exception raised by the bridge itself (routing, authentication).

    Endpoint logic should prefer the declared `ApiError` variants so the error
    shows up in the generated spec.
    """

    def __init__(
        self,
        status_code: Annotated[
            int,
            Doc(
                """
                HTTP status code to send to the client.
                """
            ),
        ],
        detail: Annotated[
            Any,
            Doc(
                """
                Any data to be sent to the client in the `detail` key of the JSON
                response.
                """
            ),
        ] = None,
        headers: Annotated[
            Optional[Dict[str, str]],
            Doc(
                """
                Any headers to send to the client in the response.
                """
            ),
        ] = None,
    ) -> None:
        if detail is None:
            detail = http.HTTPStatus(status_code).phrase
        self.status_code = status_code
        self.detail = detail
        self.headers = headers
        super().__init__(f"{status_code}: {detail}")

    def __repr__(self) -> str:
        class_name = self.__class__.__name__
        return f"{class_name}(status_code={self.status_code!r}, detail={self.detail!r})"


class ValidationException(Exception):
    def __init__(self, errors: Sequence[Any]) -> None:
        self._errors = errors

    def errors(self) -> Sequence[Any]:
        return self._errors


class RequestValidationError(ValidationException):
    """Path, query or payload of a request did not match the endpoint schema."""

    def __init__(self, errors: Sequence[Any], *, body: Any = None) -> None:
        super().__init__(errors)
        self.body = body


class IdentityDecodeError(ValidationException):
    """
    Authorizer claims are missing or malformed.

    Raised before any endpoint logic runs; rendered as 401.
    """

    status_code: ClassVar[int] = 401


class ApiError(Exception):
    """
    Base class for errors an endpoint declares with `Endpoint.add_error`.

    Subclasses set `status` to the HTTP status they are rendered with and
    documented under in the generated spec. The class name is the error tag.

    ## Example

    ```python
    class NotFoundException(ApiError):
        status = 404

    endpoint = Endpoint.get("GetUser", "/users/:id").add_error(NotFoundException)
    ```
    """

    status: ClassVar[int] = 500

    def __init__(self, message: Optional[str] = None, *, cause: Any = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message or self.tag())

    @classmethod
    def tag(cls) -> str:
        return cls.__name__

    def to_dict(self) -> Dict[str, Any]:
        content: Dict[str, Any] = {"_tag": self.tag()}
        if self.message is not None:
            content["message"] = self.message
        return content

    @classmethod
    def json_schema(cls) -> Dict[str, Any]:
        """OpenAPI schema of the rendered error body."""
        return {
            "title": cls.tag(),
            "type": "object",
            "properties": {
                "_tag": {"type": "string", "enum": [cls.tag()]},
                "message": {"type": "string"},
            },
            "required": ["_tag"],
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, cause={self.cause!r})"


class UnknownException(ApiError):
    """Generic failure; undeclared errors from endpoint logic are wrapped in it."""

    status = 500


class ForbiddenException(ApiError):
    status = 403
