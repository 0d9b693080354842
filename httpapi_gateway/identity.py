"""
Caller identity from Cognito user pool authorizer claims.

API Gateway verifies the token and forwards its claims in
``event.requestContext.authorizer.claims``. Decoding fails closed: missing
claims or a malformed group list reject the request before any endpoint
logic runs.
"""

import logging
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError, field_validator

from httpapi_gateway.exceptions import IdentityDecodeError
from httpapi_gateway.types import APIGatewayRequestContext

logger = logging.getLogger(__name__)

GROUPS_DELIMITER = ","


class AuthorizerClaims(BaseModel):
    """
    Claims the authorizer must supply.

    ``cognito:groups`` arrives either as a comma separated string or as a list
    of strings; both decode to the same list.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    email: StrictStr
    sub: StrictStr
    username: StrictStr = Field(alias="cognito:username")
    groups: List[StrictStr] = Field(alias="cognito:groups")

    @field_validator("groups", mode="before")
    @classmethod
    def split_delimited_groups(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.split(GROUPS_DELIMITER)
        return value


class Identity(BaseModel):
    """Verified caller identity, valid for a single invocation."""

    model_config = ConfigDict(frozen=True)

    username: str
    email: str
    sub: str
    groups: List[str] = []

    @classmethod
    def from_claims(cls, claims: Optional[Mapping[str, Any]]) -> "Identity":
        if not isinstance(claims, Mapping):
            raise IdentityDecodeError([{"loc": ["claims"], "msg": "Authorizer claims are missing", "type": "missing"}])
        try:
            decoded = AuthorizerClaims.model_validate(dict(claims))
        except ValidationError as exc:
            errors = exc.errors(include_url=False, include_context=False, include_input=False)
            logger.warning("Rejected authorizer claims: %s", [error["loc"] for error in errors])
            raise IdentityDecodeError(errors) from exc
        return cls(
            username=decoded.username,
            email=decoded.email,
            sub=decoded.sub,
            groups=list(decoded.groups),
        )

    @classmethod
    def from_request_context(cls, request_context: Optional[APIGatewayRequestContext]) -> "Identity":
        """Decode the identity from ``requestContext.authorizer.claims``."""
        authorizer = (request_context or {}).get("authorizer") or {}
        return cls.from_claims(authorizer.get("claims"))

    def in_group(self, group: str) -> bool:
        return group in self.groups
