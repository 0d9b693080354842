"""
Per-invocation context handed to endpoint logic.
"""

from dataclasses import dataclass
from typing import Any, Optional

from httpapi_gateway.identity import Identity
from httpapi_gateway.request import LambdaRequest


@dataclass(frozen=True)
class RequestContext:
    """
    Everything endpoint logic may need besides its decoded inputs.

    Built once per invocation and passed down explicitly; nothing here is
    stored on the application, so concurrent invocations never see each
    other's identity.
    """

    request: LambdaRequest
    identity: Identity
    lambda_context: Optional[Any] = None
    operation_id: Optional[str] = None

    @property
    def username(self) -> str:
        return self.identity.username
