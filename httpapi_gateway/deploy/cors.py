"""
Gateway-level CORS: the document-wide policy and the per-path preflight.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Sequence, Tuple

logger = logging.getLogger(__name__)

CORS_EXTENSION = "x-amazon-apigateway-cors"
INTEGRATION_EXTENSION = "x-amazon-apigateway-integration"

ALLOW_METHODS: Tuple[str, ...] = ("GET", "OPTIONS", "POST", "PUT", "DELETE", "HEAD")
ALLOW_HEADERS: Tuple[str, ...] = (
    "x-amzm-header",
    "x-apigateway-header",
    "x-api-key",
    "authorization",
    "x-amz-date",
    "content-type",
)
PREFLIGHT_ALLOW_METHODS = "OPTIONS,GET,POST,PUT,DELETE,HEAD,PATCH"

# Headers merged into every operation's 200 response
CORS_RESPONSE_HEADERS: Dict[str, Any] = {
    "Access-Control-Allow-Origin": {"schema": {"type": "string"}},
}

PREFLIGHT_HEADERS = (
    "Access-Control-Allow-Headers",
    "Access-Control-Allow-Methods",
    "Access-Control-Allow-Origin",
)


@dataclass(frozen=True)
class CorsPolicy:
    allow_origins: Tuple[str, ...]
    allow_methods: Tuple[str, ...] = ALLOW_METHODS
    allow_headers: Tuple[str, ...] = ALLOW_HEADERS

    @classmethod
    def for_stage(cls, production: bool, production_origins: Sequence[str] = ("...",)) -> "CorsPolicy":
        """Wildcard origin outside production, a fixed allow-list in production."""
        if production:
            return cls(allow_origins=tuple(production_origins))
        return cls(allow_origins=("*",))

    def to_extension(self) -> Dict[str, Any]:
        return {
            "allowOrigins": list(self.allow_origins),
            "allowMethods": list(self.allow_methods),
            "allowHeaders": list(self.allow_headers),
        }


def preflight_operation() -> Dict[str, Any]:
    """Mock-integrated OPTIONS operation answering CORS preflight with 200."""
    return {
        INTEGRATION_EXTENSION: {
            "type": "mock",
            "requestTemplates": {"application/json": '{"statusCode" : 200}'},
            "responses": {
                "default": {
                    "statusCode": 200,
                    "responseParameters": {
                        "method.response.header.Access-Control-Allow-Headers": "'*'",
                        "method.response.header.Access-Control-Allow-Methods": f"'{PREFLIGHT_ALLOW_METHODS}'",
                        "method.response.header.Access-Control-Allow-Origin": "'*'",
                    },
                }
            },
        },
        "responses": {
            "200": {
                "description": "200 response",
                "headers": {name: {"schema": {"type": "string"}} for name in PREFLIGHT_HEADERS},
            }
        },
    }


def add_cors_preflight(spec: Dict[str, Any], policy: CorsPolicy) -> Dict[str, Any]:
    """Give every path an ``options`` preflight and attach the policy at the root."""
    for path, path_item in spec.get("paths", {}).items():
        if "options" in path_item and INTEGRATION_EXTENSION in path_item["options"]:
            logger.warning("Replacing declared OPTIONS operation on %s with the CORS preflight", path)
        path_item["options"] = preflight_operation()
    spec[CORS_EXTENSION] = policy.to_extension()
    return spec
