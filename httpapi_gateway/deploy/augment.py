"""
Augment a synthesized OpenAPI document with API Gateway extensions.

The synthesized spec only describes the API. To deploy it as a `SpecRestApi`
every operation needs a Lambda proxy integration, every path a CORS
preflight, and the document a Cognito security scheme:

    spec = get_openapi_schema(api)
      -> bind_integrations()     one function per operation
      -> require_authorizer()    security requirement on every operation
      -> add_cors_preflight()    OPTIONS mock per path + root CORS policy
      -> add_security_scheme()   components.securitySchemes

All steps work on a private deep copy; the input document is never mutated.
"""

import copy
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Tuple

from httpapi_gateway.deploy.cors import CORS_RESPONSE_HEADERS, INTEGRATION_EXTENSION, CorsPolicy, add_cors_preflight
from httpapi_gateway.endpoints import HttpApi, sanitize_operation_id
from httpapi_gateway.exceptions import SynthesisError
from httpapi_gateway.openapi_schema import API_METHODS, get_openapi_schema

logger = logging.getLogger(__name__)

APIGATEWAY_PRINCIPAL = "apigateway.amazonaws.com"
DEFAULT_SCHEME_NAME = "Basic"
AUTHORIZER_TYPE = "cognito_user_pools"


def integration_uri(region: str, function_arn: str) -> str:
    return f"arn:aws:apigateway:{region}:lambda:path/2015-03-31/functions/{function_arn}/invocations"


class FunctionBinder(Protocol):
    """Provisions compute for an operation. Implemented by the CDK stack."""

    def provision(self, resource_name: str) -> Any:
        """Create the function bound to the operation named `resource_name`."""

    def function_arn(self, function: Any) -> str:
        """ARN (or deploy-time token) of a provisioned function."""

    def grant_invoke(self, function: Any, principal: str) -> Any:
        """Allow `principal` to invoke `function`; returns the permission."""


@dataclass(frozen=True)
class IntegrationRecord:
    """Binding of one operation to its own function."""

    operation_id: str
    method: str
    path: str
    function: Any
    uri: str
    permission: Any


def proxy_integration(uri: str) -> Dict[str, Any]:
    # The gateway always calls Lambda with POST, whatever the public method
    return {
        "uri": uri,
        "passthroughBehavior": "when_no_match",
        "httpMethod": "POST",
        "type": "aws_proxy",
    }


def merge_cors_headers(operation: Dict[str, Any]) -> Dict[str, Any]:
    """
    Add CORS headers to the 200 response.

    Existing headers and every other key of the 200 response (content,
    description) are kept; a missing 200 response is created empty.
    """
    responses = dict(operation.get("responses") or {})
    success = dict(responses.get("200") or {})
    success["headers"] = {**(success.get("headers") or {}), **copy.deepcopy(CORS_RESPONSE_HEADERS)}
    responses["200"] = success
    return responses


def bind_integrations(spec: Dict[str, Any], binder: FunctionBinder, region: str) -> List[IntegrationRecord]:
    """
    Attach one Lambda proxy integration per (path, method) in `spec`.

    Records follow the document: paths in declaration order, then methods in
    `API_METHODS` order within a path.
    """
    records: List[IntegrationRecord] = []

    for path, path_item in spec.get("paths", {}).items():
        for method in API_METHODS:
            operation = path_item.get(method)
            if not operation:
                continue

            raw_id = operation.get("operationId")
            if not raw_id:
                raise SynthesisError(f"Operation {method.upper()} {path} has no operationId")
            resource_name = sanitize_operation_id(raw_id)

            function = binder.provision(resource_name)
            permission = binder.grant_invoke(function, APIGATEWAY_PRINCIPAL)
            uri = integration_uri(region, binder.function_arn(function))

            path_item[method] = {
                **operation,
                INTEGRATION_EXTENSION: proxy_integration(uri),
                "responses": merge_cors_headers(operation),
            }
            records.append(
                IntegrationRecord(
                    operation_id=resource_name,
                    method=method,
                    path=path,
                    function=function,
                    uri=uri,
                    permission=permission,
                )
            )
            logger.info("Bound %s %s to function %s", method.upper(), path, resource_name)

    return records


def security_scheme(user_pool_arn: str) -> Dict[str, Any]:
    return {
        "type": "apiKey",
        "name": "Authorization",
        "in": "header",
        "x-amazon-apigateway-authtype": AUTHORIZER_TYPE,
        "x-amazon-apigateway-authorizer": {
            "type": AUTHORIZER_TYPE,
            "providerARNs": [user_pool_arn],
        },
    }


def add_security_scheme(
    spec: Dict[str, Any],
    user_pool_arn: str,
    scheme_name: str = DEFAULT_SCHEME_NAME,
) -> Dict[str, Any]:
    """Declare the single Cognito authorizer scheme in ``components.securitySchemes``."""
    components = spec.setdefault("components", {})
    components["securitySchemes"] = {scheme_name: security_scheme(user_pool_arn)}
    return spec


def require_authorizer(spec: Dict[str, Any], scheme_name: str) -> Dict[str, Any]:
    """
    Put every operation behind the authorizer.

    The handler rejects invocations without claims, and the gateway only
    forwards claims for operations that carry a security requirement.
    """
    for path, path_item in spec.get("paths", {}).items():
        for method in API_METHODS:
            operation = path_item.get(method)
            if operation and not operation.get("security"):
                operation["security"] = [{scheme_name: []}]
                logger.info("Securing unannotated operation %s %s with %s", method.upper(), path, scheme_name)
    return spec


def resolve_scheme_name(api: HttpApi) -> str:
    """The scheme named by the groups' security annotations (at most one)."""
    names = sorted({group.security for group in api.groups if group.security})
    if len(names) > 1:
        raise SynthesisError(f"Only one security scheme is supported, groups declare {names}")
    return names[0] if names else DEFAULT_SCHEME_NAME


def build_gateway_spec(
    api: HttpApi,
    *,
    binder: FunctionBinder,
    region: str,
    user_pool_arn: str,
    cors_policy: CorsPolicy,
    scheme_name: Optional[str] = None,
) -> Tuple[Dict[str, Any], List[IntegrationRecord]]:
    """
    Run the whole deploy-time pipeline.

    Raises SynthesisError on an invalid API; nothing is returned in that case.
    """
    scheme_name = scheme_name or resolve_scheme_name(api)
    spec = copy.deepcopy(get_openapi_schema(api))
    records = bind_integrations(spec, binder, region)
    require_authorizer(spec, scheme_name)
    add_cors_preflight(spec, cors_policy)
    add_security_scheme(spec, user_pool_arn, scheme_name)
    return spec, records


def dump_spec(spec: Dict[str, Any]) -> str:
    """Canonical JSON text of a spec; equal specs give identical bytes."""
    return json.dumps(spec, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
