"""
OpenAPI schema generation from a declarative `HttpApi`.

Generates an OpenAPI 3.1.0 document with one operation per declared endpoint.
Operation ids are sanitized so they can double as resource names on the
gateway side (see `httpapi_gateway.deploy.augment`).
"""

import logging
import re
from typing import Any, Dict, List, Optional, Set, Tuple

from pydantic import TypeAdapter
from pydantic.json_schema import JsonSchemaMode, JsonSchemaValue

from httpapi_gateway.endpoints import (
    ApiGroup,
    Endpoint,
    HttpApi,
    full_path,
    operation_id,
    sanitize_operation_id,
)
from httpapi_gateway.exceptions import SynthesisError

logger = logging.getLogger(__name__)

# OpenAPI constants
REF_PREFIX = "#/components/schemas/"
REF_TEMPLATE = "#/components/schemas/{model}"

# Methods an endpoint may declare, in the order they appear in a path item
API_METHODS: Tuple[str, ...] = ("get", "post", "put", "delete", "options", "head", "patch")

# Match '{param}' segments in an OpenAPI path template
PATH_PARAM_REGEX = re.compile(r"{([a-zA-Z_][a-zA-Z0-9_]*)}")

# Validation error schemas
validation_error_definition = {
    "title": "ValidationError",
    "type": "object",
    "properties": {
        "loc": {
            "title": "Location",
            "type": "array",
            "items": {"anyOf": [{"type": "string"}, {"type": "integer"}]},
        },
        "msg": {"title": "Message", "type": "string"},
        "type": {"title": "Error Type", "type": "string"},
    },
    "required": ["loc", "msg", "type"],
}

validation_error_response_definition = {
    "title": "HTTPValidationError",
    "type": "object",
    "properties": {
        "detail": {
            "title": "Detail",
            "type": "array",
            "items": {"$ref": REF_PREFIX + "ValidationError"},
        }
    },
}

DECODE_ERROR_STATUS = 400


def get_path_param_names(path: str) -> List[str]:
    return PATH_PARAM_REGEX.findall(path)


# Helper functions for collecting and resolving schemas


def _collect_operations(api: HttpApi) -> List[Tuple[str, ApiGroup, Endpoint]]:
    """
    Validate the API and return ``(sanitized_id, group, endpoint)`` in declaration order.

    Raises SynthesisError before anything is generated, so a broken API never
    yields a partial document.
    """
    operations: List[Tuple[str, ApiGroup, Endpoint]] = []
    seen_ids: Set[str] = set()
    seen_routes: Set[Tuple[str, str]] = set()

    for group, endpoint in api.operations():
        raw_id = operation_id(group, endpoint)
        if not raw_id:
            raise SynthesisError(f"Endpoint {endpoint.method} {endpoint.path} in group {group.name!r} has no name")

        method = endpoint.method.lower()
        if method not in API_METHODS:
            raise SynthesisError(f"Unsupported method {endpoint.method!r} for operation {raw_id!r}")

        sanitized = sanitize_operation_id(raw_id)
        if sanitized in seen_ids:
            raise SynthesisError(f"Duplicate operation id {sanitized!r}")
        seen_ids.add(sanitized)

        route = (full_path(group, endpoint), method)
        if route in seen_routes:
            raise SynthesisError(f"Duplicate operation for {endpoint.method} {route[0]}")
        seen_routes.add(route)

        operations.append((sanitized, group, endpoint))

    return operations


def _resolve(schema: JsonSchemaValue, definitions: Dict[str, Any]) -> JsonSchemaValue:
    ref = schema.get("$ref")
    if ref and ref.startswith(REF_PREFIX):
        return definitions.get(ref[len(REF_PREFIX) :], schema)
    return schema


# OpenAPI generation functions


def get_openapi_operation_parameters(
    route_path: str,
    *,
    operation_id: str,
    path_schema: Optional[JsonSchemaValue],
    query_schema: Optional[JsonSchemaValue],
    definitions: Dict[str, Any],
) -> List[Dict[str, Any]]:
    """
    Generate path and query parameter definitions for an operation.

    `path_schema` and `query_schema` come from the shared schema pass, so
    nested refs point into `definitions` (emitted as components.schemas).
    """
    parameters: List[Dict[str, Any]] = []
    declared: Set[str] = set()
    template_params = get_path_param_names(route_path)

    for location, schema in (("path", path_schema), ("query", query_schema)):
        if schema is None:
            continue
        json_schema = _resolve(schema, definitions)
        required = set(json_schema.get("required", []))

        for name, property_schema in json_schema.get("properties", {}).items():
            if location == "path" and name not in template_params:
                raise SynthesisError(f"Path field {name!r} of {operation_id!r} is not a parameter of {route_path}")
            parameter: Dict[str, Any] = {
                "name": name,
                "in": location,
                "required": location == "path" or name in required,
                "schema": _resolve(property_schema, definitions),
            }
            if property_schema.get("description"):
                parameter["description"] = property_schema["description"]
            parameters.append(parameter)
            if location == "path":
                declared.add(name)

    # Template params without a declared schema are plain strings
    for name in template_params:
        if name not in declared:
            parameters.append({"name": name, "in": "path", "required": True, "schema": {"type": "string"}})

    return parameters


def get_openapi_operation_responses(
    endpoint: Endpoint,
    *,
    success_schema: Optional[JsonSchemaValue],
    has_decoded_input: bool,
) -> Dict[str, Any]:
    """Generate the responses object: success, declared errors and decode failures."""
    responses: Dict[str, Any] = {}

    success: Dict[str, Any] = {"description": "Success"}
    if success_schema is not None:
        success["content"] = {"application/json": {"schema": success_schema}}
    responses[str(endpoint.success_status)] = success

    error_schemas: Dict[int, List[JsonSchemaValue]] = {}
    if has_decoded_input:
        error_schemas.setdefault(DECODE_ERROR_STATUS, []).append({"$ref": REF_PREFIX + "HTTPValidationError"})
    for error in endpoint.errors:
        error_schemas.setdefault(error.status, []).append({"$ref": REF_PREFIX + error.tag()})

    for status in sorted(error_schemas):
        schemas = error_schemas[status]
        schema = schemas[0] if len(schemas) == 1 else {"anyOf": schemas}
        responses[str(status)] = {
            "description": "Error",
            "content": {"application/json": {"schema": schema}},
        }

    return responses


def get_openapi_operation_request_body(payload_schema: Optional[JsonSchemaValue]) -> Optional[Dict[str, Any]]:
    if payload_schema is None:
        return None
    return {
        "required": True,
        "content": {"application/json": {"schema": payload_schema}},
    }


def get_openapi_operation_metadata(
    *,
    operation_id: str,
    group: ApiGroup,
    endpoint: Endpoint,
) -> Dict[str, Any]:
    """Generate OpenAPI operation metadata."""
    operation: Dict[str, Any] = {"operationId": operation_id, "tags": [group.name]}

    if endpoint.summary:
        operation["summary"] = endpoint.summary

    if endpoint.description:
        operation["description"] = endpoint.description

    return operation


def get_openapi_schema(
    api: HttpApi,
    *,
    openapi_version: str = "3.1.0",
) -> Dict[str, Any]:
    """
    Generate the complete OpenAPI document for an API.

    Main entry point for schema generation. Deterministic: the same `HttpApi`
    always produces an equal document.
    """
    operations = _collect_operations(api)

    info: Dict[str, Any] = {"title": api.title, "version": api.version}
    if api.description:
        info["description"] = api.description

    output: Dict[str, Any] = {"openapi": openapi_version, "info": info}

    if api.servers:
        output["servers"] = [{"url": url} for url in api.servers]

    # Generate parameter, body and response schemas for all operations at once
    # so shared models end up as a single entry under components.schemas
    inputs: List[Tuple[Tuple[str, str], JsonSchemaMode, TypeAdapter[Any]]] = []
    for sanitized, _, endpoint in operations:
        if endpoint.path_schema is not None:
            inputs.append(((sanitized, "path"), "validation", TypeAdapter(endpoint.path_schema)))
        if endpoint.urlparams_schema is not None:
            inputs.append(((sanitized, "urlparams"), "validation", TypeAdapter(endpoint.urlparams_schema)))
        if endpoint.payload_schema is not None:
            inputs.append(((sanitized, "payload"), "validation", TypeAdapter(endpoint.payload_schema)))
        if endpoint.success_schema is not None:
            inputs.append(((sanitized, "success"), "serialization", TypeAdapter(endpoint.success_schema)))

    field_mapping: Dict[Tuple[Tuple[str, str], JsonSchemaMode], JsonSchemaValue] = {}
    definitions: Dict[str, Any] = {}
    if inputs:
        field_mapping, top_level = TypeAdapter.json_schemas(inputs, ref_template=REF_TEMPLATE)
        definitions = dict(top_level.get("$defs", {}))

    paths: Dict[str, Dict[str, Any]] = {}
    uses_validation_error = False

    for sanitized, group, endpoint in operations:
        route_path = full_path(group, endpoint)
        method = endpoint.method.lower()

        operation = get_openapi_operation_metadata(operation_id=sanitized, group=group, endpoint=endpoint)

        parameters = get_openapi_operation_parameters(
            route_path,
            operation_id=sanitized,
            path_schema=field_mapping.get(((sanitized, "path"), "validation")),
            query_schema=field_mapping.get(((sanitized, "urlparams"), "validation")),
            definitions=definitions,
        )
        if parameters:
            operation["parameters"] = parameters

        request_body = get_openapi_operation_request_body(field_mapping.get(((sanitized, "payload"), "validation")))
        if request_body:
            operation["requestBody"] = request_body

        has_decoded_input = any(
            schema is not None
            for schema in (endpoint.path_schema, endpoint.urlparams_schema, endpoint.payload_schema)
        )
        uses_validation_error = uses_validation_error or has_decoded_input
        operation["responses"] = get_openapi_operation_responses(
            endpoint,
            success_schema=field_mapping.get(((sanitized, "success"), "serialization")),
            has_decoded_input=has_decoded_input,
        )

        for error in endpoint.errors:
            definitions[error.tag()] = error.json_schema()

        if group.security:
            operation["security"] = [{group.security: []}]

        paths.setdefault(route_path, {})[method] = operation
        logger.debug("Synthesized operation %s %s (%s)", endpoint.method, route_path, sanitized)

    output["paths"] = paths

    if uses_validation_error:
        definitions["ValidationError"] = validation_error_definition
        definitions["HTTPValidationError"] = validation_error_response_definition

    components: Dict[str, Any] = {}
    if definitions:
        components["schemas"] = {name: definitions[name] for name in sorted(definitions)}
    if components:
        output["components"] = components

    tags = [{"name": group.name} for group in api.groups if group.endpoints]
    if tags:
        output["tags"] = tags

    return output
