"""
Declarative API schema.

An `HttpApi` is a set of `ApiGroup`s, each holding `Endpoint` definitions.
All three are frozen records: every builder method returns a new instance,
so a definition can be shared between the deploy stack and the Lambda
handler without either side mutating it.

Example:
    FetchRandomUser = (
        Endpoint.get("FetchRandomUser", "/users/random/:seed")
        .set_path(SeedPath)
        .set_success(RandomUser)
        .add_error(UnknownException)
    )

    organization = ApiGroup("Organization").annotate_security("Basic").add(FetchRandomUser)
    api = HttpApi().add_group(organization).annotate(title="Organization API")
"""

import re
from dataclasses import dataclass, replace
from typing import Any, Iterator, Optional, Tuple, Type

from httpapi_gateway.exceptions import ApiError
from httpapi_gateway.types import HttpMethod

# Match ':param' segments, eg. '/users/:id'
COLON_PARAM_REGEX = re.compile(r":([a-zA-Z_][a-zA-Z0-9_]*)")

# Structural separators not allowed in construct ids or function names
SEPARATOR_REGEX = re.compile(r"[./:\s]")


def normalize_path(path: str) -> str:
    """
    Convert a path template to OpenAPI form.

    Example:
        "/users/random/:seed" -> "/users/random/{seed}"
    """
    if not path.startswith("/"):
        path = "/" + path
    return COLON_PARAM_REGEX.sub(r"{\1}", path)


def join_paths(prefix: str, path: str) -> str:
    if not prefix:
        return path
    return normalize_path(prefix).rstrip("/") + path


@dataclass(frozen=True)
class Endpoint:
    """A single named operation: method, path template and its schemas."""

    name: str
    method: HttpMethod
    path: str
    path_schema: Optional[Any] = None
    urlparams_schema: Optional[Any] = None
    payload_schema: Optional[Any] = None
    success_schema: Optional[Any] = None
    success_status: int = 200
    errors: Tuple[Type[ApiError], ...] = ()
    summary: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "path", normalize_path(self.path))

    @classmethod
    def make(cls, method: HttpMethod, name: str, path: str) -> "Endpoint":
        return cls(name=name, method=method, path=path)

    @classmethod
    def get(cls, name: str, path: str) -> "Endpoint":
        return cls.make("GET", name, path)

    @classmethod
    def post(cls, name: str, path: str) -> "Endpoint":
        return cls.make("POST", name, path)

    @classmethod
    def put(cls, name: str, path: str) -> "Endpoint":
        return cls.make("PUT", name, path)

    @classmethod
    def patch(cls, name: str, path: str) -> "Endpoint":
        return cls.make("PATCH", name, path)

    @classmethod
    def delete(cls, name: str, path: str) -> "Endpoint":
        return cls.make("DELETE", name, path)

    @classmethod
    def head(cls, name: str, path: str) -> "Endpoint":
        return cls.make("HEAD", name, path)

    def set_success(self, schema: Any, status: int = 200) -> "Endpoint":
        return replace(self, success_schema=schema, success_status=status)

    def set_path(self, schema: Any) -> "Endpoint":
        return replace(self, path_schema=schema)

    def set_urlparams(self, schema: Any) -> "Endpoint":
        return replace(self, urlparams_schema=schema)

    def set_payload(self, schema: Any) -> "Endpoint":
        return replace(self, payload_schema=schema)

    def add_error(self, error: Type[ApiError]) -> "Endpoint":
        """Declare an error variant. Declaration order is kept; repeats are ignored."""
        if not (isinstance(error, type) and issubclass(error, ApiError)):
            raise TypeError(f"{error!r} is not an ApiError subclass")
        if error in self.errors:
            return self
        return replace(self, errors=self.errors + (error,))

    def annotate(self, *, summary: Optional[str] = None, description: Optional[str] = None) -> "Endpoint":
        return replace(
            self,
            summary=summary if summary is not None else self.summary,
            description=description if description is not None else self.description,
        )


@dataclass(frozen=True)
class ApiGroup:
    """Named collection of endpoints sharing one security annotation."""

    name: str
    endpoints: Tuple[Endpoint, ...] = ()
    security: Optional[str] = None
    path_prefix: str = ""

    def add(self, *endpoints: Endpoint) -> "ApiGroup":
        """Add endpoints; an endpoint with an existing name replaces the old one."""
        current = list(self.endpoints)
        for endpoint in endpoints:
            names = [e.name for e in current]
            if endpoint.name in names:
                current[names.index(endpoint.name)] = endpoint
            else:
                current.append(endpoint)
        return replace(self, endpoints=tuple(current))

    def annotate_security(self, scheme_name: str) -> "ApiGroup":
        return replace(self, security=scheme_name)

    def prefix(self, path: str) -> "ApiGroup":
        return replace(self, path_prefix=path)


@dataclass(frozen=True)
class HttpApi:
    """The complete API schema."""

    groups: Tuple[ApiGroup, ...] = ()
    title: str = "Api"
    version: str = "0.0.1"
    description: Optional[str] = None
    servers: Tuple[str, ...] = ()

    def add_group(self, group: ApiGroup, prefix: Optional[str] = None) -> "HttpApi":
        """Add a group; a group with an existing name replaces the old one."""
        if prefix is not None:
            group = group.prefix(prefix)
        groups = [g for g in self.groups if g.name != group.name]
        if len(groups) == len(self.groups):
            return replace(self, groups=self.groups + (group,))
        index = [g.name for g in self.groups].index(group.name)
        updated = list(self.groups)
        updated[index] = group
        return replace(self, groups=tuple(updated))

    def annotate(
        self,
        *,
        title: Optional[str] = None,
        version: Optional[str] = None,
        description: Optional[str] = None,
    ) -> "HttpApi":
        return replace(
            self,
            title=title if title is not None else self.title,
            version=version if version is not None else self.version,
            description=description if description is not None else self.description,
        )

    def operations(self) -> Iterator[Tuple[ApiGroup, Endpoint]]:
        for group in self.groups:
            for endpoint in group.endpoints:
                yield group, endpoint

    def find(self, operation_name: str) -> Optional[Tuple[ApiGroup, Endpoint]]:
        """Look up an endpoint by ``"Group.Endpoint"`` or by its sanitized id."""
        wanted = sanitize_operation_id(operation_name)
        for group, endpoint in self.operations():
            if sanitize_operation_id(operation_id(group, endpoint)) == wanted:
                return group, endpoint
        return None


def sanitize_operation_id(value: str) -> str:
    """
    Make an operation id usable as a resource name.

    Example:
        "Organization.FetchRandomUser" -> "Organization-FetchRandomUser"
    """
    return SEPARATOR_REGEX.sub("-", value)


def operation_id(group: ApiGroup, endpoint: Endpoint) -> str:
    """Raw operation id of an endpoint, eg. ``"Organization.FetchRandomUser"``."""
    if not endpoint.name:
        return ""
    return f"{group.name}.{endpoint.name}"


def full_path(group: ApiGroup, endpoint: Endpoint) -> str:
    return join_paths(group.path_prefix, endpoint.path)
