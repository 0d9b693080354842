"""Tests for the declarative API schema builders."""

import dataclasses

import pytest

from httpapi_gateway import ApiGroup, Endpoint, ForbiddenException, HttpApi, UnknownException
from httpapi_gateway.endpoints import full_path, normalize_path, operation_id, sanitize_operation_id
from tests.utils import RandomUser, SeedPath


def test_colon_params_become_braces():
    assert normalize_path("/users/random/:seed") == "/users/random/{seed}"
    assert normalize_path("users/{id}/roles/:role") == "/users/{id}/roles/{role}"


def test_builders_return_new_records():
    """Every builder call leaves the original endpoint untouched."""
    base = Endpoint.get("FetchRandomUser", "/users/random/:seed")
    built = base.set_path(SeedPath).set_success(RandomUser)

    assert base.path_schema is None
    assert base.success_schema is None
    assert built.path_schema is SeedPath
    assert built.success_schema is RandomUser
    assert built.method == "GET"
    assert built.path == "/users/random/{seed}"

    with pytest.raises(dataclasses.FrozenInstanceError):
        built.name = "Other"  # type: ignore[misc]


def test_add_error_keeps_order_and_ignores_repeats():
    endpoint = (
        Endpoint.get("E", "/e")
        .add_error(UnknownException)
        .add_error(ForbiddenException)
        .add_error(UnknownException)
    )
    assert endpoint.errors == (UnknownException, ForbiddenException)


def test_add_error_rejects_non_api_errors():
    with pytest.raises(TypeError):
        Endpoint.get("E", "/e").add_error(ValueError)  # type: ignore[arg-type]


def test_group_replaces_endpoint_with_same_name():
    """Last write wins for duplicate endpoint names."""
    first = Endpoint.get("Fetch", "/a")
    second = Endpoint.get("Fetch", "/b")
    group = ApiGroup("G").add(first).add(second)

    assert len(group.endpoints) == 1
    assert group.endpoints[0].path == "/b"


def test_api_replaces_group_with_same_name():
    api = (
        HttpApi()
        .add_group(ApiGroup("A").add(Endpoint.get("One", "/one")))
        .add_group(ApiGroup("B"))
        .add_group(ApiGroup("A").add(Endpoint.get("Two", "/two")))
    )

    assert [g.name for g in api.groups] == ["A", "B"]
    assert [e.name for e in api.groups[0].endpoints] == ["Two"]


def test_group_prefix_and_operation_id():
    group = ApiGroup("Organization").add(Endpoint.get("FetchRandomUser", "/users/random/:seed"))
    api = HttpApi().add_group(group, prefix="/organization")

    found = api.find("Organization.FetchRandomUser")
    assert found is not None
    group, endpoint = found
    assert full_path(group, endpoint) == "/organization/users/random/{seed}"
    assert operation_id(group, endpoint) == "Organization.FetchRandomUser"
    assert api.find("Organization-FetchRandomUser") == found
    assert api.find("Organization.Missing") is None


def test_sanitize_operation_id():
    assert sanitize_operation_id("Organization.FetchRandomUser") == "Organization-FetchRandomUser"
    assert sanitize_operation_id("a/b:c d") == "a-b-c-d"


def test_annotate_keeps_unset_values():
    api = HttpApi().annotate(title="T").annotate(version="2.0")
    assert (api.title, api.version) == ("T", "2.0")
