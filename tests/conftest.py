"""Pytest configuration and shared fixtures."""

import pytest

from httpapi_gateway import ApiGroup, Endpoint, ForbiddenException, HttpApi, UnknownException
from tests.utils import NewUser, Paging, RandomUser, SeedPath


class FakeLambdaContext:
    function_name = "Organization-FetchRandomUser"
    aws_request_id = "req-1"


@pytest.fixture
def lambda_context() -> FakeLambdaContext:
    return FakeLambdaContext()


@pytest.fixture
def organization_api() -> HttpApi:
    """Two groups, one of them secured, covering path, query and payload schemas."""
    fetch_random_user = (
        Endpoint.get("FetchRandomUser", "/users/random/:seed")
        .set_path(SeedPath)
        .set_success(RandomUser)
        .add_error(UnknownException)
    )
    create_user = (
        Endpoint.post("CreateUser", "/users")
        .set_payload(NewUser)
        .set_success(RandomUser, status=201)
        .add_error(ForbiddenException)
    )
    list_users = Endpoint.get("ListUsers", "/users").set_urlparams(Paging).set_success(list[RandomUser])
    health = Endpoint.get("Health", "/health")

    organization = ApiGroup("Organization").annotate_security("Basic").add(fetch_random_user, create_user, list_users)
    system = ApiGroup("System").add(health)

    return HttpApi().add_group(organization).add_group(system).annotate(title="Test API", version="1.0.0")
