"""
Tests for the runtime CORS middleware.
"""

import pytest

from httpapi_gateway import HttpApiApp, HTTPException
from httpapi_gateway.deploy import CorsPolicy
from httpapi_gateway.middleware.cors import CORSMiddleware
from httpapi_gateway.response import JSONResponse
from tests.utils import make_event

PRODUCTION_POLICY = CorsPolicy.for_stage(True, ("https://example.com", "https://test.com"))


def make_app(api, policy: CorsPolicy, **options) -> HttpApiApp:
    app = HttpApiApp(api, cors=False)
    app.add_middleware(CORSMiddleware, policy=policy, **options)
    app.handle("System.Health", lambda: {"status": "ok"})
    return app


@pytest.fixture
def app_with_cors(organization_api):
    """App with the production allow-list."""
    return make_app(organization_api, PRODUCTION_POLICY, max_age=3600)


@pytest.fixture
def app_with_cors_wildcard(organization_api):
    """App with the default wildcard CORS."""
    app = HttpApiApp(organization_api)
    app.handle("System.Health", lambda: {"status": "ok"})
    return app


@pytest.mark.asyncio
async def test_cors_simple_request_allowed_origin(app_with_cors):
    """Test CORS headers on simple request with allowed origin."""
    response = await app_with_cors(make_event("GET", "/health", headers={"origin": "https://example.com"}))

    assert response["statusCode"] == 200
    assert response["headers"]["Access-Control-Allow-Origin"] == "https://example.com"
    assert response["headers"]["Vary"] == "Origin"


@pytest.mark.asyncio
async def test_cors_simple_request_disallowed_origin(app_with_cors):
    """Request succeeds but the origin is not echoed back."""
    response = await app_with_cors(make_event("GET", "/health", headers={"origin": "https://evil.com"}))

    assert response["statusCode"] == 200
    assert "Access-Control-Allow-Origin" not in response["headers"]


@pytest.mark.asyncio
async def test_cors_preflight_allowed(app_with_cors):
    """Preflight is answered without authentication or routing."""
    event = make_event(
        "OPTIONS",
        "/users",
        headers={
            "origin": "https://example.com",
            "access-control-request-method": "POST",
            "access-control-request-headers": "Authorization, Content-Type",
        },
        claims=None,
    )
    response = await app_with_cors(event)

    assert response["statusCode"] == 200
    assert response["body"] == "OK"
    assert response["headers"]["Access-Control-Allow-Origin"] == "https://example.com"
    assert response["headers"]["Access-Control-Allow-Methods"] == "GET,OPTIONS,POST,PUT,DELETE,HEAD"
    assert "authorization" in response["headers"]["Access-Control-Allow-Headers"]
    assert response["headers"]["Access-Control-Max-Age"] == "3600"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "headers, failure",
    [
        ({"origin": "https://evil.com", "access-control-request-method": "GET"}, "origin"),
        ({"origin": "https://example.com", "access-control-request-method": "PATCH"}, "method"),
        (
            {
                "origin": "https://example.com",
                "access-control-request-method": "GET",
                "access-control-request-headers": "X-Evil-Header",
            },
            "headers",
        ),
    ],
)
async def test_cors_preflight_disallowed(app_with_cors, headers, failure):
    response = await app_with_cors(make_event("OPTIONS", "/users", headers=headers))

    assert response["statusCode"] == 400
    assert response["body"] == f"Disallowed CORS {failure}"


@pytest.mark.asyncio
async def test_cors_wildcard_origin(app_with_cors_wildcard):
    response = await app_with_cors_wildcard(make_event("GET", "/health", headers={"origin": "https://any.com"}))

    assert response["statusCode"] == 200
    assert response["headers"]["Access-Control-Allow-Origin"] == "*"
    assert "Vary" not in response["headers"]


@pytest.mark.asyncio
async def test_cors_no_origin_header(app_with_cors):
    response = await app_with_cors(make_event("GET", "/health"))

    assert response["statusCode"] == 200
    assert "Access-Control-Allow-Origin" not in response["headers"]


@pytest.mark.asyncio
@pytest.mark.parametrize("debug", [True, False])
async def test_cors_on_undeclared_error(organization_api, debug):
    """CORS headers are present on 500 results too."""
    app = HttpApiApp(organization_api, debug=debug)

    @app.handler("System.Health")
    def crash():
        raise Exception("Unhandled exception!")

    response = await app(make_event("GET", "/health", headers={"origin": "https://example.com"}))

    assert response["statusCode"] == 500
    assert response["headers"]["Access-Control-Allow-Origin"] == "*"


@pytest.mark.asyncio
async def test_cors_on_unauthorized(app_with_cors_wildcard):
    event = make_event("GET", "/health", headers={"origin": "https://example.com"}, claims=None)
    response = await app_with_cors_wildcard(event)

    assert response["statusCode"] == 401
    assert response["headers"]["Access-Control-Allow-Origin"] == "*"


@pytest.mark.asyncio
async def test_cors_on_http_exception(organization_api):
    app = HttpApiApp(organization_api)

    @app.handler("System.Health")
    def gone():
        raise HTTPException(status_code=410, detail="Gone")

    response = await app(make_event("GET", "/health", headers={"origin": "https://example.com"}))

    assert response["statusCode"] == 410
    assert response["headers"]["Access-Control-Allow-Origin"] == "*"


@pytest.mark.asyncio
async def test_cors_preflight_wildcard_headers(organization_api):
    """Wildcard headers mirror the requested headers."""
    app = make_app(organization_api, CorsPolicy(allow_origins=("https://example.com",), allow_headers=("*",)))

    event = make_event(
        "OPTIONS",
        "/users",
        headers={
            "origin": "https://example.com",
            "access-control-request-method": "POST",
            "access-control-request-headers": "X-Custom-1, X-Custom-2",
        },
    )
    response = await app(event)

    assert response["statusCode"] == 200
    assert response["headers"]["Access-Control-Allow-Headers"] == "X-Custom-1, X-Custom-2"


@pytest.mark.asyncio
async def test_cors_vary_header_append(organization_api):
    """Vary is appended to when the endpoint already set it."""
    app = HttpApiApp(organization_api, cors=False)
    app.add_middleware(CORSMiddleware, policy=PRODUCTION_POLICY)

    @app.handler("System.Health")
    async def health():
        return JSONResponse({"status": "ok"}, headers={"Vary": "Accept-Encoding"})

    response = await app(make_event("GET", "/health", headers={"origin": "https://example.com"}))

    assert response["headers"]["Vary"] == "Accept-Encoding, Origin"
