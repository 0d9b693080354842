"""Tests for Response classes and the invocation result they render to."""

import json

from httpapi_gateway.response import JSONResponse, PlainTextResponse, Response, flatten_headers


def test_response_round_trip():
    """Status, headers and body survive conversion unchanged."""
    response = Response("ok", status_code=201, headers={"x-test": "1"})

    assert response.to_lambda_response() == {
        "statusCode": 201,
        "headers": {"x-test": "1"},
        "body": "ok",
        "isBase64Encoded": False,
    }


def test_repeated_header_last_value_wins():
    response = Response("", headers=[("set-cookie", "a=1"), ("x-test", "1"), ("set-cookie", "b=2")])

    assert response.to_lambda_response()["headers"] == {"set-cookie": "b=2", "x-test": "1"}


def test_header_values_are_strings():
    assert flatten_headers({"x-count": 3}) == {"x-count": "3"}  # type: ignore[dict-item]
    assert flatten_headers(None) == {}


def test_bytes_body_is_decoded():
    response = Response(b"caf\xc3\xa9")
    assert response.to_lambda_response()["body"] == "café"


def test_invalid_utf8_is_replaced():
    response = Response(b"\xff")
    assert response.to_lambda_response()["body"] == "�"


def test_chunked_body_is_joined():
    response = Response([b"chunk-1,", "chunk-2"])
    assert response.to_lambda_response()["body"] == "chunk-1,chunk-2"


def test_empty_body():
    result = Response(status_code=204).to_lambda_response()

    assert result["body"] == ""
    assert result["headers"] == {}


def test_json_response():
    response = JSONResponse({"name": "alice", "city": "Zürich"}, status_code=200)
    result = response.to_lambda_response()

    assert result["headers"]["Content-Type"] == "application/json"
    assert result["body"] == '{"name":"alice","city":"Zürich"}'
    assert json.loads(result["body"]) == {"name": "alice", "city": "Zürich"}


def test_explicit_content_type_is_kept():
    response = JSONResponse({}, headers={"content-type": "application/problem+json"})

    assert response.headers == {"content-type": "application/problem+json"}


def test_plain_text_response():
    result = PlainTextResponse("OK").to_lambda_response()

    assert result["headers"] == {"Content-Type": "text/plain"}
    assert result["body"] == "OK"


def test_result_headers_are_a_copy():
    response = Response("ok", headers={"x-test": "1"})
    result = response.to_lambda_response()
    result["headers"]["x-other"] = "2"

    assert response.headers == {"x-test": "1"}
