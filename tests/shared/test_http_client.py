"""Unit tests for the shared HTTP client wrapper."""

from __future__ import annotations

import json

import httpx
import pytest

from packages.cmis_shared.http import (
    HttpClient,
    HttpJsonDecodeError,
    HttpRequestError,
    HttpStatusError,
)


def _client(handler) -> HttpClient:
    return HttpClient(
        base_url="https://example.test",
        transport=httpx.MockTransport(handler),
    )


def test_http_client_post_json_returns_decoded_payload() -> None:
    """HttpClient.post_json should send JSON and decode the JSON response."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert json.loads(request.read()) == {"objectId": "doc-1"}
        return httpx.Response(200, json={"ok": True}, request=request)

    with _client(handler) as client:
        assert client.post_json("/repo/getObject", json={"objectId": "doc-1"}) == {
            "ok": True
        }


def test_http_client_decodes_empty_body_as_none() -> None:
    """A successful response without a body should decode to None."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(204, request=request)

    with _client(handler) as client:
        assert client.post_json("/repo/deleteObject", json={}) is None


def test_http_client_maps_status_failure_to_typed_error() -> None:
    """HttpClient should raise HttpStatusError on non-2xx status codes."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="unavailable", request=request)

    with _client(handler) as client:
        with pytest.raises(HttpStatusError) as exc_info:
            client.post_json("/repo/getObject", json={})

    error = exc_info.value
    assert error.method == "POST"
    assert error.status_code == 503
    assert error.retryable is True
    assert error.response_body == "unavailable"


def test_http_client_marks_client_errors_not_retryable() -> None:
    """4xx responses other than 408 and 429 are not retryable."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="missing", request=request)

    with _client(handler) as client:
        with pytest.raises(HttpStatusError) as exc_info:
            client.post_json("/repo/missing", json={})

    assert exc_info.value.status_code == 404
    assert exc_info.value.retryable is False


def test_http_client_maps_transport_failure_to_typed_error() -> None:
    """HttpClient should raise HttpRequestError on transport failures."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection failed", request=request)

    with _client(handler) as client:
        with pytest.raises(HttpRequestError) as exc_info:
            client.post_json("/repo/getObject", json={})

    error = exc_info.value
    assert error.method == "POST"
    assert error.url == "https://example.test/repo/getObject"
    assert error.retryable is True
    assert isinstance(error.cause, httpx.ConnectError)


def test_http_client_maps_json_decode_failure_to_typed_error() -> None:
    """HttpClient should raise HttpJsonDecodeError for invalid JSON payloads."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="not-json", request=request)

    with _client(handler) as client:
        with pytest.raises(HttpJsonDecodeError) as exc_info:
            client.post_json("/repo/getObject", json={})

    error = exc_info.value
    assert error.status_code == 200
    assert error.method == "POST"
    assert error.response_body == "not-json"
