"""Unit tests for the HTTP/JSON transport request and error semantics."""

from __future__ import annotations

import json
from typing import Callable

import httpx
import pytest

from resources.adapters.cmis_transport import (
    CmisTransportSettings,
    HttpJsonTransport,
    ObjectOperation,
    TransportConnectivityError,
    TransportConstraintError,
    TransportContentAlreadyExistsError,
    TransportInternalError,
    TransportInvalidArgumentError,
    TransportNotFoundError,
    TransportPermissionError,
    TransportUpdateConflictError,
)


def _transport(
    handler: Callable[[httpx.Request], httpx.Response],
    *,
    api_key: str = "",
) -> HttpJsonTransport:
    """Build a transport whose HTTP exchanges are served by ``handler``."""
    return HttpJsonTransport(
        settings=CmisTransportSettings(
            base_url="http://repo.local/cmis/json", api_key=api_key
        ),
        http_transport=httpx.MockTransport(handler),
    )


def test_invoke_posts_json_to_repository_operation_path() -> None:
    """Invoke should POST camelCase parameters to ``/{repo}/{operation}``."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"objectId": "doc-1"})

    transport = _transport(handler, api_key="secret")

    result = transport.invoke(
        operation=ObjectOperation.GET_OBJECT,
        parameters={
            "repositoryId": "repo a",
            "objectId": "doc-1",
            "filter": "*",
            "renditionFilter": None,
        },
    )

    assert result == {"objectId": "doc-1"}
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/cmis/json/repo a/getObject"
    assert request.headers["Authorization"] == "Bearer secret"
    assert json.loads(request.content) == {"objectId": "doc-1", "filter": "*"}


def test_invoke_encodes_and_decodes_binary_values() -> None:
    """Bytes should travel as base64 objects in both directions."""
    bodies: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(
            200,
            json={"contentStream": {"content": {"base64": "aGVsbG8="}}},
        )

    transport = _transport(handler)

    result = transport.invoke(
        operation=ObjectOperation.SET_CONTENT_STREAM,
        parameters={
            "repositoryId": "repo",
            "objectId": "doc-1",
            "contentStream": {"content": b"hi", "mimeType": "text/plain"},
        },
    )

    assert bodies[0]["contentStream"] == {
        "content": {"base64": "aGk="},
        "mimeType": "text/plain",
    }
    assert result["contentStream"]["content"] == b"hello"


def test_empty_success_body_decodes_to_empty_mapping() -> None:
    """A 204-style empty response should decode to an empty mapping."""
    transport = _transport(lambda _request: httpx.Response(204))

    result = transport.invoke(
        operation=ObjectOperation.DELETE_OBJECT,
        parameters={"repositoryId": "repo", "objectId": "doc-1"},
    )

    assert result == {}


def test_missing_repository_id_is_invalid_argument() -> None:
    """Blank repository ids should fail before any HTTP exchange."""
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    transport = _transport(handler)

    with pytest.raises(TransportInvalidArgumentError):
        transport.invoke(
            operation=ObjectOperation.GET_OBJECT,
            parameters={"repositoryId": " ", "objectId": "doc-1"},
        )
    assert calls == []


@pytest.mark.parametrize(
    ("status_code", "error_type"),
    [
        (400, TransportInvalidArgumentError),
        (403, TransportPermissionError),
        (404, TransportNotFoundError),
        (409, TransportConstraintError),
        (412, TransportUpdateConflictError),
        (429, TransportConnectivityError),
        (503, TransportConnectivityError),
        (418, TransportInternalError),
    ],
)
def test_status_codes_map_to_typed_errors(
    status_code: int, error_type: type[Exception]
) -> None:
    """HTTP status codes should map to the typed transport failures."""
    transport = _transport(lambda _request: httpx.Response(status_code))

    with pytest.raises(error_type):
        transport.invoke(
            operation=ObjectOperation.GET_OBJECT,
            parameters={"repositoryId": "repo", "objectId": "doc-1"},
        )


def test_exception_name_in_body_refines_status_mapping() -> None:
    """A CMIS exception name in the body should win over the status code."""
    transport = _transport(
        lambda _request: httpx.Response(
            409,
            json={"exception": "contentAlreadyExists", "message": "has content"},
        )
    )

    with pytest.raises(TransportContentAlreadyExistsError, match="has content"):
        transport.invoke(
            operation=ObjectOperation.SET_CONTENT_STREAM,
            parameters={"repositoryId": "repo", "objectId": "doc-1"},
        )


def test_update_conflict_body_maps_even_on_conflict_status() -> None:
    """``updateConflict`` bodies should map to update-conflict failures."""
    transport = _transport(
        lambda _request: httpx.Response(409, json={"exception": "updateConflict"})
    )

    with pytest.raises(TransportUpdateConflictError):
        transport.invoke(
            operation=ObjectOperation.UPDATE_PROPERTIES,
            parameters={"repositoryId": "repo", "objectId": "doc-1"},
        )


def test_plain_text_error_body_keeps_status_mapping() -> None:
    """A non-JSON error body should keep the status mapping and its text."""
    transport = _transport(
        lambda _request: httpx.Response(404, content=b"  no such object\n")
    )

    with pytest.raises(TransportNotFoundError, match="^no such object$"):
        transport.invoke(
            operation=ObjectOperation.GET_OBJECT,
            parameters={"repositoryId": "repo", "objectId": "doc-1"},
        )


def test_request_errors_map_to_connectivity() -> None:
    """Network failures should map to connectivity failures."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    transport = _transport(handler)

    with pytest.raises(TransportConnectivityError):
        transport.invoke(
            operation=ObjectOperation.GET_OBJECT,
            parameters={"repositoryId": "repo", "objectId": "doc-1"},
        )


def test_non_object_or_invalid_json_maps_to_internal() -> None:
    """Responses that are not JSON objects should map to internal failures."""
    array_transport = _transport(lambda _request: httpx.Response(200, json=[1, 2]))
    text_transport = _transport(
        lambda _request: httpx.Response(200, content=b"not json")
    )

    with pytest.raises(TransportInternalError):
        array_transport.invoke(
            operation=ObjectOperation.GET_OBJECT,
            parameters={"repositoryId": "repo", "objectId": "doc-1"},
        )
    with pytest.raises(TransportInternalError):
        text_transport.invoke(
            operation=ObjectOperation.GET_OBJECT,
            parameters={"repositoryId": "repo", "objectId": "doc-1"},
        )


def test_type_constraints_reads_type_definition() -> None:
    """Type metadata lookups should map the type definition fields."""
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        return httpx.Response(
            200,
            json={
                "id": "cmis:document",
                "baseId": "cmis:document",
                "versionable": True,
                "contentStreamAllowed": "required",
            },
        )

    transport = _transport(handler)

    constraints = transport.type_constraints(
        repository_id="repo", type_id="cmis:document"
    )

    assert seen == ["/cmis/json/repo/getTypeDefinition"]
    assert constraints is not None
    assert constraints.versionable is True
    assert constraints.content_stream_allowed == "required"
    assert constraints.fileable is True


def test_type_constraints_unknown_type_returns_none() -> None:
    """Unknown types should resolve to ``None`` instead of raising."""
    transport = _transport(lambda _request: httpx.Response(404))

    assert transport.type_constraints(repository_id="repo", type_id="x:y") is None
