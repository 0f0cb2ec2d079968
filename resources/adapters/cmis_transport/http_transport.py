"""HTTP/JSON transport for repository object operations.

Each operation is one ``POST {base_url}/{repositoryId}/{operation}`` carrying
the parameters as a JSON object. Binary values travel as ``{"base64": ...}``
objects in both directions.
"""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from urllib import parse as urllib_parse

import httpx

from packages.cmis_shared.http import (
    HttpClient,
    HttpJsonDecodeError,
    HttpRequestError,
    HttpStatusError,
)
from packages.cmis_shared.logging import get_logger, public_api_instrumented
from resources.adapters.cmis_transport.adapter import (
    CmisTransport,
    ObjectOperation,
    RepositoryMetadata,
    TransportConnectivityError,
    TransportConstraintError,
    TransportContentAlreadyExistsError,
    TransportError,
    TransportInternalError,
    TransportInvalidArgumentError,
    TransportNotFoundError,
    TransportPermissionError,
    TransportUpdateConflictError,
    TypeConstraints,
)
from resources.adapters.cmis_transport.component import RESOURCE_COMPONENT_ID
from resources.adapters.cmis_transport.config import CmisTransportSettings

_LOGGER = get_logger(__name__)

_BINARY_KEY = "base64"

# CMIS exception names reported in error bodies.
_EXCEPTION_NAME_TO_ERROR: dict[str, type[TransportError]] = {
    "invalidArgument": TransportInvalidArgumentError,
    "filterNotValid": TransportInvalidArgumentError,
    "objectNotFound": TransportNotFoundError,
    "permissionDenied": TransportPermissionError,
    "constraint": TransportConstraintError,
    "nameConstraintViolation": TransportConstraintError,
    "streamNotSupported": TransportConstraintError,
    "versioning": TransportConstraintError,
    "notSupported": TransportConstraintError,
    "contentAlreadyExists": TransportContentAlreadyExistsError,
    "updateConflict": TransportUpdateConflictError,
    "storage": TransportConnectivityError,
    "runtime": TransportInternalError,
}

_STATUS_TO_ERROR: dict[int, type[TransportError]] = {
    400: TransportInvalidArgumentError,
    401: TransportPermissionError,
    403: TransportPermissionError,
    404: TransportNotFoundError,
    405: TransportConstraintError,
    409: TransportConstraintError,
    412: TransportUpdateConflictError,
}


class HttpJsonTransport(CmisTransport, RepositoryMetadata):
    """Transport and type-metadata provider backed by one HTTP endpoint."""

    def __init__(
        self,
        *,
        settings: CmisTransportSettings,
        http_transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        api_key = settings.api_key.strip()
        if api_key != "":
            headers["Authorization"] = f"Bearer {api_key}"
        self._settings = settings
        self._client = HttpClient(
            base_url=settings.base_url,
            timeout_seconds=settings.timeout_seconds,
            headers=headers,
            transport=http_transport,
        )

    def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        self._client.close()

    def __enter__(self) -> HttpJsonTransport:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=RESOURCE_COMPONENT_ID,
        id_fields=("operation",),
    )
    def invoke(
        self, *, operation: ObjectOperation, parameters: Mapping[str, Any]
    ) -> Mapping[str, Any]:
        """Dispatch one operation and return the decoded response mapping."""
        repository_id = str(parameters.get("repositoryId", "")).strip()
        if repository_id == "":
            raise TransportInvalidArgumentError("repositoryId is required")

        body = {
            key: encode_value(value)
            for key, value in parameters.items()
            if key != "repositoryId" and value is not None
        }
        try:
            decoded = self._client.post_json(
                _operation_endpoint(repository_id, operation), json=body
            )
        except HttpStatusError as exc:
            raise _status_failure(exc) from None
        except HttpRequestError as exc:
            raise TransportConnectivityError(str(exc)) from None
        except HttpJsonDecodeError as exc:
            raise TransportInternalError(str(exc)) from None

        if decoded is None:
            return {}
        if not isinstance(decoded, Mapping):
            raise TransportInternalError(
                f"{operation.value} response must be a JSON object"
            )
        return decode_value(decoded)

    def type_constraints(
        self, *, repository_id: str, type_id: str
    ) -> TypeConstraints | None:
        """Look up one type definition; unknown types yield ``None``."""
        try:
            raw = self.invoke(
                operation=ObjectOperation.GET_TYPE_DEFINITION,
                parameters={"repositoryId": repository_id, "typeId": type_id},
            )
        except TransportNotFoundError:
            return None
        return TypeConstraints(
            type_id=str(raw.get("id", type_id)),
            base_type_id=str(raw.get("baseId", "")),
            creatable=bool(raw.get("creatable", True)),
            fileable=bool(raw.get("fileable", True)),
            versionable=bool(raw.get("versionable", False)),
            content_stream_allowed=str(raw.get("contentStreamAllowed", "allowed")),
            allowed_source_types=tuple(raw.get("allowedSourceTypes") or ()),
            allowed_target_types=tuple(raw.get("allowedTargetTypes") or ()),
        )


def encode_value(value: Any) -> Any:
    """Encode one parameter value into a JSON-compatible structure."""
    if isinstance(value, (bytes, bytearray)):
        return {_BINARY_KEY: base64.b64encode(bytes(value)).decode("ascii")}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Mapping):
        return {str(key): encode_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [encode_value(item) for item in value]
    return value


def decode_value(value: Any) -> Any:
    """Decode one JSON response value, restoring binary payloads."""
    if isinstance(value, Mapping):
        if set(value) == {_BINARY_KEY}:
            try:
                return base64.b64decode(str(value[_BINARY_KEY]), validate=True)
            except (binascii.Error, ValueError):
                raise TransportInternalError("invalid base64 payload") from None
        return {str(key): decode_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [decode_value(item) for item in value]
    return value


def _operation_endpoint(repository_id: str, operation: ObjectOperation) -> str:
    """Build the encoded endpoint path for one repository operation."""
    return f"/{urllib_parse.quote(repository_id, safe='')}/{operation.value}"


def _status_failure(exc: HttpStatusError) -> TransportError:
    """Map one HTTP status failure into a typed transport failure."""
    name, message = _error_body(exc.response_body)
    text = message or exc.message
    if name in _EXCEPTION_NAME_TO_ERROR:
        return _EXCEPTION_NAME_TO_ERROR[name](text)
    if exc.retryable:
        return TransportConnectivityError(text)
    error_type = _STATUS_TO_ERROR.get(exc.status_code, TransportInternalError)
    return error_type(text)


def _error_body(raw: str) -> tuple[str, str]:
    """Extract the CMIS exception name and message from an error body."""
    if raw.strip() == "":
        return "", ""
    try:
        payload = json.loads(raw)
    except ValueError:
        return "", raw.strip()
    if not isinstance(payload, Mapping):
        return "", ""
    name = payload.get("exception")
    message = payload.get("message")
    return (
        name if isinstance(name, str) else "",
        message.strip() if isinstance(message, str) else "",
    )
