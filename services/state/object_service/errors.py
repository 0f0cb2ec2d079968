"""Object Service error codes and transport-failure mapping."""

from __future__ import annotations

from typing import Mapping

from packages.cmis_shared.errors import (
    ErrorDetail,
    codes,
    conflict_error,
    dependency_error,
    internal_error,
    not_found_error,
    policy_error,
    validation_error,
)
from resources.adapters.cmis_transport import (
    TransportConnectivityError,
    TransportConstraintError,
    TransportInternalError,
    TransportInvalidArgumentError,
    TransportNotFoundError,
    TransportPermissionError,
    TransportUpdateConflictError,
)

SERVICE_NAME = "object_service"

INVALID_ARGUMENT = codes.INVALID_ARGUMENT
OBJECT_NOT_FOUND = "OBJECT_NOT_FOUND"
FOLDER_NOT_FOUND = "FOLDER_NOT_FOUND"
CONSTRAINT_VIOLATION = "CONSTRAINT_VIOLATION"
UPDATE_CONFLICT = "UPDATE_CONFLICT"
STREAM_CLOSED = "STREAM_CLOSED"
PERMISSION_DENIED = codes.PERMISSION_DENIED
CONNECTIVITY_FAILURE = "CONNECTIVITY_FAILURE"
MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
UNEXPECTED_EXCEPTION = codes.UNEXPECTED_EXCEPTION


def error_metadata(operation: str, **fields: str | None) -> dict[str, str]:
    """Return base error metadata with ``None`` fields dropped."""
    metadata = {"service": SERVICE_NAME, "operation": operation}
    metadata.update({key: value for key, value in fields.items() if value is not None})
    return metadata


def invalid_argument(message: str, *, metadata: Mapping[str, str]) -> ErrorDetail:
    return validation_error(message, code=INVALID_ARGUMENT, metadata=metadata)


def constraint_violation(message: str, *, metadata: Mapping[str, str]) -> ErrorDetail:
    return conflict_error(message, code=CONSTRAINT_VIOLATION, metadata=metadata)


def update_conflict(message: str, *, metadata: Mapping[str, str]) -> ErrorDetail:
    return conflict_error(message, code=UPDATE_CONFLICT, metadata=metadata)


def stream_closed(message: str, *, metadata: Mapping[str, str]) -> ErrorDetail:
    return conflict_error(message, code=STREAM_CLOSED, metadata=metadata)


def malformed_response(message: str, *, metadata: Mapping[str, str]) -> ErrorDetail:
    return internal_error(message, code=MALFORMED_RESPONSE, metadata=metadata)


def transport_failure_to_error(
    exc: Exception,
    *,
    operation: str,
    metadata: Mapping[str, str],
    not_found_code: str = OBJECT_NOT_FOUND,
) -> ErrorDetail | None:
    """Map one typed transport failure into an ``ErrorDetail``.

    Returns ``None`` for exceptions outside the transport taxonomy so callers
    can log and report them as unexpected.
    """
    message = str(exc) or f"{operation} failed"
    merged = {**metadata, "exception_type": type(exc).__name__}
    if isinstance(exc, TransportInvalidArgumentError):
        return invalid_argument(message, metadata=merged)
    if isinstance(exc, TransportNotFoundError):
        return not_found_error(message, code=not_found_code, metadata=merged)
    if isinstance(exc, TransportUpdateConflictError):
        return update_conflict(message, metadata=merged)
    if isinstance(exc, TransportConstraintError):
        return constraint_violation(message, metadata=merged)
    if isinstance(exc, TransportPermissionError):
        return policy_error(message, code=PERMISSION_DENIED, metadata=merged)
    if isinstance(exc, TransportConnectivityError):
        return dependency_error(message, code=CONNECTIVITY_FAILURE, metadata=merged)
    if isinstance(exc, TransportInternalError):
        return malformed_response(message, metadata=merged)
    return None


def unexpected_error(
    exc: Exception, *, operation: str, metadata: Mapping[str, str]
) -> ErrorDetail:
    """Build the internal error reported for an unrecognized exception."""
    return internal_error(
        f"{operation} failed",
        code=UNEXPECTED_EXCEPTION,
        metadata={**metadata, "exception_type": type(exc).__name__},
    )
