"""Typed envelope returned by every object service operation."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from packages.cmis_shared.errors import ErrorCategory, ErrorDetail

from .meta import EnvelopeMeta
from .payload import Payload


T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Canonical typed envelope with metadata, payload, and errors."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    metadata: EnvelopeMeta
    payload: Payload[T] | None
    errors: list[ErrorDetail] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Return ``True`` when no errors are present."""
        return len(self.errors) == 0

    @property
    def has_payload(self) -> bool:
        """Return ``True`` when payload is present."""
        return self.payload is not None

    def first_error(self) -> ErrorDetail | None:
        """Return the first reported error, if any."""
        if not self.errors:
            return None
        return self.errors[0]

    def has_error_category(self, category: ErrorCategory) -> bool:
        """Return whether any reported error belongs to ``category``."""
        return any(item.category == category for item in self.errors)
