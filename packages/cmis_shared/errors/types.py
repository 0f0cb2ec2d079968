"""Canonical error types shared by the CMIS object client components.

Errors are plain data: operations report them on result envelopes instead of
raising, so batch operations can carry several of them at once.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping


class ErrorCategory(str, Enum):
    """Coarse error categories used to route failures at call sites."""

    UNSPECIFIED = "unspecified"
    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    POLICY = "policy"
    DEPENDENCY = "dependency"
    INTERNAL = "internal"


@dataclass(frozen=True)
class ErrorDetail:
    """One structured failure reported on an envelope or partial-failure report."""

    code: str
    message: str
    category: ErrorCategory
    retryable: bool = False
    metadata: Mapping[str, str] = field(default_factory=dict)

    def is_code(self, code: str) -> bool:
        """Return whether this error carries the given machine-readable code."""
        return self.code == code
