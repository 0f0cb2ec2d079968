"""Optimistic-concurrency pair bookkeeping for mutating calls.

The repository compares change tokens; this module only threads the pair.
Every mutating operation returns the successor pair, and callers must use
it for their next call on the same object.
"""

from __future__ import annotations

from typing import Any, Mapping

from packages.cmis_shared.logging import get_logger
from services.state.object_service.codec import decode_id_and_token
from services.state.object_service.domain import ObjectIdAndChangeToken

_LOGGER = get_logger(__name__)


class ChangeTokenGuard:
    """Produce request parameters and successor pairs for one mutation."""

    def __init__(self, *, object_id: str, change_token: str | None) -> None:
        self._current = ObjectIdAndChangeToken(
            object_id=object_id, change_token=change_token
        )

    @property
    def current(self) -> ObjectIdAndChangeToken:
        return self._current

    def parameters(self) -> dict[str, Any]:
        """Return ``objectId`` and, when the caller supplied one, ``changeToken``."""
        params: dict[str, Any] = {"objectId": self._current.object_id}
        if self._current.change_token is not None:
            params["changeToken"] = self._current.change_token
        return params

    def successor(self, response: Mapping[str, Any]) -> ObjectIdAndChangeToken:
        """Return the authoritative pair after a successful mutation.

        Values the repository omits keep their supplied value; an unchanged
        token means the repository treated the call as a no-op.
        """
        successor = decode_id_and_token(response, fallback=self._current)
        if (
            self._current.change_token is not None
            and successor.change_token == self._current.change_token
        ):
            _LOGGER.debug(
                "change token unchanged after mutation: object_id=%s",
                successor.object_id,
            )
        return successor
