"""Chunked content-stream append channel."""

from __future__ import annotations

from enum import StrEnum

from services.state.object_service.domain import ObjectIdAndChangeToken


class ChannelState(StrEnum):
    """Lifecycle of one chunked append sequence."""

    OPEN = "open"
    APPENDING = "appending"
    CLOSED = "closed"


class StreamClosedError(RuntimeError):
    """A chunk was offered after the final chunk was sent."""


class ContentStreamChannel:
    """Caller-owned state of one in-progress chunked upload.

    The channel enforces the order it is invoked in; it does not serialize
    concurrent writers. One logical writer per object is the caller's job.
    """

    def __init__(
        self, *, repository_id: str, object_id: str, change_token: str | None = None
    ) -> None:
        self._repository_id = repository_id
        self._pair = ObjectIdAndChangeToken(
            object_id=object_id, change_token=change_token
        )
        self._state = ChannelState.OPEN
        self._chunks_sent = 0
        self._bytes_sent = 0

    def __repr__(self) -> str:
        return (
            f"ContentStreamChannel(object_id={self._pair.object_id!r}, "
            f"state={self._state.value}, chunks_sent={self._chunks_sent})"
        )

    @property
    def repository_id(self) -> str:
        return self._repository_id

    @property
    def pair(self) -> ObjectIdAndChangeToken:
        """Latest (object id, change token) pair observed for the target."""
        return self._pair

    @property
    def object_id(self) -> str:
        return self._pair.object_id

    @property
    def change_token(self) -> str | None:
        return self._pair.change_token

    @property
    def state(self) -> ChannelState:
        return self._state

    @property
    def is_closed(self) -> bool:
        return self._state == ChannelState.CLOSED

    @property
    def chunks_sent(self) -> int:
        return self._chunks_sent

    @property
    def bytes_sent(self) -> int:
        return self._bytes_sent

    def record_chunk(
        self,
        *,
        successor: ObjectIdAndChangeToken,
        chunk_bytes: int,
        is_last_chunk: bool,
    ) -> None:
        """Advance the channel after the repository accepted one chunk."""
        if self.is_closed:
            raise StreamClosedError(
                f"content stream for {self._pair.object_id} is already closed"
            )
        self._pair = successor
        self._chunks_sent += 1
        self._bytes_sent += chunk_bytes
        self._state = ChannelState.CLOSED if is_last_chunk else ChannelState.APPENDING
