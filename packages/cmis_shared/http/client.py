"""Synchronous JSON-over-HTTP client used by repository bindings."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from .errors import HttpJsonDecodeError, HttpRequestError, HttpStatusError

# Status codes worth retrying by a caller that chooses to.
_RETRYABLE_STATUS = frozenset({408, 429})


class HttpClient:
    """Thin wrapper over ``httpx.Client`` that speaks JSON and raises typed errors.

    The client never retries; ``retryable`` on raised errors is advisory.
    """

    def __init__(
        self,
        *,
        base_url: str = "",
        timeout_seconds: float = 10.0,
        headers: Mapping[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout_seconds,
            headers=dict(headers or {}),
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    def post_json(self, url: str, *, json: Any) -> Any:
        """POST ``json`` and decode the JSON reply; an empty body decodes to None."""
        response = self._send("POST", url, json=json)
        if response.content == b"":
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise HttpJsonDecodeError(
                message=f"Invalid JSON response for POST {response.request.url}",
                method="POST",
                url=str(response.request.url),
                retryable=False,
                status_code=response.status_code,
                response_body=_body_text(response),
                cause=exc,
            ) from exc

    def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.RequestError as exc:
            target = _failed_url(exc, fallback=url)
            raise HttpRequestError(
                message=f"HTTP request failed for {method} {target}",
                method=method,
                url=target,
                retryable=True,
                cause=exc,
            ) from exc

        if response.is_error:
            status = response.status_code
            raise HttpStatusError(
                message=f"HTTP {status} for {method} {response.request.url}",
                method=method,
                url=str(response.request.url),
                retryable=status >= 500 or status in _RETRYABLE_STATUS,
                status_code=status,
                response_body=_body_text(response),
                response_headers=dict(response.headers.items()),
            )
        return response


def _body_text(response: httpx.Response) -> str:
    try:
        return response.text
    except UnicodeDecodeError:
        return ""


def _failed_url(exc: httpx.RequestError, *, fallback: str) -> str:
    """Return the failed request URL; httpx raises when none was attached."""
    try:
        return str(exc.request.url)
    except RuntimeError:
        return fallback
