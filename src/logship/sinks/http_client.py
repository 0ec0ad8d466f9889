"""
HTTP sending utilities for forwarding sinks.

`HttpSender` and `AsyncHttpSender` are thin wrappers around one
``httpx.Client`` / ``httpx.AsyncClient`` each. They POST pre-encoded JSON
bodies with default headers and HTTP Basic auth, and own the client only
when they created it.
"""

from __future__ import annotations

from typing import Any, Mapping

import httpx

JSON_HEADERS = {"Content-Type": "application/json"}


def _merge_headers(
    defaults: Mapping[str, str], headers: Mapping[str, str] | None
) -> dict[str, str]:
    merged = dict(defaults)
    if headers:
        merged.update(headers)
    return merged


def _client_kwargs(timeout_seconds: float | None) -> dict[str, Any]:
    # None keeps the httpx default timeout
    if timeout_seconds is None:
        return {}
    return {"timeout": httpx.Timeout(timeout_seconds)}


class HttpSender:
    """Blocking sender used by `ForwardingSink`."""

    def __init__(
        self,
        *,
        auth: httpx.Auth | tuple[str, str],
        default_headers: Mapping[str, str] | None = None,
        client: httpx.Client | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._auth = auth
        self._default_headers = _merge_headers(JSON_HEADERS, default_headers)
        self._owns_client = client is None
        if client is None:
            client = httpx.Client(**_client_kwargs(timeout_seconds))
        self._client = client

    def post_json_bytes(
        self,
        url: str,
        content: bytes,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        return self._client.post(
            url,
            content=content,
            headers=_merge_headers(self._default_headers, headers),
            auth=self._auth,
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


class AsyncHttpSender:
    """Asyncio counterpart of `HttpSender` used by `AsyncForwardingSink`."""

    def __init__(
        self,
        *,
        auth: httpx.Auth | tuple[str, str],
        default_headers: Mapping[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._auth = auth
        self._default_headers = _merge_headers(JSON_HEADERS, default_headers)
        self._owns_client = client is None
        self._client = client
        self._timeout_seconds = timeout_seconds

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(**_client_kwargs(self._timeout_seconds))

    async def post_json_bytes(
        self,
        url: str,
        content: bytes,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        if self._client is None:
            await self.start()
        assert self._client is not None
        return await self._client.post(
            url,
            content=content,
            headers=_merge_headers(self._default_headers, headers),
            auth=self._auth,
        )

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
