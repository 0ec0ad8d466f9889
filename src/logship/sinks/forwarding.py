"""
Forwarding sink: ship JSON log records to an HTTP ingestion endpoint.

Every write decodes one JSON object, queues it and immediately flushes the
whole pending batch as a single JSON array POST with HTTP Basic auth. The
batch is only drained when the endpoint answers 200, so a failed flush keeps
every record for the next attempt (at-least-once delivery).

Two flavours share the same semantics:

- `ForwardingSink` is a blocking, file-like writer (``write/flush/close``)
  suitable for ``logging.StreamHandler``-style integrations.
- `AsyncForwardingSink` follows the async sink lifecycle
  (``start/stop/write``) for asyncio hosts.
"""

from __future__ import annotations

import asyncio
import threading
import time
from typing import Any, Mapping
from urllib.parse import parse_qs, urlsplit

import httpx
import orjson
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
)

from ..core import diagnostics
from ..core.errors import (
    ConfigurationError,
    DecodeError,
    DeliveryError,
    TransportError,
    UpstreamRejected,
)
from ..core.serialization import (
    Record,
    SerializedView,
    encode_record,
    serialize_batch,
    serialize_mapping_to_json_bytes,
)
from ..metrics.metrics import MetricsCollector
from .http_client import AsyncHttpSender, HttpSender
from .utils import get_sink_name, parse_sink_config

__all__ = ["AsyncForwardingSink", "ForwardingSink", "ForwardingSinkConfig"]

_SUPPORTED_PROTOS = ("http", "https")


class ForwardingSinkConfig(BaseModel):
    """Destination of a forwarding sink: endpoint URL and Basic credentials."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    url: str
    username: str
    password: SecretStr
    timeout_seconds: float | None = Field(default=None, gt=0.0)
    headers: dict[str, str] = Field(default_factory=dict)

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("url must not be empty")
        parts = urlsplit(value)
        if parts.scheme.lower() not in _SUPPORTED_PROTOS:
            raise ValueError("url scheme must be http or https")
        if not parts.netloc:
            raise ValueError("url must include a host")
        return value

    @field_validator("username")
    @classmethod
    def _validate_username(cls, value: str) -> str:
        if not value:
            raise ValueError("username must not be empty")
        return value

    @field_validator("password")
    @classmethod
    def _validate_password(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value():
            raise ValueError("password must not be empty")
        return value

    @field_validator("headers", mode="before")
    @classmethod
    def _coerce_headers(cls, value: Mapping[str, str] | None) -> dict[str, str]:
        if value is None:
            return {}
        return dict(value)

    @field_validator("headers")
    @classmethod
    def _validate_headers(cls, value: dict[str, str]) -> dict[str, str]:
        for name, header in value.items():
            try:
                name.encode("ascii")
                header.encode("ascii")
            except UnicodeEncodeError:
                raise ValueError(
                    f"header {name!r} must contain only ASCII characters"
                ) from None
        return value

    @classmethod
    def from_uri(cls, uri: str) -> ForwardingSinkConfig:
        """Parse a registration URI into a config.

        The URI has the form
        ``scheme://host/path?proto=<http|https>&username=<u>&password=<p>``
        and the destination becomes ``<proto>://<host><path>``. The URI scheme
        itself is not checked here; that is the registry's job.

        Raises:
            ConfigurationError: a host, ``proto``, ``username`` or
                ``password`` is missing, or ``proto`` is not http(s).
        """
        parts = urlsplit(uri)
        # Drop any userinfo; only host[:port] is part of the destination
        host = parts.netloc.rpartition("@")[2]
        if not host:
            raise ConfigurationError("missing host", scheme=parts.scheme)
        query = parse_qs(parts.query)

        def _required(key: str) -> str:
            values = query.get(key)
            if not values or not values[0]:
                raise ConfigurationError(f"missing {key}", scheme=parts.scheme)
            return values[0]

        proto = _required("proto").lower()
        if proto not in _SUPPORTED_PROTOS:
            raise ConfigurationError(
                f"unsupported proto: {proto}", scheme=parts.scheme
            )
        username = _required("username")
        password = _required("password")
        return parse_sink_config(
            cls,
            url=f"{proto}://{host}{parts.path}",
            username=username,
            password=password,
        )


class _ForwardingSinkBase:
    """State and response handling shared by the sync and async sinks.

    Subclasses own the lock that guards ``_pending``; every method here
    expects that lock to be held by the caller.
    """

    name = "forwarding"

    def __init__(
        self,
        config: ForwardingSinkConfig | Mapping[str, Any] | None,
        *,
        metrics: MetricsCollector | None,
        **kwargs: Any,
    ) -> None:
        self._config = parse_sink_config(ForwardingSinkConfig, config, **kwargs)
        self._metrics = metrics
        self._pending: list[bytes] = []
        self._closed = False
        self._last_status: int | None = None
        self._last_error: str | None = None

    @property
    def config(self) -> ForwardingSinkConfig:
        return self._config

    @property
    def url(self) -> str:
        return self._config.url

    @property
    def closed(self) -> bool:
        return self._closed

    def _auth(self) -> httpx.BasicAuth:
        return httpx.BasicAuth(
            self._config.username, self._config.password.get_secret_value()
        )

    def _check_open(self) -> None:
        if self._closed:
            raise ValueError("I/O operation on closed sink")

    def _transport_failure(self, exc: Exception, records: int) -> TransportError:
        self._last_status = None
        self._last_error = str(exc)
        diagnostics.warn(
            "forwarding-sink",
            "exception while delivering batch",
            sink=get_sink_name(self),
            endpoint=self.url,
            records=records,
            error=str(exc),
        )
        if self._metrics is not None:
            self._metrics.record_flush_failure("transport")
        return TransportError(f"request failed: {exc}", url=self.url, cause=exc)

    def _complete(
        self, response: httpx.Response, view: SerializedView, started: float
    ) -> None:
        """Drain the batch on 200, otherwise raise `UpstreamRejected`."""
        records = len(self._pending)
        self._last_status = response.status_code
        if response.status_code != httpx.codes.OK:
            self._last_error = f"status {response.status_code}"
            diagnostics.warn(
                "forwarding-sink",
                "failed to deliver batch",
                sink=get_sink_name(self),
                status_code=response.status_code,
                endpoint=self.url,
                records=records,
            )
            if self._metrics is not None:
                self._metrics.record_flush_failure("rejected")
            raise UpstreamRejected(
                status_code=response.status_code, url=self.url, body=view.data
            )
        self._last_error = None
        self._pending.clear()
        if self._metrics is not None:
            self._metrics.record_flush_success(
                records, duration_seconds=time.perf_counter() - started
            )
        diagnostics.debug(
            "forwarding-sink", "delivered batch", endpoint=self.url, records=records
        )

    def _pending_records(self) -> list[Record]:
        return [orjson.loads(part) for part in self._pending]

    def _healthy(self) -> bool:
        return self._last_error is None and self._last_status == httpx.codes.OK


class ForwardingSink(_ForwardingSinkBase):
    """Blocking forwarding sink with a file-like ``write/flush/close`` API.

    ``write()`` returns the number of input bytes once the record is queued.
    When the flush that follows fails, the delivery error is raised with
    ``bytes_written`` set; the record stays queued for the next flush.

    A lock guards the pending batch, so one instance may be shared by
    threads; each call blocks for one HTTP round trip at most.
    """

    def __init__(
        self,
        config: ForwardingSinkConfig | Mapping[str, Any] | None = None,
        *,
        client: httpx.Client | None = None,
        metrics: MetricsCollector | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(config, metrics=metrics, **kwargs)
        self._lock = threading.RLock()
        self._sender = HttpSender(
            auth=self._auth(),
            default_headers=self._config.headers,
            client=client,
            timeout_seconds=self._config.timeout_seconds,
        )
        self.last_write_count = 0

    @property
    def pending(self) -> list[Record]:
        """Snapshot of queued, undelivered records in arrival order."""
        with self._lock:
            return self._pending_records()

    def health_check(self) -> bool:
        """True when the last flush reached the endpoint and got a 200."""
        with self._lock:
            return self._healthy()

    def writable(self) -> bool:
        return not self._closed

    def write(self, data: bytes) -> int:
        """Queue one JSON object and flush the pending batch.

        Raises:
            DecodeError: ``data`` is not a JSON object; nothing is queued.
            TransportError, UpstreamRejected: the flush failed; the record
                remains queued.
        """
        with self._lock:
            self._check_open()
            part = encode_record(data)
            written = len(data)
            self._pending.append(part)
            self.last_write_count = written
            try:
                self._flush_locked()
            except DeliveryError as exc:
                exc.bytes_written = written
                raise
            return written

    def flush(self) -> None:
        """POST every queued record; no-op when nothing is pending."""
        with self._lock:
            self._check_open()
            self._flush_locked()

    def _flush_locked(self) -> None:
        if not self._pending:
            return
        view = serialize_batch(self._pending)
        records = len(self._pending)
        started = time.perf_counter()
        try:
            response = self._sender.post_json_bytes(self.url, view.data)
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as exc:
            raise self._transport_failure(exc, records) from exc
        self._complete(response, view, started)

    def close(self) -> None:
        """Flush once and release the HTTP client.

        Records that fail to deliver here are lost when the process exits.
        """
        with self._lock:
            if self._closed:
                return
            try:
                self._flush_locked()
            finally:
                self._closed = True
                self._sender.close()

    def __enter__(self) -> ForwardingSink:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()


class AsyncForwardingSink(_ForwardingSinkBase):
    """Asyncio forwarding sink following the ``start/stop/write`` lifecycle."""

    def __init__(
        self,
        config: ForwardingSinkConfig | Mapping[str, Any] | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        metrics: MetricsCollector | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(config, metrics=metrics, **kwargs)
        self._lock = asyncio.Lock()
        self._sender = AsyncHttpSender(
            auth=self._auth(),
            default_headers=self._config.headers,
            client=client,
            timeout_seconds=self._config.timeout_seconds,
        )

    @property
    def pending(self) -> list[Record]:
        return self._pending_records()

    async def start(self) -> None:
        await self._sender.start()

    async def health_check(self) -> bool:
        return self._healthy()

    async def stop(self) -> None:
        async with self._lock:
            if self._closed:
                return
            try:
                await self._flush_locked()
            finally:
                self._closed = True
                await self._sender.aclose()

    async def write(self, entry: Mapping[str, Any]) -> None:
        """Queue a structured entry and flush.

        The entry is normalized to plain JSON types first, so a value that
        cannot be encoded raises `EncodeError` without being queued.
        """
        if not isinstance(entry, Mapping):
            raise DecodeError(
                f"unmarshal failed: expected a mapping, got {type(entry).__name__}"
            )
        part = encode_record(serialize_mapping_to_json_bytes(entry).data)
        async with self._lock:
            self._check_open()
            self._pending.append(part)
            await self._flush_locked()

    async def write_serialized(self, view: Any) -> int:
        """Queue pre-serialized JSON bytes (``view.data`` or bytes-like)."""
        data = bytes(getattr(view, "data", view))
        async with self._lock:
            self._check_open()
            part = encode_record(data)
            self._pending.append(part)
            try:
                await self._flush_locked()
            except DeliveryError as exc:
                exc.bytes_written = len(data)
                raise
            return len(data)

    async def flush(self) -> None:
        async with self._lock:
            self._check_open()
            await self._flush_locked()

    async def _flush_locked(self) -> None:
        if not self._pending:
            return
        view = serialize_batch(self._pending)
        records = len(self._pending)
        started = time.perf_counter()
        try:
            response = await self._sender.post_json_bytes(self.url, view.data)
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as exc:
            raise self._transport_failure(exc, records) from exc
        self._complete(response, view, started)

