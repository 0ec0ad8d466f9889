"""
Record decoding and batch encoding.

Both directions go through orjson so the bytes received from a logging
facility never pass through an intermediate ``str``. Records are queued as
encoded bytes and joined into a `SerializedView` that exposes the raw
request body.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import orjson

from .errors import DecodeError, EncodeError, ErrorSeverity

Record = dict[str, Any]


def _default(obj: Any) -> Any:
    """Default serializer hook for unsupported types.

    Keep minimal; records decoded from bytes are plain JSON types already.
    """
    if hasattr(obj, "model_dump"):
        return obj.model_dump(exclude_none=True)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


@dataclass
class SerializedView:
    """A lightweight container exposing zero-copy friendly views."""

    data: bytes

    @property
    def view(self) -> memoryview:
        return memoryview(self.data)

    def __bytes__(self) -> bytes:
        return self.data

    def __len__(self) -> int:
        return len(self.data)


def decode_record(data: bytes | bytearray | memoryview | str) -> Record:
    """Parse one JSON object from ``data``.

    Raises `DecodeError` when ``data`` is not valid JSON or when the
    top-level value is not an object.
    """
    try:
        value = orjson.loads(data)
    except orjson.JSONDecodeError as e:
        raise DecodeError(f"unmarshal failed: {e}", cause=e) from e
    if not isinstance(value, dict):
        raise DecodeError(
            f"unmarshal failed: expected a JSON object, got {type(value).__name__}",
            severity=ErrorSeverity.LOW,
        )
    return value


def encode_record(data: bytes | bytearray | memoryview | str) -> bytes:
    """Validate one JSON object and return the bytes queued for delivery.

    The record is kept as received, minus surrounding whitespace, so any
    object `decode_record` accepts can later be placed in a batch.

    Raises `DecodeError` under the same conditions as `decode_record`.
    """
    decode_record(data)
    if isinstance(data, str):
        return data.encode("utf-8").strip()
    return bytes(data).strip()


def serialize_batch(parts: Iterable[bytes]) -> SerializedView:
    """Join encoded records into a single JSON array, keeping their order."""
    return SerializedView(data=b"[" + b",".join(parts) + b"]")


def serialize_mapping_to_json_bytes(payload: Mapping[str, Any]) -> SerializedView:
    """Serialize a single mapping to JSON bytes."""
    try:
        data = orjson.dumps(payload, default=_default)
    except TypeError as e:
        raise EncodeError(f"marshal failed: {e}", cause=e) from e
    return SerializedView(data=data)


__all__ = [
    "Record",
    "SerializedView",
    "decode_record",
    "encode_record",
    "serialize_batch",
    "serialize_mapping_to_json_bytes",
]
