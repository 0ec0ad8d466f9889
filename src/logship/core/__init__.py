"""Core building blocks shared by logship sinks."""

from .errors import (
    ConfigurationError,
    DecodeError,
    DeliveryError,
    EncodeError,
    LogshipError,
    TransportError,
    UpstreamRejected,
)

__all__ = [
    "ConfigurationError",
    "DecodeError",
    "DeliveryError",
    "EncodeError",
    "LogshipError",
    "TransportError",
    "UpstreamRejected",
]
