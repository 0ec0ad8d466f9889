"""
Public entrypoints for logship.

logship forwards JSON log records to an HTTP ingestion endpoint. Hosts build
sinks explicitly, either from a typed config or from a registration URI:

```python
import logging

from logship import ForwardingHandler, ForwardingSinkConfig, create_sink

sink = create_sink(
    ForwardingSinkConfig(
        url="https://ingest.example.com/api/default/app/_json",
        username="svc",
        password="secret",
    )
)
logging.getLogger().addHandler(ForwardingHandler(sink))

# or, from a URI
from logship import open_sink

sink = open_sink("oo://ingest.example.com/api/default/app/_json?proto=https&username=svc&password=secret")
```
"""

from __future__ import annotations

from ._version import __version__
from .core.errors import (
    ConfigurationError,
    DecodeError,
    DeliveryError,
    EncodeError,
    LogshipError,
    TransportError,
    UpstreamRejected,
)
from .core.settings import Settings
from .handler import ForwardingHandler
from .metrics.metrics import MetricsCollector
from .registry import (
    SinkRegistry,
    create_async_sink,
    create_sink,
    default_registry,
    open_sink,
)
from .sinks import (
    AsyncForwardingSink,
    ForwardingSink,
    ForwardingSinkConfig,
    WriterSink,
)

VERSION = __version__

__all__ = [
    "AsyncForwardingSink",
    "ConfigurationError",
    "DecodeError",
    "DeliveryError",
    "EncodeError",
    "ForwardingHandler",
    "ForwardingSink",
    "ForwardingSinkConfig",
    "LogshipError",
    "MetricsCollector",
    "Settings",
    "SinkRegistry",
    "TransportError",
    "UpstreamRejected",
    "VERSION",
    "WriterSink",
    "__version__",
    "create_async_sink",
    "create_sink",
    "default_registry",
    "open_sink",
]
