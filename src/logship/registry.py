"""
Explicit sink construction from typed configs or registration URIs.

Nothing is registered at import time. Host setup code either calls
`create_sink()` with a `ForwardingSinkConfig`, or builds a `SinkRegistry`
(usually via `default_registry()`) and opens sinks from URIs such as::

    oo://ingest.example.com/api/default/app/_json?proto=https&username=u&password=p

Any configuration problem raises `ConfigurationError` before a sink exists.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable
from urllib.parse import urlsplit

import httpx

from .core.errors import ConfigurationError
from .core.settings import Settings
from .metrics.metrics import MetricsCollector
from .sinks.forwarding import (
    AsyncForwardingSink,
    ForwardingSink,
    ForwardingSinkConfig,
)

# Factory signature: (uri, **options) -> sink
SinkFactory = Callable[..., Any]


def _normalize_scheme(scheme: str) -> str:
    return scheme.strip().lower()


def _default_metrics(
    metrics: MetricsCollector | None, settings: Settings | None
) -> MetricsCollector | None:
    if metrics is not None:
        return metrics
    settings = settings or Settings()
    if settings.core.enable_metrics:
        return MetricsCollector(enabled=True)
    return None


def create_sink(
    config: ForwardingSinkConfig,
    *,
    client: httpx.Client | None = None,
    metrics: MetricsCollector | None = None,
    settings: Settings | None = None,
) -> ForwardingSink:
    """Build a blocking forwarding sink from a typed config.

    A metrics collector is attached when one is passed or when
    ``LOGSHIP_CORE__ENABLE_METRICS`` is set.
    """
    return ForwardingSink(
        config, client=client, metrics=_default_metrics(metrics, settings)
    )


def create_async_sink(
    config: ForwardingSinkConfig,
    *,
    client: httpx.AsyncClient | None = None,
    metrics: MetricsCollector | None = None,
    settings: Settings | None = None,
) -> AsyncForwardingSink:
    """Asyncio counterpart of `create_sink`."""
    return AsyncForwardingSink(
        config, client=client, metrics=_default_metrics(metrics, settings)
    )


class SinkRegistry:
    """Maps URI schemes to sink factories.

    Registries are plain objects owned by the host; two registries never
    share state.
    """

    def __init__(self) -> None:
        self._factories: dict[str, SinkFactory] = {}

    def register(self, scheme: str, factory: SinkFactory) -> None:
        """Bind ``scheme`` to ``factory``; rebinding a scheme is an error."""
        canonical = _normalize_scheme(scheme)
        if not canonical:
            raise ConfigurationError("sink scheme must not be empty")
        if canonical in self._factories:
            raise ConfigurationError(
                f"sink factory already registered for scheme {canonical!r}",
                scheme=canonical,
            )
        self._factories[canonical] = factory

    def schemes(self) -> list[str]:
        return sorted(self._factories)

    def open(self, uri: str, **options: Any) -> Any:
        """Construct the sink registered for the scheme of ``uri``."""
        scheme = _normalize_scheme(urlsplit(uri).scheme)
        if not scheme:
            raise ConfigurationError(f"no scheme in sink URI {_redact_uri(uri)!r}")
        factory = self._factories.get(scheme)
        if factory is None:
            raise ConfigurationError(
                f"no sink registered for scheme {scheme!r}",
                scheme=scheme,
                available=self.schemes(),
            )
        return factory(uri, **options)


def _redact_uri(uri: str) -> str:
    """Strip the query string so credentials never end up in error messages."""
    return uri.split("?", 1)[0]


def open_forwarding_sink(uri: str, **options: Any) -> ForwardingSink:
    """Factory bound to the default scheme: parse ``uri`` and build a sink."""
    return create_sink(ForwardingSinkConfig.from_uri(uri), **options)


def default_registry(
    settings: Settings | None = None,
    *,
    extra: Iterable[tuple[str, SinkFactory]] = (),
) -> SinkRegistry:
    """Return a fresh registry with the forwarding sink bound to its scheme.

    The scheme defaults to ``oo`` and follows ``LOGSHIP_CORE__DEFAULT_SCHEME``.
    """
    settings = settings or Settings()
    registry = SinkRegistry()
    registry.register(settings.core.default_scheme, open_forwarding_sink)
    for scheme, factory in extra:
        registry.register(scheme, factory)
    return registry


def open_sink(
    uri: str, *, registry: SinkRegistry | None = None, **options: Any
) -> Any:
    """Open a sink from a registration URI using ``registry`` or the default one."""
    registry = registry or default_registry()
    return registry.open(uri, **options)


__all__ = [
    "SinkFactory",
    "SinkRegistry",
    "create_async_sink",
    "create_sink",
    "default_registry",
    "open_forwarding_sink",
    "open_sink",
]
