from __future__ import annotations

from typing import Protocol, runtime_checkable

from .forwarding import AsyncForwardingSink, ForwardingSink, ForwardingSinkConfig


@runtime_checkable
class WriterSink(Protocol):
    """Blocking sink contract expected by a logging facility.

    The facility hands over one encoded record per ``write()`` call, asks for
    pending data to be pushed with ``flush()`` and calls ``close()`` during
    shutdown. Errors are raised to the facility, which decides what to do.
    """

    def write(self, data: bytes) -> int:  # noqa: D401
        """Accept one encoded record and return the number of bytes taken."""
        ...

    def flush(self) -> None: ...

    def close(self) -> None: ...


@runtime_checkable
class BaseSink(Protocol):
    """Base async sink interface.

    Minimal contract: `write()` plus optional lifecycle hooks.
    """

    async def start(self) -> None:  # Optional lifecycle hook
        ...

    async def stop(self) -> None:  # Optional lifecycle hook
        ...

    async def write(self, _entry: dict) -> None:  # noqa: ARG002, D401
        """Write a single structured log entry to the sink destination."""
        ...


__all__ = [
    "AsyncForwardingSink",
    "BaseSink",
    "ForwardingSink",
    "ForwardingSinkConfig",
    "WriterSink",
]
