"""
Sink utilities for configuration parsing and name resolution.
"""

from __future__ import annotations

from typing import Any, Mapping, TypeVar

from pydantic import BaseModel, ValidationError

from ..core.errors import ConfigurationError

ConfigT = TypeVar("ConfigT", bound=BaseModel)


def parse_sink_config(
    model: type[ConfigT],
    config: ConfigT | Mapping[str, Any] | None = None,
    **kwargs: Any,
) -> ConfigT:
    """Build a sink config model from an instance, a mapping or keywords.

    Keyword arguments override mapping entries. Pydantic validation failures
    are raised as `ConfigurationError` so misconfiguration aborts startup
    with the same error type regardless of where the values came from.

    Args:
        model: Pydantic model class to validate against
        config: Existing model instance, mapping of fields, or None
        **kwargs: Field overrides

    Returns:
        Validated config instance
    """
    if isinstance(config, model) and not kwargs:
        return config
    data: dict[str, Any] = {}
    if isinstance(config, BaseModel):
        data.update(config.model_dump())
    elif config is not None:
        data.update(config)
    data.update(kwargs)
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        fields = sorted(
            ".".join(str(part) for part in err["loc"]) for err in exc.errors()
        )
        raise ConfigurationError(
            f"invalid {model.__name__}: {exc.error_count()} error(s) in {', '.join(fields)}",
            fields=fields,
            cause=exc,
        ) from exc


def get_sink_name(sink: Any) -> str:
    """Get the canonical name of a sink.

    Resolution order:
    1. sink.name attribute (if non-empty string)
    2. Class name (fallback)
    """
    name = getattr(sink, "name", None)
    if name and isinstance(name, str) and name.strip():
        result: str = name.strip()
        return result
    cls = sink if isinstance(sink, type) else sink.__class__
    class_name: str = cls.__name__
    return class_name


__all__ = ["get_sink_name", "parse_sink_config"]
