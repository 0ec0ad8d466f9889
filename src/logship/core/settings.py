"""
Ambient configuration for logship using Pydantic v2 Settings.

Destination credentials are never read from the environment; they come from
`ForwardingSinkConfig` or a registration URI. These settings only cover
process-wide toggles.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CoreSettings(BaseModel):
    """Core toggles shared by every sink in the process."""

    internal_logging_enabled: bool = Field(
        default=False,
        description="Emit DEBUG/WARN diagnostics for sink failures",
    )
    enable_metrics: bool = Field(
        default=False,
        description="Enable Prometheus-compatible metrics",
    )
    default_scheme: str = Field(
        default="oo",
        description="URI scheme the default registry binds the forwarding sink to",
    )

    @field_validator("default_scheme")
    @classmethod
    def _ensure_scheme_non_empty(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ValueError("default_scheme must not be empty")
        return value


class Settings(BaseSettings):
    """Top-level settings, read from ``LOGSHIP_*`` environment variables."""

    core: CoreSettings = Field(default_factory=CoreSettings)

    model_config = SettingsConfigDict(
        env_prefix="LOGSHIP_",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    def to_dict(self) -> dict[str, object]:
        from typing import cast

        return cast(dict[str, object], self.model_dump(exclude_none=True))
