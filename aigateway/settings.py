# ModelMuxer (c) 2025 Ajay Rajput
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Centralized gateway settings.

This module provides a typed configuration system using Pydantic BaseSettings.
It organizes the gateway tunables into logical groups and loads values from the
environment and an optional .env file at the repository root.

Backend credentials are not part of these settings. They are resolved per
request by :func:`aigateway.credentials.resolve_credentials`, where a
caller-supplied header overrides the process environment.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class ProviderAdapterSettings(BaseSettings):
    """Timeouts for backend adapters and local model discovery."""

    timeout_ms: int = Field(
        default=60000,
        description="Deadline in milliseconds for a single completion call.",
        validation_alias=AliasChoices("AI_GATEWAY_TIMEOUT_MS", "PROVIDER_TIMEOUT_MS"),
    )
    discovery_timeout_ms: int = Field(
        default=2000,
        description="Deadline in milliseconds for the local model listing call.",
        validation_alias=AliasChoices("AI_GATEWAY_DISCOVERY_TIMEOUT_MS"),
    )
    discovery_ttl_sec: float = Field(
        default=60.0,
        description="Seconds a discovered local model list stays fresh.",
        validation_alias=AliasChoices("AI_GATEWAY_DISCOVERY_TTL_SEC"),
    )

    @field_validator("timeout_ms", "discovery_timeout_ms", "discovery_ttl_sec")
    @classmethod
    def _validate_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Value must be > 0")
        return value


class ProviderEndpointsSettings(BaseSettings):
    """Base URLs for the cloud backends (overridable for proxies and tests)."""

    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="OpenAI API base URL.",
        validation_alias=AliasChoices("OPENAI_BASE_URL"),
    )
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Gemini API base URL.",
        validation_alias=AliasChoices("GEMINI_BASE_URL", "GOOGLE_BASE_URL"),
    )

    @field_validator("openai_base_url", "gemini_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        if not isinstance(value, str) or "://" not in value:
            raise ValueError("Base URL must be an absolute http(s) URL")
        return value.rstrip("/")


class RouterSettings(BaseSettings):
    """Backend ordering policy used for automatic selection."""

    priority: Literal["local_first", "cloud_first"] = Field(
        default="local_first",
        description="Order of backends tried when the caller asks for 'auto'.",
        validation_alias=AliasChoices("AI_GATEWAY_PRIORITY", "ROUTER_PRIORITY"),
    )
    feature_backends: Annotated[dict[str, str], NoDecode] = Field(
        default_factory=dict,
        description="Feature hint to preferred backend, e.g. 'calendar=gemini,journal=openai'.",
        validation_alias=AliasChoices("AI_GATEWAY_FEATURE_BACKENDS"),
    )

    @field_validator("priority", mode="before")
    @classmethod
    def _normalize_priority(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower().replace("-", "_")
        return value

    @field_validator("feature_backends", mode="before")
    @classmethod
    def _parse_feature_backends(cls, value: Any) -> Any:
        """Accept a JSON object or a comma-separated list of feature=backend pairs."""
        if value is None or value == "":
            return {}
        if isinstance(value, str):
            text = value.strip()
            if text.startswith("{"):
                return json.loads(text)
            pairs: dict[str, str] = {}
            for chunk in text.split(","):
                if "=" not in chunk:
                    continue
                feature, backend = chunk.split("=", 1)
                if feature.strip() and backend.strip():
                    pairs[feature.strip().lower()] = backend.strip().lower()
            return pairs
        return value


class ObservabilitySettings(BaseSettings):
    """Logging and metrics settings."""

    log_level: str = Field(
        default="info",
        description="Log level for application logs.",
        validation_alias=AliasChoices("LOG_LEVEL", "OBS_LOG_LEVEL"),
    )
    log_json: bool = Field(
        default=False,
        description="Render logs as JSON lines instead of the console format.",
        validation_alias=AliasChoices("LOG_JSON", "OBS_LOG_JSON"),
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> str:
        """Normalize log level to lowercase string."""
        if isinstance(value, str):
            return value.lower()
        return str(value)


class GatewaySettings(BaseSettings):
    """Root settings object combining all configuration groups."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    providers: ProviderAdapterSettings = Field(default_factory=ProviderAdapterSettings)
    endpoints: ProviderEndpointsSettings = Field(default_factory=ProviderEndpointsSettings)
    router: RouterSettings = Field(default_factory=RouterSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)


settings = GatewaySettings()
