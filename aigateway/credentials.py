# ModelMuxer (c) 2025 Ajay Rajput
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Credential resolution for a single gateway request.

Every value is taken from the first non-blank source among the caller's
headers, the process environment, and a built-in default.
"""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import SecretStr

from .models import CredentialBundle

DEFAULT_OLLAMA_BASE_URL = "http://127.0.0.1:11434"
DEFAULT_OLLAMA_MODEL = "llama3.1:8b"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"

OPENAI_KEY_HEADERS = ("x-openai-api-key",)
GEMINI_KEY_HEADERS = ("x-gemini-api-key", "x-google-api-key")
OLLAMA_BASE_URL_HEADERS = ("x-ollama-base-url",)
OLLAMA_MODEL_HEADERS = ("x-ollama-model",)


def normalize_value(value: Any) -> str | None:
    """Return the stripped string, or None for missing and blank values.

    Multi-valued headers arrive as sequences; only the first value counts.
    """
    if isinstance(value, (list, tuple)):
        return normalize_value(value[0]) if value else None
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _first(*candidates: str | None) -> str | None:
    for candidate in candidates:
        if candidate:
            return candidate
    return None


def _from_headers(headers: Mapping[str, Any], names: Sequence[str]) -> str | None:
    return _first(*(normalize_value(headers.get(name)) for name in names))


def _from_env(env: Mapping[str, str], names: Sequence[str]) -> str | None:
    return _first(*(normalize_value(env.get(name)) for name in names))


def resolve_credentials(
    headers: Mapping[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
) -> CredentialBundle:
    """Merge request headers with environment defaults into one bundle.

    Args:
        headers: Inbound request headers; names are matched case-insensitively.
        env: Environment mapping, ``os.environ`` when omitted.

    Returns:
        A complete CredentialBundle. Cloud keys are None when unconfigured.
    """
    lowered = {str(k).lower(): v for k, v in (headers or {}).items()}
    env = os.environ if env is None else env

    openai_key = _first(
        _from_headers(lowered, OPENAI_KEY_HEADERS), _from_env(env, ("OPENAI_API_KEY",))
    )
    gemini_key = _first(
        _from_headers(lowered, GEMINI_KEY_HEADERS),
        _from_env(env, ("GEMINI_API_KEY", "GOOGLE_API_KEY")),
    )
    base_url = _first(
        _from_headers(lowered, OLLAMA_BASE_URL_HEADERS),
        _from_env(env, ("OLLAMA_BASE_URL",)),
        DEFAULT_OLLAMA_BASE_URL,
    )
    ollama_model = _first(
        _from_headers(lowered, OLLAMA_MODEL_HEADERS),
        _from_env(env, ("OLLAMA_MODEL",)),
        DEFAULT_OLLAMA_MODEL,
    )

    return CredentialBundle(
        openai_api_key=SecretStr(openai_key) if openai_key else None,
        gemini_api_key=SecretStr(gemini_key) if gemini_key else None,
        ollama_base_url=base_url.rstrip("/") or DEFAULT_OLLAMA_BASE_URL,
        ollama_model=ollama_model,
        openai_model=_from_env(env, ("OPENAI_MODEL",)) or DEFAULT_OPENAI_MODEL,
        gemini_model=_from_env(env, ("GEMINI_MODEL",)) or DEFAULT_GEMINI_MODEL,
    )
