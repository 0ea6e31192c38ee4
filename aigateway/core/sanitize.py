# ModelMuxer (c) 2025 Ajay Rajput
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""Validation and clamping of raw chat payloads."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from ..models import AUTO, Backend, BackendChoice, ChatMessage, ChatRequest
from .exceptions import ValidationError

ALLOWED_ROLES = frozenset({"system", "user", "assistant"})

DEFAULT_TEMPERATURE = 0.35
MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 2.0

DEFAULT_MAX_TOKENS = 900
MIN_MAX_TOKENS = 128
MAX_MAX_TOKENS = 4000

BACKEND_ALIASES = {
    "google": Backend.GEMINI,
    "local": Backend.OLLAMA,
}


def _to_finite_float(raw: Any) -> float | None:
    """Coerce numbers and numeric strings; anything else, NaN and inf give None.

    ``None`` and booleans are treated as missing rather than as 0 or 1, so they
    take the caller's default. Integers too large for a float also give None.
    """
    if isinstance(raw, bool) or not isinstance(raw, (int, float, str)):
        return None
    try:
        value = float(raw.strip() if isinstance(raw, str) else raw)
    except (OverflowError, ValueError):
        return None
    return value if math.isfinite(value) else None


def sanitize_messages(raw: Any) -> list[ChatMessage]:
    """Keep well-formed messages in their original order, with content trimmed."""
    if not isinstance(raw, (list, tuple)):
        return []
    out: list[ChatMessage] = []
    for msg in raw:
        if not isinstance(msg, Mapping):
            continue
        role = msg.get("role")
        content = msg.get("content")
        if role not in ALLOWED_ROLES or not isinstance(content, str):
            continue
        trimmed = content.strip()
        if not trimmed:
            continue
        out.append(ChatMessage(role=role, content=trimmed))
    return out


def sanitize_temperature(raw: Any) -> float:
    value = _to_finite_float(raw)
    if value is None:
        value = DEFAULT_TEMPERATURE
    return min(MAX_TEMPERATURE, max(MIN_TEMPERATURE, value))


def sanitize_max_tokens(raw: Any) -> int:
    value = _to_finite_float(raw)
    if value is None:
        value = DEFAULT_MAX_TOKENS
    # Round half up.
    rounded = math.floor(value + 0.5)
    return min(MAX_MAX_TOKENS, max(MIN_MAX_TOKENS, rounded))


def normalize_backend(raw: Any) -> BackendChoice:
    """Map a requested backend name to a Backend, or 'auto' when unrecognized."""
    if isinstance(raw, Backend):
        return raw
    if not isinstance(raw, str):
        return AUTO
    name = raw.strip().lower()
    if name in BACKEND_ALIASES:
        return BACKEND_ALIASES[name]
    try:
        return Backend(name)
    except ValueError:
        return AUTO


def _pick(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in payload:
            return payload[key]
    return None


def sanitize_request(raw_payload: Any) -> ChatRequest:
    """Turn an arbitrary payload into a bounded ChatRequest.

    Raises:
        ValidationError: If no message survives sanitization.
    """
    payload: Mapping[str, Any] = raw_payload if isinstance(raw_payload, Mapping) else {}

    messages = sanitize_messages(payload.get("messages"))
    if not messages:
        raise ValidationError("messages required", field="messages")

    model = _pick(payload, "model")
    model = model.strip() if isinstance(model, str) else None
    feature = _pick(payload, "featureHint", "feature_hint", "feature")
    feature = feature.strip() if isinstance(feature, str) else None

    return ChatRequest(
        backend=normalize_backend(_pick(payload, "backend", "provider")),
        model=model or None,
        messages=messages,
        temperature=sanitize_temperature(_pick(payload, "temperature")),
        max_tokens=sanitize_max_tokens(_pick(payload, "maxTokens", "max_tokens")),
        json_mode=bool(_pick(payload, "jsonMode", "json_mode")),
        feature_hint=feature or None,
    )
