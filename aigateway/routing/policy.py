# ModelMuxer (c) 2025 Ajay Rajput
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Backend ordering policies.

A policy maps the caller's backend choice (and optional feature hint) to the
ordered list of backends the orchestrator will try. The only hard contract is
that the list is non-empty and contains no duplicates.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Literal, Optional

import structlog

from ..models import AUTO, Backend, BackendChoice
from ..settings import settings

logger = structlog.get_logger(__name__)

OrderPolicy = Callable[[BackendChoice, Optional[str]], list[Backend]]

LOCAL_FIRST: tuple[Backend, ...] = (Backend.OLLAMA, Backend.OPENAI, Backend.GEMINI)
CLOUD_FIRST: tuple[Backend, ...] = (Backend.OPENAI, Backend.GEMINI, Backend.OLLAMA)


def dedupe_backends(backends: Iterable[Backend]) -> list[Backend]:
    seen: set[Backend] = set()
    out: list[Backend] = []
    for backend in backends:
        if backend not in seen:
            seen.add(backend)
            out.append(backend)
    return out


class PriorityOrderPolicy:
    """Fixed priority order for 'auto', optionally biased by feature hint."""

    def __init__(
        self,
        priority: Literal["local_first", "cloud_first"] | None = None,
        feature_backends: Mapping[str, str | Backend] | None = None,
    ) -> None:
        self.priority = priority or settings.router.priority
        raw = settings.router.feature_backends if feature_backends is None else feature_backends
        self.feature_backends: dict[str, Backend] = {}
        for feature, backend in raw.items():
            try:
                self.feature_backends[feature.strip().lower()] = Backend(backend)
            except ValueError:
                logger.warning("feature_backend_ignored", feature=feature, backend=str(backend))

    @property
    def base_order(self) -> tuple[Backend, ...]:
        return CLOUD_FIRST if self.priority == "cloud_first" else LOCAL_FIRST

    def __call__(self, choice: BackendChoice, feature_hint: str | None = None) -> list[Backend]:
        if choice != AUTO:
            return [Backend(choice)]
        order = list(self.base_order)
        preferred = self.feature_backends.get((feature_hint or "").strip().lower())
        if preferred is not None:
            order.insert(0, preferred)
        return dedupe_backends(order)
