# ModelMuxer (c) 2025 Ajay Rajput
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""Backend ordering for automatic selection."""

from .policy import CLOUD_FIRST, LOCAL_FIRST, OrderPolicy, PriorityOrderPolicy, dedupe_backends

__all__ = [
    "CLOUD_FIRST",
    "LOCAL_FIRST",
    "OrderPolicy",
    "PriorityOrderPolicy",
    "dedupe_backends",
]
