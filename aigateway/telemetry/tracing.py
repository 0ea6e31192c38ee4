# ModelMuxer (c) 2025 Ajay Rajput
# Licensed under Business Source License 1.1 – see LICENSE for details.
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from opentelemetry import trace
from opentelemetry.trace import Span

_TRACER_NAME = "aigateway"


@asynccontextmanager
async def start_span_async(name: str, **attrs: Any) -> AsyncIterator[Span]:
    """Asynchronous context manager for creating spans.

    Without a configured tracer provider the OpenTelemetry API hands out
    non-recording spans, so callers never need to check for one.
    """
    tracer = trace.get_tracer(_TRACER_NAME)
    with tracer.start_as_current_span(name) as span:
        for k, v in attrs.items():
            if v is not None:
                span.set_attribute(k, v)
        yield span


def get_trace_id() -> str | None:
    """Return current trace id in hex, if any."""
    ctx = trace.get_current_span().get_span_context()
    if ctx and ctx.is_valid:
        return f"{ctx.trace_id:032x}"
    return None
