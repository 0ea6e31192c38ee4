# ModelMuxer (c) 2025 Ajay Rajput
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
AI Gateway - one chat interface over a local Ollama server, OpenAI and Gemini.

Requests are sanitized, routed through an ordered list of backends, and the
first successful answer is returned together with the fallback trail.
"""

__version__ = "1.0.0"

from .credentials import resolve_credentials
from .gateway import AIGateway
from .models import (
    Backend,
    ChatRequest,
    CredentialBundle,
    DispatchFailure,
    DispatchOutcome,
    DispatchSuccess,
    ProviderAvailability,
)
from .router import GatewayRouter

__all__ = [
    "AIGateway",
    "Backend",
    "ChatRequest",
    "CredentialBundle",
    "DispatchFailure",
    "DispatchOutcome",
    "DispatchSuccess",
    "GatewayRouter",
    "ProviderAvailability",
    "resolve_credentials",
    "__version__",
]
