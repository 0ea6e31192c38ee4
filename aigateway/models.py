# ModelMuxer (c) 2025 Ajay Rajput
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Pydantic models for the gateway's canonical request, response and outcome shapes.
"""

from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, Field, SecretStr


class Backend(str, Enum):
    """Concrete LLM backends, in declaration order."""

    OLLAMA = "ollama"
    OPENAI = "openai"
    GEMINI = "gemini"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    Backend.OLLAMA: "Ollama",
    Backend.OPENAI: "OpenAI",
    Backend.GEMINI: "Gemini",
}

AUTO = "auto"

# Either a concrete backend or automatic selection.
BackendChoice = Union[Backend, Literal["auto"]]


class ChatMessage(BaseModel):
    """Individual chat message in a conversation."""

    role: Literal["system", "user", "assistant"] = Field(..., description="The role of the message author")
    content: str = Field(..., min_length=1, description="The content of the message")


class ChatRequest(BaseModel):
    """Canonical chat request produced by the sanitizer."""

    backend: BackendChoice = Field(AUTO, description="Explicit backend or 'auto'")
    model: str | None = Field(None, description="Explicit model override")
    messages: list[ChatMessage] = Field(..., min_length=1, description="Ordered conversation")
    temperature: float = Field(0.35, ge=0.0, le=2.0, description="Sampling temperature")
    max_tokens: int = Field(900, ge=128, le=4000, description="Maximum tokens to generate")
    json_mode: bool = Field(False, description="Ask the backend for a JSON object")
    feature_hint: str | None = Field(None, description="Calling feature, used to bias ordering")


class CredentialBundle(BaseModel):
    """Credentials and local backend location for one request."""

    openai_api_key: SecretStr | None = None
    gemini_api_key: SecretStr | None = None
    ollama_base_url: str
    ollama_model: str
    openai_model: str
    gemini_model: str

    def api_key_for(self, backend: Backend) -> str | None:
        """Return the plain secret for a cloud backend, or None when unconfigured."""
        secret = {
            Backend.OPENAI: self.openai_api_key,
            Backend.GEMINI: self.gemini_api_key,
        }.get(backend)
        return secret.get_secret_value() if secret is not None else None


class ProviderAvailability(BaseModel):
    """Result of a lightweight availability probe for one backend."""

    backend: Backend
    available: bool
    default_model: str


class CanonicalResponse(BaseModel):
    """Backend-agnostic successful completion."""

    backend: Backend
    model: str
    content: str = Field(..., min_length=1)
    usage: dict[str, Any] | None = None


class BackendFailure(BaseModel):
    """Diagnostic record for one failed backend attempt."""

    backend: Backend
    message: str
    status_code: int | None = None


class LocalModelResolution(BaseModel):
    """Outcome of resolving which model to use on the local backend."""

    available: bool
    model: str
    discovered: list[str] = Field(default_factory=list)


class DispatchSuccess(BaseModel):
    ok: Literal[True] = True
    backend: Backend
    model: str
    content: str
    usage: dict[str, Any] | None = None
    attempted: list[Backend]
    fallback_used: bool
    errors: list[BackendFailure] = Field(default_factory=list)
    http_status: int = 200


class DispatchFailure(BaseModel):
    ok: Literal[False] = False
    message: str
    attempted: list[Backend] = Field(default_factory=list)
    errors: list[BackendFailure] = Field(default_factory=list)
    http_status: int = 503


DispatchOutcome = Union[DispatchSuccess, DispatchFailure]
