# ModelMuxer (c) 2025 Ajay Rajput
# Licensed under Business Source License 1.1 – see LICENSE for details.
from __future__ import annotations

from typing import Any

import httpx

from ..models import Backend, CanonicalResponse, ChatRequest, CredentialBundle
from ..settings import settings
from .base import BackendAdapter, join_text_parts


def extract_openai_text(content: Any) -> str:
    """Message content is either a plain string or a list of typed parts."""
    if isinstance(content, str):
        return content.strip()
    return join_text_parts(content)


class OpenAIAdapter(BackendAdapter):
    backend = Backend.OPENAI

    def __init__(
        self,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout_s: float | None = None,
    ) -> None:
        super().__init__(client=client, timeout_s=timeout_s)
        self.base_url = (base_url or settings.endpoints.openai_base_url).rstrip("/")

    def is_configured(self, credentials: CredentialBundle) -> bool:
        return credentials.api_key_for(self.backend) is not None

    def build_request(
        self, credentials: CredentialBundle, request: ChatRequest, model: str
    ) -> tuple[str, dict[str, Any], dict[str, str], dict[str, str]]:
        payload: dict[str, Any] = {
            "model": model,
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
            "messages": [{"role": m.role, "content": m.content} for m in request.messages],
        }
        if request.json_mode:
            payload["response_format"] = {"type": "json_object"}
        headers = {"Authorization": f"Bearer {credentials.api_key_for(self.backend)}"}
        return f"{self.base_url}/chat/completions", payload, headers, {}

    def parse_response(self, payload: dict[str, Any], model: str) -> CanonicalResponse | None:
        choices = payload.get("choices")
        choice = choices[0] if isinstance(choices, list) and choices else {}
        message = choice.get("message") if isinstance(choice, dict) else None
        text = extract_openai_text(message.get("content") if isinstance(message, dict) else None)
        if not text:
            return None
        usage = payload.get("usage")
        return CanonicalResponse(
            backend=self.backend,
            model=payload.get("model") or model,
            content=text,
            usage=usage if isinstance(usage, dict) else None,
        )
