# ModelMuxer (c) 2025 Ajay Rajput
# Licensed under Business Source License 1.1 – see LICENSE for details.
from __future__ import annotations

from typing import Any

from ..models import Backend, CanonicalResponse, ChatRequest, CredentialBundle
from .base import BackendAdapter


class OllamaAdapter(BackendAdapter):
    """Adapter for a self-hosted Ollama server; the base URL comes with the credentials."""

    backend = Backend.OLLAMA

    def build_request(
        self, credentials: CredentialBundle, request: ChatRequest, model: str
    ) -> tuple[str, dict[str, Any], dict[str, str], dict[str, str]]:
        payload: dict[str, Any] = {
            "model": model,
            "stream": False,
            "options": {
                "temperature": request.temperature,
                "num_predict": request.max_tokens,
            },
            "messages": [{"role": m.role, "content": m.content} for m in request.messages],
        }
        if request.json_mode:
            payload["format"] = "json"
        return f"{credentials.ollama_base_url}/api/chat", payload, {}, {}

    def parse_response(self, payload: dict[str, Any], model: str) -> CanonicalResponse | None:
        message = payload.get("message")
        content = message.get("content") if isinstance(message, dict) else None
        text = content.strip() if isinstance(content, str) else ""
        if not text:
            return None
        return CanonicalResponse(
            backend=self.backend,
            model=payload.get("model") or model,
            content=text,
            usage={
                "prompt_eval_count": payload.get("prompt_eval_count"),
                "eval_count": payload.get("eval_count"),
                "total_duration": payload.get("total_duration"),
            },
        )
