# ModelMuxer (c) 2025 Ajay Rajput
# Licensed under Business Source License 1.1 – see LICENSE for details.
from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from ..models import Backend, CanonicalResponse, ChatMessage, ChatRequest, CredentialBundle
from ..settings import settings
from .base import BackendAdapter, join_text_parts


class GeminiAdapter(BackendAdapter):
    backend = Backend.GEMINI

    def __init__(
        self,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout_s: float | None = None,
    ) -> None:
        super().__init__(client=client, timeout_s=timeout_s)
        self.base_url = (base_url or settings.endpoints.gemini_base_url).rstrip("/")

    def is_configured(self, credentials: CredentialBundle) -> bool:
        return credentials.api_key_for(self.backend) is not None

    def _convert_messages_to_gemini_format(self, messages: list[ChatMessage]) -> dict[str, Any]:
        """Convert canonical messages to Gemini format.

        Gemini takes system instructions in a field of their own, so system
        messages are partitioned out of the turn history. Assistant turns use
        the ``model`` role.
        """
        system_texts = [m.content for m in messages if m.role == "system"]
        dialog = [m for m in messages if m.role != "system"]

        if dialog:
            contents = [
                {
                    "role": "model" if m.role == "assistant" else "user",
                    "parts": [{"text": m.content}],
                }
                for m in dialog
            ]
        else:
            # A system-only conversation still needs one user turn.
            contents = [{"role": "user", "parts": [{"text": "\n".join(system_texts) or "Hello"}]}]

        result: dict[str, Any] = {"contents": contents}
        if system_texts:
            result["systemInstruction"] = {"parts": [{"text": "\n\n".join(system_texts)}]}
        return result

    def build_request(
        self, credentials: CredentialBundle, request: ChatRequest, model: str
    ) -> tuple[str, dict[str, Any], dict[str, str], dict[str, str]]:
        payload = self._convert_messages_to_gemini_format(request.messages)
        payload["generationConfig"] = {
            "temperature": request.temperature,
            "maxOutputTokens": request.max_tokens,
            "responseMimeType": "application/json" if request.json_mode else "text/plain",
        }
        url = f"{self.base_url}/models/{quote(model, safe='')}:generateContent"
        headers = {"x-goog-api-key": credentials.api_key_for(self.backend) or ""}
        return url, payload, headers, {}

    def parse_response(self, payload: dict[str, Any], model: str) -> CanonicalResponse | None:
        candidates = payload.get("candidates")
        candidate = candidates[0] if isinstance(candidates, list) and candidates else {}
        content = candidate.get("content") if isinstance(candidate, dict) else None
        text = join_text_parts(content.get("parts") if isinstance(content, dict) else None)
        if not text:
            # Safety refusals come back as a candidate without parts.
            return None
        usage = payload.get("usageMetadata")
        return CanonicalResponse(
            backend=self.backend,
            model=payload.get("modelVersion") or model,
            content=text,
            usage=usage if isinstance(usage, dict) else None,
        )
