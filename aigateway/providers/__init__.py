# ModelMuxer (c) 2025 Ajay Rajput
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Backend adapters for the AI gateway.

This package contains the abstract adapter interface and one concrete adapter
per backend: OpenAI chat completions, Gemini generateContent, and a
self-hosted Ollama server.
"""

from .base import BackendAdapter, extract_error_message
from .gemini import GeminiAdapter
from .ollama import OllamaAdapter
from .openai import OpenAIAdapter
from .registry import build_registry, cleanup_registry

__all__ = [
    "BackendAdapter",
    "extract_error_message",
    "GeminiAdapter",
    "OllamaAdapter",
    "OpenAIAdapter",
    "build_registry",
    "cleanup_registry",
]
