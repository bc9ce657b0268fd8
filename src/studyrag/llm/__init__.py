"""LLM service abstraction layer for studyrag.

This package provides a unified interface for multiple LLM providers:
- OllamaService: Local LLM via Ollama
- GeminiService: Google Gemini API

All services implement the LLMService protocol: streamed chat, schema-constrained
JSON output and embeddings.

Usage:
    from studyrag.llm import get_llm_service, LLMService

    # Create service from environment config
    service = get_llm_service()

    # Or with explicit config
    service = get_llm_service({"service": "gemini", "model": "gemini-2.5-flash"})
"""

from studyrag.llm.base import LLMService
from studyrag.llm.factory import get_llm_service
from studyrag.llm.gemini import GeminiService
from studyrag.llm.ollama import OllamaService

__all__ = [
    "LLMService",
    "OllamaService",
    "GeminiService",
    "get_llm_service",
]
