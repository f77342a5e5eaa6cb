"""Reasoning backend selection and clients (Gemini, Ollama)."""

from .base import AIClient
from .factory import create_ai_client
from .parsing import ParseResult, extract_json_object

__all__ = ["AIClient", "create_ai_client", "ParseResult", "extract_json_object"]
