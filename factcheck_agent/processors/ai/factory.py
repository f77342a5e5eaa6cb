from __future__ import annotations

import os
from typing import Optional

from ...errors import ValidationError
from .base import AIClient


def create_ai_client(*, backend: Optional[str] = None) -> AIClient:
    """Create an AI client based on PROCESSING_BACKEND env or explicit value.

    Supported values: "gemini" (default) or "ollama".
    """
    selected = (backend or os.environ.get("PROCESSING_BACKEND", "gemini")).lower()

    if selected == "gemini":
        from .gemini import GeminiClient  # lazy import

        return GeminiClient()
    if selected == "ollama":
        from .ollama import OllamaClient  # lazy import

        return OllamaClient()

    raise ValidationError(
        f"Unsupported PROCESSING_BACKEND '{selected}'. Use 'gemini' or 'ollama'."
    )
