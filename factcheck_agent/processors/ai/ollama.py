from __future__ import annotations

import os
from typing import Optional

import requests

from .base import AIClient


class OllamaClient(AIClient):
    """HTTP client for Ollama's generate API.

    Environment:
      - OLLAMA_HOST (default: http://localhost:11434)
      - OLLAMA_MODEL (default: llama3.1:8b-instruct)
    """

    name = "ollama"

    def __init__(
        self,
        *,
        host: Optional[str] = None,
        model: Optional[str] = None,
        timeout: int = 120,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.host = (host or os.environ.get("OLLAMA_HOST", "http://localhost:11434")).rstrip("/")
        self.model = model or os.environ.get("OLLAMA_MODEL", "llama3.1:8b-instruct")
        self.timeout = timeout
        self._http = session or requests.Session()

    def generate(self, prompt: str, *, temperature: float = 0.2) -> str:
        payload = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "format": "json",
            "options": {"temperature": temperature},
        }
        resp = self._http.post(f"{self.host}/api/generate", json=payload, timeout=self.timeout)
        resp.raise_for_status()
        # Ollama returns {'response': '...'}
        return resp.json().get("response", "").strip()
