from __future__ import annotations

import os
from typing import Optional

import requests

from ...errors import ValidationError
from .base import AIClient


class GeminiClient(AIClient):
    """HTTP client for Gemini via the Google AI Studio API.

    Environment:
      - GEMINI_API_KEY or GOOGLE_API_KEY (required)
      - GEMINI_MODEL (default: gemini-1.5-flash)
    """

    name = "gemini"

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: int = 60,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key or os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY")
        if not self.api_key:
            raise ValidationError("GEMINI_API_KEY (or GOOGLE_API_KEY) is required for the Gemini backend")
        self.model = model or os.environ.get("GEMINI_MODEL", "gemini-1.5-flash")
        self.timeout = timeout
        self._http = session or requests.Session()

    def generate(self, prompt: str, *, temperature: float = 0.2) -> str:
        url = (
            "https://generativelanguage.googleapis.com/v1beta/models/"
            f"{self.model}:generateContent"
        )
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": temperature},
        }
        resp = self._http.post(
            url,
            params={"key": self.api_key},
            json=payload,
            timeout=self.timeout,
        )
        resp.raise_for_status()
        data = resp.json()
        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        parts = candidates[0].get("content", {}).get("parts") or []
        return "".join(p.get("text", "") for p in parts).strip()
