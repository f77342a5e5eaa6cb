from __future__ import annotations

from abc import ABC, abstractmethod


class AIClient(ABC):
    """Abstract reasoning client: prompt text in, free text out."""

    name: str = "ai"

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """Return the model's raw text answer for ``prompt``."""
