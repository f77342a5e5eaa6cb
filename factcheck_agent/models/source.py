from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True, slots=True)
class Selectors:
    """CSS selectors used to extract an article page's parts."""

    title: str = "h1"
    content: str = "article"
    date: str = "time"
    author: str = ""


@dataclass(frozen=True, slots=True)
class Source:
    """Static metadata for a news source (feed plus fallback page)."""

    id: str
    name: str
    credibility_score: float
    feed_url: Optional[str] = None
    page_url: Optional[str] = None
    bias: str = "unknown"
    reputable: bool = True
    priority: bool = False
    selectors: Selectors = field(default_factory=Selectors)
