from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(slots=True)
class CandidateArticle:
    title: str
    url: str
    content: str
    source_id: str
    source_name: str
    published_at: Optional[datetime] = None
    source_credibility: Optional[float] = None

    # Filled by the relevance filter
    relevance_score: float = 0.0
