from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .analysis import Analysis
from .article import CandidateArticle


@dataclass(slots=True)
class QueueItem:
    article: CandidateArticle
    analysis: Analysis
    priority: float
    enqueued_at: datetime
    message: str = ""


@dataclass(slots=True)
class PostingState:
    """Daily publish counter; mutated only by the scheduler's drain."""

    max_per_day: int = 5
    daily_count: int = 0
    last_reset_date: str = ""

    @property
    def remaining_today(self) -> int:
        return max(0, self.max_per_day - self.daily_count)
