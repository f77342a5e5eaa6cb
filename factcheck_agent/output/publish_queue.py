from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterator, List, Optional

from ..models import Analysis, CandidateArticle, QueueItem
from ..processors.keywords import DEFAULT_VOCABULARY, KeywordVocabulary, find_keywords
from ..processors.relevance import article_age

QUEUE_CAPACITY = 20


def recency_bonus(article: CandidateArticle, now: Optional[datetime] = None) -> int:
    age = article_age(article, now)
    if age is None:
        return 0
    hours = age.total_seconds() / 3600
    if hours < 6:
        return 20
    if hours < 24:
        return 10
    return 0


def calculate_priority(
    article: CandidateArticle,
    analysis: Analysis,
    *,
    now: Optional[datetime] = None,
    vocabulary: KeywordVocabulary = DEFAULT_VOCABULARY,
) -> float:
    priority = 50 * analysis.final_score
    priority += 10 * len(find_keywords(article.title, vocabulary.priority_title))
    priority += recency_bonus(article, now)
    if analysis.overall_assessment == "VERIFIED":
        priority += 15
    return round(priority, 2)


class PublishQueue:
    """Priority-ordered pending posts, bounded at ``capacity`` items."""

    def __init__(self, *, capacity: int = QUEUE_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._items: List[QueueItem] = []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[QueueItem]:
        return iter(list(self._items))

    def contains_url(self, url: str) -> bool:
        return any(item.article.url == url for item in self._items)

    def push(self, item: QueueItem) -> bool:
        """Insert, re-sort and trim; returns False when the item did not survive the trim."""
        self._items.append(item)
        self._items.sort(key=lambda it: (-it.priority, it.enqueued_at.astimezone(timezone.utc)))
        del self._items[self.capacity :]
        return any(it is item for it in self._items)

    def pop(self) -> Optional[QueueItem]:
        return self._items.pop(0) if self._items else None

    def peek(self) -> Optional[QueueItem]:
        return self._items[0] if self._items else None

    def clear(self) -> int:
        dropped = len(self._items)
        self._items.clear()
        return dropped
