from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List

from ..models import CandidateArticle

MAX_AGGREGATED = 50


def _sort_key(article: CandidateArticle) -> tuple[int, datetime]:
    if article.published_at is None:
        return (0, datetime.min.replace(tzinfo=timezone.utc))
    published = article.published_at
    if published.tzinfo is None:
        published = published.replace(tzinfo=timezone.utc)
    return (1, published)


def aggregate(articles: Iterable[CandidateArticle], *, limit: int = MAX_AGGREGATED) -> List[CandidateArticle]:
    """Newest first, undated last, truncated to ``limit``."""
    ordered = sorted(articles, key=_sort_key, reverse=True)
    return ordered[: max(0, limit)]
