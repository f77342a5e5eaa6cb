"""Keyword, recency and source-quality relevance scoring."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from ..models import CandidateArticle, Source
from ..utils.logging import get_logger
from .keywords import DEFAULT_VOCABULARY, KeywordVocabulary

logger = get_logger("fc.processors.relevance")

HIGH_KEYWORD_WEIGHT = 0.3
HIGH_KEYWORD_CAP = 0.6
MEDIUM_KEYWORD_WEIGHT = 0.2
FRESH_BONUS = 0.4
FRESH_WINDOW = timedelta(hours=24)
CREDIBLE_SOURCE_BONUS = 0.2
CREDIBLE_SOURCE_MIN = 0.9
MIN_RELEVANCE = 0.3

PRIORITY_RECENCY_WINDOW = timedelta(hours=72)
DEFAULT_RECENCY_WINDOW = timedelta(days=7)


def _utc(dt: datetime) -> datetime:
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


def article_age(candidate: CandidateArticle, now: Optional[datetime] = None) -> Optional[timedelta]:
    if candidate.published_at is None:
        return None
    now = _utc(now or datetime.now(timezone.utc))
    return max(timedelta(0), now - _utc(candidate.published_at))


def recency_window(source: Optional[Source]) -> timedelta:
    return PRIORITY_RECENCY_WINDOW if source is not None and source.priority else DEFAULT_RECENCY_WINDOW


def is_recent(candidate: CandidateArticle, source: Optional[Source], now: Optional[datetime] = None) -> bool:
    age = article_age(candidate, now)
    return age is not None and age <= recency_window(source)


def score_relevance(
    candidate: CandidateArticle,
    *,
    now: Optional[datetime] = None,
    vocabulary: KeywordVocabulary = DEFAULT_VOCABULARY,
) -> float:
    """Return a relevance score in [0, 1] for one candidate."""
    text = f"{candidate.title} {candidate.content or ''}"
    score = min(HIGH_KEYWORD_CAP, HIGH_KEYWORD_WEIGHT * len(vocabulary.high_hits(text)))
    score += MEDIUM_KEYWORD_WEIGHT * len(vocabulary.medium_hits(text))

    age = article_age(candidate, now)
    if age is not None and age <= FRESH_WINDOW:
        score += FRESH_BONUS
    if (candidate.source_credibility or 0.0) >= CREDIBLE_SOURCE_MIN:
        score += CREDIBLE_SOURCE_BONUS
    return round(min(1.0, score), 4)


def is_admitted(
    candidate: CandidateArticle,
    relevance: float,
    *,
    source: Optional[Source] = None,
    now: Optional[datetime] = None,
    vocabulary: KeywordVocabulary = DEFAULT_VOCABULARY,
) -> bool:
    """Admission predicate: keyword present, inside recency window, relevance > 0.3."""
    if not vocabulary.contains_any(f"{candidate.title} {candidate.content or ''}"):
        return False
    if not is_recent(candidate, source, now):
        return False
    return relevance > MIN_RELEVANCE


def filter_relevant(
    candidates: Iterable[CandidateArticle],
    *,
    source: Optional[Source] = None,
    now: Optional[datetime] = None,
    vocabulary: KeywordVocabulary = DEFAULT_VOCABULARY,
) -> List[CandidateArticle]:
    """Score candidates in place and keep the admitted ones."""
    now = now or datetime.now(timezone.utc)
    admitted: List[CandidateArticle] = []
    rejected = 0
    for cand in candidates:
        cand.relevance_score = score_relevance(cand, now=now, vocabulary=vocabulary)
        if is_admitted(cand, cand.relevance_score, source=source, now=now, vocabulary=vocabulary):
            admitted.append(cand)
        else:
            rejected += 1
    logger.debug(
        "Relevance filter for %s: admitted=%d rejected=%d",
        source.name if source else "pool",
        len(admitted),
        rejected,
    )
    return admitted
