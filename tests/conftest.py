from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from factcheck_agent.models import Analysis, CandidateArticle, Source

NOW = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)


def make_article(
    title: str = "Gaza ceasefire talks resume in Cairo",
    *,
    url: str = "https://news.example.com/gaza-ceasefire",
    content: str = "",
    source_id: str = "example",
    source_name: str = "Example News",
    published_at: datetime | None = None,
    hours_old: float | None = 2,
    credibility: float | None = 0.8,
) -> CandidateArticle:
    if published_at is None and hours_old is not None:
        published_at = NOW - timedelta(hours=hours_old)
    return CandidateArticle(
        title=title,
        url=url,
        content=content,
        source_id=source_id,
        source_name=source_name,
        published_at=published_at,
        source_credibility=credibility,
    )


def make_analysis(
    article: CandidateArticle | None = None,
    *,
    final_score: float = 0.85,
    assessment: str = "PARTIALLY_VERIFIED",
    credibility: float = 0.8,
    error: str | None = None,
) -> Analysis:
    article = article or make_article()
    return Analysis(
        article_url=article.url,
        article_title=article.title,
        source_name=article.source_name,
        credibility_score=credibility,
        overall_assessment=assessment,
        final_score=final_score,
        error=error,
    )


def make_source(source_id: str = "example", *, priority: bool = False, credibility: float = 0.8) -> Source:
    return Source(
        id=source_id,
        name="Example News",
        credibility_score=credibility,
        feed_url="https://news.example.com/rss.xml",
        page_url="https://news.example.com/middle-east/",
        priority=priority,
    )


@pytest.fixture
def now() -> datetime:
    return NOW
