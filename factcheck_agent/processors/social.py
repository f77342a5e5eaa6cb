"""Independent corroboration of an article against social-media posts."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Sequence
from urllib.parse import quote_plus

import requests
from bs4 import BeautifulSoup

from ..models import CandidateArticle, SocialPost, SocialVerification
from ..utils.logging import get_logger
from .keywords import DEFAULT_VOCABULARY, KeywordVocabulary

logger = get_logger("fc.processors.social")

MAX_KEYWORDS = 5
TOP_POSTS = 10
HIGH_RELEVANCE = 5.0

_word_split_re = re.compile(r"[^\w\s]")

TRUSTED_ACCOUNTS = (
    "QudsNen", "Muhtaseb7", "LinahAlsaafin", "MuhammadSmiry", "MuhammadShehad2",
    "IWriteWrongs", "MustafaBarghou1", "AymanQwaider", "HindHassanOfficial",
    "YazanAlSaadi", "Hespress_com", "HespressEn",
)


class SocialEvidenceProvider(ABC):
    """Source of candidate posts for a keyword query."""

    @abstractmethod
    def search(self, keywords: Sequence[str]) -> List[SocialPost]:
        """Return posts related to ``keywords``; may raise on transport errors."""


class StaticEvidenceProvider(SocialEvidenceProvider):
    """Serve a fixed post set, optionally keyed by keyword."""

    def __init__(self, posts: Iterable[SocialPost] = (), *, by_keyword: Optional[Dict[str, List[SocialPost]]] = None) -> None:
        self._posts = list(posts)
        self._by_keyword = {k.lower(): list(v) for k, v in (by_keyword or {}).items()}

    def search(self, keywords: Sequence[str]) -> List[SocialPost]:
        if not self._by_keyword:
            return list(self._posts)
        found: List[SocialPost] = []
        for kw in keywords:
            for post in self._by_keyword.get(kw.lower(), []):
                if post not in found:
                    found.append(post)
        return found


class NitterSearchProvider(SocialEvidenceProvider):
    """Scrape a Nitter-compatible search page for recent posts.

    Relevance is the number of query keywords a post mentions, scaled to
    0-10. Posts from ``trusted_accounts`` are flagged as verified.
    """

    def __init__(
        self,
        base_url: str,
        *,
        trusted_accounts: Iterable[str] = TRUSTED_ACCOUNTS,
        timeout: float = 15,
        user_agent: str = "Mozilla/5.0 (compatible; factcheck-agent)",
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.trusted = {a.lower() for a in trusted_accounts}
        self.timeout = timeout
        self.headers = {"User-Agent": user_agent, "Accept": "text/html"}
        self._http = session or requests.Session()

    def search(self, keywords: Sequence[str]) -> List[SocialPost]:
        query = " OR ".join(keywords)
        url = f"{self.base_url}/search?f=tweets&q={quote_plus(query)}"
        resp = self._http.get(url, headers=self.headers, timeout=self.timeout)
        resp.raise_for_status()
        soup = BeautifulSoup(resp.text, "html.parser")

        posts: List[SocialPost] = []
        for item in soup.select(".timeline-item"):
            author_el = item.select_one(".username")
            content_el = item.select_one(".tweet-content")
            date_el = item.select_one(".tweet-date a")
            if not author_el or not content_el:
                continue
            author = author_el.get_text(strip=True).lstrip("@")
            content = content_el.get_text(" ", strip=True)
            lowered = content.lower()
            hits = sum(1 for kw in keywords if kw.lower() in lowered)
            posts.append(
                SocialPost(
                    author=author,
                    content=content,
                    timestamp=(date_el.get("title") if date_el else None),
                    relevance=min(10.0, hits * 10.0 / max(1, len(keywords))),
                    verified=author.lower() in self.trusted,
                    platform="twitter",
                )
            )
        logger.debug("Nitter search '%s' returned %d posts", query, len(posts))
        return posts


class SocialSignalScorer:
    def __init__(
        self,
        provider: SocialEvidenceProvider,
        *,
        vocabulary: KeywordVocabulary = DEFAULT_VOCABULARY,
    ) -> None:
        self.provider = provider
        self.vocabulary = vocabulary

    def extract_keywords(self, text: str | None) -> List[str]:
        """Distinct words longer than three letters that overlap the social vocabulary."""
        if not text:
            return []
        words = [w for w in _word_split_re.sub(" ", text.lower()).split() if len(w) > 3]
        social = [kw.lower() for kw in self.vocabulary.social]
        relevant: List[str] = []
        for word in words:
            if word in relevant:
                continue
            if any(word in kw or (len(kw) > 3 and kw in word) for kw in social):
                relevant.append(word)
            if len(relevant) >= MAX_KEYWORDS:
                break
        return relevant

    def corroborate(self, article: CandidateArticle) -> SocialVerification:
        keywords = self.extract_keywords(f"{article.title} {article.content or ''}")
        if not keywords:
            return SocialVerification(
                status="not_found",
                result="No social search performed",
                details="No article keywords qualified for a social-media query",
            )

        try:
            posts = self.provider.search(keywords)
        except Exception as exc:  # noqa: BLE001 - provider is an external collaborator
            logger.warning("Social evidence lookup failed for '%s': %s", article.title, exc)
            return SocialVerification(
                status="error",
                result="Social media verification failed",
                details=str(exc),
                keywords=tuple(keywords),
            )
        return classify_posts(posts, keywords=keywords)


def classify_posts(posts: Iterable[SocialPost], *, keywords: Sequence[str] = ()) -> SocialVerification:
    """Classify a queried post set into a corroboration status."""
    top = sorted(posts, key=lambda p: p.relevance or 0.0, reverse=True)[:TOP_POSTS]
    verified = [p for p in top if p.verified]
    high = [p for p in top if (p.relevance or 0.0) >= HIGH_RELEVANCE]

    if len(high) >= 2:
        status, result = "confirmed", "Multiple independent sources confirm related content"
        details = f"Found {len(high)} highly relevant posts"
    elif verified:
        status, result = "confirmed", "Verified accounts confirm information"
        details = f"Found {len(verified)} posts from verified accounts"
    elif top:
        status, result = "disputed", "Limited independent coverage"
        details = f"Found {len(top)} related posts without strong corroboration"
    else:
        status, result = "contradicted", "No independent coverage found"
        details = "The social search returned no posts for this story"

    return SocialVerification(
        status=status,
        result=result,
        details=details,
        keywords=tuple(keywords),
        posts=tuple(top),
    )
