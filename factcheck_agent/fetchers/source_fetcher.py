from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

import requests

from ..errors import SourceFetchError
from ..models import CandidateArticle, Source
from ..processors.keywords import DEFAULT_VOCABULARY, KeywordVocabulary
from ..processors.normalize import clean_html_to_text, normalize_plain_text, sanitize_text
from ..processors.relevance import is_recent
from ..utils.logging import get_logger
from .http import fetch_article_text, fetch_page_links
from .rss import fetch_rss_entries

logger = get_logger("fc.fetchers.source")

MIN_RECENT_FEED_ITEMS = 3
MAX_SCRAPED_LINKS = 10


class SourceFetcher:
    """Retrieve candidate articles for one source at a time.

    The feed is tried first; when it yields fewer than ``min_recent`` recent
    items the source's page is scraped for keyword-matching links as well.
    ``fetch`` never raises: a failing stage contributes no candidates.
    """

    def __init__(
        self,
        *,
        user_agent: str,
        timeout: float = 10,
        request_delay: float = 1.0,
        min_recent: int = MIN_RECENT_FEED_ITEMS,
        vocabulary: KeywordVocabulary = DEFAULT_VOCABULARY,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.user_agent = user_agent
        self.timeout = timeout
        self.request_delay = request_delay
        self.min_recent = min_recent
        self.vocabulary = vocabulary
        self._http = session or requests.Session()

    def _from_feed(self, source: Source) -> List[CandidateArticle]:
        try:
            items = fetch_rss_entries(
                source.feed_url, timeout=self.timeout, user_agent=self.user_agent, session=self._http
            )
        except requests.RequestException as exc:
            raise SourceFetchError(source.id, f"feed request failed: {exc}") from exc
        candidates: List[CandidateArticle] = []
        for item in items:
            if not item.title or not item.link:
                continue
            candidates.append(
                CandidateArticle(
                    title=normalize_plain_text(clean_html_to_text(item.title)),
                    url=item.link,
                    content=clean_html_to_text(item.content or item.description or ""),
                    source_id=source.id,
                    source_name=source.name,
                    published_at=item.published,
                    source_credibility=source.credibility_score,
                )
            )
        return candidates

    def _from_page(self, source: Source, *, now: datetime, known_urls: set[str]) -> List[CandidateArticle]:
        try:
            links = fetch_page_links(
                source.page_url, timeout=self.timeout, user_agent=self.user_agent, session=self._http
            )
        except (requests.RequestException, ValueError) as exc:
            raise SourceFetchError(source.id, f"page scrape failed: {exc}") from exc
        candidates: List[CandidateArticle] = []
        for link in links:
            if link.url in known_urls or not self.vocabulary.contains_any(link.text):
                continue
            known_urls.add(link.url)
            candidates.append(
                CandidateArticle(
                    title=normalize_plain_text(link.text),
                    url=link.url,
                    content="",
                    source_id=source.id,
                    source_name=source.name,
                    published_at=now,
                    source_credibility=source.credibility_score,
                )
            )
            if len(candidates) >= MAX_SCRAPED_LINKS:
                break
        return candidates

    def _stage(self, source: Source, stage: str, func: Callable[[], List[CandidateArticle]]) -> List[CandidateArticle]:
        try:
            return func()
        except SourceFetchError as exc:
            logger.error("Error scraping %s (%s): %s", source.name, stage, exc)
        except Exception as exc:  # noqa: BLE001 - one bad source must not abort the cycle
            logger.exception("Unexpected error fetching %s (%s): %s", source.name, stage, exc)
        return []

    def fetch(self, source: Source, *, now: Optional[datetime] = None) -> List[CandidateArticle]:
        """Feed and page stages fail independently; a failed feed counts as zero recent items."""
        now = now or datetime.now(timezone.utc)
        articles: List[CandidateArticle] = []
        if source.feed_url:
            articles.extend(self._stage(source, "feed", lambda: self._from_feed(source)))

        recent = sum(1 for a in articles if is_recent(a, source, now))
        if recent < self.min_recent and source.page_url:
            logger.debug("%s: only %d recent feed items; scraping %s", source.name, recent, source.page_url)
            known = {a.url for a in articles}
            articles.extend(self._stage(source, "page", lambda: self._from_page(source, now=now, known_urls=known)))

        logger.info("Fetched %d candidates from %s", len(articles), source.name)
        return articles

    def fetch_all(self, sources: Iterable[Source], *, now: Optional[datetime] = None) -> List[List[CandidateArticle]]:
        """Fetch sources one after another with a fixed delay in between.

        Returns one candidate list per source, in input order.
        """
        results: List[List[CandidateArticle]] = []
        src_list = list(sources)
        for idx, source in enumerate(src_list):
            results.append(self.fetch(source, now=now))
            if self.request_delay > 0 and idx + 1 < len(src_list):
                time.sleep(self.request_delay)
        return results

    def fetch_article_content(self, url: str, source: Source) -> Optional[str]:
        try:
            text = fetch_article_text(
                url, source.selectors, timeout=self.timeout, user_agent=self.user_agent, session=self._http
            )
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Failed to scrape article content from %s: %s", url, exc)
            return None
        return sanitize_text(text) or None
