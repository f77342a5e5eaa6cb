from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .fetchers import SourceFetcher
from .models import Analysis, CandidateArticle
from .output.pipeline_reporter import CycleReport, summarize_results
from .output.scheduler import PostScheduler
from .processors.aggregate import aggregate
from .processors.dedup import Deduplicator
from .processors.factcheck import FactChecker
from .processors.relevance import filter_relevant
from .utils.bounded import BoundedSet, RingBuffer
from .utils.config_loader import SourceCatalog
from .utils.logging import get_logger
from .utils.pipeline_config import PipelineConfig

logger = get_logger("fc.orchestrator")

RESULTS_CAPACITY = 100
PROCESSED_URLS_CAPACITY = 200


class Orchestrator:
    """One ingestion cycle: fetch, filter, deduplicate, analyze, enqueue.

    Cycles are single-flight: a call that overlaps a running cycle returns
    ``None`` and leaves shared state untouched.
    """

    def __init__(
        self,
        catalog: SourceCatalog,
        *,
        fetcher: SourceFetcher,
        checker: FactChecker,
        scheduler: PostScheduler,
        config: Optional[PipelineConfig] = None,
        dedup: Optional[Deduplicator] = None,
    ) -> None:
        self.catalog = catalog
        self.fetcher = fetcher
        self.checker = checker
        self.scheduler = scheduler
        self.config = config or PipelineConfig()
        self.dedup = dedup or Deduplicator()
        self.results: RingBuffer[Analysis] = RingBuffer(RESULTS_CAPACITY)
        self.processed_urls: BoundedSet[str] = BoundedSet(PROCESSED_URLS_CAPACITY)
        self.last_run: Optional[datetime] = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    def _collect(self, now: datetime, report: CycleReport) -> List[CandidateArticle]:
        sources = self.catalog.sources
        vocabulary = self.catalog.vocabulary
        per_source = self.fetcher.fetch_all(sources, now=now)
        report.sources_polled = len(sources)

        admitted: List[CandidateArticle] = []
        for source, candidates in zip(sources, per_source):
            report.candidates_fetched += len(candidates)
            admitted.extend(filter_relevant(candidates, source=source, now=now, vocabulary=vocabulary))
        report.candidates_admitted = len(admitted)

        unique, stats = self.dedup.deduplicate(admitted)
        report.duplicates_skipped = stats.duplicates
        return aggregate(unique, limit=self.config.max_articles_per_cycle)

    def _enrich(self, article: CandidateArticle) -> None:
        if article.content or not self.config.enrich_empty_content:
            return
        source = self.catalog.get(article.source_id)
        if source is None:
            return
        text = self.fetcher.fetch_article_content(article.url, source)
        if text:
            article.content = text

    def run_cycle(self, *, now: Optional[datetime] = None) -> Optional[CycleReport]:
        if not self._lock.acquire(blocking=False):
            logger.warning("Fact-check cycle already running; skipping")
            return None
        try:
            now = now or datetime.now(timezone.utc)
            logger.info("Starting fact-check cycle over %d sources", len(self.catalog.sources))
            report = CycleReport()
            for article in self._collect(now, report):
                if article.url in self.processed_urls:
                    report.already_processed += 1
                    continue
                try:
                    self._enrich(article)
                    analysis = self.checker.analyze(article)
                except Exception as exc:  # noqa: BLE001 - one article must not abort the cycle
                    logger.exception("Error processing article '%s': %s", article.title, exc)
                    report.analysis_errors += 1
                    continue

                report.articles_analyzed += 1
                report.analyses.append(analysis)
                self.results.append(analysis)
                if analysis.degraded:
                    report.analysis_errors += 1
                    # transport failures are not cached; leave the URL eligible for the next cycle
                    if self.checker.cached(article.url) is None:
                        continue
                self.processed_urls.add(article.url)
                if self.scheduler.admit(article, analysis, now=now):
                    report.queued += 1

            self.last_run = now
            logger.info(
                "Fact-check cycle finished: fetched=%d relevant=%d duplicates=%d analyzed=%d errors=%d queued=%d",
                report.candidates_fetched,
                report.candidates_admitted,
                report.duplicates_skipped,
                report.articles_analyzed,
                report.analysis_errors,
                report.queued,
            )
            return report
        finally:
            self._lock.release()

    def latest_results(self, limit: Optional[int] = None) -> List[Analysis]:
        return self.results.latest(limit)

    def summary(self) -> Dict[str, Any]:
        return {
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "running": self.running,
            "processed_urls": len(self.processed_urls),
            "results": summarize_results(self.results),
            "queue": self.scheduler.queue_status(),
        }
