from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Protocol, Sequence

from ..errors import PublishError, PublishForbidden, PublishRateLimited
from ..models import Analysis, CandidateArticle, PostingState, QueueItem
from ..processors.keywords import DEFAULT_VOCABULARY, KeywordVocabulary
from ..utils.bounded import BoundedSet
from ..utils.logging import get_logger
from .post_formatter import PLATFORM_CHAR_LIMIT, format_post
from .publish_queue import PublishQueue, calculate_priority

logger = get_logger("fc.output.scheduler")

DEFAULT_POSTING_HOURS = (8, 12, 16, 20)
PUBLISHED_URLS_CAPACITY = 1000


class Publisher(Protocol):
    def publish(self, text: str) -> str: ...


@dataclass(frozen=True, slots=True)
class DrainResult:
    outcome: str  # published | empty | daily_cap | rate_limited | forbidden | failed | halted
    post_id: Optional[str] = None
    item: Optional[QueueItem] = None
    error: Optional[str] = None

    @property
    def published(self) -> bool:
        return self.outcome == "published"


def _local_now() -> datetime:
    return datetime.now().astimezone()


def next_slot(now: datetime, hours: Sequence[int] = DEFAULT_POSTING_HOURS) -> datetime:
    """First posting slot strictly after ``now`` (same timezone as ``now``)."""
    ordered = sorted(hours) or list(DEFAULT_POSTING_HOURS)
    for hour in ordered:
        slot = now.replace(hour=hour, minute=0, second=0, microsecond=0)
        if slot > now:
            return slot
    tomorrow = now + timedelta(days=1)
    return tomorrow.replace(hour=ordered[0], minute=0, second=0, microsecond=0)


class PostScheduler:
    """Admission control and daily-capped draining of the publish queue."""

    def __init__(
        self,
        publisher: Publisher,
        *,
        queue: Optional[PublishQueue] = None,
        state: Optional[PostingState] = None,
        min_credibility: float = 0.7,
        posting_hours: Sequence[int] = DEFAULT_POSTING_HOURS,
        char_limit: int = PLATFORM_CHAR_LIMIT,
        vocabulary: KeywordVocabulary = DEFAULT_VOCABULARY,
    ) -> None:
        self.publisher = publisher
        self.queue = queue if queue is not None else PublishQueue()
        self.state = state if state is not None else PostingState()
        self.min_credibility = min_credibility
        self.posting_hours = tuple(sorted(posting_hours)) or DEFAULT_POSTING_HOURS
        self.char_limit = char_limit
        self.vocabulary = vocabulary
        self.paused = False
        self.halt_reason: Optional[str] = None
        self.published_urls: BoundedSet[str] = BoundedSet(PUBLISHED_URLS_CAPACITY)

    # ---------------- Admission -----------------
    def admit(self, article: CandidateArticle, analysis: Analysis, *, now: Optional[datetime] = None) -> bool:
        """Queue an analyzed article unless it is below threshold, already queued or already published."""
        if analysis.final_score < self.min_credibility:
            logger.debug("Rejected (score %.2f < %.2f): %s", analysis.final_score, self.min_credibility, article.title)
            return False
        if self.queue.contains_url(article.url):
            logger.debug("Rejected (already queued): %s", article.title)
            return False
        if article.url in self.published_urls:
            logger.debug("Rejected (already published): %s", article.title)
            return False

        now = now or _local_now()
        item = QueueItem(
            article=article,
            analysis=analysis,
            priority=calculate_priority(article, analysis, now=now, vocabulary=self.vocabulary),
            enqueued_at=now,
            message=format_post(article, analysis, limit=self.char_limit),
        )
        kept = self.queue.push(item)
        if kept:
            logger.info("Queued for posting: '%s' (priority %.1f)", article.title, item.priority)
        else:
            logger.info("Queue full; '%s' (priority %.1f) did not make the cut", article.title, item.priority)
        return kept

    # ---------------- Draining -----------------
    def _reset_if_new_day(self, now: datetime) -> None:
        today = now.date().isoformat()
        if today != self.state.last_reset_date:
            if self.state.last_reset_date:
                logger.info("New posting day %s; resetting daily count (was %d)", today, self.state.daily_count)
            self.state.daily_count = 0
            self.state.last_reset_date = today

    def drain(self, *, now: Optional[datetime] = None) -> DrainResult:
        """Publish the single highest-priority item, subject to the daily cap."""
        now = now or _local_now()
        if self.halt_reason or self.paused:
            logger.warning("Auto-posting halted (%s); skipping slot", self.halt_reason or "paused")
            return DrainResult(outcome="halted", error=self.halt_reason)

        self._reset_if_new_day(now)
        if self.state.daily_count >= self.state.max_per_day:
            logger.info("Daily post limit reached (%d). Skipping.", self.state.max_per_day)
            return DrainResult(outcome="daily_cap")

        item = self.queue.pop()
        if item is None:
            logger.info("No articles in post queue.")
            return DrainResult(outcome="empty")

        logger.info("Posting: '%s'", item.article.title)
        try:
            post_id = self.publisher.publish(item.message or format_post(item.article, item.analysis, limit=self.char_limit))
        except PublishRateLimited as exc:
            # item is not requeued; the next slot takes the next item
            logger.warning("Rate limit reached; dropping '%s' for this cycle: %s", item.article.title, exc)
            return DrainResult(outcome="rate_limited", item=item, error=str(exc))
        except PublishForbidden as exc:
            self.halt_reason = f"forbidden ({exc.status}): {exc}"
            self.queue.push(item)
            logger.error("Posting forbidden; auto-posting halted until an operator resumes it: %s", exc)
            return DrainResult(outcome="forbidden", item=item, error=str(exc))
        except PublishError as exc:
            logger.error("Error posting '%s': %s", item.article.title, exc)
            return DrainResult(outcome="failed", item=item, error=str(exc))

        self.state.daily_count += 1
        self.published_urls.add(item.article.url)
        logger.info("Posted %s; daily posts: %d/%d", post_id, self.state.daily_count, self.state.max_per_day)
        return DrainResult(outcome="published", post_id=post_id, item=item)

    def post_immediate(self, article: CandidateArticle, analysis: Analysis) -> str:
        """Publish outside the queue; errors propagate to the caller."""
        post_id = self.publisher.publish(format_post(article, analysis, limit=self.char_limit))
        self.published_urls.add(article.url)
        logger.info("Immediate post published: %s", post_id)
        return post_id

    # ---------------- Operator controls -----------------
    def next_slot(self, now: Optional[datetime] = None) -> datetime:
        return next_slot(now or _local_now(), self.posting_hours)

    def queue_status(self, *, now: Optional[datetime] = None) -> Dict[str, Any]:
        return {
            "queue_length": len(self.queue),
            "daily_post_count": self.state.daily_count,
            "max_posts_per_day": self.state.max_per_day,
            "remaining_today": self.state.remaining_today,
            "next_scheduled_post": self.next_slot(now).isoformat(),
            "paused": self.paused,
            "halt_reason": self.halt_reason,
        }

    def clear_queue(self) -> None:
        dropped = self.queue.clear()
        logger.info("Post queue cleared (%d items)", dropped)

    def pause(self) -> None:
        self.paused = True
        logger.info("Auto-posting paused")

    def resume(self) -> None:
        self.paused = False
        self.halt_reason = None
        logger.info("Auto-posting resumed")
