from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Sequence, Tuple

from ..models import CandidateArticle
from ..utils.logging import get_logger
from .normalize import canonical_url, normalize_title, title_tokens

logger = get_logger("fc.processors.dedup")

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(slots=True)
class DedupStats:
    total: int
    kept: int
    duplicates: int
    reasons: Dict[str, int] = field(default_factory=dict)


def title_similarity(a: str, b: str) -> float:
    """Share of overlapping long words relative to the larger token set."""
    tokens_a = title_tokens(a)
    tokens_b = title_tokens(b)
    if not tokens_a or not tokens_b:
        return 0.0
    return len(tokens_a & tokens_b) / max(len(tokens_a), len(tokens_b))


def _rank_key(article: CandidateArticle) -> Tuple[float, datetime]:
    published = article.published_at or _EPOCH
    if published.tzinfo is None:
        published = published.replace(tzinfo=timezone.utc)
    return (article.source_credibility or 0.0, published)


def pick_representative(articles: Sequence[CandidateArticle]) -> CandidateArticle:
    """Highest source credibility wins; ties go to the most recent article."""
    best = articles[0]
    for art in articles[1:]:
        if _rank_key(art) > _rank_key(best):
            best = art
    return best


class Deduplicator:
    """Collapse exact and near-duplicate candidates to one per story.

    Phase 1 drops later entries whose normalized title or canonical URL was
    already seen. Phase 2 links titles whose token overlap reaches
    ``title_threshold`` and keeps one representative per linked chain.
    """

    def __init__(self, *, title_threshold: float = 0.8) -> None:
        self.title_threshold = title_threshold

    def drop_exact(self, articles: Iterable[CandidateArticle]) -> Tuple[List[CandidateArticle], Dict[str, int]]:
        seen_titles: set[str] = set()
        seen_urls: set[str] = set()
        reasons: Dict[str, int] = defaultdict(int)
        unique: List[CandidateArticle] = []
        for art in articles:
            title_key = normalize_title(art.title)
            url_key = canonical_url(art.url)
            if title_key and title_key in seen_titles:
                reasons["title"] += 1
                continue
            if url_key and url_key in seen_urls:
                reasons["url"] += 1
                continue
            if title_key:
                seen_titles.add(title_key)
            if url_key:
                seen_urls.add(url_key)
            unique.append(art)
        return unique, dict(reasons)

    def merge_near_duplicates(self, articles: Sequence[CandidateArticle]) -> List[CandidateArticle]:
        parent = list(range(len(articles)))

        def find(i: int) -> int:
            while parent[i] != i:
                parent[i] = parent[parent[i]]
                i = parent[i]
            return i

        for i in range(len(articles)):
            for j in range(i + 1, len(articles)):
                if title_similarity(articles[i].title, articles[j].title) >= self.title_threshold:
                    root_i, root_j = find(i), find(j)
                    if root_i != root_j:
                        parent[root_j] = root_i

        clusters: Dict[int, List[int]] = defaultdict(list)
        for idx in range(len(articles)):
            clusters[find(idx)].append(idx)

        survivors: List[CandidateArticle] = []
        for members in sorted(clusters.values(), key=lambda m: m[0]):
            group = [articles[i] for i in members]
            best = pick_representative(group)
            if len(group) > 1:
                logger.debug("Merged %d near-duplicates into: %s", len(group), best.title)
            survivors.append(best)
        return survivors

    def deduplicate(self, articles: Iterable[CandidateArticle]) -> Tuple[List[CandidateArticle], DedupStats]:
        items = list(articles)
        exact_unique, reasons = self.drop_exact(items)
        merged = self.merge_near_duplicates(exact_unique)
        near = len(exact_unique) - len(merged)
        if near:
            reasons["similar_title"] = near
        stats = DedupStats(total=len(items), kept=len(merged), duplicates=len(items) - len(merged), reasons=reasons)
        logger.info("Deduplicated %d candidates to %d (%s)", stats.total, stats.kept, stats.reasons or "none")
        return merged, stats


def remove_duplicates(
    articles: Iterable[CandidateArticle],
    *,
    dedup: Deduplicator | None = None,
    return_stats: bool = False,
):
    """Remove duplicates from an iterable of candidates.

    Returns a list of unique articles by default. If ``return_stats`` is True,
    returns a tuple of (unique_articles, DedupStats).
    """
    unique, stats = (dedup or Deduplicator()).deduplicate(articles)
    return (unique, stats) if return_stats else unique
