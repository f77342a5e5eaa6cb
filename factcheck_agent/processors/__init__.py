"""Processing pipeline: normalization, relevance, deduplication, fact-checking."""

from .normalize import clean_html_to_text, normalize_plain_text, normalize_title, canonical_url, extract_main_content
from .relevance import score_relevance, is_admitted, filter_relevant
from .dedup import Deduplicator, DedupStats, remove_duplicates
from .aggregate import aggregate
from .factcheck import FactChecker, compute_final_score
from .social import SocialSignalScorer, classify_posts

__all__ = [
    "clean_html_to_text",
    "normalize_plain_text",
    "normalize_title",
    "canonical_url",
    "extract_main_content",
    "score_relevance",
    "is_admitted",
    "filter_relevant",
    "Deduplicator",
    "DedupStats",
    "remove_duplicates",
    "aggregate",
    "FactChecker",
    "compute_final_score",
    "SocialSignalScorer",
    "classify_posts",
]
