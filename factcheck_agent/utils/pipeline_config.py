from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List


def _env_float(name: str, default: str) -> float:
    return float(os.getenv(name, default))


def _env_int(name: str, default: str) -> int:
    return int(os.getenv(name, default))


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes"}


@dataclass(slots=True)
class PipelineConfig:
    # Ingestion
    cycle_interval_hours: float = field(default_factory=lambda: _env_float("FACT_CHECK_INTERVAL_HOURS", "6"))
    request_delay_s: float = field(default_factory=lambda: _env_float("SCRAPE_REQUEST_DELAY", "1.0"))
    request_timeout_s: float = field(default_factory=lambda: _env_float("SCRAPE_TIMEOUT", "10"))
    user_agent: str = field(
        default_factory=lambda: os.getenv(
            "USER_AGENT",
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/127.0.0.0 Safari/537.36",
        )
    )
    enrich_empty_content: bool = field(default_factory=lambda: _env_bool("ENRICH_EMPTY_CONTENT", "true"))
    max_articles_per_cycle: int = field(default_factory=lambda: _env_int("MAX_ARTICLES_PER_CYCLE", "50"))

    # Analysis
    ai_delay_s: float = field(default_factory=lambda: _env_float("AI_CALL_DELAY", "2.0"))
    ai_input_max_chars: int = field(default_factory=lambda: _env_int("AI_INPUT_MAX_CHARS", "3000"))

    # Publishing
    min_credibility: float = field(default_factory=lambda: _env_float("AUTO_POST_MIN_CREDIBILITY", "0.7"))
    max_posts_per_day: int = field(default_factory=lambda: _env_int("AUTO_POST_MAX_PER_DAY", "5"))
    posting_hours_csv: str = field(default_factory=lambda: os.getenv("AUTO_POST_HOURS", "8,12,16,20"))
    dry_run: bool = field(default_factory=lambda: _env_bool("DRY_RUN", "false"))

    @property
    def posting_hours(self) -> List[int]:
        hours = sorted({int(h) for h in self.posting_hours_csv.split(",") if h.strip()})
        return [h for h in hours if 0 <= h <= 23]
