"""Application entrypoint for the news fact-check agent.

This script orchestrates the high-level flow:
1) load configuration
2) fetch, filter, deduplicate and analyze articles
3) queue credible results and publish them at the posting slots (or dry-run)
"""

from __future__ import annotations

import argparse
import json
import os
from dataclasses import asdict
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

from .errors import ValidationError
from .fetchers import SourceFetcher
from .models import PostingState
from .orchestrator import Orchestrator
from .output.post_generator import PostGenerator
from .output.scheduler import PostScheduler
from .output.x_client import XClient
from .pipeline.runner import Runner
from .processors.ai import create_ai_client
from .processors.factcheck import FactChecker
from .processors.social import NitterSearchProvider, SocialSignalScorer
from .utils.config_loader import load_catalog
from .utils.logging import configure_logging, get_logger
from .utils.pipeline_config import PipelineConfig


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="News fact-check agent: fetch, analyze, and publish credibility verdicts"
    )
    parser.add_argument(
        "--config",
        default="config/sources.yaml",
        help="Path to sources configuration file (YAML)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single ingestion cycle, print a summary and exit",
    )
    parser.add_argument(
        "--drain-now",
        action="store_true",
        help="Publish the top queued item right away (after --once, if given) and exit",
    )
    parser.add_argument(
        "--preview-posts",
        default=None,
        metavar="PLATFORMS",
        help="Draft LLM posts for the top queued items on these comma-separated platforms (e.g. twitter,facebook) and exit",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Do not publish; log the posts that would be made",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity (defaults to LOG_LEVEL or INFO)",
    )
    return parser.parse_args(argv)


def build_orchestrator(config_path: Path, cfg: PipelineConfig) -> Orchestrator:
    """Wire the pipeline components; raises ValidationError on bad configuration."""
    catalog = load_catalog(config_path)

    fetcher = SourceFetcher(
        user_agent=cfg.user_agent,
        timeout=cfg.request_timeout_s,
        request_delay=cfg.request_delay_s,
        vocabulary=catalog.vocabulary,
    )

    social = None
    nitter_url = os.getenv("NITTER_BASE_URL")
    if nitter_url:
        social = SocialSignalScorer(
            NitterSearchProvider(nitter_url, user_agent=cfg.user_agent),
            vocabulary=catalog.vocabulary,
        )

    checker = FactChecker(
        create_ai_client(),
        social=social,
        delay_seconds=cfg.ai_delay_s,
        max_content_chars=cfg.ai_input_max_chars,
        reputable_sources=[s.name for s in catalog.sources if s.reputable],
    )

    scheduler = PostScheduler(
        XClient(dry_run=cfg.dry_run),
        state=PostingState(max_per_day=cfg.max_posts_per_day),
        min_credibility=cfg.min_credibility,
        posting_hours=cfg.posting_hours,
        vocabulary=catalog.vocabulary,
    )
    return Orchestrator(catalog, fetcher=fetcher, checker=checker, scheduler=scheduler, config=cfg)


PREVIEW_ITEMS = 3


def preview_posts(orch: Orchestrator, platforms: list[str], *, limit: int = PREVIEW_ITEMS) -> list[dict]:
    """Draft platform posts for the highest-priority queued items without publishing them."""
    generator = PostGenerator(orch.checker.ai)
    previews: list[dict] = []
    for item in list(orch.scheduler.queue)[:limit]:
        posts = generator.generate_many(item.article, item.analysis, platforms)
        previews.append({"url": item.article.url, "posts": {name: asdict(post) for name, post in posts.items()}})
    return previews


def main(argv: list[str] | None = None) -> int:
    load_dotenv(override=False)
    args = parse_args(argv)
    configure_logging(level=args.log_level)
    logger = get_logger("fc.agent")

    cfg = PipelineConfig()
    if args.dry_run:
        cfg.dry_run = True

    config_path = Path(args.config)
    logger.info("Loading sources configuration from %s", config_path)
    try:
        orch = build_orchestrator(config_path, cfg)
    except ValidationError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1

    logger.info("Loaded %d source(s)%s", len(orch.catalog.sources), " [dry-run]" if cfg.dry_run else "")

    if args.once or args.drain_now or args.preview_posts:
        if args.once:
            report = orch.run_cycle()
            if report is not None:
                print(report.to_markdown())
        if args.drain_now:
            result = orch.scheduler.drain()
            logger.info("Drain outcome: %s", result.outcome)
        if args.preview_posts:
            platforms = [p.strip() for p in args.preview_posts.split(",") if p.strip()]
            print(json.dumps(preview_posts(orch, platforms), indent=2, default=str))
        print(json.dumps(orch.summary(), indent=2, default=str))
        return 0

    runner = Runner(orch, orch.scheduler, interval=timedelta(hours=cfg.cycle_interval_hours))
    runner.install_signal_handlers()
    runner.run()
    return 0


if __name__ == "__main__":  # pragma: no cover - script entrypoint
    raise SystemExit(main())
