"""Tests for orchestrator, pipeline.runner and main modules."""

from datetime import timedelta
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from factcheck_agent import main as main_module
from factcheck_agent.orchestrator import PROCESSED_URLS_CAPACITY, Orchestrator
from factcheck_agent.output.scheduler import DrainResult, PostScheduler
from factcheck_agent.pipeline.runner import Runner
from factcheck_agent.processors.factcheck import FactChecker
from factcheck_agent.utils.bounded import BoundedSet
from factcheck_agent.utils.config_loader import SourceCatalog
from factcheck_agent.utils.pipeline_config import PipelineConfig

from conftest import NOW, make_analysis, make_article, make_source


def _orchestrator(articles, *, analysis_for=None):
    fetcher = MagicMock()
    fetcher.fetch_all.return_value = [articles]
    fetcher.fetch_article_content.return_value = "Negotiators met in Cairo on Sunday."

    checker = MagicMock()
    checker.analyze.side_effect = analysis_for or (lambda art: make_analysis(art, final_score=0.85))
    checker.cached.side_effect = lambda url: object()

    publisher = MagicMock()
    publisher.publish.return_value = "1"
    scheduler = PostScheduler(publisher)

    cfg = PipelineConfig()
    cfg.enrich_empty_content = True
    orch = Orchestrator(
        SourceCatalog(sources=[make_source()]),
        fetcher=fetcher,
        checker=checker,
        scheduler=scheduler,
        config=cfg,
    )
    return orch, fetcher, checker


class TestOrchestrator:
    def test_cycle_analyzes_and_queues_relevant_articles(self) -> None:
        relevant = make_article("Gaza ceasefire talks resume in Cairo", url="https://n.example/1")
        offtopic = make_article("Stock markets rally", url="https://n.example/2")
        orch, fetcher, checker = _orchestrator([relevant, offtopic])

        report = orch.run_cycle(now=NOW)

        assert report.candidates_fetched == 2
        assert report.candidates_admitted == 1
        assert report.articles_analyzed == 1
        assert report.queued == 1
        checker.analyze.assert_called_once_with(relevant)
        assert relevant.content == "Negotiators met in Cairo on Sunday."
        assert len(orch.scheduler.queue) == 1
        assert orch.latest_results()[0].article_url == "https://n.example/1"

    def test_processed_urls_are_skipped_next_cycle(self) -> None:
        art = make_article(url="https://n.example/1")
        orch, _, checker = _orchestrator([art])
        orch.run_cycle(now=NOW)
        report = orch.run_cycle(now=NOW + timedelta(minutes=5))
        assert report.already_processed == 1
        assert checker.analyze.call_count == 1

    def test_overlapping_cycle_returns_none(self) -> None:
        orch, fetcher, _ = _orchestrator([make_article()])
        orch._lock.acquire()
        try:
            assert orch.running is True
            assert orch.run_cycle(now=NOW) is None
        finally:
            orch._lock.release()
        fetcher.fetch_all.assert_not_called()
        assert len(orch.results) == 0

    def test_uncached_failure_stays_eligible(self) -> None:
        art = make_article(url="https://n.example/1")
        orch, _, checker = _orchestrator(
            [art], analysis_for=lambda a: make_analysis(a, final_score=0.5, error="Analysis failed: timeout")
        )
        checker.cached.side_effect = lambda url: None

        report = orch.run_cycle(now=NOW)

        assert report.analysis_errors == 1
        assert report.queued == 0
        assert "https://n.example/1" not in orch.processed_urls

    def test_exception_in_one_article_does_not_abort_cycle(self) -> None:
        first = make_article("Gaza ceasefire talks resume", url="https://n.example/1")
        second = make_article("Hostage release in Rafah confirmed", url="https://n.example/2")

        def analyze(art):
            if art.url.endswith("/1"):
                raise RuntimeError("unexpected")
            return make_analysis(art, final_score=0.9)

        orch, _, _ = _orchestrator([first, second], analysis_for=analyze)
        report = orch.run_cycle(now=NOW)
        assert report.analysis_errors == 1
        assert report.queued == 1

    def test_published_article_is_not_posted_twice_after_eviction(self) -> None:
        art = make_article("Gaza ceasefire talks resume in Cairo", url="https://n.example/1", content="Talks resumed.")
        fetcher = MagicMock()
        fetcher.fetch_all.return_value = [[art]]
        ai = MagicMock()
        ai.generate.return_value = '{"credibilityScore": 0.9, "overallAssessment": "PARTIALLY_VERIFIED"}'
        publisher = MagicMock()
        publisher.publish.return_value = "1"
        scheduler = PostScheduler(publisher)
        orch = Orchestrator(
            SourceCatalog(sources=[make_source()]),
            fetcher=fetcher,
            checker=FactChecker(ai, delay_seconds=0),
            scheduler=scheduler,
        )

        orch.run_cycle(now=NOW)
        assert scheduler.drain(now=NOW).published
        # the processed-URL set forgets old entries once it is full
        orch.processed_urls = BoundedSet(PROCESSED_URLS_CAPACITY)
        report = orch.run_cycle(now=NOW + timedelta(hours=6))

        assert report.queued == 0
        assert scheduler.drain(now=NOW + timedelta(hours=6)).outcome == "empty"
        assert ai.generate.call_count == 1
        assert publisher.publish.call_count == 1

    def test_summary_and_report_markdown(self) -> None:
        orch, _, _ = _orchestrator([make_article()])
        report = orch.run_cycle(now=NOW)
        summary = orch.summary()
        assert summary["results"]["total"] == 1
        assert summary["queue"]["queue_length"] == 1
        assert "Queued for posting: 1" in report.to_markdown()


class TestRunner:
    def test_tick_runs_due_events(self) -> None:
        orchestrator = MagicMock()
        scheduler = MagicMock()
        scheduler.drain.return_value = DrainResult(outcome="empty")
        scheduler.next_slot.return_value = NOW + timedelta(hours=4)
        runner = Runner(orchestrator, scheduler, interval=timedelta(hours=6))

        next_cycle, next_drain = runner.tick(NOW, NOW, NOW + timedelta(hours=1))
        orchestrator.run_cycle.assert_called_once()
        scheduler.drain.assert_not_called()
        assert next_cycle == NOW + timedelta(hours=6)

        later = NOW + timedelta(hours=1)
        _, next_drain = runner.tick(later, next_cycle, next_drain)
        scheduler.drain.assert_called_once_with(now=later)
        assert next_drain == NOW + timedelta(hours=4)
        assert orchestrator.run_cycle.call_count == 1

    def test_run_stops_on_event(self) -> None:
        orchestrator = MagicMock()
        scheduler = MagicMock()
        scheduler.next_slot.return_value = NOW + timedelta(hours=3)
        runner = Runner(orchestrator, scheduler, interval=timedelta(hours=6), clock=lambda: NOW)
        orchestrator.run_cycle.side_effect = lambda: runner.stop()

        runner.run()

        orchestrator.run_cycle.assert_called_once()
        scheduler.drain.assert_not_called()

    def test_interval_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            Runner(MagicMock(), MagicMock(), interval=timedelta(0))


class TestMain:
    def test_invalid_config_exits_with_one(self, tmp_path: Path) -> None:
        bad = tmp_path / "sources.yaml"
        bad.write_text("sources:\n  - {id: x, name: X}\n", encoding="utf-8")
        with patch.object(main_module, "load_dotenv"), patch.object(main_module, "configure_logging"):
            assert main_module.main(["--config", str(bad), "--once"]) == 1

    def test_missing_credentials_exit_with_one(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PROCESSING_BACKEND", "gemini")
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        config = Path(__file__).resolve().parents[1] / "config" / "sources.yaml"
        with patch.object(main_module, "load_dotenv"), patch.object(main_module, "configure_logging"):
            assert main_module.main(["--config", str(config), "--once", "--dry-run"]) == 1

    def test_once_runs_a_single_cycle(self, capsys: pytest.CaptureFixture) -> None:
        orch = MagicMock()
        orch.run_cycle.return_value.to_markdown.return_value = "### Fact-check Cycle Summary\n"
        orch.summary.return_value = {"queue": {"queue_length": 0}}
        with patch.object(main_module, "load_dotenv"), patch.object(main_module, "configure_logging"), patch.object(
            main_module, "build_orchestrator", return_value=orch
        ):
            assert main_module.main(["--once", "--dry-run"]) == 0
        orch.run_cycle.assert_called_once()
        orch.scheduler.drain.assert_not_called()
        assert "Fact-check Cycle Summary" in capsys.readouterr().out

    def test_preview_posts_drafts_queued_items_without_publishing(self) -> None:
        art = make_article(url="https://n.example/1")
        publisher = MagicMock()
        scheduler = PostScheduler(publisher)
        scheduler.admit(art, make_analysis(art, final_score=0.9), now=NOW)
        orch = MagicMock()
        orch.scheduler = scheduler
        orch.checker.ai.generate.return_value = '{"post": "Verified: talks resume https://n.example/1"}'

        with patch("factcheck_agent.output.post_generator.time.sleep"):
            previews = main_module.preview_posts(orch, ["twitter", "facebook"])

        assert [p["url"] for p in previews] == ["https://n.example/1"]
        assert set(previews[0]["posts"]) == {"twitter", "facebook"}
        assert previews[0]["posts"]["twitter"]["text"] == "Verified: talks resume https://n.example/1"
        publisher.publish.assert_not_called()
        assert len(scheduler.queue) == 1
