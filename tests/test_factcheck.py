"""Tests for processors.factcheck and processors.ai.parsing modules."""

import json
from unittest.mock import MagicMock

import pytest
import requests

from factcheck_agent.errors import ParseError
from factcheck_agent.models import SocialVerification
from factcheck_agent.processors.ai import extract_json_object
from factcheck_agent.processors.factcheck import (
    FactChecker,
    alignment_signal,
    coerce_analysis,
    compute_final_score,
)
from factcheck_agent.processors.normalize import extract_main_content

from conftest import make_article


def _score(**overrides) -> float:
    params = dict(
        credibility_score=0.8,
        source_credibility=None,
        social_status=None,
        alignment_text=None,
        red_flag_count=0,
        overall_assessment="PARTIALLY_VERIFIED",
    )
    params.update(overrides)
    return compute_final_score(**params)


class TestComputeFinalScore:
    def test_averages_with_source_credibility(self) -> None:
        assert _score(credibility_score=0.7, source_credibility=0.9) == pytest.approx(0.8)

    def test_social_and_alignment_adjustments(self) -> None:
        assert _score(social_status="confirmed") == pytest.approx(0.95)
        assert _score(social_status="contradicted") == pytest.approx(0.6)
        assert _score(alignment_text="Reports align with on-the-ground sources") == pytest.approx(0.9)
        assert _score(alignment_text="Ground reports contradict the claim") == pytest.approx(0.65)

    def test_red_flags_and_assessment(self) -> None:
        assert _score(red_flag_count=2) == pytest.approx(0.64)
        assert _score(overall_assessment="VERIFIED") == pytest.approx(0.9)
        assert _score(overall_assessment="MISLEADING") == pytest.approx(0.6)

    def test_contradicted_social_with_verified_assessment(self) -> None:
        score = _score(credibility_score=0.9, social_status="contradicted", overall_assessment="VERIFIED")
        assert score == pytest.approx(0.8)

    def test_clamped_to_unit_interval(self) -> None:
        high = _score(
            credibility_score=0.95,
            source_credibility=0.95,
            social_status="confirmed",
            alignment_text="consistent with ground truth",
            overall_assessment="VERIFIED",
        )
        low = _score(credibility_score=0.1, red_flag_count=6, overall_assessment="DISPUTED")
        assert high == 1.0
        assert low == 0.0

    def test_missing_credibility_starts_at_zero(self) -> None:
        assert _score(credibility_score=None) == 0.0

    def test_error_status_is_neutral(self) -> None:
        assert _score(social_status="error") == pytest.approx(0.8)


class TestAlignmentSignal:
    def test_contradiction_wins_over_alignment_words(self) -> None:
        assert alignment_signal("Does not align; reports contradict it") == -1

    def test_neutral_markers(self) -> None:
        assert alignment_signal("Alignment unconfirmed") == 0

    def test_empty(self) -> None:
        assert alignment_signal(None) == 0


class TestExtractJsonObject:
    def test_object_wrapped_in_prose_and_fences(self) -> None:
        raw = 'Here is my answer:\n```json\n{"credibilityScore": 0.7, "nested": {"a": 1}}\n```\nThanks'
        result = extract_json_object(raw)
        assert result.ok is True
        assert result.data == {"credibilityScore": 0.7, "nested": {"a": 1}}

    def test_no_object(self) -> None:
        result = extract_json_object("I am unable to assess this article.")
        assert result.ok is False
        assert "No JSON object" in result.error

    def test_invalid_json(self) -> None:
        result = extract_json_object("{credibilityScore: high}")
        assert result.ok is False
        with pytest.raises(ParseError):
            result.unwrap()

    def test_empty_response(self) -> None:
        assert extract_json_object("   ").ok is False


class TestExtractMainContent:
    def test_short_text_unchanged(self) -> None:
        assert extract_main_content("Short body.", max_length=100) == "Short body."

    def test_breaks_at_late_sentence_boundary(self) -> None:
        text = "a" * 90 + ". " + "b" * 50
        assert extract_main_content(text, max_length=100) == "a" * 90 + "."

    def test_breaks_at_late_paragraph_boundary(self) -> None:
        text = "a" * 85 + "\n\n" + "b" * 50
        assert extract_main_content(text, max_length=100) == "a" * 85

    def test_falls_back_to_word_boundary_with_ellipsis(self) -> None:
        text = "Early sentence. " + "word " * 40
        out = extract_main_content(text, max_length=100)
        assert out.endswith("...")
        assert len(out) <= 103
        assert not out[:-3].endswith(" ")


def _verdict(**overrides) -> str:
    data = {
        "credibilityScore": 0.8,
        "overallAssessment": "PARTIALLY_VERIFIED",
        "keyFindings": [{"claim": "Talks resumed", "verification": "VERIFIED"}],
        "redFlags": [],
        "sourceAnalysis": {"reputation": "established"},
        "recommendations": "Monitor follow-up reporting",
    }
    data.update(overrides)
    return "Analysis:\n" + json.dumps(data)


class TestCoerceAnalysis:
    def test_fills_defaults_for_missing_fields(self) -> None:
        art = make_article(credibility=None)
        analysis = coerce_analysis({"credibilityScore": "75"}, art)
        assert analysis.credibility_score == pytest.approx(0.75)
        assert analysis.overall_assessment == "UNVERIFIED"
        assert analysis.key_findings == []
        assert analysis.red_flags == []
        assert analysis.social_media_verification.status == "unchecked"
        assert analysis.error is None

    def test_score_slightly_above_one_is_clamped(self) -> None:
        analysis = coerce_analysis({"credibilityScore": 1.2}, make_article(credibility=None))
        assert analysis.credibility_score == 1.0

    def test_percent_score_is_rescaled(self) -> None:
        analysis = coerce_analysis({"credibilityScore": 85}, make_article(credibility=None))
        assert analysis.credibility_score == pytest.approx(0.85)

    def test_unknown_assessment_becomes_unverified(self) -> None:
        analysis = coerce_analysis({"credibilityScore": 0.5, "overallAssessment": "TRUE"}, make_article())
        assert analysis.overall_assessment == "UNVERIFIED"

    def test_similar_reporting_used_as_alignment_fallback(self) -> None:
        data = {"credibilityScore": 0.8, "crossReference": {"similarReporting": "Consistent with Reuters"}}
        analysis = coerce_analysis(data, make_article(credibility=None))
        assert analysis.final_score == pytest.approx(0.9)


class TestFactChecker:
    def _checker(self, ai: MagicMock, **kwargs) -> FactChecker:
        return FactChecker(ai, delay_seconds=0, **kwargs)

    def test_scores_model_verdict(self) -> None:
        ai = MagicMock()
        ai.generate.return_value = _verdict()
        analysis = self._checker(ai).analyze(make_article(credibility=0.8))
        assert analysis.final_score == pytest.approx(0.8)
        assert analysis.overall_assessment == "PARTIALLY_VERIFIED"
        assert analysis.key_findings[0]["claim"] == "Talks resumed"

    def test_prompt_is_bounded_and_names_article(self) -> None:
        ai = MagicMock()
        ai.generate.return_value = _verdict()
        art = make_article(content="word " * 2000)
        self._checker(ai, max_content_chars=500).analyze(art)
        prompt = ai.generate.call_args.args[0]
        assert art.title in prompt
        assert art.url in prompt
        assert len(prompt) < 3000

    def test_unparseable_output_is_degraded_and_cached(self) -> None:
        ai = MagicMock()
        ai.generate.return_value = "Sorry, I cannot evaluate this."
        checker = self._checker(ai)
        art = make_article()

        first = checker.analyze(art)
        second = checker.analyze(art)

        assert first.overall_assessment == "UNVERIFIED"
        assert first.final_score == 0.5
        assert first.credibility_score == 0.5
        assert first.error == "Failed to parse AI analysis"
        assert second is first
        assert ai.generate.call_count == 1

    def test_transport_failure_is_not_cached(self) -> None:
        ai = MagicMock()
        ai.generate.side_effect = [requests.ConnectionError("boom"), _verdict()]
        checker = self._checker(ai)
        art = make_article()

        first = checker.analyze(art)
        assert first.error.startswith("Analysis failed")
        assert checker.cached(art.url) is None

        second = checker.analyze(art)
        assert second.error is None
        assert ai.generate.call_count == 2

    def test_each_url_analyzed_once(self) -> None:
        ai = MagicMock()
        ai.generate.return_value = _verdict()
        checker = self._checker(ai)
        for _ in range(3):
            checker.analyze(make_article())
        assert ai.generate.call_count == 1

    def test_independent_social_result_overrides_model(self) -> None:
        ai = MagicMock()
        ai.generate.return_value = _verdict(socialMediaVerification={"status": "contradicted"})
        social = MagicMock()
        social.corroborate.return_value = SocialVerification(status="confirmed", result="ok")
        analysis = self._checker(ai, social=social).analyze(make_article(credibility=0.8))
        assert analysis.social_media_verification.status == "confirmed"
        assert analysis.final_score == pytest.approx(0.95)

    def test_social_failure_does_not_abort_analysis(self) -> None:
        ai = MagicMock()
        ai.generate.return_value = _verdict()
        social = MagicMock()
        social.corroborate.side_effect = RuntimeError("provider down")
        analysis = self._checker(ai, social=social).analyze(make_article(credibility=0.8))
        assert analysis.social_media_verification.status == "error"
        assert analysis.final_score == pytest.approx(0.8)
