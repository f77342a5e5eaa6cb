from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..errors import ParseError
from ..models import Analysis, CandidateArticle, SocialVerification
from ..models.analysis import ASSESSMENTS
from ..utils.logging import get_logger
from .ai import AIClient, extract_json_object
from .normalize import extract_main_content
from .social import SocialSignalScorer

logger = get_logger("fc.processors.factcheck")

DEGRADED_SCORE = 0.5

SOCIAL_CONFIRMED_BONUS = 0.15
SOCIAL_CONTRADICTED_PENALTY = 0.2
ALIGNMENT_BONUS = 0.1
ALIGNMENT_CONTRADICTION_PENALTY = 0.15
RED_FLAG_PENALTY = 0.08
VERIFIED_BONUS = 0.1
DISPUTED_PENALTY = 0.2

_CONTRADICTION_MARKERS = ("contradict", "conflict", "inconsistent", "not consistent", "misalign", "not align", "refute")
_NEUTRAL_MARKERS = ("unconfirmed", "not assessed", "unknown", "unclear", "insufficient")
_ALIGNMENT_MARKERS = ("align", "consistent", "corroborat", "confirm", "matches")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, (tuple, set)):
        return list(value)
    return [value]


def _as_dict(value: Any) -> Dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def _as_score(value: Any) -> Optional[float]:
    try:
        score = float(value)
    except (TypeError, ValueError):
        return None
    if 2.0 <= score <= 100.0:
        # some models answer in percent; values just above 1 are clamped instead
        score /= 100.0
    return max(0.0, min(1.0, score))


def alignment_signal(text: str | None) -> int:
    """+1 when the text reports alignment with ground truth, -1 for contradiction, 0 otherwise."""
    if not text:
        return 0
    lowered = str(text).lower()
    if any(marker in lowered for marker in _CONTRADICTION_MARKERS):
        return -1
    if any(marker in lowered for marker in _NEUTRAL_MARKERS):
        return 0
    if any(marker in lowered for marker in _ALIGNMENT_MARKERS):
        return 1
    return 0


def compute_final_score(
    *,
    credibility_score: Optional[float],
    source_credibility: Optional[float],
    social_status: Optional[str],
    alignment_text: Optional[str],
    red_flag_count: int,
    overall_assessment: Optional[str],
) -> float:
    """Composite trust score, clamped to [0, 1] as the last step."""
    score = credibility_score or 0.0
    if source_credibility:
        score = (score + source_credibility) / 2

    if social_status == "confirmed":
        score += SOCIAL_CONFIRMED_BONUS
    elif social_status == "contradicted":
        score -= SOCIAL_CONTRADICTED_PENALTY

    signal = alignment_signal(alignment_text)
    if signal > 0:
        score += ALIGNMENT_BONUS
    elif signal < 0:
        score -= ALIGNMENT_CONTRADICTION_PENALTY

    score -= RED_FLAG_PENALTY * max(0, red_flag_count)

    if overall_assessment == "VERIFIED":
        score += VERIFIED_BONUS
    elif overall_assessment in ("DISPUTED", "MISLEADING"):
        score -= DISPUTED_PENALTY

    return max(0.0, min(1.0, round(score, 4)))


def _coerce_social(value: Any) -> SocialVerification:
    data = _as_dict(value)
    if not data:
        return SocialVerification()
    return SocialVerification(
        status=str(data.get("status") or "unchecked"),  # type: ignore[arg-type]
        result=str(data.get("result") or ""),
        details=str(data.get("details") or ""),
    )


def coerce_analysis(
    data: Mapping[str, Any],
    article: CandidateArticle,
    *,
    social: Optional[SocialVerification] = None,
    raw_response: Optional[str] = None,
) -> Analysis:
    """Build the canonical :class:`Analysis` from a decoded model verdict.

    Missing or mistyped optional fields become empty values here so that
    consumers never branch on absent keys. An independently computed
    ``social`` verification takes precedence over one reported by the model.
    """
    credibility = _as_score(data.get("credibilityScore"))
    assessment = str(data.get("overallAssessment") or "UNVERIFIED").strip().upper()
    if assessment not in ASSESSMENTS:
        logger.debug("Unknown assessment '%s'; using UNVERIFIED", assessment)
        assessment = "UNVERIFIED"

    red_flags = [str(f) for f in _as_list(data.get("redFlags")) if f]
    key_findings = [f if isinstance(f, dict) else {"claim": str(f)} for f in _as_list(data.get("keyFindings"))]
    source_analysis = _as_dict(data.get("sourceAnalysis"))
    cross_reference = _as_dict(data.get("crossReference"))
    verification = social if social is not None else _coerce_social(data.get("socialMediaVerification"))
    alignment_text = source_analysis.get("groundTruthAlignment") or cross_reference.get("similarReporting")

    final_score = compute_final_score(
        credibility_score=credibility,
        source_credibility=article.source_credibility,
        social_status=verification.status,
        alignment_text=alignment_text,
        red_flag_count=len(red_flags),
        overall_assessment=assessment,
    )

    return Analysis(
        article_url=article.url,
        article_title=article.title,
        source_name=article.source_name,
        credibility_score=credibility or 0.0,
        overall_assessment=assessment,  # type: ignore[arg-type]
        final_score=final_score,
        key_findings=key_findings,
        red_flags=red_flags,
        social_media_verification=verification,
        source_analysis=source_analysis,
        contextual_factors=[str(c) for c in _as_list(data.get("contextualFactors")) if c],
        cross_reference=cross_reference,
        recommendations=str(data.get("recommendations") or ""),
        processed_at=_now_iso(),
        raw_response=raw_response,
    )


def degraded_analysis(
    article: CandidateArticle,
    *,
    error: str,
    raw_response: Optional[str] = None,
    social: Optional[SocialVerification] = None,
) -> Analysis:
    """Neutral verdict used when the model output cannot be used."""
    return Analysis(
        article_url=article.url,
        article_title=article.title,
        source_name=article.source_name,
        credibility_score=DEGRADED_SCORE,
        overall_assessment="UNVERIFIED",
        final_score=DEGRADED_SCORE,
        social_media_verification=social or SocialVerification(),
        processed_at=_now_iso(),
        error=error,
        raw_response=raw_response,
    )


def build_fact_check_prompt(article: CandidateArticle, content: str, *, reputable_sources: Iterable[str] = ()) -> str:
    sources_line = ", ".join(reputable_sources) or "established international news agencies"
    return (
        "As an expert fact-checker specializing in Middle East news and Palestine-Israel coverage, "
        "analyze this news article.\n\n"
        f"Article Title: {article.title}\n"
        f"Source: {article.source_name}\n"
        f"URL: {article.url}\n"
        f"Content: {content or '(no body text available; judge from the title and source)'}\n\n"
        "Return ONLY a single JSON object with this structure:\n"
        "{\n"
        '  "credibilityScore": <number between 0 and 1>,\n'
        '  "overallAssessment": "<VERIFIED|PARTIALLY_VERIFIED|DISPUTED|MISLEADING|UNVERIFIED>",\n'
        '  "keyFindings": [{"claim": "...", "verification": "<VERIFIED|DISPUTED|UNVERIFIED>", '
        '"evidence": "...", "sources": ["..."]}],\n'
        '  "sourceAnalysis": {"reputation": "...", "bias": "...", "previousAccuracy": "...", '
        '"groundTruthAlignment": "<does on-the-ground reporting align with or contradict the article?>"},\n'
        '  "contextualFactors": ["..."],\n'
        '  "redFlags": ["<sensationalism, missing sourcing, etc.>"],\n'
        '  "crossReference": {"similarReporting": "...", "conflictingReports": "..."},\n'
        '  "recommendations": "..."\n'
        "}\n\n"
        "Guidelines:\n"
        "1. Focus on factual accuracy and verifiable information.\n"
        "2. Consider the source's track record and potential bias.\n"
        f"3. Look for corroboration from multiple reputable sources: {sources_line}.\n"
        "4. Be especially careful with emotionally charged content.\n"
        "5. Distinguish opinion and analysis from factual reporting.\n"
        "Do not include markdown, code fences, or extra text.\n"
    )


class FactChecker:
    """Obtain a credibility verdict per article and score it.

    Each distinct URL is analyzed at most once per process; the result is
    cached. ``analyze`` never raises: unusable model output yields a degraded
    UNVERIFIED verdict with ``error`` set.
    """

    def __init__(
        self,
        ai: AIClient,
        *,
        social: Optional[SocialSignalScorer] = None,
        delay_seconds: float = 2.0,
        max_content_chars: int = 3000,
        reputable_sources: Iterable[str] = (),
    ) -> None:
        self.ai = ai
        self.social = social
        self.delay_seconds = delay_seconds
        self.max_content_chars = max_content_chars
        self.reputable_sources = list(reputable_sources)
        self._cache: Dict[str, Analysis] = {}

    def cached(self, url: str) -> Optional[Analysis]:
        return self._cache.get(url)

    def _corroborate(self, article: CandidateArticle) -> Optional[SocialVerification]:
        if self.social is None:
            return None
        try:
            return self.social.corroborate(article)
        except Exception as exc:  # noqa: BLE001 - corroboration is best-effort
            logger.warning("Social corroboration failed for '%s': %s", article.title, exc)
            return SocialVerification(status="error", result="Social media verification failed", details=str(exc))

    def analyze(self, article: CandidateArticle) -> Analysis:
        hit = self._cache.get(article.url)
        if hit is not None:
            logger.debug("Analysis cache hit: %s", article.url)
            return hit

        logger.info("Analyzing article: %s", article.title)
        content = extract_main_content(article.content, max_length=self.max_content_chars)
        prompt = build_fact_check_prompt(article, content, reputable_sources=self.reputable_sources)
        try:
            raw = self.ai.generate(prompt)
        except Exception as exc:  # noqa: BLE001 - transport failure; retried next cycle
            logger.error("Reasoning call failed for '%s': %s", article.title, exc)
            return degraded_analysis(article, error=f"Analysis failed: {exc}")
        finally:
            if self.delay_seconds > 0:
                time.sleep(self.delay_seconds)

        social = self._corroborate(article)
        try:
            data = extract_json_object(raw).unwrap()
            analysis = coerce_analysis(data, article, social=social, raw_response=raw)
        except ParseError as exc:
            logger.error("Error parsing fact-check response for '%s': %s", article.title, exc)
            analysis = degraded_analysis(
                article, error="Failed to parse AI analysis", raw_response=raw, social=social
            )

        self._cache[article.url] = analysis
        logger.info(
            "Analyzed '%s': %s credibility=%.2f final=%.2f social=%s",
            article.title,
            analysis.overall_assessment,
            analysis.credibility_score,
            analysis.final_score,
            analysis.social_media_verification.status,
        )
        return analysis
