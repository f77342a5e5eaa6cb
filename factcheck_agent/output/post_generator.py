"""LLM-written social posts for an analyzed article, one per platform.

The model is asked for a JSON object; when the call fails or the answer is
unusable the deterministic :func:`format_post` text is used instead, so a
caller always receives a publishable post.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from ..errors import ParseError
from ..models import Analysis, CandidateArticle
from ..processors.ai import AIClient, extract_json_object
from ..utils.logging import get_logger
from .post_formatter import format_post

logger = get_logger("fc.output.post_generator")

DEFAULT_HASHTAGS = ("#FactCheck", "#News")
DEFAULT_PLATFORMS = ("twitter", "facebook")

PLATFORM_SPECS: Dict[str, str] = {
    "twitter": (
        "- Character limit: 280 characters\n"
        "- Use 2-3 relevant hashtags\n"
        "- Emojis for engagement"
    ),
    "facebook": (
        "- Flexible length, up to a few short paragraphs\n"
        "- Use 3-5 hashtags\n"
        "- Encourage discussion in comments"
    ),
    "instagram": (
        "- Caption up to 2,200 characters\n"
        "- Use 10-15 hashtags for discoverability\n"
        "- Focus on visual storytelling"
    ),
    "linkedin": (
        "- Professional tone\n"
        "- Around 1,300 characters\n"
        "- Focus on credibility and analysis"
    ),
    "general": (
        "- Adaptable to multiple platforms\n"
        "- Focus on the core message\n"
        "- Professional and engaging tone"
    ),
}

PLATFORM_CHAR_LIMITS: Dict[str, int] = {
    "twitter": 280,
    "facebook": 2000,
    "instagram": 2200,
    "linkedin": 1300,
    "general": 500,
}


@dataclass(frozen=True, slots=True)
class VerificationWarning:
    level: str  # high | medium | low
    message: str
    hashtags: tuple[str, ...]


def verification_warning(analysis: Analysis) -> Optional[VerificationWarning]:
    """Warning to carry in the post for weak or disputed verdicts; None when credible."""
    score = analysis.final_score
    assessment = analysis.overall_assessment
    if assessment == "MISLEADING" or score < 0.3:
        return VerificationWarning(
            level="high",
            message="WARNING: flagged as potentially misleading or false. Verify with multiple reputable sources before sharing.",
            hashtags=("#FactCheck", "#MisinformationAlert", "#VerifyBeforeSharing"),
        )
    if assessment == "DISPUTED" or score < 0.5:
        return VerificationWarning(
            level="medium",
            message="CAUTION: contains disputed information. Cross-reference with trusted sources.",
            hashtags=("#FactCheck", "#VerifyInfo", "#MediaLiteracy"),
        )
    if assessment == "UNVERIFIED" or score < 0.7:
        return VerificationWarning(
            level="low",
            message="NOTE: this information requires verification. Always check multiple sources.",
            hashtags=("#FactCheck", "#VerifyNews"),
        )
    return None


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def platform_specification(platform: str) -> str:
    return PLATFORM_SPECS.get(platform, PLATFORM_SPECS["general"])


def char_limit_for(platform: str) -> int:
    return PLATFORM_CHAR_LIMITS.get(platform, PLATFORM_CHAR_LIMITS["general"])


def build_post_prompt(article: CandidateArticle, analysis: Analysis, *, platform: str, tone: str) -> str:
    social = analysis.social_media_verification
    social_line = f"{social.status} - {social.result}" if social.result else social.status
    alignment = analysis.source_analysis.get("groundTruthAlignment") or "Not assessed against ground sources"
    published = article.published_at.isoformat() if article.published_at else "Recent"
    warning = verification_warning(analysis)

    lines = [
        f"As a social media editor specializing in verified news, write a {platform} post about this article "
        "and its fact-check result.",
        "",
        "Article:",
        f"- Title: {article.title}",
        f"- Source: {article.source_name}",
        f"- URL: {article.url}",
        f"- Published: {published}",
        "",
        "Verification:",
        f"- Credibility: {round(analysis.final_score * 100)}%",
        f"- Overall assessment: {analysis.overall_assessment}",
        f"- Social media verification: {social_line}",
        f"- Ground truth alignment: {alignment}",
        f"- Key issues: {', '.join(analysis.red_flags) or 'None identified'}",
        "",
        "Platform requirements:",
        platform_specification(platform),
        f"- Hard limit: {char_limit_for(platform)} characters including hashtags and URL",
        "",
        f"Tone: {tone}",
    ]
    if warning is not None:
        lines += [
            "",
            f"VERIFICATION ALERT ({warning.level.upper()}): {warning.message}",
            f"Required hashtags: {', '.join(warning.hashtags)}",
        ]
    lines += [
        "",
        "Return ONLY a single JSON object:",
        "{",
        '  "post": "<post text including the article URL>",',
        '  "hashtags": ["#..."],',
        '  "engagement": {"callToAction": "...", "questionPrompt": "..."},',
        '  "warnings": {"includeFactCheckWarning": <true|false>, "warningText": "...", "warningLevel": "<high|medium|low>"},',
        '  "alternativeVersions": [{"style": "brief", "content": "..."}, {"style": "detailed", "content": "..."}]',
        "}",
        "Do not include markdown, code fences, or extra text.",
    ]
    return "\n".join(lines)


@dataclass(slots=True)
class GeneratedPost:
    platform: str
    text: str
    hashtags: List[str]
    article_url: str
    article_title: str
    final_score: float
    overall_assessment: str
    engagement: Dict[str, Any] = field(default_factory=dict)
    warnings: Dict[str, Any] = field(default_factory=dict)
    alternative_versions: List[Dict[str, Any]] = field(default_factory=list)
    generated_at: str = ""
    error: Optional[str] = None

    @property
    def character_count(self) -> int:
        return len(self.text)

    @property
    def degraded(self) -> bool:
        return self.error is not None


class PostGenerator:
    """Ask the reasoning client for platform-specific post copy."""

    def __init__(self, ai: AIClient, *, delay_seconds: float = 1.0) -> None:
        self.ai = ai
        self.delay_seconds = delay_seconds

    def _fallback(self, article: CandidateArticle, analysis: Analysis, platform: str, error: str) -> GeneratedPost:
        return GeneratedPost(
            platform=platform,
            text=format_post(article, analysis, limit=char_limit_for(platform)),
            hashtags=list(DEFAULT_HASHTAGS),
            article_url=article.url,
            article_title=article.title,
            final_score=analysis.final_score,
            overall_assessment=analysis.overall_assessment,
            generated_at=datetime.now(timezone.utc).isoformat(),
            error=error,
        )

    def generate(
        self,
        article: CandidateArticle,
        analysis: Analysis,
        platform: str = "twitter",
        tone: str = "informative",
    ) -> GeneratedPost:
        """Never raises; failures yield the formatted fallback post with ``error`` set."""
        logger.info("Generating %s post for: %s", platform, article.title)
        prompt = build_post_prompt(article, analysis, platform=platform, tone=tone)
        try:
            raw = self.ai.generate(prompt)
        except Exception as exc:  # noqa: BLE001 - fall back to the formatted post
            logger.error("Error generating %s post for '%s': %s", platform, article.title, exc)
            return self._fallback(article, analysis, platform, f"Post generation failed: {exc}")

        try:
            data = extract_json_object(raw).unwrap()
        except ParseError as exc:
            logger.error("Error parsing %s post response: %s", platform, exc)
            return self._fallback(article, analysis, platform, "Failed to parse AI-generated post")

        text = str(data.get("post") or "").strip()
        limit = char_limit_for(platform)
        if not text:
            return self._fallback(article, analysis, platform, "AI-generated post was empty")
        if len(text) > limit:
            logger.warning("Generated %s post is %d characters (limit %d); using fallback", platform, len(text), limit)
            return self._fallback(article, analysis, platform, f"AI-generated post exceeds {limit} characters")

        hashtags = [str(tag) for tag in _as_list(data.get("hashtags")) if tag] or list(DEFAULT_HASHTAGS)
        alternatives = [v for v in _as_list(data.get("alternativeVersions")) if isinstance(v, dict)]
        return GeneratedPost(
            platform=platform,
            text=text,
            hashtags=hashtags,
            article_url=article.url,
            article_title=article.title,
            final_score=analysis.final_score,
            overall_assessment=analysis.overall_assessment,
            engagement=data.get("engagement") if isinstance(data.get("engagement"), dict) else {},
            warnings=data.get("warnings") if isinstance(data.get("warnings"), dict) else {},
            alternative_versions=alternatives,
            generated_at=datetime.now(timezone.utc).isoformat(),
        )

    def generate_many(
        self,
        article: CandidateArticle,
        analysis: Analysis,
        platforms: Iterable[str] = DEFAULT_PLATFORMS,
        tone: str = "informative",
    ) -> Dict[str, GeneratedPost]:
        """One post per platform, with a fixed delay between reasoning calls."""
        posts: Dict[str, GeneratedPost] = {}
        for idx, platform in enumerate(platforms):
            if idx and self.delay_seconds > 0:
                time.sleep(self.delay_seconds)
            posts[platform] = self.generate(article, analysis, platform, tone)
        return posts
