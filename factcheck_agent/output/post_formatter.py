from __future__ import annotations

from typing import List, Sequence

from ..models import Analysis, CandidateArticle

PLATFORM_CHAR_LIMIT = 280
MAX_HASHTAGS = 4
ELLIPSIS = "..."

_TITLE_HASHTAGS = (
    (("gaza",), "#Gaza"),
    (("palestine",), "#Palestine"),
    (("israel",), "#Israel"),
    (("ceasefire",), "#Ceasefire"),
    (("hostage",), "#Hostages"),
    (("aid", "humanitarian"), "#HumanitarianAid"),
    (("hospital", "medical"), "#HealthCare"),
)


def credibility_percent(analysis: Analysis) -> int:
    return int(round(analysis.final_score * 100))


def status_prefix(analysis: Analysis) -> tuple[str, str]:
    """Return (icon, warning text) for the verdict."""
    pct = credibility_percent(analysis)
    assessment = analysis.overall_assessment
    if assessment == "MISLEADING" or pct < 30:
        return "\U0001F6A8", "VERIFY: "
    if assessment == "DISPUTED" or pct < 50:
        return "\u26a0\ufe0f", "CAUTION: "
    if pct >= 80 and assessment in ("VERIFIED", "PARTIALLY_VERIFIED"):
        return "\u2705", "VERIFIED: "
    return "\U0001F4CB", ""


def hashtags_for(article: CandidateArticle, analysis: Analysis) -> List[str]:
    title = article.title.lower()
    tags = [tag for words, tag in _TITLE_HASHTAGS if any(w in title for w in words)]
    tags.append("#FactCheck")
    if analysis.overall_assessment == "VERIFIED":
        tags.append("#Verified")
    elif analysis.final_score < 0.5:
        tags.append("#VerifyBeforeSharing")
    return tags[:MAX_HASHTAGS]


def _render(
    *,
    icon: str,
    warning: str,
    title: str,
    pct: int,
    assessment: str,
    source: str | None,
    hashtags: Sequence[str],
    url: str,
) -> str:
    lines = [f"{icon} {warning}{title}".rstrip(), "", f"\U0001F50D Credibility: {pct}% ({assessment})"]
    if source:
        lines.append(f"\U0001F4F0 Source: {source}")
    if hashtags:
        lines.extend(["", " ".join(hashtags)])
    lines.extend(["", f"\U0001F517 {url}"])
    return "\n".join(lines)


def _shorten(title: str, overflow: int) -> str:
    keep = len(title) - overflow - len(ELLIPSIS)
    if keep <= 0:
        return ""
    return title[:keep].rstrip() + ELLIPSIS


def format_post(
    article: CandidateArticle,
    analysis: Analysis,
    *,
    limit: int = PLATFORM_CHAR_LIMIT,
) -> str:
    """Render the post text and fit it into ``limit`` characters.

    Trailing hashtags are dropped first, then the title is shortened with an
    ellipsis, then the source line is dropped. The credibility line and the
    URL are always kept.
    """
    icon, warning = status_prefix(analysis)
    title = " ".join(article.title.split())
    parts = dict(
        icon=icon,
        warning=warning,
        title=title,
        pct=credibility_percent(analysis),
        assessment=analysis.overall_assessment,
        source=article.source_name,
        hashtags=hashtags_for(article, analysis),
        url=article.url,
    )

    text = _render(**parts)
    while len(text) > limit and parts["hashtags"]:
        parts["hashtags"] = parts["hashtags"][:-1]
        text = _render(**parts)

    if len(text) > limit:
        shortened = _shorten(title, len(text) - limit)
        if shortened:
            parts["title"] = shortened
            return _render(**parts)
        parts["source"] = None
        text = _render(**parts)
        parts["title"] = _shorten(title, len(text) - limit) if len(text) > limit else title
        text = _render(**parts)
    return text
