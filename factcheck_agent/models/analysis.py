from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

Assessment = Literal["VERIFIED", "PARTIALLY_VERIFIED", "DISPUTED", "MISLEADING", "UNVERIFIED"]

ASSESSMENTS: tuple[str, ...] = (
    "VERIFIED",
    "PARTIALLY_VERIFIED",
    "DISPUTED",
    "MISLEADING",
    "UNVERIFIED",
)

VerificationStatus = Literal["confirmed", "disputed", "contradicted", "not_found", "error", "unchecked"]


@dataclass(frozen=True, slots=True)
class SocialPost:
    author: str
    content: str
    timestamp: Optional[str] = None
    relevance: float = 0.0
    verified: bool = False
    platform: str = "twitter"


@dataclass(frozen=True, slots=True)
class SocialVerification:
    status: VerificationStatus = "unchecked"
    result: str = ""
    details: str = ""
    keywords: tuple[str, ...] = ()
    posts: tuple[SocialPost, ...] = ()


@dataclass(frozen=True, slots=True)
class Analysis:
    """Canonical fact-check verdict for one article URL."""

    article_url: str
    article_title: str
    source_name: str
    credibility_score: float
    overall_assessment: Assessment
    final_score: float
    key_findings: List[Dict[str, Any]] = field(default_factory=list)
    red_flags: List[str] = field(default_factory=list)
    social_media_verification: SocialVerification = field(default_factory=SocialVerification)
    source_analysis: Dict[str, Any] = field(default_factory=dict)
    contextual_factors: List[str] = field(default_factory=list)
    cross_reference: Dict[str, Any] = field(default_factory=dict)
    recommendations: str = ""
    processed_at: str = ""
    error: Optional[str] = None
    raw_response: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.error is not None
