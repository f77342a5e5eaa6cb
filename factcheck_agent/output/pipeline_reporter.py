from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from ..models import Analysis


@dataclass(slots=True)
class CycleReport:
    sources_polled: int = 0
    candidates_fetched: int = 0
    candidates_admitted: int = 0
    duplicates_skipped: int = 0
    articles_analyzed: int = 0
    already_processed: int = 0
    analysis_errors: int = 0
    queued: int = 0
    analyses: List[Analysis] = field(default_factory=list)

    def to_markdown(self) -> str:
        lines = [
            "### Fact-check Cycle Summary",
            "",
            f"- Sources polled: {self.sources_polled}",
            f"- Candidates fetched: {self.candidates_fetched}",
            f"- Relevant candidates: {self.candidates_admitted}",
            f"- Duplicates skipped: {self.duplicates_skipped}",
            f"- Articles analyzed: {self.articles_analyzed}",
            f"- Already processed: {self.already_processed}",
            f"- Analysis errors: {self.analysis_errors}",
            f"- Queued for posting: {self.queued}",
        ]
        if self.analyses:
            lines += ["", "| Score | Assessment | Source | Title |", "| --- | --- | --- | --- |"]
            for a in self.analyses:
                title = a.article_title.replace("|", "/")
                lines.append(f"| {a.final_score:.2f} | {a.overall_assessment} | {a.source_name} | {title} |")
        return "\n".join(lines) + "\n"


def summarize_results(analyses: Iterable[Analysis]) -> Dict[str, Any]:
    """Aggregate counters over recent analyses."""
    items = list(analyses)
    by_assessment: Dict[str, int] = {}
    for a in items:
        by_assessment[a.overall_assessment] = by_assessment.get(a.overall_assessment, 0) + 1
    scored = [a.final_score for a in items if not a.degraded]
    return {
        "total": len(items),
        "degraded": sum(1 for a in items if a.degraded),
        "by_assessment": by_assessment,
        "average_final_score": round(sum(scored) / len(scored), 4) if scored else None,
    }
