"""Keyword vocabularies used for relevance, social search and priority."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import FrozenSet, Iterable, Set

HIGH_WEIGHT_KEYWORDS = (
    "palestine", "palestinian", "gaza", "gaza strip", "west bank", "israel", "israeli",
    "ceasefire", "hamas", "hostage", "rafah", "jerusalem", "al-aqsa", "unrwa",
    "humanitarian aid", "air strike", "airstrike",
)

MEDIUM_WEIGHT_KEYWORDS = (
    "fatah", "plo", "ramallah", "bethlehem", "hebron", "jenin", "nablus", "intifada",
    "occupation", "settlement", "checkpoint", "two-state", "oslo", "abbas", "netanyahu",
    "khan younis", "jabalia", "al-shifa", "nasser hospital", "iron dome", "qassam",
    "tunnel", "temple mount", "dome of the rock", "settler", "idf", "barrier", "apartheid",
    "blockade", "siege", "captive", "prisoner exchange", "war crimes", "genocide",
    "ethnic cleansing", "displacement", "refugee camp", "aid convoy", "medical facility",
    "school strike", "hezbollah", "iran", "syria", "lebanon", "jordan", "egypt",
    "saudi arabia", "uae", "qatar", "turkey", "united nations", "ceasefire negotiations",
    "humanitarian corridor", "evacuation", "ground invasion", "rocket attack", "incursion",
)

SOCIAL_EXTRA_KEYWORDS = ("westbank", "breaking", "urgent", "live")

# Title terms that raise publish priority
PRIORITY_TITLE_KEYWORDS = (
    "gaza", "hostage", "ceasefire", "airstrike", "civilians",
    "humanitarian", "urgent", "breaking", "killed", "wounded",
)


@lru_cache(maxsize=4096)
def _pattern(keyword: str) -> re.Pattern[str]:
    return re.compile(r"(?<!\w)" + re.escape(keyword.lower()))


def find_keywords(text: str | None, keywords: Iterable[str]) -> Set[str]:
    """Return the distinct keywords that start a word in ``text`` (plurals and inflections match)."""
    if not text:
        return set()
    lowered = text.lower()
    return {kw for kw in keywords if _pattern(kw).search(lowered)}


@dataclass(frozen=True, slots=True)
class KeywordVocabulary:
    high: FrozenSet[str] = field(default_factory=lambda: frozenset(HIGH_WEIGHT_KEYWORDS))
    medium: FrozenSet[str] = field(default_factory=lambda: frozenset(MEDIUM_WEIGHT_KEYWORDS))
    social_extra: FrozenSet[str] = field(default_factory=lambda: frozenset(SOCIAL_EXTRA_KEYWORDS))
    priority_title: FrozenSet[str] = field(default_factory=lambda: frozenset(PRIORITY_TITLE_KEYWORDS))

    @property
    def all(self) -> FrozenSet[str]:
        return self.high | self.medium

    @property
    def social(self) -> FrozenSet[str]:
        return self.all | self.social_extra

    def high_hits(self, text: str | None) -> Set[str]:
        return find_keywords(text, self.high)

    def medium_hits(self, text: str | None) -> Set[str]:
        return find_keywords(text, self.medium)

    def contains_any(self, text: str | None) -> bool:
        return bool(find_keywords(text, self.all))


DEFAULT_VOCABULARY = KeywordVocabulary()
