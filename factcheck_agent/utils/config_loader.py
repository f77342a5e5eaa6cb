from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional
from urllib.parse import urlparse

import yaml

from ..errors import ValidationError
from ..models import Selectors, Source
from ..processors.keywords import DEFAULT_VOCABULARY, KeywordVocabulary


class ConfigError(ValidationError):
    """Raised when the configuration file is invalid or missing required fields."""


REQUIRED_FIELDS = {"id", "name", "credibility"}
_SELECTOR_KEYS = {"title", "content", "date", "author"}
_VOCABULARY_KEYS = {"high", "medium", "social_extra", "priority_title"}


@dataclass(slots=True)
class SourceCatalog:
    sources: List[Source]
    vocabulary: KeywordVocabulary = field(default_factory=lambda: DEFAULT_VOCABULARY)

    def get(self, source_id: str) -> Optional[Source]:
        return next((s for s in self.sources if s.id == source_id), None)


def _validate_url(value: object, *, key: str, entry: dict) -> None:
    url_str = str(value).strip()
    parsed = urlparse(url_str)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"Invalid {key} '{url_str}' in source '{entry.get('id')}'. Must be absolute http(s) URL.")


def _validate_source_dict(entry: dict) -> None:
    """Validate a single source mapping from YAML.

    Required fields: id (str), name (str), credibility (0-1), and at least one
    of feed_url / page_url.
    Optional fields: bias (str), reputable (bool), selectors (mapping).
    """
    missing = REQUIRED_FIELDS - set(entry)
    if missing:
        raise ConfigError(f"Missing required fields: {sorted(missing)} in {entry}")

    if not entry.get("feed_url") and not entry.get("page_url"):
        raise ConfigError(f"Source '{entry['id']}' needs a feed_url or a page_url")
    for key in ("feed_url", "page_url"):
        if entry.get(key):
            _validate_url(entry[key], key=key, entry=entry)

    try:
        credibility = float(entry["credibility"])
    except (TypeError, ValueError):
        raise ConfigError(f"'credibility' must be a number in source '{entry['id']}'")
    if not (0.0 <= credibility <= 1.0):
        raise ConfigError(f"'credibility' out of range [0, 1] in source '{entry['id']}': {credibility}")

    selectors = entry.get("selectors")
    if selectors is not None:
        if not isinstance(selectors, dict) or not all(isinstance(v, str) for v in selectors.values()):
            raise ConfigError("'selectors' must be a mapping of string keys to string values if provided")
        unknown = set(selectors) - _SELECTOR_KEYS
        if unknown:
            raise ConfigError(f"Unknown selector keys: {sorted(unknown)}")


def _coerce_source(entry: dict, *, priority_ids: Iterable[str]) -> Source:
    selectors = entry.get("selectors") or {}
    source_id = str(entry["id"]).strip()
    return Source(
        id=source_id,
        name=str(entry["name"]).strip(),
        credibility_score=float(entry["credibility"]),
        feed_url=(str(entry["feed_url"]).strip() if entry.get("feed_url") else None),
        page_url=(str(entry["page_url"]).strip() if entry.get("page_url") else None),
        bias=str(entry.get("bias") or "unknown"),
        reputable=bool(entry.get("reputable", True)),
        priority=source_id in set(priority_ids),
        selectors=Selectors(**{k: str(v) for k, v in selectors.items()}),
    )


def _coerce_vocabulary(raw: object) -> KeywordVocabulary:
    if raw is None:
        return DEFAULT_VOCABULARY
    if not isinstance(raw, dict):
        raise ConfigError("'vocabulary' must be a mapping if provided")
    unknown = set(raw) - _VOCABULARY_KEYS
    if unknown:
        raise ConfigError(f"Unknown vocabulary keys: {sorted(unknown)}")
    overrides = {}
    for key, words in raw.items():
        if not isinstance(words, list) or not all(isinstance(w, str) for w in words):
            raise ConfigError(f"'vocabulary.{key}' must be a list of strings")
        overrides[key] = frozenset(w.strip().lower() for w in words if w.strip())
    return KeywordVocabulary(**{**{k: getattr(DEFAULT_VOCABULARY, k) for k in _VOCABULARY_KEYS}, **overrides})


def load_catalog(path: Path | str) -> SourceCatalog:
    """Load ``sources.yaml`` into a :class:`SourceCatalog`.

    YAML structure:
      - ``sources``: list of source mappings (see ``_validate_source_dict``)
      - ``priority_sources``: list of source ids using the short recency window
      - ``vocabulary``: optional keyword overrides (high, medium, social_extra,
        priority_title)

    Unknown top-level keys are ignored for forward compatibility.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError("Top-level YAML must be a mapping")

    sources_raw = data.get("sources") or []
    if not isinstance(sources_raw, list):
        raise ConfigError("'sources' must be a list in the YAML configuration")
    priority_ids = [str(p) for p in (data.get("priority_sources") or [])]

    sources: List[Source] = []
    seen_ids: set[str] = set()
    for item in sources_raw:
        if not isinstance(item, dict):
            raise ConfigError(f"Each source must be a mapping, got: {type(item)}")
        _validate_source_dict(item)
        src = _coerce_source(item, priority_ids=priority_ids)
        if src.id in seen_ids:
            raise ConfigError(f"Duplicate source id '{src.id}'")
        seen_ids.add(src.id)
        sources.append(src)

    unknown_priority = set(priority_ids) - seen_ids
    if unknown_priority:
        raise ConfigError(f"priority_sources reference unknown ids: {sorted(unknown_priority)}")

    return SourceCatalog(sources=sources, vocabulary=_coerce_vocabulary(data.get("vocabulary")))


def load_sources_config(path: Path | str) -> List[Source]:
    return load_catalog(path).sources
