"""Best-effort extraction of a JSON object from free model output.

Models give no schema guarantee, so the outermost ``{...}`` span is located
heuristically and decoded. Callers receive an explicit success/failure
result instead of an exception.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ...errors import ParseError

_OBJECT_SPAN_RE = re.compile(r"\{[\s\S]*\}")


@dataclass(frozen=True, slots=True)
class ParseResult:
    ok: bool
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    def unwrap(self) -> Dict[str, Any]:
        if not self.ok:
            raise ParseError(self.error or "Unparseable AI response")
        return self.data


def extract_json_object(raw: str | None) -> ParseResult:
    if not raw or not raw.strip():
        return ParseResult(ok=False, error="Empty AI response")

    match = _OBJECT_SPAN_RE.search(raw)
    if not match:
        return ParseResult(ok=False, error="No JSON object found in AI response")

    try:
        obj = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        return ParseResult(ok=False, error=f"Invalid JSON in AI response: {exc}")

    if not isinstance(obj, dict):
        return ParseResult(ok=False, error="AI response JSON is not an object")
    return ParseResult(ok=True, data=obj)
