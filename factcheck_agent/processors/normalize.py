from __future__ import annotations

import html
import re
import unicodedata
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from bs4 import BeautifulSoup

_whitespace_re = re.compile(r"\s+")
_control_chars_re = re.compile(r"[\u0000-\u0008\u000B\u000C\u000E-\u001F\u007F]")
_title_punct_re = re.compile(r"[^\w\s]")
_paragraph_re = re.compile(r"\n\s*\n")
_inline_ws_re = re.compile(r"[ \t\f\v]+")

_PUNCT_TRANSLATION = {
    ord("\u2018"): "'",  # left single quote
    ord("\u2019"): "'",  # right single quote
    ord("\u201C"): '"',  # left double quote
    ord("\u201D"): '"',  # right double quote
    ord("\u2013"): "-",  # en dash
    ord("\u2014"): "-",  # em dash
    ord("\u00A0"): " ",  # non-breaking space
}

_TRACKING_PARAM_PREFIXES = ("utm_",)
_TRACKING_PARAMS = {"fbclid", "gclid", "ocid", "cmpid"}


def clean_html_to_text(raw_html: str | None) -> str:
    """Clean HTML to normalized plain text.

    - Strip tags
    - Unescape HTML entities
    - Collapse whitespace
    """
    if not raw_html:
        return ""
    if "<" not in raw_html:
        return _whitespace_re.sub(" ", html.unescape(raw_html)).strip()

    soup = BeautifulSoup(raw_html, "html.parser")
    text = soup.get_text("\n")
    text = html.unescape(text)
    text = _whitespace_re.sub(" ", text)
    return text.strip()


def normalize_plain_text(text: str | None) -> str:
    """Normalize plain text: NFKC, straight quotes/dashes, no control chars, single spaces."""
    if not text:
        return ""
    if text.startswith("\ufeff"):
        text = text.lstrip("\ufeff")
    text = text.translate(_PUNCT_TRANSLATION)
    text = unicodedata.normalize("NFKC", text)
    text = _control_chars_re.sub(" ", text)
    return _whitespace_re.sub(" ", text).strip()


def sanitize_text(text: str | None) -> str:
    """Collapse runs of spaces while keeping paragraph breaks."""
    if not text:
        return ""
    paragraphs = [_inline_ws_re.sub(" ", p).replace("\n", " ").strip() for p in _paragraph_re.split(text)]
    return "\n\n".join(p for p in paragraphs if p)


def normalize_title(title: str | None) -> str:
    """Lowercase, strip punctuation and collapse whitespace (dedup key)."""
    text = normalize_plain_text(title).lower()
    text = _title_punct_re.sub(" ", text)
    return _whitespace_re.sub(" ", text).strip()


def title_tokens(title: str | None, *, min_length: int = 4) -> set[str]:
    return {w for w in normalize_title(title).split() if len(w) >= min_length}


def canonical_url(url: str | None) -> str:
    """Canonical form of an article URL for exact-duplicate detection."""
    if not url:
        return ""
    parts = urlsplit(url.strip())
    query = [
        (k, v)
        for k, v in parse_qsl(parts.query, keep_blank_values=True)
        if not k.lower().startswith(_TRACKING_PARAM_PREFIXES) and k.lower() not in _TRACKING_PARAMS
    ]
    host = parts.netloc.lower()
    if host.startswith("www."):
        host = host[4:]
    path = parts.path.rstrip("/") or "/"
    return urlunsplit((parts.scheme.lower(), host, path, urlencode(query), ""))


def extract_main_content(text: str | None, *, max_length: int = 3000) -> str:
    """Bound ``text`` to ``max_length`` characters without cutting mid-word.

    Breaks at the last sentence end or paragraph break when it sits in the
    final 20% of the window, otherwise at the last word boundary plus "...".
    """
    sanitized = sanitize_text(text)
    if len(sanitized) <= max_length:
        return sanitized

    window = sanitized[:max_length]
    last_sentence = max(window.rfind(". "), window.rfind("! "), window.rfind("? "))
    if window.endswith((".", "!", "?")):
        last_sentence = max(last_sentence, len(window) - 1)
    last_paragraph = window.rfind("\n\n")
    if last_sentence > max_length * 0.8 and last_sentence >= last_paragraph:
        return window[: last_sentence + 1]
    if last_paragraph > max_length * 0.8:
        return window[:last_paragraph].rstrip()

    last_space = window.rfind(" ")
    cut = window[:last_space] if last_space > 0 else window
    return cut.rstrip() + "..."
