from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup

from ..models import Selectors
from ..utils.logging import get_logger

logger = get_logger("fc.fetchers.http")


@dataclass(slots=True)
class PageLink:
    text: str
    url: str


def _validated_url(url: str) -> str:
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Invalid URL for HTTP fetch: {url}")
    return url


def _get_html(url: str, *, timeout: float, user_agent: str, session: Optional[requests.Session]) -> str:
    http = session or requests
    resp = http.get(_validated_url(url), headers={"User-Agent": user_agent}, timeout=timeout)
    if resp.status_code >= 400:
        logger.warning("HTTP fetch failed (%s): %s", resp.status_code, url)
        resp.raise_for_status()
    return resp.text


def fetch_page_links(
    page_url: str,
    *,
    timeout: float = 10,
    user_agent: str,
    session: Optional[requests.Session] = None,
) -> List[PageLink]:
    """Return every anchor on ``page_url`` with non-empty text, as absolute URLs."""
    soup = BeautifulSoup(_get_html(page_url, timeout=timeout, user_agent=user_agent, session=session), "html.parser")
    links: List[PageLink] = []
    for anchor in soup.find_all("a", href=True):
        text = anchor.get_text(" ", strip=True)
        if not text:
            continue
        full_url = urljoin(page_url, anchor["href"])
        if urlparse(full_url).scheme in ("http", "https"):
            links.append(PageLink(text=text, url=full_url))
    return links


def fetch_article_text(
    url: str,
    selectors: Selectors,
    *,
    timeout: float = 10,
    user_agent: str,
    session: Optional[requests.Session] = None,
) -> Optional[str]:
    """Extract the article body with the source's content selector."""
    soup = BeautifulSoup(_get_html(url, timeout=timeout, user_agent=user_agent, session=session), "html.parser")
    nodes = soup.select(selectors.content) if selectors.content else []
    if not nodes:
        main = soup.find("article") or soup.find("main")
        nodes = [main] if main else []
    blocks: List[str] = []
    for node in nodes:
        paragraphs = [p.get_text(" ", strip=True) for p in node.find_all("p")]
        if not any(paragraphs):
            paragraphs = [node.get_text(" ", strip=True)]
        blocks.extend(p for p in paragraphs if p)
    text = "\n\n".join(blocks)
    return text or None
