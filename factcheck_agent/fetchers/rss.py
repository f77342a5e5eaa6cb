from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

import feedparser
import requests

from ..utils.logging import get_logger

logger = get_logger("fc.fetchers.rss")


@dataclass(slots=True)
class RSSItem:
    title: str
    link: str
    description: Optional[str]
    published: Optional[datetime]
    content: Optional[str]


def _parse_datetime(entry: dict) -> Optional[datetime]:
    # feedparser may provide 'published_parsed' or 'updated_parsed' (UTC struct_time)
    for key in ("published_parsed", "updated_parsed"):
        tm = entry.get(key)
        if tm:
            try:
                return datetime(*tm[:6], tzinfo=timezone.utc)
            except (TypeError, ValueError):
                return None
    return None


def fetch_rss_entries(
    feed_url: str,
    *,
    timeout: float = 10,
    user_agent: str,
    session: Optional[requests.Session] = None,
) -> List[RSSItem]:
    """Fetch and parse RSS/Atom feed entries.

    The request goes through ``requests`` for consistent timeouts and headers;
    the body is parsed by ``feedparser``. Transport errors propagate to the
    caller.
    """
    http = session or requests
    logger.debug("Fetching RSS from %s", feed_url)
    resp = http.get(feed_url, headers={"User-Agent": user_agent}, timeout=timeout)
    if resp.status_code >= 400:
        logger.warning("RSS fetch failed (%s): %s", resp.status_code, feed_url)
        resp.raise_for_status()
    parsed = feedparser.parse(resp.content)

    if getattr(parsed, "bozo", False):
        # bozo marks a malformed feed; entries may still be usable
        logger.debug("Feed 'bozo' flagged for %s: %s", feed_url, getattr(parsed, "bozo_exception", None))

    items: List[RSSItem] = []
    for entry in getattr(parsed, "entries", []) or []:
        content_val = None
        contents = entry.get("content")
        if contents and isinstance(contents, list):
            content_val = contents[0].get("value")
        items.append(
            RSSItem(
                title=entry.get("title") or "",
                link=entry.get("link") or "",
                description=entry.get("summary"),
                published=_parse_datetime(entry),
                content=content_val,
            )
        )

    logger.debug("Parsed %d RSS entries from %s", len(items), feed_url)
    return items
