"""Content fetching layer: feeds first, page scraping as fallback."""

from .rss import fetch_rss_entries
from .http import fetch_article_text, fetch_page_links
from .source_fetcher import SourceFetcher

__all__ = ["fetch_rss_entries", "fetch_page_links", "fetch_article_text", "SourceFetcher"]
