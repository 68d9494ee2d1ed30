"""Feed fetching and parsing helpers."""

from __future__ import annotations

import calendar
import logging
import re
import time
from datetime import datetime, timezone
from typing import List, Optional, Union

import feedparser
import requests
from bs4 import BeautifulSoup

from .models import NewsItem, ProductFeedEntry

logger = logging.getLogger(__name__)

VERSION_RE = re.compile(r"(\d+(?:\.\d+){1,3}(?:[-\w.]+)?)")
_WHITESPACE_RE = re.compile(r"\s+")

NO_CACHE_HEADERS = {"Cache-Control": "no-cache", "Pragma": "no-cache"}


class FeedParseError(ValueError):
    """Raised when a feed document does not contain any entry."""


def fetch_text(url: str, timeout: float = 20.0) -> str:
    """Download a document, raising ``requests.RequestException`` on failure."""
    logger.debug("Fetching %s", url)
    response = requests.get(url, timeout=timeout, headers=NO_CACHE_HEADERS)
    response.raise_for_status()
    return response.text


def to_datetime(value: Optional[time.struct_time]) -> Optional[datetime]:
    """Convert feedparser UTC timestamps to timezone-aware datetimes."""
    if value is None:
        return None
    return datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc)


def extract_version(title: str) -> str:
    """Return the dotted version number found in ``title``, or the title itself."""
    match = VERSION_RE.search(title)
    return match.group(1) if match else title


def strip_html(raw_value: str) -> str:
    """Return text content extracted from an HTML fragment."""
    if not raw_value:
        return ""
    text = BeautifulSoup(raw_value, "html.parser").get_text()
    return collapse_whitespace(text)


def collapse_whitespace(value: str) -> str:
    return _WHITESPACE_RE.sub(" ", value).strip()


def _parse(document: Union[str, bytes]):
    if isinstance(document, str):
        document = document.encode("utf-8")
    return feedparser.parse(document)


def _field(entry, name: str) -> str:
    return (entry.get(name) or "").strip()


def parse_feed_item(document: Union[str, bytes]) -> ProductFeedEntry:
    """Parse the newest entry of a release feed."""
    parsed = _parse(document)
    if not parsed.entries:
        raise FeedParseError("No entry in feed document")

    entry = parsed.entries[0]
    title = _field(entry, "title")
    result = ProductFeedEntry(
        title=title,
        version=extract_version(title),
        link=_field(entry, "link"),
        description=strip_html(_field(entry, "summary")),
        date=_field(entry, "published"),
    )
    logger.debug("Parsed feed entry '%s' (version %s)", result.title, result.version)
    return result


def parse_feed_items(document: Union[str, bytes], limit: int = 5) -> List[NewsItem]:
    """Return up to ``limit`` headline items from a news feed."""
    parsed = _parse(document)
    items: List[NewsItem] = []

    for entry in parsed.entries[:limit]:
        items.append(
            NewsItem(
                title=_field(entry, "title") or "Untitled",
                link=_field(entry, "link") or "#",
                date=_field(entry, "published"),
                published=to_datetime(entry.get("published_parsed")),
            )
        )

    logger.debug("Collected %d news items from feed", len(items))
    return items
