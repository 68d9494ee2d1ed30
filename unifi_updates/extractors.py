"""Heuristic extraction of news headlines from arbitrary blog markup."""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, Protocol
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from .feeds import collapse_whitespace
from .models import NewsItem

logger = logging.getLogger(__name__)

DEFAULT_KEYWORDS = (
    "Introducing",
    "Releasing",
    "Welcome",
    "UniFi",
    "Protect",
    "Doorbell",
    "Storage",
    "Network",
)
DEFAULT_DOMAINS = ("blog.ui.com", "blog-stories.ui-apps.com")
CANDIDATE_TAGS = ["a", "article", "h3", "h2"]
MIN_TITLE_LENGTH = 8


class CandidateExtractor(Protocol):
    """Turns a fetched HTML document into news items."""

    def extract(self, html: str, base_url: str) -> List[NewsItem]:
        ...


class KeywordLinkExtractor:
    """Pick post-like elements whose text mentions a topical keyword.

    An element qualifies when its text is at least ``MIN_TITLE_LENGTH``
    characters long, matches one of ``keywords`` and links to one of
    ``domains``. Results are unique by link, in document order, and capped
    at ``limit``. This is a best-effort heuristic: navigation links that happen
    to mention a keyword will slip through and oddly marked-up posts will be
    missed.
    """

    def __init__(
        self,
        keywords: Iterable[str] = DEFAULT_KEYWORDS,
        domains: Iterable[str] = DEFAULT_DOMAINS,
        limit: int = 5,
    ) -> None:
        self.keywords = tuple(keywords)
        self.domains = tuple(domain.lower() for domain in domains)
        self.limit = limit
        self._pattern = re.compile(
            "|".join(re.escape(keyword) for keyword in self.keywords), re.IGNORECASE
        )

    def extract(self, html: str, base_url: str) -> List[NewsItem]:
        soup = BeautifulSoup(html, "html.parser")
        candidates: List[NewsItem] = []

        for element in soup.find_all(CANDIDATE_TAGS):
            text = element.get_text().strip()
            if len(text) < MIN_TITLE_LENGTH:
                continue
            link = _absolute_link(element.get("href"), base_url)
            if link is None:
                continue
            if self._pattern.search(text) and self._is_blog_link(link):
                candidates.append(NewsItem(title=collapse_whitespace(text), link=link))

        items = dedupe_by_link(candidates, self.limit)
        logger.debug(
            "Extracted %d news items (%d candidates) from %s",
            len(items),
            len(candidates),
            base_url,
        )
        return items

    def _is_blog_link(self, link: str) -> bool:
        host = (urlparse(link).hostname or "").lower()
        return any(host == domain or host.endswith("." + domain) for domain in self.domains)


def _absolute_link(href: Optional[str], base_url: str) -> Optional[str]:
    if not href:
        return None
    if href.startswith("http"):
        return href
    return urljoin(base_url, href)


def dedupe_by_link(items: Iterable[NewsItem], limit: int) -> List[NewsItem]:
    """Keep the first item for each link, preserving order, up to ``limit``."""
    seen_links = set()
    unique_items: List[NewsItem] = []

    for item in items:
        if item.link in seen_links:
            continue
        unique_items.append(item)
        seen_links.add(item.link)
        if len(unique_items) >= limit:
            break

    return unique_items
