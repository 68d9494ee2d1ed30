"""High-level orchestration of a refresh cycle."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Sequence
from urllib.parse import urlparse

from .config import DEFAULT_NEWS_SOURCES, DEFAULT_PRODUCTS
from .extractors import CandidateExtractor, KeywordLinkExtractor
from .feeds import fetch_text, parse_feed_item, parse_feed_items
from .models import RSS_SOURCE, ProductRegistry, SourceSpec
from .page import RenderTarget

logger = logging.getLogger(__name__)

REFRESHING_STATUS = "Refreshing release data…"


@dataclass
class RunConfig:
    """Runtime options for a refresh cycle."""

    products: ProductRegistry = field(default_factory=lambda: dict(DEFAULT_PRODUCTS))
    news_sources: List[SourceSpec] = field(
        default_factory=lambda: list(DEFAULT_NEWS_SOURCES)
    )
    request_timeout: float = 20.0
    news_limit: int = 5


@dataclass
class RefreshResult:
    """Outcome of one combined refresh."""

    status: str
    updates: List[str]
    news_source: Optional[SourceSpec]


def refresh_versions(
    products: ProductRegistry, target: RenderTarget, timeout: float = 20.0
) -> List[str]:
    """Update the table row of every product; return per-product summaries."""
    updates: List[str] = []
    for product, url in products.items():
        try:
            document = fetch_text(url, timeout=timeout)
            entry = parse_feed_item(document)
            if not target.update_product(product, entry):
                logger.info("No table row matches product '%s'", product)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to refresh '%s' (%s): %s", product, url, exc)
            continue
        updates.append(f"{product}: {entry.version}")
        logger.info("Refreshed '%s' to version %s", product, entry.version)
    return updates


def refresh_news(
    sources: Sequence[SourceSpec],
    target: RenderTarget,
    extractor: Optional[CandidateExtractor] = None,
    timeout: float = 20.0,
    limit: int = 5,
) -> Optional[SourceSpec]:
    """Render news from the first source that yields items.

    Sources are tried in order; a failed fetch or an empty extraction moves on
    to the next one. When every source comes up empty a placeholder is
    rendered and ``None`` returned.
    """
    extractor = extractor or KeywordLinkExtractor(limit=limit)

    for source in sources:
        try:
            document = fetch_text(source.url, timeout=timeout)
            if source.kind == RSS_SOURCE:
                items = parse_feed_items(document, limit=limit)
            else:
                items = extractor.extract(document, source.url)
        except Exception as exc:  # noqa: BLE001
            logger.warning("News source failed (%s): %s", source.url, exc)
            continue

        if not items:
            logger.info("News source yielded no items: %s", source.url)
            continue

        host = urlparse(source.url).netloc
        target.replace_news(items, f"Source: {host}")
        logger.info("Rendered %d news items from %s", len(items), host)
        return source

    logger.warning("All %d news sources failed; showing placeholder", len(sources))
    target.replace_news([], "")
    return None


def format_status(timestamp: datetime, updates: Sequence[str]) -> str:
    status = f"Last refreshed {timestamp.strftime('%Y-%m-%d %H:%M:%S')}"
    if updates:
        status += " — " + " | ".join(updates)
    return status


class Refresher:
    """Runs the version flow then the news flow against one render target.

    ``on_start`` runs once the in-flight status is set and ``on_complete``
    after the final status. Only one cycle runs at a time: a call made while
    another is in flight is dropped and returns ``None``.
    """

    def __init__(
        self,
        config: RunConfig,
        target: RenderTarget,
        extractor: Optional[CandidateExtractor] = None,
        on_start: Optional[Callable[[], None]] = None,
        on_complete: Optional[Callable[[RefreshResult], None]] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config = config
        self.target = target
        self.extractor = extractor or KeywordLinkExtractor(limit=config.news_limit)
        self.on_start = on_start
        self.on_complete = on_complete
        self.clock = clock
        self._lock = threading.Lock()

    @property
    def in_flight(self) -> bool:
        return self._lock.locked()

    def refresh_once(self) -> Optional[RefreshResult]:
        if not self._lock.acquire(blocking=False):
            logger.info("Refresh already in progress; dropping trigger")
            return None
        try:
            return self._refresh()
        finally:
            self._lock.release()

    def _refresh(self) -> RefreshResult:
        logger.info(
            "Starting refresh of %d products and %d news sources",
            len(self.config.products),
            len(self.config.news_sources),
        )
        self.target.set_status(REFRESHING_STATUS)
        if self.on_start is not None:
            self.on_start()

        updates = refresh_versions(
            self.config.products, self.target, timeout=self.config.request_timeout
        )
        news_source = refresh_news(
            self.config.news_sources,
            self.target,
            extractor=self.extractor,
            timeout=self.config.request_timeout,
            limit=self.config.news_limit,
        )

        status = format_status(self.clock(), updates)
        self.target.set_status(status)
        logger.info("%s", status)

        result = RefreshResult(status=status, updates=updates, news_source=news_source)
        if self.on_complete is not None:
            self.on_complete(result)
        return result
