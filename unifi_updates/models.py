"""Shared data models for unifi_updates."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

RSS_SOURCE = "rss"
HTML_SOURCE = "html"
SOURCE_KINDS = (RSS_SOURCE, HTML_SOURCE)

# Product display name -> release feed URL, iterated in insertion order.
ProductRegistry = Dict[str, str]


@dataclass(frozen=True)
class SourceSpec:
    """A news source: either a structured feed or a generic HTML page."""

    kind: str
    url: str


@dataclass
class ProductFeedEntry:
    """Newest release entry of a product feed."""

    title: str
    version: str
    link: str
    description: str
    date: str


@dataclass
class NewsItem:
    """A single news headline ready for rendering."""

    title: str
    link: str
    date: str = ""
    published: Optional[datetime] = None
