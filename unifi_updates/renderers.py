"""Rendering helpers for the generated page fragments."""

from __future__ import annotations

from typing import Sequence

from .models import NewsItem
from .templating import get_environment

NEWS_PLACEHOLDER = "Unable to load news right now."


def build_news_section_html() -> str:
    """Render the empty news section inserted below the updates table."""
    env = get_environment()
    template = env.get_template("news_section.html.j2")
    return template.render()


def build_news_items_html(items: Sequence[NewsItem]) -> str:
    """Render list entries for ``items``, or the placeholder when empty."""
    env = get_environment()
    template = env.get_template("news_items.html.j2")
    return template.render(items=items, placeholder=NEWS_PLACEHOLDER)
