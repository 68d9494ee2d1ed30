"""Jinja2 environment for unifi_updates templates."""

from __future__ import annotations

from importlib import resources

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .models import NewsItem

_ENV: Environment | None = None


def _news_date(item: NewsItem) -> str:
    """Format a news item's date for display, falling back to the feed's text."""
    if item.published is not None:
        return item.published.strftime("%b %d, %Y")
    return item.date


def get_environment() -> Environment:
    """Return a cached Jinja environment configured for package templates."""
    global _ENV
    if _ENV is None:
        template_dir = resources.files(__package__) / "templates"
        loader = FileSystemLoader(str(template_dir))
        _ENV = Environment(
            loader=loader,
            autoescape=select_autoescape(["html", "xml", "html.j2"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        _ENV.filters["news_date"] = _news_date
    return _ENV
