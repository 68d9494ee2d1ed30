"""Render targets: where refreshed release data and news end up."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol, Sequence

from bs4 import BeautifulSoup, Tag

from .feeds import collapse_whitespace
from .models import NewsItem, ProductFeedEntry
from .renderers import build_news_items_html, build_news_section_html

logger = logging.getLogger(__name__)

PLACEHOLDER = "—"
LINK_TEXT = "Release notes / download"

STATUS_ID = "refresh-status"
NEWS_SECTION_ID = "ubnt-news"
NEWS_LIST_ID = "ubnt-news-list"
NEWS_SOURCE_ID = "ubnt-news-source"


class RenderTarget(Protocol):
    """Presentation surface the refresh logic writes to."""

    def update_product(self, product: str, entry: ProductFeedEntry) -> bool:
        """Write ``entry`` into the row for ``product``; False if no row matched."""
        ...

    def replace_news(self, items: Sequence[NewsItem], provenance: str) -> None:
        ...

    def set_status(self, text: str) -> None:
        ...


class HtmlPage:
    """An updates page held in memory as a BeautifulSoup tree.

    The page is expected to contain a table whose body rows start with a cell
    naming the product, followed by version, description and link cells. The
    status line and the news section are created on first use.
    """

    def __init__(self, html: str) -> None:
        self.soup = BeautifulSoup(html, "html.parser")

    @classmethod
    def load(cls, path: str) -> "HtmlPage":
        location = Path(path)
        if not location.exists():
            raise FileNotFoundError(f"Page not found: {path}")
        logger.info("Loading page from %s", location)
        return cls(location.read_text(encoding="utf-8"))

    def save(self, path: str) -> None:
        location = Path(path)
        if location.parent and not location.parent.exists():
            location.parent.mkdir(parents=True, exist_ok=True)
        location.write_text(self.render(), encoding="utf-8")
        logger.info("Wrote page to %s", location)

    def render(self) -> str:
        return str(self.soup)

    # Release table

    def find_row(self, product: str) -> Optional[Tag]:
        """Return the first body row whose first cell mentions ``product``."""
        needle = product.lower()
        for row in self.soup.select("table tr"):
            if row.find_parent(["thead", "tfoot"]) is not None:
                continue
            first_cell = row.find("td", recursive=False)
            if first_cell is None:
                continue
            text = collapse_whitespace(first_cell.get_text())
            if needle in text.lower():
                return row
        return None

    def update_row(self, row: Optional[Tag], entry: ProductFeedEntry) -> None:
        if row is None:
            return
        cells = row.find_all("td", recursive=False)
        if len(cells) > 1:
            cells[1].string = entry.version or PLACEHOLDER
        if len(cells) > 2:
            cells[2].string = entry.description or entry.title or PLACEHOLDER
        if len(cells) > 3:
            link_cell = cells[3]
            anchor = link_cell.find("a")
            if anchor is None:
                anchor = self.soup.new_tag("a")
                link_cell.clear()
                link_cell.append(anchor)
            anchor["href"] = entry.link or "#"
            anchor.string = LINK_TEXT if entry.link else PLACEHOLDER

    def update_product(self, product: str, entry: ProductFeedEntry) -> bool:
        row = self.find_row(product)
        self.update_row(row, entry)
        return row is not None

    # Status line

    def ensure_status_element(self) -> Tag:
        element = self.soup.find(id=STATUS_ID)
        if element is None:
            element = self.soup.new_tag(
                "p", id=STATUS_ID, style="margin-top:0.5rem;color:#444;"
            )
            header = self.soup.find("h1")
            if header is not None:
                header.insert_after(element)
            else:
                self._container().append(element)
        return element

    def set_status(self, text: str) -> None:
        self.ensure_status_element().string = text

    # News section

    def ensure_news_section(self) -> Tag:
        section = self.soup.find(id=NEWS_SECTION_ID)
        if section is None:
            fragment = BeautifulSoup(build_news_section_html(), "html.parser")
            section = fragment.find(id=NEWS_SECTION_ID)
            table = self.soup.find("table")
            if table is not None:
                table.insert_after(section)
            else:
                self._container().append(section)
        return section

    def replace_news(self, items: Sequence[NewsItem], provenance: str) -> None:
        section = self.ensure_news_section()
        news_list = section.find(id=NEWS_LIST_ID)
        news_list.clear()
        fragment = BeautifulSoup(build_news_items_html(items), "html.parser")
        for entry in fragment.find_all("li", recursive=False):
            news_list.append(entry.extract())
        section.find(id=NEWS_SOURCE_ID).string = provenance

    def _container(self) -> Tag:
        return self.soup.body or self.soup
