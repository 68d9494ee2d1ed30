"""Configuration loading for the updates page refresher."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
from xml.etree import ElementTree as ET

from .models import HTML_SOURCE, RSS_SOURCE, SOURCE_KINDS, ProductRegistry, SourceSpec

logger = logging.getLogger(__name__)

DEFAULT_PRODUCTS: ProductRegistry = {
    "UniFi Network Application (Controller)": (
        "https://community.ui.com/rss/releases/UniFi-Network-Application/"
        "e6712595-81bb-4829-8e42-9e2630fabcfe"
    ),
    "UniFi Protect": (
        "https://community.ui.com/rss/releases/UniFi-Protect/"
        "aada5f38-35d4-4525-9235-b14bd320e4d0"
    ),
    "UniFi OS – Dream Machine (UDM/UDM‑Pro/SE/Pro Max)": (
        "https://community.ui.com/rss/releases/UDM%20firmware/"
        "b0f0a740-021e-4027-a778-ceba983be74b"
    ),
}

DEFAULT_NEWS_SOURCES: List[SourceSpec] = [
    SourceSpec(RSS_SOURCE, "https://community.ui.com/ubnt/rss/board?board.id=Blog_UniFi"),
    SourceSpec(HTML_SOURCE, "https://blog-stories.ui-apps.com/"),
    SourceSpec(HTML_SOURCE, "https://blog.ui.com/"),
]

DEFAULT_INTERVAL_HOURS = 24.0


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class AppConfig:
    page_file: Optional[str] = None
    output_file: Optional[str] = None
    interval_hours: float = DEFAULT_INTERVAL_HOURS
    request_timeout: float = 20.0
    news_limit: int = 5
    products: ProductRegistry = field(default_factory=lambda: dict(DEFAULT_PRODUCTS))
    news_sources: List[SourceSpec] = field(
        default_factory=lambda: list(DEFAULT_NEWS_SOURCES)
    )
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _resolve_path(base_path: Path, target_path: str) -> str:
    """Resolve a path relative to the base config file if it's not absolute."""
    target = Path(target_path)
    if target.is_absolute():
        return str(target)
    return str((base_path.parent / target).resolve())


def _positive_float(root: ET.Element, tag: str, default: float) -> float:
    value = float(root.findtext(tag, str(default)))
    if value <= 0:
        raise ValueError(f"<{tag}> must be positive.")
    return value


def parse_products(node: ET.Element) -> ProductRegistry:
    """Parse ``<product name=".." url=".."/>`` children, keeping their order."""
    products: ProductRegistry = {}
    for product in node.findall("product"):
        name = (product.attrib.get("name") or "").strip()
        url = (product.attrib.get("url") or "").strip()
        if not name or not url:
            raise ValueError("Each <product> needs both 'name' and 'url'.")
        products[name] = url
        logger.debug("Registered product '%s' (%s)", name, url)
    return products


def parse_news_sources(node: ET.Element) -> List[SourceSpec]:
    """Parse ``<source kind=".." url=".."/>`` children in fallback order."""
    sources: List[SourceSpec] = []
    for source in node.findall("source"):
        kind = (source.attrib.get("kind") or "").strip().lower()
        url = (source.attrib.get("url") or "").strip()
        if kind not in SOURCE_KINDS:
            raise ValueError(
                f"Unsupported news source kind '{kind}' (expected one of {SOURCE_KINDS})."
            )
        if not url:
            raise ValueError("Each <source> needs a 'url'.")
        sources.append(SourceSpec(kind, url))
    return sources


def parse_app_config(path: str) -> AppConfig:
    """Parse the main application configuration XML."""
    config_path = Path(path).resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    logger.info("Loading application configuration from %s", config_path)
    tree = ET.parse(config_path)
    root = tree.getroot()

    page_text = root.findtext("page")
    page_file = _resolve_path(config_path, page_text.strip()) if page_text else None
    output_text = root.findtext("output")
    output_file = (
        _resolve_path(config_path, output_text.strip()) if output_text else None
    )

    interval_hours = _positive_float(root, "interval-hours", DEFAULT_INTERVAL_HOURS)
    request_timeout = _positive_float(root, "request-timeout", 20.0)
    news_limit = int(root.findtext("news-limit", "5"))
    if news_limit <= 0:
        raise ValueError("<news-limit> must be positive.")

    products_node = root.find("products")
    products = (
        parse_products(products_node)
        if products_node is not None
        else dict(DEFAULT_PRODUCTS)
    )
    if not products:
        raise ValueError("Config <products> section lists no products.")

    news_node = root.find("news")
    news_sources = (
        parse_news_sources(news_node)
        if news_node is not None
        else list(DEFAULT_NEWS_SOURCES)
    )

    log_node = root.find("logging")
    logging_config = LoggingConfig()
    if log_node is not None:
        logging_config.level = log_node.findtext("level", "INFO")
        log_file = log_node.findtext("file")
        if log_file:
            logging_config.file = _resolve_path(config_path, log_file)

    logger.info(
        "Loaded %d products and %d news sources", len(products), len(news_sources)
    )
    return AppConfig(
        page_file=page_file,
        output_file=output_file,
        interval_hours=interval_hours,
        request_timeout=request_timeout,
        news_limit=news_limit,
        products=products,
        news_sources=news_sources,
        logging=logging_config,
    )
