"""Command-line interface for the unifi_updates application."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import pprint
import signal
from pathlib import Path
from typing import List, Optional

from .config import AppConfig, parse_app_config
from .page import HtmlPage
from .poller import Poller
from .runner import RefreshResult, Refresher, RunConfig

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Refresh UniFi release versions and news on an HTML updates page."
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to the configuration XML file. Built-in sources are used if omitted.",
    )
    parser.add_argument(
        "--page",
        default=None,
        help="HTML page containing the release table. Overrides config.",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Where to write the refreshed page (defaults to --page). Overrides config.",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single refresh and exit instead of polling.",
    )

    # Overrides for logging/debugging
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (e.g. DEBUG, INFO, WARNING). Overrides config.",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Optional path to a log file. Overrides config.",
    )

    return parser


def configure_logging(level_name: str, log_file: Optional[str] = None) -> None:
    """Initialise logging according to options."""
    log_level = getattr(logging, level_name.upper(), None)
    if not isinstance(log_level, int):
        raise ValueError(f"Unsupported log level: {level_name}")

    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    root_logger.setLevel(log_level)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    if log_file:
        log_path = Path(log_file)
        if log_path.parent and not log_path.parent.exists():
            log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        logger.debug(
            "Logger initialised with level %s and file output to %s",
            level_name.upper(),
            log_path,
        )
    else:
        logger.debug(
            "Logger initialised with console output at level %s", level_name.upper()
        )


def wire_manual_trigger(poller: Poller) -> bool:
    """Route SIGUSR1 to the poller's manual trigger where the platform has it."""
    if not hasattr(signal, "SIGUSR1"):
        logger.debug("SIGUSR1 unavailable; manual refresh trigger disabled")
        return False
    signal.signal(signal.SIGUSR1, lambda signum, frame: poller.trigger())
    logger.info("Send SIGUSR1 to refresh immediately")
    return True


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        app_config = parse_app_config(args.config) if args.config else AppConfig()

        log_level = args.log_level or app_config.logging.level
        log_file = args.log_file or app_config.logging.file
        configure_logging(log_level, log_file)

        page_file = args.page or app_config.page_file
        if not page_file:
            raise ValueError("No page given; pass --page or set <page> in the config.")
        output_file = args.output or app_config.output_file or page_file

        config = RunConfig(
            products=app_config.products,
            news_sources=app_config.news_sources,
            request_timeout=app_config.request_timeout,
            news_limit=app_config.news_limit,
        )
        logger.info("Active Configuration:\n%s", pprint.pformat(dataclasses.asdict(config)))

        page = HtmlPage.load(page_file)

        def save_page(result: Optional[RefreshResult] = None) -> None:
            page.save(output_file)

        refresher = Refresher(config, page, on_start=save_page, on_complete=save_page)

        if args.once:
            result = refresher.refresh_once()
            print(result.status)
            return 0

        poller = Poller(refresher.refresh_once, app_config.interval_hours * 3600)
        wire_manual_trigger(poller)
        try:
            poller.run()
        except KeyboardInterrupt:
            poller.stop()
            logger.info("Interrupted; exiting.")
    except ValueError as exc:
        parser.error(str(exc))
    except (RuntimeError, FileNotFoundError) as exc:
        logger.error("%s", exc)
        return 1
    except Exception:  # noqa: BLE001
        logger.exception("Unexpected error during execution.")
        return 1

    return 0
