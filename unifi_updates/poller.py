"""Fixed-interval polling loop with a manual trigger."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

logger = logging.getLogger(__name__)


class Poller:
    """Call ``refresh`` now and then every ``interval_seconds`` until stopped."""

    def __init__(self, refresh: Callable[[], Any], interval_seconds: float) -> None:
        if interval_seconds <= 0:
            raise ValueError("Polling interval must be positive.")
        self.refresh = refresh
        self.interval_seconds = interval_seconds
        self._stopped = threading.Event()

    def run(self) -> None:
        """Block the calling thread, refreshing on schedule until ``stop``."""
        logger.info("Polling every %.0f seconds", self.interval_seconds)
        self._refresh_safely()
        while not self._stopped.wait(self.interval_seconds):
            self._refresh_safely()
        logger.info("Poller stopped")

    def trigger(self) -> threading.Thread:
        """Start an out-of-schedule refresh on a background thread."""
        logger.info("Manual refresh requested")
        thread = threading.Thread(
            target=self._refresh_safely, name="manual-refresh", daemon=True
        )
        thread.start()
        return thread

    def stop(self) -> None:
        self._stopped.set()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def _refresh_safely(self) -> None:
        try:
            self.refresh()
        except Exception:
            logger.exception("Refresh cycle failed")
