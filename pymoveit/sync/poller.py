"""Periodic remote poller."""

import logging
import threading
from typing import Any, Callable, Optional

from ..config import DEFAULT_POLL_INTERVAL

logger = logging.getLogger(__name__)


class RemotePoller:
    """Runs a poll cycle on a fixed interval until stopped.

    The loop waits first and then polls, so the first cycle happens one
    interval after start. A failing cycle is logged and the loop carries on;
    the next interval is the retry.
    """

    def __init__(
        self,
        cycle: Callable[[], Any],
        interval: float = DEFAULT_POLL_INTERVAL,
        stop_event: Optional[threading.Event] = None,
    ):
        """Initialize the poller.

        Args:
            cycle: Callable performing one poll cycle
            interval: Seconds between cycles
            stop_event: Shared shutdown signal (a private one is created if
                omitted)
        """
        self.cycle = cycle
        self.interval = interval
        self.stop_event = stop_event or threading.Event()
        self.cycles_run = 0
        self.cycles_failed = 0
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the poll loop in a background thread."""
        if self.is_running:
            return
        self._thread = threading.Thread(
            target=self.run, name="pymoveit-poller", daemon=True
        )
        self._thread.start()
        logger.debug(f"Remote poller started (interval {self.interval:.1f}s)")

    def run(self) -> None:
        """Poll until the stop event is set."""
        while not self.stop_event.wait(self.interval):
            self.run_once()

    def run_once(self) -> bool:
        """Run a single cycle, isolating its failure.

        Returns:
            True if the cycle completed, False if it raised
        """
        self.cycles_run += 1
        try:
            self.cycle()
            return True
        except Exception as e:
            self.cycles_failed += 1
            logger.error(
                f"Poll cycle failed, retrying in {self.interval:.1f}s: {e}",
                exc_info=logger.isEnabledFor(logging.DEBUG),
            )
            return False

    def stop(self, timeout: Optional[float] = None) -> None:
        """Signal the loop to stop and wait for the current cycle to end.

        Args:
            timeout: Seconds to wait for the poll thread (None waits forever)
        """
        self.stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
            logger.debug("Remote poller stopped")
