"""Lifecycle wiring for a running sync session."""

import logging
import threading
from typing import Optional

from ..api import MoveitClient
from ..output import OutputFormatter
from .dispatcher import ActionDispatcher
from .engine import SyncEngine
from .poller import RemotePoller
from .session import SessionConfig
from .watcher import LocalWatcher

logger = logging.getLogger(__name__)


class SyncService:
    """Starts, runs and stops the watcher, poller and engine together.

    Lifecycle: ``start()`` performs the initial reconciliation and attaches
    both change sources; ``stop()`` stops the poller, detaches the watcher
    and lets in-flight actions finish. A single stop event drives shutdown.

    Examples:
        >>> service = SyncService(client, session)
        >>> signal.signal(signal.SIGTERM, lambda *_: service.request_stop())
        >>> service.run()
    """

    def __init__(
        self,
        client: MoveitClient,
        session: SessionConfig,
        output: Optional[OutputFormatter] = None,
        watcher: Optional[LocalWatcher] = None,
    ):
        """Initialize the service.

        Args:
            client: MOVEit API client
            session: Immutable run configuration
            output: Output formatter for progress/status
            watcher: Local watcher (created for session.local_path if omitted)
        """
        self.session = session
        self.output = output or OutputFormatter()
        self.stop_event = threading.Event()
        self.dispatcher = ActionDispatcher(session.max_workers)
        self.engine = SyncEngine(client, session, self.output, self.dispatcher)
        self.watcher = watcher or LocalWatcher(
            session.local_path, self.engine.handle_event
        )
        self.poller = RemotePoller(
            self.engine.poll_cycle, session.poll_interval, self.stop_event
        )
        self._started = False
        self._stopped = False
        self._stop_lock = threading.Lock()

    @property
    def started(self) -> bool:
        """Whether the initial reconciliation completed and syncing began."""
        return self._started

    def start(self) -> dict:
        """Run the initial reconciliation, then attach both change sources.

        Returns:
            Statistics of the initial pass

        Raises:
            ValueError: If the monitored directory is unusable
            MoveitAPIError: If the initial reconciliation fails
        """
        stats = self.engine.initial_sync()
        self.watcher.start()
        self.poller.start()
        self._started = True
        self.output.info(
            f"Monitoring {self.session.local_path} "
            f"(polling every {self.session.poll_interval:g}s). Press Ctrl+C to exit."
        )
        return stats

    def run(self, wait_interval: float = 1.0) -> None:
        """Start and block until a stop is requested, then shut down.

        Args:
            wait_interval: Seconds between checks of the stop event; keeps the
                main thread responsive to KeyboardInterrupt
        """
        try:
            self.start()
            while not self.stop_event.wait(wait_interval):
                pass
        finally:
            self.stop()

    def run_once(self) -> dict:
        """Initial reconciliation followed by a single poll cycle.

        Returns:
            Combined statistics of both passes
        """
        try:
            initial = self.engine.initial_sync()
            cycle = self.engine.poll_cycle()
        finally:
            self.stop()
        return {key: initial[key] + cycle[key] for key in initial}

    def request_stop(self) -> None:
        """Ask the service to shut down. Safe to call from a signal handler."""
        self.stop_event.set()

    def stop(self) -> None:
        """Stop the poller, detach the watcher and drain in-flight work.

        Idempotent.
        """
        with self._stop_lock:
            if self._stopped:
                return
            self._stopped = True

        self.stop_event.set()
        self.poller.stop()
        self.watcher.stop()
        self.dispatcher.shutdown(wait=True)

        if self._started:
            totals = self.engine.summary()
            logger.info(
                f"Sync stopped: {totals['uploads']} uploaded, "
                f"{totals['downloads']} downloaded, "
                f"{totals['deletes_local']} deleted locally, "
                f"{totals['deletes_remote']} deleted remotely, "
                f"{totals['errors']} failed"
            )
