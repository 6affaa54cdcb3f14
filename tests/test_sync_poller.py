"""Tests for the remote poller."""

import threading
import time
from unittest.mock import Mock

from pymoveit.exceptions import MoveitNetworkError
from pymoveit.sync import RemotePoller


class TestRemotePoller:
    def test_run_once_success(self):
        cycle = Mock()
        poller = RemotePoller(cycle, interval=1.0)

        assert poller.run_once() is True
        cycle.assert_called_once()
        assert poller.cycles_failed == 0

    def test_run_once_isolates_failure(self):
        """A failing cycle is logged and counted, not raised."""
        cycle = Mock(side_effect=MoveitNetworkError("offline"))
        poller = RemotePoller(cycle, interval=1.0)

        assert poller.run_once() is False
        assert poller.cycles_run == 1
        assert poller.cycles_failed == 1

    def test_loop_keeps_running_after_failures(self):
        calls = []
        enough = threading.Event()

        def cycle():
            calls.append(time.monotonic())
            if len(calls) >= 3:
                enough.set()
            raise MoveitNetworkError("still offline")

        poller = RemotePoller(cycle, interval=0.01)
        poller.start()
        try:
            assert enough.wait(5)
        finally:
            poller.stop(timeout=5)

        assert poller.cycles_failed >= 3
        assert not poller.is_running

    def test_waits_before_first_cycle(self):
        cycle = Mock()
        poller = RemotePoller(cycle, interval=60.0)

        poller.start()
        poller.stop(timeout=5)

        cycle.assert_not_called()

    def test_shared_stop_event(self):
        stop_event = threading.Event()
        poller = RemotePoller(Mock(), interval=60.0, stop_event=stop_event)
        poller.start()

        stop_event.set()
        poller.stop(timeout=5)

        assert not poller.is_running
