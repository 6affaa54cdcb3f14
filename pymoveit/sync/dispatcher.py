"""Per-name serialized dispatch of sync actions.

Work for different file names runs concurrently on a bounded thread pool.
Work for the same name runs one item at a time in submission order, and
synchronous callers (the poll and initial passes) take the same per-name
lock, so at most one mutating action per name is ever in flight.
"""

import logging
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from typing import Any, Callable, Iterator, TypeVar

from ..utils import DEFAULT_MAX_WORKERS

logger = logging.getLogger(__name__)

T = TypeVar("T")

_WorkItem = tuple[Future, Callable[..., Any], tuple, dict]


class ActionDispatcher:
    """Bounded worker pool with per-name ordering."""

    def __init__(self, max_workers: int = DEFAULT_MAX_WORKERS):
        """Initialize the dispatcher.

        Args:
            max_workers: Maximum number of names processed concurrently
        """
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="pymoveit-action"
        )
        self._guard = threading.Lock()
        # name -> [lock, number of threads holding or waiting for it]
        self._locks: dict[str, list] = {}
        self._queues: dict[str, deque[_WorkItem]] = {}
        self._closed = False

    @contextmanager
    def _holding(self, name: str) -> Iterator[None]:
        """Hold the lock for a name, dropping it once nobody needs it."""
        with self._guard:
            entry = self._locks.get(name)
            if entry is None:
                entry = self._locks[name] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[name]

    def submit(
        self, name: str, fn: Callable[..., T], *args: Any, **kwargs: Any
    ) -> "Future[T]":
        """Queue work for a file name.

        Args:
            name: File name the work mutates
            fn: Callable to run
            *args: Positional arguments for fn
            **kwargs: Keyword arguments for fn

        Returns:
            Future resolved with fn's result or exception

        Raises:
            RuntimeError: If the dispatcher has been shut down
        """
        future: Future = Future()
        with self._guard:
            if self._closed:
                raise RuntimeError("Dispatcher has been shut down")
            queue = self._queues.get(name)
            start_drain = queue is None
            if queue is None:
                queue = self._queues[name] = deque()
            queue.append((future, fn, args, kwargs))

        if start_drain:
            self._executor.submit(self._drain, name)
        return future

    def _drain(self, name: str) -> None:
        """Run queued work for one name until its queue is empty."""
        while True:
            with self._guard:
                queue = self._queues[name]
                if not queue:
                    del self._queues[name]
                    return
                future, fn, args, kwargs = queue.popleft()

            if not future.set_running_or_notify_cancel():
                continue

            with self._holding(name):
                try:
                    result = fn(*args, **kwargs)
                except BaseException as e:
                    future.set_exception(e)
                else:
                    future.set_result(result)

    def run(self, name: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run work for a file name in the calling thread.

        Blocks while another action for the same name is in flight.
        """
        with self._holding(name):
            return fn(*args, **kwargs)

    def is_pending(self, name: str) -> bool:
        """Whether queued or running work exists for a name."""
        with self._guard:
            return name in self._queues

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work and release the pool.

        Args:
            wait: Block until queued and in-flight work has finished
        """
        with self._guard:
            self._closed = True
        logger.debug("Shutting down action dispatcher")
        self._executor.shutdown(wait=wait)
