"""Local directory watcher built on watchdog.

Translates watchdog's filesystem events for a single, non-recursive
directory into Created/Deleted notifications for the sync engine.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..utils import is_partial_download

logger = logging.getLogger(__name__)


class WatchEventKind(str, Enum):
    """Kinds of local change the watcher reports."""

    CREATED = "created"
    DELETED = "deleted"


@dataclass(frozen=True)
class WatchEvent:
    """A single local change notification."""

    kind: WatchEventKind
    path: Path

    @property
    def name(self) -> str:
        return self.path.name


def _to_path(raw: Any) -> Path:
    return Path(os.fsdecode(raw))


class DirectoryEventHandler(FileSystemEventHandler):
    """Filters watchdog events down to files directly in one directory."""

    def __init__(self, directory: Path, callback: Callable[[WatchEvent], Any]):
        """Initialize event handler.

        Args:
            directory: Monitored directory
            callback: Called with each WatchEvent from the observer thread
        """
        super().__init__()
        self.directory = Path(os.path.normpath(directory))
        self.callback = callback

    def _emit(self, kind: WatchEventKind, raw_path: Any) -> None:
        path = _to_path(raw_path)
        if Path(os.path.normpath(path.parent)) != self.directory:
            return
        if is_partial_download(path.name):
            return
        logger.debug(f"Local {kind.value}: {path.name}")
        self.callback(WatchEvent(kind=kind, path=path))

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(WatchEventKind.CREATED, event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(WatchEventKind.DELETED, event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        """A rename is a deletion of the old name and a creation of the new."""
        if event.is_directory:
            return
        self._emit(WatchEventKind.DELETED, event.src_path)
        dest_path = getattr(event, "dest_path", None)
        if dest_path:
            self._emit(WatchEventKind.CREATED, dest_path)


class LocalWatcher:
    """Watches one directory and forwards Created/Deleted events.

    A watcher cannot be resumed after it is stopped; create a new one instead.
    """

    def __init__(
        self,
        directory: Path,
        callback: Callable[[WatchEvent], Any],
        observer_factory: Callable[[], Any] = Observer,
    ):
        """Initialize the local watcher.

        Args:
            directory: Directory to monitor (non-recursive)
            callback: Receives each WatchEvent on the observer thread
            observer_factory: Creates the watchdog observer
        """
        self.directory = directory
        self.handler = DirectoryEventHandler(directory, callback)
        self._observer_factory = observer_factory
        self._observer: Optional[Any] = None
        self._stopped = False

    @property
    def is_running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    def start(self) -> None:
        """Attach to the directory and start delivering events."""
        if self._stopped:
            raise RuntimeError("A stopped watcher cannot be restarted")
        if self._observer is not None:
            return
        observer = self._observer_factory()
        observer.schedule(self.handler, str(self.directory), recursive=False)
        observer.start()
        self._observer = observer
        logger.info(f"Watching {self.directory}")

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Detach from the directory.

        Args:
            timeout: Seconds to wait for the observer thread to finish
        """
        self._stopped = True
        observer = self._observer
        if observer is None:
            return
        observer.stop()
        observer.join(timeout)
        self._observer = None
        logger.debug(f"Stopped watching {self.directory}")
