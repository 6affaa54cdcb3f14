"""Sync engine for pymoveit - keeps a local directory and a MOVEit account in step."""

from .comparator import FileComparator, SyncAction, SyncDecision
from .dispatcher import ActionDispatcher
from .engine import SyncEngine
from .modes import ReconcileMode
from .operations import SyncOperations
from .poller import RemotePoller
from .scanner import LocalFile, LocalFileIndex, RemoteFile, RemoteSnapshot
from .service import SyncService
from .session import SessionConfig
from .watcher import LocalWatcher, WatchEvent, WatchEventKind

__all__ = [
    "SyncEngine",
    "SyncService",
    "SessionConfig",
    "ReconcileMode",
    "SyncOperations",
    "ActionDispatcher",
    "RemotePoller",
    "LocalWatcher",
    "WatchEvent",
    "WatchEventKind",
    "FileComparator",
    "SyncAction",
    "SyncDecision",
    "LocalFile",
    "LocalFileIndex",
    "RemoteFile",
    "RemoteSnapshot",
]
