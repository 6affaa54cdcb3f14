"""Local and remote file views used by the sync engine."""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..models import FileEntry
from ..utils import is_partial_download, is_safe_filename

logger = logging.getLogger(__name__)


@dataclass
class LocalFile:
    """Represents a file in the monitored directory."""

    path: Path
    """Absolute path to the file"""

    size: int = 0
    """File size in bytes"""

    mtime: float = 0.0
    """Last modification time (Unix timestamp)"""

    @property
    def name(self) -> str:
        """Base filename, the identity used for matching."""
        return self.path.name

    @classmethod
    def from_path(cls, file_path: Path) -> "LocalFile":
        """Create LocalFile from a path.

        Args:
            file_path: Absolute path to the file

        Returns:
            LocalFile instance
        """
        stat = file_path.stat()
        return cls(path=file_path, size=stat.st_size, mtime=stat.st_mtime)


@dataclass
class RemoteFile:
    """Represents a remote file with metadata."""

    entry: FileEntry
    """Remote file entry from API"""

    @property
    def id(self) -> str:
        """Remote file identifier."""
        return self.entry.id

    @property
    def name(self) -> str:
        """Remote file name, the identity used for matching."""
        return self.entry.name

    @property
    def size(self) -> int:
        """File size in bytes."""
        return self.entry.size


@dataclass
class RemoteSnapshot:
    """One captured remote listing.

    Keyed by name; when the server lists several files with the same name,
    the first one wins.
    """

    files: dict[str, RemoteFile] = field(default_factory=dict)
    """Remote files by name"""

    captured_at: float = 0.0
    """Wall-clock time the listing was requested"""

    @classmethod
    def from_entries(
        cls, entries: list[FileEntry], captured_at: Optional[float] = None
    ) -> "RemoteSnapshot":
        files: dict[str, RemoteFile] = {}
        for entry in entries:
            if not is_safe_filename(entry.name):
                logger.warning(
                    f"Ignoring remote file with unusable name: {entry.name!r}"
                )
                continue
            if entry.name in files:
                logger.debug(
                    f"Duplicate remote name {entry.name} (id {entry.id}), "
                    f"keeping id {files[entry.name].id}"
                )
                continue
            files[entry.name] = RemoteFile(entry=entry)
        return cls(
            files=files,
            captured_at=time.time() if captured_at is None else captured_at,
        )

    def __contains__(self, name: object) -> bool:
        return name in self.files

    def __len__(self) -> int:
        return len(self.files)

    def get(self, name: str) -> Optional[RemoteFile]:
        return self.files.get(name)


class LocalFileIndex:
    """Synchronous view of the files in a single local directory.

    Only regular files directly inside the directory are considered.
    Subdirectories and in-progress download files are skipped.

    Examples:
        >>> index = LocalFileIndex(Path("/sync/folder"))
        >>> index.exists("report.pdf")
        True
    """

    def __init__(self, directory: Path):
        self.directory = directory

    def path_for(self, name: str) -> Path:
        """Absolute path a file with this name has (or would have)."""
        return self.directory / name

    def scan(self) -> dict[str, LocalFile]:
        """List the directory.

        Returns:
            LocalFile objects keyed by name
        """
        files: dict[str, LocalFile] = {}
        for item in self.directory.iterdir():
            if is_partial_download(item.name):
                continue
            try:
                if not item.is_file():
                    continue
                files[item.name] = LocalFile.from_path(item)
            except OSError:
                # Vanished or unreadable between iterdir() and stat()
                continue
        return files

    def exists(self, name: str) -> bool:
        """Check whether a file with this name is present right now."""
        return self.path_for(name).is_file()

    def get(self, name: str) -> Optional[LocalFile]:
        path = self.path_for(name)
        try:
            if path.is_file():
                return LocalFile.from_path(path)
        except OSError:
            pass
        return None

    def cleanup_partials(self) -> int:
        """Remove in-progress download files left behind by an earlier run.

        Returns:
            Number of files removed
        """
        removed = 0
        for item in self.directory.iterdir():
            if is_partial_download(item.name) and item.is_file():
                try:
                    item.unlink()
                    removed += 1
                except FileNotFoundError:
                    continue
                logger.debug(f"Removed stale partial download {item.name}")
        return removed
