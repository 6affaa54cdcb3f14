"""File comparison logic for reconciliation passes."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .modes import ReconcileMode
from .scanner import LocalFile, RemoteFile


class SyncAction(str, Enum):
    """Actions that can be taken during sync."""

    UPLOAD = "upload"
    """Upload local file to remote"""

    DOWNLOAD = "download"
    """Download remote file to local"""

    DELETE_LOCAL = "delete_local"
    """Delete local file"""

    DELETE_REMOTE = "delete_remote"
    """Delete remote file"""

    SKIP = "skip"
    """Skip file (no action needed)"""


@dataclass
class SyncDecision:
    """Represents a decision about how to sync a file."""

    action: SyncAction
    """Action to take"""

    reason: str
    """Human-readable reason for this decision"""

    name: str
    """Name of the file"""

    local_file: Optional[LocalFile] = None
    """Local file (if exists)"""

    remote_file: Optional[RemoteFile] = None
    """Remote file (if exists)"""


class FileComparator:
    """Compares local and remote name sets to determine sync actions."""

    def __init__(self, mode: ReconcileMode):
        """Initialize file comparator.

        Args:
            mode: Reconciliation pass the comparison is for
        """
        self.mode = mode

    def compare_files(
        self,
        local_files: dict[str, LocalFile],
        remote_files: dict[str, RemoteFile],
    ) -> list[SyncDecision]:
        """Compare local and remote files and determine sync actions.

        Args:
            local_files: Dictionary mapping name to LocalFile
            remote_files: Dictionary mapping name to RemoteFile

        Returns:
            List of SyncDecision objects, sorted by name
        """
        all_names = set(local_files) | set(remote_files)
        return [
            self._compare_single_file(
                name, local_files.get(name), remote_files.get(name)
            )
            for name in sorted(all_names)
        ]

    def _compare_single_file(
        self,
        name: str,
        local_file: Optional[LocalFile],
        remote_file: Optional[RemoteFile],
    ) -> SyncDecision:
        if local_file and remote_file:
            return SyncDecision(
                action=SyncAction.SKIP,
                reason="Present on both sides",
                name=name,
                local_file=local_file,
                remote_file=remote_file,
            )
        if local_file:
            return self._handle_local_only(name, local_file)
        if remote_file:
            return self._handle_remote_only(name, remote_file)
        raise ValueError(f"No file on either side for {name}")

    def _handle_local_only(self, name: str, local_file: LocalFile) -> SyncDecision:
        """Handle a file that only exists locally.

        Args:
            name: File name
            local_file: Local file

        Returns:
            SyncDecision for this file
        """
        if self.mode.uploads_local_only:
            return SyncDecision(
                action=SyncAction.UPLOAD,
                reason="New local file",
                name=name,
                local_file=local_file,
            )
        if self.mode.deletes_local_only:
            return SyncDecision(
                action=SyncAction.DELETE_LOCAL,
                reason="Deleted from remote",
                name=name,
                local_file=local_file,
            )
        return SyncDecision(
            action=SyncAction.SKIP,
            reason="Local only, not uploaded during initial pass",
            name=name,
            local_file=local_file,
        )

    def _handle_remote_only(self, name: str, remote_file: RemoteFile) -> SyncDecision:
        """Handle a file that only exists remotely.

        Args:
            name: File name
            remote_file: Remote file

        Returns:
            SyncDecision for this file
        """
        return SyncDecision(
            action=SyncAction.DOWNLOAD,
            reason="New remote file",
            name=name,
            remote_file=remote_file,
        )
