"""Sync operations wrapper for the upload/download/delete primitives."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from send2trash import send2trash

from ..api import MoveitClient
from ..utils import PARTIAL_PREFIX, PARTIAL_SUFFIX
from .scanner import LocalFile, RemoteFile

logger = logging.getLogger(__name__)


class SyncOperations:
    """Unified operations for upload/download/delete with a common interface."""

    def __init__(self, client: MoveitClient):
        """Initialize sync operations.

        Args:
            client: MOVEit API client
        """
        self.client = client

    def upload_file(self, token: str, folder_id: str, local_file: LocalFile) -> Any:
        """Upload a local file into a remote folder.

        Args:
            token: Bearer token
            folder_id: Target folder identifier
            local_file: Local file to upload

        Returns:
            Upload response from API
        """
        return self.client.upload_file(token, folder_id, local_file.path)

    def download_file(
        self, token: str, remote_file: RemoteFile, local_path: Path
    ) -> Path:
        """Download a remote file to local storage atomically.

        The content is written to a hidden temporary file next to the target
        and hard-linked into place, so the target name either holds the
        complete file or does not exist. A file that appeared under the target
        name in the meantime is never replaced.

        Args:
            token: Bearer token
            remote_file: Remote file to download
            local_path: Local path where file should be saved

        Returns:
            Path where file was saved

        Raises:
            FileExistsError: If the target name was taken during the transfer
        """
        content = self.client.download_file(token, remote_file.id)

        fd, tmp_name = tempfile.mkstemp(
            prefix=PARTIAL_PREFIX, suffix=PARTIAL_SUFFIX, dir=local_path.parent
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.link(tmp_name, local_path)
        finally:
            Path(tmp_name).unlink(missing_ok=True)

        logger.debug(f"Wrote {len(content)} bytes to {local_path}")
        return local_path

    def delete_remote(self, token: str, remote_file: RemoteFile) -> None:
        """Delete a remote file.

        Args:
            token: Bearer token
            remote_file: Remote file to delete
        """
        self.client.delete_file(token, remote_file.id)

    def delete_local(self, local_file: LocalFile, use_trash: bool = False) -> None:
        """Delete a local file.

        Args:
            local_file: Local file to delete
            use_trash: If True, move to the system trash; otherwise delete
                permanently
        """
        if use_trash:
            send2trash(str(local_file.path))
        else:
            local_file.path.unlink()
