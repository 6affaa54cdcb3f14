"""Tests for sync operations."""

from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from pymoveit.api import MoveitClient
from pymoveit.exceptions import MoveitDownloadError
from pymoveit.models import FileEntry
from pymoveit.sync.operations import SyncOperations
from pymoveit.sync.scanner import LocalFile, RemoteFile


@pytest.fixture
def mock_client():
    return Mock(spec=MoveitClient)


@pytest.fixture
def operations(mock_client):
    return SyncOperations(mock_client)


def _remote(name="a.txt", file_id="7"):
    return RemoteFile(entry=FileEntry(id=file_id, name=name, size=4))


class TestDownload:
    def test_writes_content_atomically(self, operations, mock_client, tmp_path):
        mock_client.download_file.return_value = b"data"
        target = tmp_path / "a.txt"

        result = operations.download_file("tok", _remote(), target)

        assert result == target
        assert target.read_bytes() == b"data"
        assert [p.name for p in tmp_path.iterdir()] == ["a.txt"]
        mock_client.download_file.assert_called_once_with("tok", "7")

    def test_failed_transfer_leaves_nothing(self, operations, mock_client, tmp_path):
        mock_client.download_file.side_effect = MoveitDownloadError("reset")

        with pytest.raises(MoveitDownloadError):
            operations.download_file("tok", _remote(), tmp_path / "a.txt")

        assert list(tmp_path.iterdir()) == []

    def test_failed_link_removes_temp_file(
        self, operations, mock_client, tmp_path
    ):
        mock_client.download_file.return_value = b"data"

        with patch(
            "pymoveit.sync.operations.os.link", side_effect=OSError("denied")
        ):
            with pytest.raises(OSError):
                operations.download_file("tok", _remote(), tmp_path / "a.txt")

        assert list(tmp_path.iterdir()) == []

    def test_never_replaces_file_created_during_transfer(
        self, operations, mock_client, tmp_path
    ):
        target = tmp_path / "a.txt"

        def transfer(token, file_id):
            target.write_bytes(b"user data")
            return b"remote"

        mock_client.download_file.side_effect = transfer

        with pytest.raises(FileExistsError):
            operations.download_file("tok", _remote(), target)

        assert target.read_bytes() == b"user data"
        assert [p.name for p in tmp_path.iterdir()] == ["a.txt"]


class TestUploadAndDelete:
    def test_upload_passes_path(self, operations, mock_client, tmp_path):
        path = tmp_path / "up.txt"
        path.write_text("x")

        operations.upload_file("tok", "home", LocalFile(path=path))

        mock_client.upload_file.assert_called_once_with("tok", "home", path)

    def test_delete_remote_uses_id(self, operations, mock_client):
        operations.delete_remote("tok", _remote(file_id="42"))

        mock_client.delete_file.assert_called_once_with("tok", "42")

    def test_delete_local_unlinks(self, operations, tmp_path):
        path = tmp_path / "old.txt"
        path.write_text("x")

        operations.delete_local(LocalFile(path=path))

        assert not path.exists()

    def test_delete_local_to_trash(self, operations, tmp_path):
        path = tmp_path / "old.txt"
        path.write_text("x")

        with patch("pymoveit.sync.operations.send2trash") as mock_trash:
            operations.delete_local(LocalFile(path=path), use_trash=True)

        mock_trash.assert_called_once_with(str(path))
        assert path.exists()

    def test_delete_local_missing_file_raises(self, operations, tmp_path):
        with pytest.raises(FileNotFoundError):
            operations.delete_local(LocalFile(path=Path(tmp_path / "gone.txt")))
