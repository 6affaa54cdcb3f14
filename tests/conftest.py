"""Shared fixtures for the sync tests."""

import threading
from pathlib import Path
from typing import Optional

import pytest

from pymoveit.auth import Credentials
from pymoveit.exceptions import MoveitNotFoundError
from pymoveit.models import FileEntry
from pymoveit.output import OutputFormatter
from pymoveit.sync import SessionConfig, SyncEngine


class FakeMoveitClient:
    """In-memory MOVEit account that records every call made to it."""

    def __init__(self, home_folder_id: str = "home"):
        self.home_folder_id = home_folder_id
        self.files: dict[str, tuple[str, bytes]] = {}
        self.calls: list[tuple] = []
        self.list_error: Optional[Exception] = None
        self.download_errors: dict[str, Exception] = {}
        self._next_id = 100
        self._lock = threading.Lock()

    def add_remote(self, name: str, content: bytes = b"") -> str:
        with self._lock:
            file_id = str(self._next_id)
            self._next_id += 1
            self.files[file_id] = (name, content)
            return file_id

    def remove_remote(self, name: str) -> None:
        with self._lock:
            for file_id, (existing, _) in list(self.files.items()):
                if existing == name:
                    del self.files[file_id]

    def remote_names(self) -> set[str]:
        with self._lock:
            return {name for name, _ in self.files.values()}

    def count(self, method: str) -> int:
        return sum(1 for call in self.calls if call[0] == method)

    def get_token(self, username, password):
        self.calls.append(("get_token", username))
        return "token"

    def get_home_folder_id(self, token):
        self.calls.append(("get_home_folder_id",))
        return self.home_folder_id

    def list_files(self, token, per_page=100):
        self.calls.append(("list_files",))
        if self.list_error is not None:
            raise self.list_error
        with self._lock:
            return [
                FileEntry(id=file_id, name=name, size=len(content))
                for file_id, (name, content) in self.files.items()
            ]

    def upload_file(self, token, folder_id, file_path):
        self.calls.append(("upload_file", Path(file_path).name))
        content = Path(file_path).read_bytes()
        file_id = self.add_remote(Path(file_path).name, content)
        return {"id": file_id, "name": Path(file_path).name}

    def download_file(self, token, file_id, timeout=60.0):
        self.calls.append(("download_file", file_id))
        if file_id in self.download_errors:
            raise self.download_errors[file_id]
        with self._lock:
            if file_id not in self.files:
                raise MoveitNotFoundError(f"File {file_id} not found")
            return self.files[file_id][1]

    def delete_file(self, token, file_id):
        self.calls.append(("delete_file", file_id))
        with self._lock:
            if file_id not in self.files:
                raise MoveitNotFoundError(f"File {file_id} not found")
            del self.files[file_id]
        return {}

    def close(self):
        pass


@pytest.fixture
def fake_client():
    return FakeMoveitClient()


@pytest.fixture
def sync_dir(tmp_path):
    directory = tmp_path / "outbox"
    directory.mkdir()
    return directory


@pytest.fixture
def session(sync_dir):
    return SessionConfig(
        local_path=sync_dir,
        credentials=Credentials("alice", "secret"),
        poll_interval=1.0,
        max_workers=2,
    )


@pytest.fixture
def quiet_output():
    return OutputFormatter(quiet=True)


@pytest.fixture
def engine(fake_client, session, quiet_output):
    sync_engine = SyncEngine(fake_client, session, quiet_output)
    yield sync_engine
    sync_engine.dispatcher.shutdown(wait=True)
