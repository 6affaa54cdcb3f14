"""Unit tests for CLI commands."""

import json
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
from click.testing import CliRunner

from pymoveit.cli import main
from pymoveit.exceptions import MoveitAuthenticationError, MoveitNetworkError
from pymoveit.models import FileEntry

CREDS = ["-u", "alice", "-p", "secret"]


@pytest.fixture
def runner():
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def mock_client():
    """Patch the API client used by the CLI."""
    with patch("pymoveit.cli.MoveitClient") as mock_class:
        client = Mock()
        client.get_token.return_value = "tok"
        client.list_files.return_value = []
        mock_class.return_value = client
        yield client


@pytest.fixture
def no_saved_credentials():
    """Ignore any credentials configured on the machine running the tests."""
    with patch("pymoveit.auth.config") as mock:
        mock.username = None
        mock.password = None
        yield mock


class TestMainGroup:
    """Tests for the main CLI group."""

    def test_main_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("init", "ls", "status", "sync"):
            assert command in result.output
        assert "--api-url" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestCredentials:
    def test_rejected_password_from_option_exits(
        self, runner, mock_client, no_saved_credentials
    ):
        mock_client.get_token.side_effect = MoveitAuthenticationError("bad login")

        result = runner.invoke(main, [*CREDS, "ls"])

        assert result.exit_code == 1
        assert "Login failed" in result.output
        assert mock_client.get_token.call_count == 1

    def test_prompted_password_is_retried(
        self, runner, mock_client, no_saved_credentials
    ):
        mock_client.get_token.side_effect = [
            MoveitAuthenticationError("bad login"),
            "tok",
            "tok",
        ]

        result = runner.invoke(
            main,
            ["-u", "alice", "ls"],
            input="wrong\nright\n",
            env={"MOVEIT_PASSWORD": "", "MOVEIT_USERNAME": ""},
        )

        assert result.exit_code == 0
        mock_client.get_token.assert_called_with("alice", "right")

    def test_prompted_password_gives_up(
        self, runner, mock_client, no_saved_credentials
    ):
        mock_client.get_token.side_effect = MoveitAuthenticationError("bad login")

        result = runner.invoke(
            main,
            ["ls"],
            input="alice\none\ntwo\nthree\n",
            env={"MOVEIT_PASSWORD": "", "MOVEIT_USERNAME": ""},
        )

        assert result.exit_code == 1
        assert mock_client.get_token.call_count == 3


class TestInitCommand:
    @patch("pymoveit.cli.config")
    def test_init_saves_username(self, mock_config, runner, mock_client):
        mock_config.is_configured.return_value = False
        mock_config.save.return_value = Path("/mock/config")

        result = runner.invoke(main, [*CREDS, "init", "--interval", "30"])

        assert result.exit_code == 0
        assert "Configuration saved successfully" in result.output
        mock_config.save.assert_called_once_with(
            username="alice", api_url=None, poll_interval=30.0
        )

    def test_init_rejects_bad_interval(self, runner, mock_client):
        result = runner.invoke(main, [*CREDS, "init", "--interval", "0"])

        assert result.exit_code == 1
        assert "positive" in result.output


class TestLsCommand:
    def test_ls_table(self, runner, mock_client):
        mock_client.list_files.return_value = [
            FileEntry(
                id="1", name="a.txt", size=2048, upload_stamp="2025-01-15T10:30:00"
            ),
        ]

        result = runner.invoke(main, [*CREDS, "ls"])

        assert result.exit_code == 0
        assert "a.txt" in result.output
        assert "2.0 KB" in result.output
        assert "2025-01-15 10:30" in result.output

    def test_ls_json(self, runner, mock_client):
        mock_client.list_files.return_value = [FileEntry(id="1", name="a.txt", size=3)]

        result = runner.invoke(main, [*CREDS, "--json", "ls"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data == [{"id": "1", "name": "a.txt", "size": 3, "uploaded": None}]

    def test_ls_api_error(self, runner, mock_client):
        mock_client.list_files.side_effect = MoveitNetworkError("offline")

        result = runner.invoke(main, [*CREDS, "ls"])

        assert result.exit_code == 1
        assert "offline" in result.output


class TestStatusCommand:
    def test_status_json(self, runner, mock_client, tmp_path):
        (tmp_path / "b.txt").write_text("b")
        (tmp_path / "c.txt").write_text("c")
        mock_client.list_files.return_value = [
            FileEntry(id="1", name="a.txt"),
            FileEntry(id="2", name="b.txt"),
        ]

        result = runner.invoke(main, [*CREDS, "--json", "status", str(tmp_path)])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [(d["name"], d["action"]) for d in data] == [
            ("a.txt", "download"),
            ("b.txt", "skip"),
            ("c.txt", "delete_local"),
        ]

    def test_status_does_not_modify(self, runner, mock_client, tmp_path):
        (tmp_path / "c.txt").write_text("c")
        mock_client.list_files.return_value = [FileEntry(id="1", name="a.txt")]

        result = runner.invoke(main, [*CREDS, "status", str(tmp_path)])

        assert result.exit_code == 0
        assert "delete locally" in result.output
        assert [p.name for p in tmp_path.iterdir()] == ["c.txt"]
        mock_client.download_file.assert_not_called()

    def test_status_missing_path(self, runner, mock_client, tmp_path):
        result = runner.invoke(main, [*CREDS, "status", str(tmp_path / "nope")])

        assert result.exit_code == 1
        assert "does not exist" in result.output


class TestSyncCommand:
    @patch("pymoveit.cli.SyncService")
    def test_sync_once(self, mock_service_class, runner, mock_client, tmp_path):
        service = mock_service_class.return_value
        service.run_once.return_value = {"downloads": 1}

        result = runner.invoke(
            main,
            [*CREDS, "--json", "sync", str(tmp_path), "--once", "-i", "5"],
        )

        assert result.exit_code == 0
        assert json.loads(result.output) == {"downloads": 1}
        session = mock_service_class.call_args[0][1]
        assert session.local_path == tmp_path.resolve()
        assert session.poll_interval == 5.0
        assert session.credentials.username == "alice"
        assert not session.push_local_on_start
        mock_client.close.assert_called_once()

    @patch("pymoveit.cli.SyncService")
    def test_sync_options_reach_session(
        self, mock_service_class, runner, mock_client, tmp_path
    ):
        mock_service_class.return_value.run_once.return_value = {}

        runner.invoke(
            main,
            [
                *CREDS,
                "sync",
                str(tmp_path),
                "--once",
                "--workers",
                "8",
                "--trash",
                "--push-existing",
            ],
        )

        session = mock_service_class.call_args[0][1]
        assert session.max_workers == 8
        assert session.use_local_trash
        assert session.push_local_on_start

    @patch("pymoveit.cli.SyncService")
    def test_sync_once_failure(self, mock_service_class, runner, mock_client, tmp_path):
        mock_service_class.return_value.run_once.side_effect = MoveitNetworkError(
            "offline"
        )

        result = runner.invoke(main, [*CREDS, "sync", str(tmp_path), "--once"])

        assert result.exit_code == 1
        assert "Sync failed" in result.output

    @patch("pymoveit.cli.SyncService")
    def test_sync_continuous(self, mock_service_class, runner, mock_client, tmp_path):
        result = runner.invoke(main, [*CREDS, "sync", str(tmp_path), "-i", "5"])

        assert result.exit_code == 0
        mock_service_class.return_value.run.assert_called_once()

    @patch("pymoveit.cli.SyncService")
    def test_sync_interrupted_before_start(
        self, mock_service_class, runner, mock_client, tmp_path
    ):
        service = mock_service_class.return_value
        service.run.side_effect = KeyboardInterrupt
        service.started = False

        result = runner.invoke(main, [*CREDS, "sync", str(tmp_path), "-i", "5"])

        assert result.exit_code == 130

    @patch("pymoveit.cli.SyncService")
    def test_initial_sync_failure(
        self, mock_service_class, runner, mock_client, tmp_path
    ):
        mock_service_class.return_value.run.side_effect = MoveitNetworkError("down")

        result = runner.invoke(main, [*CREDS, "sync", str(tmp_path), "-i", "5"])

        assert result.exit_code == 1
        assert "Initial sync failed" in result.output

    def test_sync_rejects_bad_workers(self, runner, mock_client, tmp_path):
        result = runner.invoke(
            main, [*CREDS, "sync", str(tmp_path), "--workers", "0"]
        )

        assert result.exit_code == 1
        mock_client.get_token.assert_not_called()

    def test_sync_requires_directory(self, runner, mock_client, tmp_path):
        path = tmp_path / "file.txt"
        path.write_text("x")

        result = runner.invoke(main, [*CREDS, "sync", str(path)])

        assert result.exit_code == 1
        assert "not a directory" in result.output
