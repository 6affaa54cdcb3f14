"""CLI interface for pymoveit."""

import logging
import signal
from pathlib import Path
from typing import Any, Optional

import click

from . import __version__
from .api import MoveitClient
from .auth import TokenProvider, require_credentials
from .config import config
from .exceptions import MoveitAPIError, MoveitConfigError
from .output import OutputFormatter
from .sync import FileComparator, LocalFileIndex, ReconcileMode, SyncAction
from .sync import SessionConfig, SyncService
from .sync.scanner import RemoteSnapshot
from .utils import DEFAULT_MAX_WORKERS, format_size, parse_iso_timestamp

logger = logging.getLogger(__name__)


def _validate_directory(ctx: Any, out: OutputFormatter, path: str) -> Path:
    local_path = Path(path)
    if not local_path.exists():
        out.error(f"Path does not exist: {path}")
        ctx.exit(1)
    if not local_path.is_dir():
        out.error(f"Path is not a directory: {path}")
        ctx.exit(1)
    return local_path.resolve()


def _format_stamp(stamp: Optional[str]) -> str:
    dt = parse_iso_timestamp(stamp)
    return dt.strftime("%Y-%m-%d %H:%M") if dt else ""


@click.group()
@click.option("--api-url", envvar="MOVEIT_API_URL", help="MOVEit API base URL")
@click.option("--username", "-u", envvar="MOVEIT_USERNAME", help="MOVEit username")
@click.option(
    "--password",
    "-p",
    envvar="MOVEIT_PASSWORD",
    help="MOVEit password (prompted if omitted)",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(version=__version__)
@click.pass_context
def main(
    ctx: Any,
    api_url: Optional[str],
    username: Optional[str],
    password: Optional[str],
    quiet: bool,
    json: bool,
    verbose: bool,
) -> None:
    """pymoveit - Keep a local folder in sync with MOVEit Transfer."""
    ctx.ensure_object(dict)
    ctx.obj["api_url"] = api_url
    ctx.obj["username"] = username
    ctx.obj["password"] = password
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)
    ctx.obj["verbose"] = verbose

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("pymoveit").setLevel(logging.DEBUG)
        # httpx logs every request at INFO
        logging.getLogger("httpx").setLevel(logging.WARNING)
    else:
        logging.basicConfig(
            level=logging.WARNING,
            format="%(asctime)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )


@main.command()
@click.option(
    "--interval",
    "-i",
    type=float,
    default=None,
    help="Default poll interval in seconds to store",
)
@click.pass_context
def init(ctx: Any, interval: Optional[float]) -> None:
    """Initialize pymoveit configuration.

    Verifies your credentials and stores the username (never the password)
    in ~/.config/pymoveit/config for future use.
    """
    out: OutputFormatter = ctx.obj["out"]

    if interval is not None and interval <= 0:
        out.error("Poll interval must be positive")
        ctx.exit(1)

    if config.is_configured():
        out.info(f"Updating existing configuration at {config.get_config_path()}")

    client = MoveitClient(api_url=ctx.obj["api_url"])
    out.info("Validating credentials...")
    credentials = require_credentials(ctx, out, client)
    out.success("✓ Credentials are valid")

    try:
        config_path = config.save(
            username=credentials.username,
            api_url=ctx.obj["api_url"],
            poll_interval=interval,
        )
    except OSError as e:
        out.error(f"Failed to write configuration: {e}")
        ctx.exit(1)
        return

    out.print_summary(
        "Initialization Complete",
        [
            ("Status", "✓ Configuration saved successfully"),
            ("Config file", str(config_path)),
            ("Note", "Set MOVEIT_PASSWORD or enter it when prompted"),
        ],
    )


@main.command()
@click.pass_context
def ls(ctx: Any) -> None:
    """List files stored in MOVEit."""
    out: OutputFormatter = ctx.obj["out"]
    client = MoveitClient(api_url=ctx.obj["api_url"])
    credentials = require_credentials(ctx, out, client)

    try:
        token = TokenProvider(client, credentials).get_token()
        entries = client.list_files(token)
    except MoveitAPIError as e:
        out.error(f"API error: {e}")
        ctx.exit(1)
        return

    if out.json_output:
        out.output_json(
            [
                {
                    "id": e.id,
                    "name": e.name,
                    "size": e.size,
                    "uploaded": e.upload_stamp,
                }
                for e in entries
            ]
        )
        return

    if not entries:
        out.info("No files found")
        return

    out.print_table(
        "Remote files",
        ["ID", "Name", "Size", "Uploaded"],
        [
            [e.id, e.name, format_size(e.size), _format_stamp(e.upload_stamp)]
            for e in entries
        ],
    )


@main.command()
@click.argument("path", type=str, default=".")
@click.pass_context
def status(ctx: Any, path: str) -> None:
    """Compare a local directory with MOVEit without changing anything.

    Shows what the next poll cycle would do for each file.
    """
    out: OutputFormatter = ctx.obj["out"]
    local_path = _validate_directory(ctx, out, path)
    client = MoveitClient(api_url=ctx.obj["api_url"])
    credentials = require_credentials(ctx, out, client)

    try:
        token = TokenProvider(client, credentials).get_token()
        snapshot = RemoteSnapshot.from_entries(client.list_files(token))
        local_files = LocalFileIndex(local_path).scan()
    except (MoveitAPIError, OSError) as e:
        out.error(f"Status failed: {e}")
        ctx.exit(1)
        return

    decisions = FileComparator(ReconcileMode.POLL).compare_files(
        local_files, snapshot.files
    )
    labels = {
        SyncAction.DOWNLOAD: "remote only (download)",
        SyncAction.DELETE_LOCAL: "local only (delete locally)",
        SyncAction.SKIP: "in sync",
    }

    if out.json_output:
        out.output_json(
            [
                {
                    "name": d.name,
                    "local": d.local_file is not None,
                    "remote": d.remote_file is not None,
                    "action": d.action.value,
                }
                for d in decisions
            ]
        )
        return

    if not decisions:
        out.info("Both sides are empty")
        return

    out.print_table(
        f"Status of {local_path}",
        ["Name", "Local", "Remote", "State"],
        [
            [
                d.name,
                "✓" if d.local_file else "",
                "✓" if d.remote_file else "",
                labels.get(d.action, d.action.value),
            ]
            for d in decisions
        ],
    )


@main.command()
@click.argument("path", type=str)
@click.option(
    "--interval",
    "-i",
    type=float,
    default=None,
    help="Seconds between remote polls (default: 10, or MOVEIT_POLL_INTERVAL)",
)
@click.option(
    "--workers",
    type=int,
    default=DEFAULT_MAX_WORKERS,
    help=f"Parallel workers for local changes (default: {DEFAULT_MAX_WORKERS})",
)
@click.option(
    "--trash",
    is_flag=True,
    help="Move files removed from the cloud to the system trash",
)
@click.option(
    "--push-existing",
    is_flag=True,
    help="Upload local-only files during the initial sync",
)
@click.option(
    "--once",
    is_flag=True,
    help="Run the initial sync and a single poll cycle, then exit",
)
@click.pass_context
def sync(
    ctx: Any,
    path: str,
    interval: Optional[float],
    workers: int,
    trash: bool,
    push_existing: bool,
    once: bool,
) -> None:
    """Keep a local directory in sync with MOVEit.

    PATH: Local directory to monitor (files directly inside it only)

    Remote files missing locally are downloaded first. After that, files
    created or deleted in PATH are uploaded or deleted remotely, and the
    remote side is polled for files added or removed by others.

    Examples:
        pymoveit sync ./outbox
        pymoveit sync ./outbox -i 30 --workers 8
        pymoveit sync ./outbox --push-existing --once
    """
    out: OutputFormatter = ctx.obj["out"]
    local_path = _validate_directory(ctx, out, path)

    if interval is None:
        try:
            interval = config.poll_interval
        except MoveitConfigError as e:
            out.error(str(e))
            ctx.exit(1)
            return
    if interval <= 0:
        out.error("Poll interval must be positive")
        ctx.exit(1)
    if workers < 1:
        out.error("At least one worker is required")
        ctx.exit(1)

    client = MoveitClient(api_url=ctx.obj["api_url"])
    credentials = require_credentials(ctx, out, client)

    session = SessionConfig(
        local_path=local_path,
        credentials=credentials,
        poll_interval=interval,
        max_workers=workers,
        use_local_trash=trash,
        push_local_on_start=push_existing,
    )
    service = SyncService(client, session, out)

    if once:
        try:
            stats = service.run_once()
        except (MoveitAPIError, OSError, ValueError) as e:
            out.error(f"Sync failed: {e}")
            ctx.exit(1)
            return
        finally:
            client.close()
        if out.json_output:
            out.output_json(stats)
        return

    previous_handler = signal.signal(
        signal.SIGTERM, lambda signum, frame: service.request_stop()
    )
    try:
        service.run()
    except KeyboardInterrupt:
        out.warning("\nSync stopped by user")
        if not service.started:
            ctx.exit(130)
    except (MoveitAPIError, OSError, ValueError) as e:
        out.error(f"Initial sync failed: {e}")
        ctx.exit(1)
    finally:
        signal.signal(signal.SIGTERM, previous_handler)
        client.close()

    if out.json_output:
        out.output_json(service.engine.summary())


if __name__ == "__main__":
    main()
