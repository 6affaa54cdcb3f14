"""Core sync engine reconciling a local directory with a MOVEit account."""

import logging
import threading
import time
from concurrent.futures import Future
from pathlib import Path
from typing import Optional

from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn

from ..api import MoveitClient
from ..auth import TokenProvider
from ..exceptions import MoveitAPIError, MoveitFileNotFoundError, MoveitNotFoundError
from ..output import OutputFormatter
from .comparator import FileComparator, SyncAction, SyncDecision
from .dispatcher import ActionDispatcher
from .modes import ReconcileMode
from .operations import SyncOperations
from .scanner import LocalFileIndex, RemoteFile, RemoteSnapshot
from .session import SessionConfig
from .watcher import WatchEvent, WatchEventKind

logger = logging.getLogger(__name__)

# Seconds during which a watcher event caused by our own download or local
# delete is recognised and ignored
ECHO_WINDOW = 10.0

_STAT_KEYS = {
    SyncAction.UPLOAD: "uploads",
    SyncAction.DOWNLOAD: "downloads",
    SyncAction.DELETE_LOCAL: "deletes_local",
    SyncAction.DELETE_REMOTE: "deletes_remote",
    SyncAction.SKIP: "skips",
}


class SyncEngine:
    """Core sync engine that converges local and remote file name sets.

    Three entry points feed it:

    - :meth:`initial_sync` once at startup (download-only baseline)
    - :meth:`handle_event` for each local watcher notification
    - :meth:`poll_cycle` on every tick of the remote poller

    Every mutating action runs under its file name's dispatcher lock and
    re-checks existence on the affected side immediately before acting.
    """

    def __init__(
        self,
        client: MoveitClient,
        session: SessionConfig,
        output: Optional[OutputFormatter] = None,
        dispatcher: Optional[ActionDispatcher] = None,
    ):
        """Initialize sync engine.

        Args:
            client: MOVEit API client
            session: Immutable run configuration
            output: Output formatter for displaying progress/status
            dispatcher: Per-name action dispatcher (created if omitted)
        """
        self.client = client
        self.session = session
        self.output = output or OutputFormatter()
        self.operations = SyncOperations(client)
        self.index = LocalFileIndex(session.local_path)
        self.tokens = TokenProvider(client, session.credentials)
        self.dispatcher = dispatcher or ActionDispatcher(session.max_workers)

        self.totals = self._create_empty_stats()
        self._totals_lock = threading.Lock()
        self._uploaded_at: dict[str, float] = {}
        self._uploaded_lock = threading.Lock()
        self._echoes: dict[tuple[WatchEventKind, str], float] = {}
        self._echo_lock = threading.Lock()

    # =========================
    # Bookkeeping
    # =========================

    def _create_empty_stats(self) -> dict:
        """Create an empty statistics dictionary.

        Returns:
            Dictionary with zero counts for all stat categories
        """
        return {
            "uploads": 0,
            "downloads": 0,
            "deletes_local": 0,
            "deletes_remote": 0,
            "skips": 0,
            "errors": 0,
        }

    def _count(self, stats: Optional[dict], key: str) -> None:
        if stats is not None:
            stats[key] += 1
        with self._totals_lock:
            self.totals[key] += 1

    def summary(self) -> dict:
        """Cumulative statistics since the engine was created."""
        with self._totals_lock:
            return dict(self.totals)

    def _expect_echo(self, kind: WatchEventKind, name: str) -> None:
        with self._echo_lock:
            self._echoes[(kind, name)] = time.monotonic()

    def _consume_echo(self, event: WatchEvent) -> bool:
        """Check whether an event was caused by our own local change."""
        with self._echo_lock:
            stamp = self._echoes.pop((event.kind, event.name), None)
        return stamp is not None and time.monotonic() - stamp <= ECHO_WINDOW

    def fetch_remote_snapshot(self, token: str) -> RemoteSnapshot:
        """List the remote files.

        Args:
            token: Bearer token

        Returns:
            Snapshot keyed by name, stamped with the time of the request
        """
        captured_at = time.time()
        entries = self.client.list_files(token)
        snapshot = RemoteSnapshot.from_entries(entries, captured_at=captured_at)
        logger.debug(f"Remote listing has {len(snapshot)} file(s)")
        return snapshot

    # =========================
    # Guarded actions
    # =========================

    def _upload_if_absent(self, token: str, folder_id: str, name: str) -> SyncAction:
        """Upload a local file unless the remote already has that name.

        The remote side is re-listed here rather than trusting an earlier
        snapshot.
        """
        snapshot = self.fetch_remote_snapshot(token)
        if name in snapshot:
            logger.info(f"{name} already exists on remote, skipping upload")
            return SyncAction.SKIP

        local_file = self.index.get(name)
        if local_file is None:
            logger.debug(f"{name} no longer exists locally, skipping upload")
            return SyncAction.SKIP

        try:
            self.operations.upload_file(token, folder_id, local_file)
        except MoveitFileNotFoundError:
            logger.debug(f"{name} vanished during upload")
            return SyncAction.SKIP

        with self._uploaded_lock:
            self._uploaded_at[name] = time.time()
        self.output.success(f"↑ Uploaded {name}")
        return SyncAction.UPLOAD

    def _download_if_absent(self, token: str, remote_file: RemoteFile) -> SyncAction:
        """Download a remote file unless a local file with that name exists.

        A name with queued watcher work is left for the next poll cycle, so a
        local delete still waiting to reach the remote is not undone.
        """
        name = remote_file.name
        if self.dispatcher.is_pending(name):
            logger.debug(f"{name} has a pending local change, not downloading")
            return SyncAction.SKIP
        if self.index.exists(name):
            logger.debug(f"{name} already exists locally, skipping download")
            return SyncAction.SKIP

        try:
            self.operations.download_file(
                token, remote_file, self.index.path_for(name)
            )
        except FileExistsError:
            logger.info(f"{name} was created locally during download, keeping it")
            return SyncAction.SKIP

        self._expect_echo(WatchEventKind.CREATED, name)
        self.output.success(f"↓ Downloaded {name}")
        return SyncAction.DOWNLOAD

    def _delete_local_if_stale(self, name: str, snapshot: RemoteSnapshot) -> SyncAction:
        """Delete a local file that the snapshot shows as removed remotely.

        A file is spared when a local change for it is still queued, when this
        process uploaded it after the snapshot was taken, or when it was
        modified after the snapshot was taken.
        """
        if name in snapshot:
            return SyncAction.SKIP
        if self.dispatcher.is_pending(name):
            logger.debug(f"{name} has a pending local change, not deleting")
            return SyncAction.SKIP

        with self._uploaded_lock:
            uploaded_at = self._uploaded_at.get(name)
        if uploaded_at is not None and uploaded_at >= snapshot.captured_at:
            logger.debug(f"{name} was uploaded after the listing, not deleting")
            return SyncAction.SKIP

        local_file = self.index.get(name)
        if local_file is None:
            return SyncAction.SKIP
        if local_file.mtime >= snapshot.captured_at:
            logger.debug(f"{name} changed after the listing, not deleting")
            return SyncAction.SKIP

        self.operations.delete_local(local_file, use_trash=self.session.use_local_trash)
        self._expect_echo(WatchEventKind.DELETED, name)
        self.output.success(f"✗ Deleted {name} locally (removed from remote)")
        return SyncAction.DELETE_LOCAL

    def _delete_remote_if_present(self, token: str, name: str) -> SyncAction:
        """Delete the remote file with this name, if there is one."""
        snapshot = self.fetch_remote_snapshot(token)
        remote_file = snapshot.get(name)
        if remote_file is None:
            logger.warning(f"File {name} not found in cloud, nothing to delete")
            return SyncAction.SKIP

        try:
            self.operations.delete_remote(token, remote_file)
        except MoveitNotFoundError:
            logger.warning(f"File {name} was already deleted from cloud")
            return SyncAction.SKIP

        self.output.success(f"✗ Deleted {name} from cloud")
        return SyncAction.DELETE_REMOTE

    # =========================
    # Initial reconciliation
    # =========================

    def initial_sync(self) -> dict:
        """Establish the baseline before incremental syncing starts.

        Downloads every remote file that is missing locally. Local-only files
        are reported but not uploaded unless the session asks for it. Any
        error aborts the pass, since there is no safe baseline to fall back on.

        Returns:
            Dictionary with sync statistics

        Raises:
            ValueError: If the monitored directory is unusable
            MoveitAPIError: On any listing, transfer or authentication error
            OSError: If a downloaded file cannot be written
        """
        self.session.validate()
        mode = (
            ReconcileMode.INITIAL_PUSH
            if self.session.push_local_on_start
            else ReconcileMode.INITIAL
        )

        removed = self.index.cleanup_partials()
        if removed:
            logger.info(f"Removed {removed} incomplete download(s) from a previous run")

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            disable=self.output.quiet,
        ) as progress:
            task = progress.add_task("Scanning remote files...", total=None)
            token = self.tokens.get_token()
            snapshot = self.fetch_remote_snapshot(token)
            local_files = self.index.scan()
            progress.update(
                task,
                description=f"Found {len(snapshot)} remote, "
                f"{len(local_files)} local file(s)",
            )

        decisions = FileComparator(mode).compare_files(local_files, snapshot.files)
        self._display_plan(decisions)

        local_only = [
            d.name
            for d in decisions
            if d.action == SyncAction.SKIP and d.remote_file is None
        ]
        if local_only:
            logger.warning(
                f"{len(local_only)} local file(s) are not in the cloud and will be "
                f"removed at the next poll unless pushed: {', '.join(local_only)}"
            )

        stats = self._create_empty_stats()
        for decision in decisions:
            if decision.action == SyncAction.SKIP:
                self._count(stats, "skips")

        actionable = [d for d in decisions if d.action != SyncAction.SKIP]
        folder_id: Optional[str] = None
        if any(d.action == SyncAction.UPLOAD for d in actionable):
            folder_id = self.client.get_home_folder_id(token)

        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("{task.completed}/{task.total}"),
            disable=self.output.quiet or not actionable,
        ) as progress:
            task = progress.add_task("Initial sync...", total=len(actionable))
            for decision in actionable:
                if decision.action == SyncAction.DOWNLOAD and decision.remote_file:
                    action = self.dispatcher.run(
                        decision.name,
                        self._download_if_absent,
                        token,
                        decision.remote_file,
                    )
                elif decision.action == SyncAction.UPLOAD and folder_id is not None:
                    action = self.dispatcher.run(
                        decision.name,
                        self._upload_if_absent,
                        token,
                        folder_id,
                        decision.name,
                    )
                else:
                    action = SyncAction.SKIP
                self._count(stats, _STAT_KEYS[action])
                progress.update(task, advance=1)

        # The watcher is not attached yet, so no echo of this pass will arrive
        with self._echo_lock:
            self._echoes.clear()

        self._display_summary("Initial sync complete", stats)
        return stats

    def _display_plan(self, decisions: list[SyncDecision]) -> None:
        if self.output.quiet:
            return
        downloads = sum(1 for d in decisions if d.action == SyncAction.DOWNLOAD)
        uploads = sum(1 for d in decisions if d.action == SyncAction.UPLOAD)
        matched = sum(
            1
            for d in decisions
            if d.action == SyncAction.SKIP and d.remote_file is not None
        )
        self.output.info("Sync plan:")
        if downloads:
            self.output.info(f"  ↓ Download: {downloads} file(s)")
        if uploads:
            self.output.info(f"  ↑ Upload: {uploads} file(s)")
        self.output.info(f"  = In sync: {matched} file(s)")

    # =========================
    # Local watch handling
    # =========================

    def handle_event(self, event: WatchEvent) -> "Future[Optional[SyncAction]]":
        """Queue a watcher notification as an independent unit of work.

        Called from the watcher's delivery thread; never blocks on I/O.

        Args:
            event: Local change notification

        Returns:
            Future resolved with the action taken (None on failure)
        """
        future = self.dispatcher.submit(event.name, self._process_event, event)
        future.add_done_callback(self._log_unexpected_failure)
        return future

    def _process_event(self, event: WatchEvent) -> Optional[SyncAction]:
        """Run the handler for one event, isolating its failure."""
        if self._consume_echo(event):
            logger.debug(f"Ignoring {event.kind.value} of {event.name} caused by sync")
            return SyncAction.SKIP

        verb = "upload" if event.kind == WatchEventKind.CREATED else "delete"
        try:
            if event.kind == WatchEventKind.CREATED:
                action = self.handle_created(event.path)
            else:
                action = self.handle_deleted(event.path)
        except MoveitNotFoundError as e:
            logger.warning(f"Could not {verb} {event.name}, already converged: {e}")
            self._count(None, "skips")
            return SyncAction.SKIP
        except (MoveitAPIError, OSError) as e:
            logger.error(f"Failed to {verb} {event.name}: {e}")
            self._count(None, "errors")
            return None
        return action

    def _log_unexpected_failure(self, future: Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(
                f"Unexpected error handling local change: {error}", exc_info=error
            )

    def handle_created(self, path: Path) -> SyncAction:
        """Upload a newly created local file unless the remote already has it.

        Args:
            path: Path of the created file

        Returns:
            The action taken (UPLOAD or SKIP)
        """
        name = path.name
        if not self.index.exists(name):
            logger.debug(f"{name} is gone or not a regular file, skipping upload")
            self._count(None, "skips")
            return SyncAction.SKIP

        logger.info(f"File {name} has been added")
        token = self.tokens.get_token()
        folder_id = self.client.get_home_folder_id(token)
        action = self._upload_if_absent(token, folder_id, name)
        self._count(None, _STAT_KEYS[action])
        return action

    def handle_deleted(self, path: Path) -> SyncAction:
        """Delete the remote counterpart of a locally deleted file.

        A missing counterpart is a warning, not an error.

        Args:
            path: Path of the deleted file

        Returns:
            The action taken (DELETE_REMOTE or SKIP)
        """
        name = path.name
        if self.index.exists(name):
            logger.debug(f"{name} exists locally again, keeping remote copy")
            self._count(None, "skips")
            return SyncAction.SKIP

        logger.info(f"File {name} has been deleted")
        token = self.tokens.get_token()
        action = self._delete_remote_if_present(token, name)
        self._count(None, _STAT_KEYS[action])
        return action

    # =========================
    # Remote poll reconciliation
    # =========================

    def poll_cycle(self) -> dict:
        """Run one poll cycle against a single remote snapshot.

        The download pass finishes before the local-deletion pass starts, and
        both use the same listing. Failures of single actions are logged and
        counted; failures to obtain the token or the listing propagate so the
        poller can retry at the next interval.

        Returns:
            Dictionary with statistics for this cycle
        """
        token = self.tokens.get_token()
        snapshot = self.fetch_remote_snapshot(token)
        decisions = FileComparator(ReconcileMode.POLL).compare_files(
            self.index.scan(), snapshot.files
        )

        stats = self._create_empty_stats()
        downloads: list[SyncDecision] = []
        deletes: list[SyncDecision] = []
        for decision in decisions:
            if decision.action == SyncAction.DOWNLOAD:
                downloads.append(decision)
            elif decision.action == SyncAction.DELETE_LOCAL:
                deletes.append(decision)

        for decision in downloads:
            self._run_guarded(
                stats, decision, self._download_if_absent, token, decision.remote_file
            )
        for decision in deletes:
            self._run_guarded(
                stats, decision, self._delete_local_if_stale, decision.name, snapshot
            )

        # Uploads older than this snapshot are reflected in every later listing
        with self._uploaded_lock:
            for name, uploaded_at in list(self._uploaded_at.items()):
                if uploaded_at < snapshot.captured_at:
                    del self._uploaded_at[name]

        if stats["downloads"] or stats["deletes_local"] or stats["errors"]:
            logger.info(
                f"Poll cycle: {stats['downloads']} downloaded, "
                f"{stats['deletes_local']} deleted locally, {stats['errors']} failed"
            )
        else:
            logger.debug("Poll cycle: everything is in sync")
        return stats

    def _run_guarded(
        self, stats: dict, decision: SyncDecision, action_fn, *args
    ) -> None:
        """Run one poll-cycle action under its name lock, isolating failure."""
        try:
            action = self.dispatcher.run(decision.name, action_fn, *args)
        except MoveitNotFoundError as e:
            logger.warning(f"{decision.name} disappeared from cloud: {e}")
            action = SyncAction.SKIP
        except (MoveitAPIError, OSError) as e:
            logger.error(f"Error syncing {decision.name}: {e}")
            self._count(stats, "errors")
            return
        self._count(stats, _STAT_KEYS[action])

    # =========================
    # Reporting
    # =========================

    def _display_summary(self, title: str, stats: dict) -> None:
        if self.output.quiet:
            return
        self.output.success(title)
        total_actions = (
            stats["uploads"]
            + stats["downloads"]
            + stats["deletes_local"]
            + stats["deletes_remote"]
        )
        if total_actions == 0:
            self.output.info("No changes needed - everything is in sync!")
            return
        self.output.info(f"Total actions: {total_actions}")
        if stats["uploads"]:
            self.output.info(f"  Uploaded: {stats['uploads']}")
        if stats["downloads"]:
            self.output.info(f"  Downloaded: {stats['downloads']}")
        if stats["deletes_local"]:
            self.output.info(f"  Deleted locally: {stats['deletes_local']}")
        if stats["deletes_remote"]:
            self.output.info(f"  Deleted remotely: {stats['deletes_remote']}")
