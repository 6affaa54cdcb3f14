"""Immutable per-run session configuration."""

from dataclasses import dataclass, field
from pathlib import Path

from ..auth import Credentials
from ..config import DEFAULT_POLL_INTERVAL
from ..utils import DEFAULT_MAX_WORKERS


@dataclass(frozen=True)
class SessionConfig:
    """Everything the sync engine needs to know about one run.

    Examples:
        >>> session = SessionConfig(
        ...     local_path=Path("/data/outbox"),
        ...     credentials=Credentials("alice", "secret"),
        ...     poll_interval=30.0,
        ... )
    """

    local_path: Path
    """Monitored directory (flat, no recursion)"""

    credentials: Credentials = field(repr=False)
    """Credentials exchanged for a fresh token per operation group"""

    poll_interval: float = DEFAULT_POLL_INTERVAL
    """Seconds between remote poll cycles"""

    max_workers: int = DEFAULT_MAX_WORKERS
    """Worker threads for watcher-driven actions"""

    use_local_trash: bool = False
    """Move locally deleted files to the system trash instead of unlinking"""

    push_local_on_start: bool = False
    """Upload local-only files during the initial pass"""

    def __post_init__(self) -> None:
        if self.poll_interval <= 0:
            raise ValueError("Poll interval must be positive")
        if self.max_workers < 1:
            raise ValueError("At least one worker is required")

    def validate(self) -> None:
        """Check that the monitored directory is usable.

        Raises:
            ValueError: If the path is missing or not a directory
        """
        if not self.local_path.exists():
            raise ValueError(f"Local directory does not exist: {self.local_path}")
        if not self.local_path.is_dir():
            raise ValueError(f"Local path is not a directory: {self.local_path}")
