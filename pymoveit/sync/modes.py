"""Reconciliation modes."""

from enum import Enum


class ReconcileMode(str, Enum):
    """Which reconciliation pass is comparing the two sides.

    - INITIAL: startup pass, download-only; local-only files are left alone
    - INITIAL_PUSH: startup pass that also uploads local-only files
    - POLL: periodic pass; local-only files are treated as remote deletions
    """

    INITIAL = "initial"
    INITIAL_PUSH = "initialPush"
    POLL = "poll"

    @property
    def uploads_local_only(self) -> bool:
        """Whether files that exist only locally are uploaded."""
        return self == ReconcileMode.INITIAL_PUSH

    @property
    def deletes_local_only(self) -> bool:
        """Whether files that exist only locally are deleted."""
        return self == ReconcileMode.POLL
