"""Backup-then-prune workflow for archives holding target entries."""

from __future__ import annotations

import logging
import shutil
from enum import Enum
from pathlib import Path

from jndipurge.audit import AuditLog, LogContext

from .errors import ArchiveUpdateError, BackupError
from .handle import ArchiveHandle
from .models import ArchiveMode, ResultRecord

LOGGER = logging.getLogger(__name__)


class MutationPhase(str, Enum):
    """Ordered phases of a mutation; each step only runs from its predecessor."""

    READ_OPEN = "read_open"
    RELEASED = "released"
    BACKED_UP = "backed_up"
    UPDATE_OPEN = "update_open"
    FINALIZED = "finalized"
    FAILED = "failed"


class MutationEngine:
    """Back up an archive, then delete its target entries in place.

    The read handle must be released before the copy, and the copy must exist
    before the archive is reopened for update.
    """

    def __init__(
        self,
        handle: ArchiveHandle,
        *,
        audit: AuditLog,
        context: LogContext,
        target: str,
        case_sensitive: bool,
        backup_suffix: str = ".bak",
        echo: bool = True,
    ) -> None:
        if handle.closed or handle.mode is not ArchiveMode.READ:
            raise ValueError("MutationEngine requires an open read handle.")
        self._handle: ArchiveHandle | None = handle
        self._path = handle.path
        self._audit = audit
        self._context = context
        self._target = target
        self._case_sensitive = case_sensitive
        self._backup_path = self._path.with_name(self._path.name + backup_suffix)
        self._echo = echo
        self._phase = MutationPhase.READ_OPEN

    @property
    def phase(self) -> MutationPhase:
        """Return the current phase."""
        return self._phase

    @property
    def backup_path(self) -> Path:
        """Return the location of the backup copy."""
        return self._backup_path

    @property
    def handle(self) -> ArchiveHandle | None:
        """Return the live handle, if any."""
        return self._handle

    def run(self) -> list[ResultRecord]:
        """Execute every phase in order.

        Returns:
            list[ResultRecord]: One record per removed entry.

        Raises:
            BackupError: If the backup copy fails; the archive is left untouched.
            ArchiveUpdateError: If the pruned archive cannot be written.
        """
        self.release_read_handle()
        self.write_backup()
        self.reopen_for_update()
        records = self.remove_matches()
        self.finalize()
        return records

    def release_read_handle(self) -> None:
        """Close the inspection handle so the file can be copied."""
        self._advance(MutationPhase.READ_OPEN, MutationPhase.RELEASED)
        self._close_handle()

    def write_backup(self) -> Path:
        """Copy the archive to its backup path, replacing any earlier backup.

        Raises:
            BackupError: If the copy cannot complete.
        """
        self._advance(MutationPhase.RELEASED, MutationPhase.BACKED_UP)
        self._log(f"{self._path}:     Backing up to {self._backup_path}")
        try:
            shutil.copy2(self._path, self._backup_path)
        except OSError as exc:
            self._phase = MutationPhase.FAILED
            raise BackupError(str(exc)) from exc
        return self._backup_path

    def reopen_for_update(self) -> ArchiveHandle:
        """Open the archive again with entry deletion enabled."""
        self._advance(MutationPhase.BACKED_UP, MutationPhase.UPDATE_OPEN)
        try:
            self._handle = ArchiveHandle.open(self._path, ArchiveMode.UPDATE)
        except Exception:
            self._phase = MutationPhase.FAILED
            raise
        return self._handle

    def remove_matches(self) -> list[ResultRecord]:
        """Schedule every matching entry for deletion and record it.

        The archive is re-scanned because the update handle is a new handle.
        """
        if self._phase is not MutationPhase.UPDATE_OPEN or self._handle is None:
            raise RuntimeError(f"Cannot remove entries during phase {self._phase.value}.")
        records: list[ResultRecord] = []
        matches = self._handle.find_entries_by_base_name(
            self._target, case_sensitive=self._case_sensitive
        )
        for entry in matches:
            self._handle.delete(entry)
            self._log(f"{self._path}:     Removing {entry.full_name}")
            records.append(
                ResultRecord.for_path(self._path, f"{entry.full_name} Removed", "removed")
            )
        return records

    def finalize(self) -> None:
        """Release the update handle, flushing deletions to disk.

        A failed write appends a line withdrawing the `Removing` lines already
        logged for this archive.

        Raises:
            ArchiveUpdateError: If the pruned archive cannot be written.
        """
        self._advance(MutationPhase.UPDATE_OPEN, MutationPhase.FINALIZED)
        try:
            self._close_handle()
        except ArchiveUpdateError:
            self._phase = MutationPhase.FAILED
            self._log(f"{self._path}:     Removal not applied, archive left unchanged")
            raise
        except Exception:
            self._phase = MutationPhase.FAILED
            raise

    def abort(self) -> None:
        """Release any open handle without writing pending deletions."""
        if self._handle is not None:
            self._handle.discard()
            self._handle = None
        if self._phase is not MutationPhase.FINALIZED:
            self._phase = MutationPhase.FAILED

    def _advance(self, expected: MutationPhase, new: MutationPhase) -> None:
        if self._phase is not expected:
            raise RuntimeError(
                f"Cannot move to {new.value} from {self._phase.value}; expected {expected.value}."
            )
        LOGGER.debug("%s: %s -> %s", self._path, self._phase.value, new.value)
        self._phase = new

    def _close_handle(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.close()

    def _log(self, message: str) -> None:
        self._audit.write_line(self._context, message, echo=self._echo)


__all__ = ["MutationEngine", "MutationPhase"]
