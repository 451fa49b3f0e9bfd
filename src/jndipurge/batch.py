"""Sequential batch driver for inspecting and pruning archives."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any

from jndipurge.archive import (
    ArchiveHandle,
    ArchiveMode,
    ArchiveOpenError,
    ArchiveUpdateError,
    BackupError,
    MutationEngine,
    MutationPhase,
    PathResolutionError,
    ResultRecord,
)
from jndipurge.audit import AuditLog, LogContext
from jndipurge.confirmation import ConfirmationGate
from jndipurge.config.models import PurgeConfig
from jndipurge.inputs import InputError, InputReference, describe_input, iter_inputs

LOGGER = logging.getLogger(__name__)

DECLINED_RESULT = "Did not process - 'No' Chosen"


class InputState(str, Enum):
    """States an input moves through while it is processed."""

    PATH_PENDING = "path_pending"
    PATH_RESOLVED = "path_resolved"
    ARCHIVE_OPENED = "archive_opened"
    ENTRY_ABSENT = "entry_absent"
    ENTRY_FOUND = "entry_found"
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    MUTATED = "mutated"
    FAILED = "failed"


class BatchDriver:
    """Process archive references one at a time and collect their results."""

    def __init__(
        self,
        *,
        config: PurgeConfig,
        gate: ConfirmationGate,
        audit: AuditLog,
        context: LogContext,
        echo: bool | None = None,
    ) -> None:
        self.config = config
        self.gate = gate
        self.audit = audit
        self.context = context
        self.echo = config.logging.echo if echo is None else echo
        self.states: list[InputState] = []

    @property
    def target(self) -> str:
        """Return the entry base name being searched for."""
        return self.config.target.entry_name

    def run(self, inputs: Any) -> list[ResultRecord]:
        """Remove target entries from every referenced archive after confirmation.

        Args:
            inputs: A path, a record with a path field, or an iterable of either.

        Returns:
            list[ResultRecord]: Results in input order.

        Raises:
            AuditLogError: If the audit log cannot be written.
        """
        return self._run(inputs, mutate=True)

    def scan(self, inputs: Any) -> list[ResultRecord]:
        """Report target entries in every referenced archive without modifying any."""
        return self._run(inputs, mutate=False)

    def _run(self, inputs: Any, *, mutate: bool) -> list[ResultRecord]:
        items = list(iter_inputs(inputs))
        self.states = []
        self.audit.write_header(self.context, echo=False)
        results: list[ResultRecord] = []
        for item in items:
            state = self._process(item, results, mutate=mutate)
            self.states.append(state)
            LOGGER.debug("%s finished in state %s", describe_input(item), state.value)
        return results

    def _process(
        self,
        item: Any,
        results: list[ResultRecord],
        *,
        mutate: bool,
    ) -> InputState:
        raw = describe_input(item)
        self._trace(raw, InputState.PATH_PENDING)
        try:
            path = self._resolve(item)
        except PathResolutionError as exc:
            self._log(f"{raw}: Could not resolve path: {exc}")
            results.append(ResultRecord.for_path(raw, f"Could not resolve path: {exc}", "failed"))
            return InputState.FAILED

        try:
            handle = ArchiveHandle.open(path, ArchiveMode.READ)
        except ArchiveOpenError as exc:
            self._log(f"{path}: Could not open as a ZIP file: {exc}")
            results.append(
                ResultRecord.for_path(path, f"Could not open as a ZIP file: {exc}", "failed")
            )
            return InputState.FAILED

        self._trace(path, InputState.ARCHIVE_OPENED)
        engine: MutationEngine | None = None
        try:
            matches = handle.find_entries_by_base_name(
                self.target, case_sensitive=self.config.target.case_sensitive
            )
            if not matches:
                self._log(f"{path}: {self.target} not found in file")
                results.append(
                    ResultRecord.for_path(path, f"{self.target} not found in file", "not_found")
                )
                return InputState.ENTRY_ABSENT

            for entry in matches:
                self._log(f"{path}:     Found {entry.full_name}")

            self._trace(path, InputState.ENTRY_FOUND)
            if not mutate:
                results.extend(
                    ResultRecord.for_path(path, f"{entry.full_name} Found", "found")
                    for entry in matches
                )
                return InputState.ENTRY_FOUND

            noun = "entry" if len(matches) == 1 else "entries"
            prompt = f"Remove {len(matches)} matching {noun} from {path}?"
            if not self.gate.confirm(prompt):
                self._log(f"{path}: {DECLINED_RESULT}")
                results.append(ResultRecord.for_path(path, DECLINED_RESULT, "declined"))
                return InputState.DECLINED

            self._trace(path, InputState.CONFIRMED)
            engine = MutationEngine(
                handle,
                audit=self.audit,
                context=self.context,
                target=self.target,
                case_sensitive=self.config.target.case_sensitive,
                backup_suffix=self.config.backup.suffix,
                echo=self.echo,
            )
            try:
                removed = engine.run()
            except BackupError as exc:
                self._log(f"{path}: Could not back up file: {exc}")
                results.append(
                    ResultRecord.for_path(path, f"Could not back up file: {exc}", "failed")
                )
                return InputState.FAILED
            except (ArchiveOpenError, ArchiveUpdateError) as exc:
                self._log(f"{path}: Could not remove entries: {exc}")
                results.append(
                    ResultRecord.for_path(path, f"Could not remove entries: {exc}", "failed")
                )
                return InputState.FAILED
            if not removed:
                # Archive changed between the scan and the update pass.
                self._log(f"{path}: {self.target} not found in file")
                results.append(
                    ResultRecord.for_path(path, f"{self.target} not found in file", "not_found")
                )
                return InputState.ENTRY_ABSENT
            results.extend(removed)
            return InputState.MUTATED
        finally:
            if engine is not None and engine.phase is not MutationPhase.FINALIZED:
                engine.abort()
            handle.discard()

    def _resolve(self, item: Any) -> Path:
        try:
            path = InputReference.from_value(item).resolve()
        except (InputError, OSError) as exc:
            raise PathResolutionError(str(exc)) from exc
        self._trace(path, InputState.PATH_RESOLVED)
        return path

    def _trace(self, path: Path | str, state: InputState) -> None:
        LOGGER.debug("%s -> %s", path, state.value)

    def _log(self, message: str) -> None:
        self.audit.write_line(self.context, message, echo=self.echo)


__all__ = ["BatchDriver", "DECLINED_RESULT", "InputState"]
