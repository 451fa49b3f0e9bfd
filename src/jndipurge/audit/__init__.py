"""Append-only audit log with optional console echo."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from rich.console import Console

from .models import LogContext

# Trailing space keeps mail clients and some text viewers from joining lines.
LINE_SUFFIX = " "


class AuditLogError(Exception):
    """Raised when an audit line cannot be appended to the log file."""


def create_log_context(log_path: Path | str, operation_name: str) -> LogContext:
    """Build the log context for one invocation.

    Args:
        log_path: File that receives audit lines.
        operation_name: Name of the operation heading the run.

    Returns:
        LogContext: Context carrying the path and the `"<operation>: <timestamp>"` header.
    """
    stamp = datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S %z")
    return LogContext(log_path=Path(log_path), default_message=f"{operation_name}: {stamp}")


class AuditLog:
    """Write audit lines to the context's log file and, optionally, the console."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    @property
    def console(self) -> Console:
        """Return the console used for echoed lines."""
        return self._console

    def write_line(self, context: LogContext, message: str, *, echo: bool = False) -> None:
        """Append a message to the log file and optionally echo it.

        The file is opened per call; no handle is held between lines.

        Args:
            context: Log context naming the destination file.
            message: Text to record.
            echo: Whether to also print the message to the console.

        Raises:
            AuditLogError: If the log file cannot be written.
        """
        try:
            with context.log_path.open("a", encoding="utf-8") as log_file:
                log_file.write(f"{message}{LINE_SUFFIX}\n")
        except OSError as exc:
            raise AuditLogError(f"Unable to write audit log {context.log_path}: {exc}") from exc

        if echo:
            self._console.print(message, markup=False, highlight=False, soft_wrap=True)

    def write_header(self, context: LogContext, *, echo: bool = False) -> None:
        """Record the context's default message as the first line of a run."""
        self.write_line(context, context.default_message, echo=echo)


__all__ = ["AuditLog", "AuditLogError", "LogContext", "LINE_SUFFIX", "create_log_context"]
