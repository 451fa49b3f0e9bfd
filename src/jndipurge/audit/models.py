"""Audit log data models."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict


class LogContext(BaseModel):
    """Destination and run header shared by every audit log call.

    Attributes:
        log_path: File that receives appended audit lines.
        default_message: Header line identifying the run, `"<operation>: <timestamp>"`.
    """

    model_config = ConfigDict(frozen=True)

    log_path: Path
    default_message: str


__all__ = ["LogContext"]
