"""Archive entry and result data models."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Outcome = Literal["removed", "not_found", "declined", "found", "failed"]


class ArchiveMode(str, Enum):
    """Modes an archive handle can be opened in."""

    READ = "read"
    UPDATE = "update"


class ArchiveEntry(BaseModel):
    """One record inside a ZIP container.

    Attributes:
        name: Base name of the entry (final path segment).
        full_name: Path-qualified name of the entry within the archive.
        size: Uncompressed size in bytes.
        compressed_size: Stored size in bytes.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    full_name: str
    size: int = 0
    compressed_size: int = 0


class ResultRecord(BaseModel):
    """Outcome of processing one input, or of removing one entry from it.

    Attributes:
        full_name: Resolved archive path, or the raw input when resolution failed.
        result: Human-readable outcome text.
        outcome: Machine-readable classification of the result.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    full_name: str = Field(alias="FullName")
    result: str = Field(alias="Result")
    outcome: Outcome = Field(alias="Outcome")

    @classmethod
    def for_path(cls, path: Path | str, result: str, outcome: Outcome) -> "ResultRecord":
        """Build a record for the given path."""
        return cls(full_name=str(path), result=result, outcome=outcome)


__all__ = ["ArchiveEntry", "ArchiveMode", "Outcome", "ResultRecord"]
