"""Archive inspection and mutation for jndipurge."""

from .errors import (
    ArchiveError,
    ArchiveOpenError,
    ArchiveUpdateError,
    BackupError,
    PathResolutionError,
)
from .handle import DEFAULT_TARGET, ArchiveHandle, base_name
from .models import ArchiveEntry, ArchiveMode, Outcome, ResultRecord
from .mutation import MutationEngine, MutationPhase

__all__ = [
    "ArchiveEntry",
    "ArchiveError",
    "ArchiveHandle",
    "ArchiveMode",
    "ArchiveOpenError",
    "ArchiveUpdateError",
    "BackupError",
    "DEFAULT_TARGET",
    "MutationEngine",
    "MutationPhase",
    "Outcome",
    "PathResolutionError",
    "ResultRecord",
    "base_name",
]
