"""Archive processing errors recovered per input by the batch driver."""


class ArchiveError(Exception):
    """Base exception for failures confined to a single input archive."""


class PathResolutionError(ArchiveError):
    """Raised when an input does not name an existing filesystem entry."""


class ArchiveOpenError(ArchiveError):
    """Raised when a file cannot be opened as a ZIP container."""


class BackupError(ArchiveError):
    """Raised when the pre-mutation backup copy cannot be written."""


class ArchiveUpdateError(ArchiveError):
    """Raised when entry deletions cannot be written back to the archive."""
