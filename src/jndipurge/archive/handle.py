"""ZIP container handles used to inspect and prune Java archives."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import zipfile
import zlib
from pathlib import Path
from types import TracebackType

from .errors import ArchiveOpenError, ArchiveUpdateError
from .models import ArchiveEntry, ArchiveMode

LOGGER = logging.getLogger(__name__)

DEFAULT_TARGET = "JNDILookup.class"

_READ_FAILURES = (
    OSError,
    RuntimeError,
    ValueError,
    NotImplementedError,
    zipfile.BadZipFile,
    zlib.error,
)


def base_name(full_name: str) -> str:
    """Return the final path segment of an archive entry name."""
    return full_name.replace("\\", "/").rsplit("/", 1)[-1]


class ArchiveHandle:
    """Open handle onto a ZIP container.

    A read handle only enumerates entries. An update handle additionally accepts
    deletions, which are written out when the handle is closed: the remaining
    entries are copied into a temporary sibling that then replaces the archive.
    """

    def __init__(self, path: Path, mode: ArchiveMode, zip_file: zipfile.ZipFile) -> None:
        self._path = path
        self._mode = mode
        self._zip: zipfile.ZipFile | None = zip_file
        self._pending: dict[str, ArchiveEntry] = {}

    @classmethod
    def open(cls, path: Path, mode: ArchiveMode = ArchiveMode.READ) -> "ArchiveHandle":
        """Open the archive at path.

        Args:
            path: Archive location.
            mode: Whether the handle may delete entries.

        Returns:
            ArchiveHandle: Live handle onto the archive.

        Raises:
            ArchiveOpenError: If the file is not a readable ZIP container.
        """
        try:
            zip_file = zipfile.ZipFile(path, "r")
        except (OSError, zipfile.BadZipFile) as exc:
            raise ArchiveOpenError(str(exc)) from exc
        LOGGER.debug("Opened %s in %s mode", path, mode.value)
        return cls(Path(path), mode, zip_file)

    @property
    def path(self) -> Path:
        """Return the archive path."""
        return self._path

    @property
    def mode(self) -> ArchiveMode:
        """Return the mode the handle was opened in."""
        return self._mode

    @property
    def closed(self) -> bool:
        """Return whether the handle has been released."""
        return self._zip is None

    @property
    def pending_deletions(self) -> list[ArchiveEntry]:
        """Return entries scheduled for removal on close."""
        return list(self._pending.values())

    def entries(self) -> list[ArchiveEntry]:
        """Return every file entry in archive order, skipping directory records."""
        return [
            ArchiveEntry(
                name=base_name(info.filename),
                full_name=info.filename,
                size=info.file_size,
                compressed_size=info.compress_size,
            )
            for info in self._require_open().infolist()
            if not info.is_dir()
        ]

    def find_entries_by_base_name(
        self,
        target: str = DEFAULT_TARGET,
        *,
        case_sensitive: bool = True,
    ) -> list[ArchiveEntry]:
        """Return entries whose base name equals target.

        Args:
            target: Base name to look for.
            case_sensitive: When False, names are compared case-folded.

        Returns:
            list[ArchiveEntry]: Matching entries; empty when nothing matches.
        """
        wanted = target if case_sensitive else target.casefold()
        matches = []
        for entry in self.entries():
            name = entry.name if case_sensitive else entry.name.casefold()
            if name == wanted:
                matches.append(entry)
        return matches

    def delete(self, entry: ArchiveEntry) -> None:
        """Schedule an entry for removal.

        Raises:
            RuntimeError: If the handle was not opened for update.
            KeyError: If the entry is not part of the archive.
        """
        if self._mode is not ArchiveMode.UPDATE:
            raise RuntimeError(f"{self._path} is open read-only; cannot delete entries.")
        zip_file = self._require_open()
        if entry.full_name not in zip_file.NameToInfo:
            raise KeyError(entry.full_name)
        self._pending[entry.full_name] = entry

    def close(self) -> None:
        """Release the handle, writing pending deletions back to disk.

        Closing an already closed handle does nothing.

        Raises:
            ArchiveUpdateError: If the pruned archive cannot be written. The original
                file is left unchanged in that case.
        """
        if self._zip is None:
            return
        try:
            if self._mode is ArchiveMode.UPDATE and self._pending:
                self._rewrite()
        finally:
            self._release()

    def discard(self) -> None:
        """Release the handle without applying pending deletions."""
        self._pending.clear()
        self._release()

    def __enter__(self) -> "ArchiveHandle":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            self.close()
        else:
            self.discard()

    def _require_open(self) -> zipfile.ZipFile:
        if self._zip is None:
            raise RuntimeError(f"Archive handle for {self._path} is closed.")
        return self._zip

    def _release(self) -> None:
        if self._zip is not None:
            self._zip.close()
            self._zip = None
            LOGGER.debug("Released %s", self._path)

    def _rewrite(self) -> None:
        source = self._require_open()
        tmp_path: Path | None = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
            )
            os.close(fd)
            tmp_path = Path(tmp_name)
            with tmp_path.open("wb") as raw:
                raw.write(self._read_prefix(source))
                with zipfile.ZipFile(raw, "w") as target:
                    target.comment = source.comment
                    for info in source.infolist():
                        if info.filename in self._pending:
                            continue
                        target.writestr(info, source.read(info))
            shutil.copymode(self._path, tmp_path)
            self._release()
            os.replace(tmp_path, self._path)
        except _READ_FAILURES as exc:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            raise ArchiveUpdateError(str(exc)) from exc
        LOGGER.debug("Removed %d entries from %s", len(self._pending), self._path)
        self._pending.clear()

    def _read_prefix(self, source: zipfile.ZipFile) -> bytes:
        # Bytes ahead of the first local header, such as a launch script.
        start = min((info.header_offset for info in source.infolist()), default=source.start_dir)
        if start <= 0:
            return b""
        with self._path.open("rb") as original:
            return original.read(start)


__all__ = ["ArchiveHandle", "DEFAULT_TARGET", "base_name"]
