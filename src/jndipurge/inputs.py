"""Normalize archive references supplied as paths, lists, records or streams."""

from __future__ import annotations

import json
import os
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from typing import Any, TextIO

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

_PATH_FIELDS = ("FullName", "full_name", "Path", "path", "fullname")


class InputError(ValueError):
    """Raised when an input record does not carry a usable path."""


class InputReference(BaseModel):
    """One archive named by the caller, before it is resolved on disk.

    Attributes:
        path: Path text as supplied.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    path: str = Field(validation_alias=AliasChoices(*_PATH_FIELDS))

    @field_validator("path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Any:
        if isinstance(value, os.PathLike):
            return os.fspath(value)
        return value

    @field_validator("path")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("path must not be empty")
        return value

    @classmethod
    def from_value(cls, value: Any) -> "InputReference":
        """Build a reference from a path, a mapping, or a record with a path field.

        Raises:
            InputError: If no path can be extracted.
        """
        if isinstance(value, InputReference):
            return value
        if isinstance(value, (str, os.PathLike)):
            payload: Mapping[str, Any] = {"path": value}
        elif isinstance(value, Mapping):
            payload = value
        else:
            payload = {
                name: getattr(value, name) for name in _PATH_FIELDS if hasattr(value, name)
            }
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            reasons = "; ".join(error["msg"] for error in exc.errors())
            raise InputError(f"Input {value!r} does not name a path ({reasons})") from exc

    def resolve(self) -> Path:
        """Return the absolute path of the referenced file.

        Raises:
            FileNotFoundError: If nothing exists at the path.
        """
        candidate = Path(self.path).expanduser()
        if not candidate.exists():
            raise FileNotFoundError(f"Cannot find path '{candidate}' because it does not exist.")
        return candidate.resolve()


def describe_input(value: Any) -> str:
    """Return the text used as `FullName` for an input that names no usable path."""
    if isinstance(value, InputReference):
        return value.path
    if isinstance(value, (str, os.PathLike)):
        return os.fspath(value)
    return repr(value)


def iter_inputs(value: Any) -> Iterator[Any]:
    """Yield raw inputs from a scalar, a record, or an iterable of either.

    Items are not validated here; `InputReference.from_value` does that per input.
    """
    if isinstance(value, (str, os.PathLike, Mapping, BaseModel)):
        yield value
        return
    if isinstance(value, Iterable):
        yield from value
        return
    yield value


def read_inputs(stream: TextIO) -> list[Any]:
    """Parse newline-delimited paths or JSON records from a text stream.

    Blank lines are skipped. Lines starting with `{` are parsed as JSON objects
    carrying a path field; any other line is taken as a path.

    Raises:
        InputError: If a JSON line is malformed.
    """
    items: list[Any] = []
    for number, raw_line in enumerate(stream, start=1):
        line = raw_line.strip()
        if not line:
            continue
        if line.startswith("{"):
            try:
                items.append(json.loads(line))
            except json.JSONDecodeError as exc:
                raise InputError(f"Line {number}: invalid JSON record: {exc}") from exc
        else:
            items.append(line)
    return items


__all__ = ["InputError", "InputReference", "describe_input", "iter_inputs", "read_inputs"]
