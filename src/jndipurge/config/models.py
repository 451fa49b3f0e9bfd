"""Configuration models describing jndipurge settings."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PurgeBaseModel(BaseModel):
    """Shared configuration for jndipurge Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class TargetSettings(PurgeBaseModel):
    """Describe which archive entries are removed.

    Attributes:
        entry_name: Base name of the entry to remove, compared against the final
            path segment of every archive entry.
        case_sensitive: Whether the base name comparison respects case.
    """

    entry_name: str = "JNDILookup.class"
    case_sensitive: bool = False

    @field_validator("entry_name")
    @classmethod
    def _reject_paths(cls, value: str) -> str:
        if not value or "/" in value:
            raise ValueError("entry_name must be a non-empty base name without '/'")
        return value


class BackupSettings(PurgeBaseModel):
    """Backup behavior applied before an archive is mutated.

    Attributes:
        suffix: Suffix appended to the archive path to form the backup path.
    """

    suffix: str = ".bak"

    @field_validator("suffix")
    @classmethod
    def _require_suffix(cls, value: str) -> str:
        if not value or "/" in value or "\\" in value:
            raise ValueError("backup suffix must be non-empty and free of path separators")
        return value


class LoggingSettings(PurgeBaseModel):
    """Audit and runtime logging configuration.

    Attributes:
        file: Path of the append-only audit log.
        operation_name: Name written at the head of every run in the audit log.
        echo: Whether audit lines are echoed to the console.
        level: Verbosity of the diagnostic logger.
    """

    file: str = "Remove-JNDILookup.txt"
    operation_name: str = "Remove-JNDILookup"
    echo: bool = True
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"


class CLIOptions(PurgeBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        assume: Answer given to confirmation prompts; `prompt` asks interactively.
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
    """

    assume: Literal["prompt", "yes", "no"] = "prompt"
    quiet_default: bool = False
    summary_default: bool = False

    @field_validator("assume", mode="before")
    @classmethod
    def _coerce_yaml_booleans(cls, value: object) -> object:
        # YAML reads bare yes/no as booleans.
        if isinstance(value, bool):
            return "yes" if value else "no"
        return value


class PurgeConfig(PurgeBaseModel):
    """Top-level configuration struct for jndipurge.

    Attributes:
        target: Entry matching settings.
        backup: Backup settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    target: TargetSettings = Field(default_factory=TargetSettings)
    backup: BackupSettings = Field(default_factory=BackupSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "PurgeBaseModel",
    "TargetSettings",
    "BackupSettings",
    "LoggingSettings",
    "CLIOptions",
    "PurgeConfig",
]
