"""Command line interface for the jndipurge project."""

from __future__ import annotations

import difflib
import logging
from collections import Counter
from pathlib import Path
from typing import Any, Sequence

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from jndipurge.archive import ResultRecord
from jndipurge.audit import AuditLog, AuditLogError, create_log_context
from jndipurge.batch import BatchDriver
from jndipurge.config import ConfigError, ConfigManager
from jndipurge.confirmation import gate_for
from jndipurge.inputs import InputError, iter_inputs, read_inputs

console = Console()

STDIN_MARKER = "-"
_OUTCOME_ORDER = ("removed", "found", "not_found", "declined", "failed")


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Conditionally print CLI output according to quiet/summary settings.

    Args:
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
        quiet: Whether quiet mode is active.
        summary_only: Whether only summary lines should be emitted.
    """

    if quiet and mode != "error":
        return

    important_modes = {"summary", "warning", "error"}
    if summary_only and mode not in important_modes:
        return

    console.print(message)


def _format_summary_line(command: str, metrics: dict[str, Any]) -> str:
    """Return a consistent summary line for CLI commands.

    Args:
        command: Command name to include in the summary.
        metrics: Ordered mapping of metric names to values.

    Returns:
        str: Rich-formatted summary string.
    """

    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary: {parts}.[/green]"


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("jndipurge").setLevel(level)


def _collect_inputs(paths: Sequence[str]) -> list[Any]:
    """Expand CLI arguments into inputs, reading stdin where `-` appears."""
    items: list[Any] = []
    for value in paths:
        if value == STDIN_MARKER:
            items.extend(read_inputs(click.get_text_stream("stdin")))
        else:
            items.extend(iter_inputs(value))
    return items


def _count_outcomes(records: Sequence[ResultRecord]) -> dict[str, int]:
    counts = Counter(record.outcome for record in records)
    return {outcome: counts.get(outcome, 0) for outcome in _OUTCOME_ORDER}


def _results_table(records: Sequence[ResultRecord]) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("FullName", overflow="fold")
    table.add_column("Result", overflow="fold")
    styles = {"removed": "green", "failed": "red", "declined": "yellow", "found": "cyan"}
    for record in records:
        table.add_row(record.full_name, record.result, style=styles.get(record.outcome))
    return table


def _run_batch(
    ctx: click.Context,
    *,
    command: str,
    paths: Sequence[str],
    mutate: bool,
    cli_overrides: dict[str, Any],
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Shared body of the `remove` and `scan` commands."""

    json_enabled = json_output
    try:
        manager = ConfigManager()
        config = manager.load(cli_overrides=cli_overrides)
        _configure_logging(config.logging.level)

        explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
        explicit_summary = ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE

        quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default
        summary_only = summary_mode if explicit_summary else config.cli.summary_default

        if json_output:
            if explicit_quiet and quiet_enabled:
                raise click.ClickException("--json cannot be combined with --quiet.")
            if explicit_summary and summary_only:
                raise click.ClickException("--json cannot be combined with --summary.")
            quiet_enabled = False
            summary_only = False

        if quiet_enabled and summary_only:
            raise click.ClickException(
                "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
            )

        if mutate and STDIN_MARKER in paths and config.cli.assume == "prompt":
            raise click.ClickException(
                "Reading paths from stdin requires --yes or --no because prompts also read stdin."
            )

        if mutate and json_output and config.cli.assume == "prompt":
            raise click.ClickException(
                "--json requires --yes or --no because prompts would mix into the JSON output."
            )

        items = _collect_inputs(paths)

        log_path = Path(config.logging.file).expanduser()
        context = create_log_context(log_path, config.logging.operation_name)
        echo = config.logging.echo and not (json_output or quiet_enabled or summary_only)
        driver = BatchDriver(
            config=config,
            gate=gate_for(config.cli.assume),
            audit=AuditLog(console),
            context=context,
            echo=echo,
        )
        records = driver.run(items) if mutate else driver.scan(items)
        counts = _count_outcomes(records)

        if json_output:
            payload = [record.model_dump(mode="json", by_alias=True) for record in records]
            console.print_json(
                data={
                    "records": payload,
                    "counts": counts,
                    "log_path": str(log_path.resolve()),
                }
            )
            return

        if records:
            _emit_message(
                _results_table(records),
                mode="detail",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        metrics: dict[str, Any] = {"inputs": len(items), **counts}
        _emit_message(
            _format_summary_line(command, metrics),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_enabled, original=exc)
    except InputError as exc:
        _handle_cli_error(str(exc), code="input_error", json_output=json_enabled, original=exc)
    except AuditLogError as exc:
        _handle_cli_error(str(exc), code="log_error", json_output=json_enabled, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_enabled, original=exc)
    except Exception as exc:
        _handle_cli_error(
            f"Unexpected error while processing archives: {exc}",
            code="internal_error",
            json_output=json_enabled,
            details={"exception": type(exc).__name__},
            original=exc,
        )


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="jndipurge")
def cli() -> None:
    """jndipurge removes JNDILookup.class from Java archives, keeping a backup of each."""


@cli.command()
@click.argument("paths", nargs=-1, required=True)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=str),
    help="Audit log file (default: Remove-JNDILookup.txt).",
)
@click.option(
    "--yes/--no",
    "assume_yes",
    default=None,
    help="Answer every confirmation prompt with yes or no instead of asking.",
)
@click.option(
    "--case-sensitive/--ignore-case",
    default=None,
    help="Match the entry name with or without regard to case.",
)
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Emit JSON describing the results. Needs --yes, --no or cli.assume.",
)
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def remove(
    ctx: click.Context,
    paths: tuple[str, ...],
    log_file: str | None,
    assume_yes: bool | None,
    case_sensitive: bool | None,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Remove JNDILookup.class entries from each archive in PATHS.

    Each archive holding a match is backed up to `<archive>.bak` before the
    entries are deleted. Pass `-` to read paths, or JSON records carrying a
    `FullName` or `path` field, from standard input.

    Args:
        ctx: Click context used for parameter source inspection.
        paths: Archive paths to process.
        log_file: Optional audit log location.
        assume_yes: Fixed answer for confirmation prompts, if any.
        case_sensitive: Optional override for entry name matching.
        json_output: If True, emit JSON describing the results.
        summary_mode: When True, limit output to summary lines and warnings.
        quiet: When True, suppress non-error CLI output entirely.
    """

    overrides: dict[str, Any] = {}
    if log_file is not None:
        overrides["logging.file"] = log_file
    if assume_yes is not None:
        overrides["cli.assume"] = "yes" if assume_yes else "no"
    if case_sensitive is not None:
        overrides["target.case_sensitive"] = case_sensitive

    _run_batch(
        ctx,
        command="Remove",
        paths=paths,
        mutate=True,
        cli_overrides=overrides,
        json_output=json_output,
        summary_mode=summary_mode,
        quiet=quiet,
    )


@cli.command()
@click.argument("paths", nargs=-1, required=True)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=str),
    help="Audit log file (default: Remove-JNDILookup.txt).",
)
@click.option(
    "--case-sensitive/--ignore-case",
    default=None,
    help="Match the entry name with or without regard to case.",
)
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the results.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def scan(
    ctx: click.Context,
    paths: tuple[str, ...],
    log_file: str | None,
    case_sensitive: bool | None,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Report JNDILookup.class entries in PATHS without modifying anything."""

    overrides: dict[str, Any] = {}
    if log_file is not None:
        overrides["logging.file"] = log_file
    if case_sensitive is not None:
        overrides["target.case_sensitive"] = case_sensitive

    _run_batch(
        ctx,
        command="Scan",
        paths=paths,
        mutate=False,
        cli_overrides=overrides,
        json_output=json_output,
        summary_mode=summary_mode,
        quiet=quiet,
    )


@cli.group()
def config() -> None:
    """Manage jndipurge configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager()
    try:
        loaded = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Args:
        key: Dotted path describing the configuration field to update.
        value: YAML-literal value to write into the configuration file.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager()
    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        manager.ensure_exists()
        before = manager.read_text().splitlines()
        changed = manager.set_value(key, parsed_value)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    if not changed:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    diff = difflib.unified_diff(
        before,
        manager.read_text().splitlines(),
        fromfile="config.yaml (before)",
        tofile="config.yaml (after)",
        lineterm="",
    )
    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {key}.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
