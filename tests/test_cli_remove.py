"""CLI integration tests for `jndipurge remove` and `jndipurge scan`."""

from __future__ import annotations

import json
import os
import zipfile
from pathlib import Path

from click.testing import CliRunner

from jndipurge.cli import cli

LOOKUP = "org/apache/logging/log4j/core/lookup/JNDILookup.class"


def _env_with_home(tmp_path: Path) -> dict[str, str]:
    """Return environment variables pointing HOME to a temp directory.

    Args:
        tmp_path: Temporary directory provided by pytest.

    Returns:
        dict[str, str]: Environment mapping with HOME set.
    """
    env = {key: value for key, value in os.environ.items() if not key.startswith("JNDIPURGE__")}
    env["HOME"] = str(tmp_path / "home")
    return env


def _make_jar(path: Path) -> Path:
    with zipfile.ZipFile(path, "w") as jar:
        jar.writestr("META-INF/MANIFEST.MF", b"Manifest-Version: 1.0\n")
        jar.writestr(LOOKUP, b"lookup")
    return path


def _names(path: Path) -> list[str]:
    with zipfile.ZipFile(path) as jar:
        return jar.namelist()


def test_remove_with_yes_emits_json(tmp_path: Path) -> None:
    jar = _make_jar(tmp_path / "sample.jar")
    log_path = tmp_path / "audit.txt"
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["remove", str(jar), "--yes", "--json", "--log-file", str(log_path)],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["records"] == [
        {"FullName": str(jar.resolve()), "Result": f"{LOOKUP} Removed", "Outcome": "removed"}
    ]
    assert payload["counts"]["removed"] == 1
    assert (tmp_path / "sample.jar.bak").exists()
    assert _names(jar) == ["META-INF/MANIFEST.MF"]
    assert f"Removing {LOOKUP} " in log_path.read_text(encoding="utf-8")


def test_remove_prompts_and_accepts(tmp_path: Path) -> None:
    jar = _make_jar(tmp_path / "sample.jar")
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["remove", str(jar), "--log-file", str(tmp_path / "audit.txt")],
        env=_env_with_home(tmp_path),
        input="y\n",
    )

    assert result.exit_code == 0, result.output
    assert "Remove 1 matching entry" in result.output
    assert f"Removing {LOOKUP}" in result.output
    assert "removed=1" in result.output
    assert _names(jar) == ["META-INF/MANIFEST.MF"]


def test_remove_prompt_defaults_to_no(tmp_path: Path) -> None:
    jar = _make_jar(tmp_path / "sample.jar")
    original = jar.read_bytes()
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["remove", str(jar), "--log-file", str(tmp_path / "audit.txt")],
        env=_env_with_home(tmp_path),
        input="\n",
    )

    assert result.exit_code == 0, result.output
    assert "declined=1" in result.output
    assert jar.read_bytes() == original
    assert not (tmp_path / "sample.jar.bak").exists()


def test_remove_reads_paths_from_stdin(tmp_path: Path) -> None:
    first = _make_jar(tmp_path / "first.jar")
    second = _make_jar(tmp_path / "second.jar")
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["remove", "-", "--yes", "--json", "--log-file", str(tmp_path / "audit.txt")],
        env=_env_with_home(tmp_path),
        input=f"{first}\n{json.dumps({'FullName': str(second)})}\n",
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert [record["FullName"] for record in payload["records"]] == [
        str(first.resolve()),
        str(second.resolve()),
    ]
    assert _names(first) == _names(second) == ["META-INF/MANIFEST.MF"]


def test_remove_from_stdin_requires_an_answer_policy(tmp_path: Path) -> None:
    jar = _make_jar(tmp_path / "sample.jar")
    original = jar.read_bytes()
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["remove", "-", "--log-file", str(tmp_path / "audit.txt")],
        env=_env_with_home(tmp_path),
        input=f"{jar}\n",
    )

    assert result.exit_code != 0
    assert "--yes or --no" in result.output
    assert jar.read_bytes() == original


def test_per_input_failures_keep_exit_code_zero(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli,
        [
            "remove",
            str(tmp_path / "missing.jar"),
            "--no",
            "--json",
            "--log-file",
            str(tmp_path / "audit.txt"),
        ],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["records"][0]["Result"].startswith("Could not resolve path: ")
    assert payload["counts"]["failed"] == 1


def test_unwritable_log_aborts_with_error(tmp_path: Path) -> None:
    jar = _make_jar(tmp_path / "sample.jar")
    original = jar.read_bytes()
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["remove", str(jar), "--yes", "--json", "--log-file", str(tmp_path / "nope" / "a.txt")],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 1
    payload = json.loads(result.output)
    assert payload["error"]["code"] == "log_error"
    assert jar.read_bytes() == original


def test_scan_reports_without_modifying(tmp_path: Path) -> None:
    jar = _make_jar(tmp_path / "sample.jar")
    original = jar.read_bytes()
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["scan", str(jar), "--summary", "--log-file", str(tmp_path / "audit.txt")],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 0, result.output
    assert "Scan summary" in result.output
    assert "found=1" in result.output
    assert jar.read_bytes() == original
    assert not (tmp_path / "sample.jar.bak").exists()


def test_json_and_quiet_are_exclusive(tmp_path: Path) -> None:
    jar = _make_jar(tmp_path / "sample.jar")
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["scan", str(jar), "--json", "--quiet", "--log-file", str(tmp_path / "audit.txt")],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 1
    assert json.loads(result.output)["error"]["code"] == "cli_error"


def test_config_assume_applies_without_flags(tmp_path: Path) -> None:
    jar = _make_jar(tmp_path / "sample.jar")
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    env["JNDIPURGE__CLI__ASSUME"] = "yes"

    result = runner.invoke(
        cli,
        ["remove", str(jar), "--quiet", "--log-file", str(tmp_path / "audit.txt")],
        env=env,
    )

    assert result.exit_code == 0, result.output
    assert result.output == ""
    assert _names(jar) == ["META-INF/MANIFEST.MF"]


def test_remove_json_without_answer_policy_is_refused(tmp_path: Path) -> None:
    jar = _make_jar(tmp_path / "sample.jar")
    original = jar.read_bytes()
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["remove", str(jar), "--json", "--log-file", str(tmp_path / "audit.txt")],
        env=_env_with_home(tmp_path),
        input="y\n",
    )

    assert result.exit_code == 1
    payload = json.loads(result.output)
    assert payload["error"]["code"] == "cli_error"
    assert "--yes or --no" in payload["error"]["message"]
    assert jar.read_bytes() == original


def test_remove_records_invalid_stdin_record_and_continues(tmp_path: Path) -> None:
    jar = _make_jar(tmp_path / "sample.jar")
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["remove", "-", "--yes", "--json", "--log-file", str(tmp_path / "audit.txt")],
        env=_env_with_home(tmp_path),
        input=f'{{"Name": "x"}}\n{jar}\n',
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert [record["Outcome"] for record in payload["records"]] == ["failed", "removed"]
    assert payload["records"][0]["FullName"] == repr({"Name": "x"})
    assert _names(jar) == ["META-INF/MANIFEST.MF"]
