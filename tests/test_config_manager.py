"""Unit tests for configuration management."""

from pathlib import Path

import pytest

from jndipurge.config import (
    DEFAULT_CONFIG_PATH,
    ConfigError,
    ConfigManager,
    PurgeConfig,
    build_config,
)
from jndipurge.config.resolver import apply_override, env_settings


def _fresh_manager(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, env: dict[str, str] | None = None
) -> ConfigManager:
    monkeypatch.setenv("HOME", str(tmp_path))
    return ConfigManager(env=env)


def test_default_path_lives_under_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    assert manager.config_path == DEFAULT_CONFIG_PATH.expanduser()
    assert manager.config_path == tmp_path / ".jndipurge" / "config.yaml"


def test_ensure_exists_creates_default_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    path = manager.ensure_exists()

    assert path.exists()
    text = path.read_text(encoding="utf-8")
    assert text.startswith("# jndipurge settings")
    assert "Last updated:" in text

    config = manager.load(include_env=False)
    assert isinstance(config, PurgeConfig)
    assert config.target.entry_name == "JNDILookup.class"
    assert config.target.case_sensitive is False
    assert config.backup.suffix == ".bak"
    assert config.logging.file == "Remove-JNDILookup.txt"
    assert config.cli.assume == "prompt"


def test_load_layers_file_env_and_flags(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env = {
        "JNDIPURGE__LOGGING__FILE": "env.txt",
        "JNDIPURGE__TARGET__CASE_SENSITIVE": "true",
        "UNRELATED": "x",
    }
    manager = _fresh_manager(tmp_path, monkeypatch, env)
    manager.save({"backup": {"suffix": ".orig"}, "logging": {"file": "file.txt"}})

    config = manager.load(cli_overrides={"logging.file": "cli.txt"})

    assert config.backup.suffix == ".orig"
    assert config.target.case_sensitive is True
    assert config.logging.file == "cli.txt"
    assert manager.load(include_env=False).logging.file == "file.txt"


def test_invalid_yaml_raises_config_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.config_path.write_text("- not-a-mapping", encoding="utf-8")

    with pytest.raises(ConfigError):
        manager.load()


@pytest.mark.parametrize(
    "settings",
    [
        {"target": {"entry_name": "org/JNDILookup.class"}},
        {"backup": {"suffix": ""}},
        {"backup": {"suffix": "/x"}},
        {"backup": {"suffix": "\\x"}},
        {"logging": {"level": "LOUD"}},
        {"cli": {"assume": "maybe"}},
        {"unknown": {"key": 1}},
    ],
)
def test_build_config_invalid_value_raises(settings: dict) -> None:
    with pytest.raises(ConfigError):
        build_config(settings)


def test_backup_suffix_with_separator_from_env_is_rejected(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch, {"JNDIPURGE__BACKUP__SUFFIX": "/x"})

    with pytest.raises(ConfigError, match="suffix"):
        manager.load()


def test_assume_accepts_yaml_booleans(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch, {"JNDIPURGE__LOGGING__ECHO": "off"})
    manager.config_path.parent.mkdir(parents=True)
    manager.config_path.write_text("cli:\n  assume: no\n", encoding="utf-8")

    config = manager.load()

    assert config.cli.assume == "no"
    assert config.logging.echo is False


def test_env_settings_nest_lowercased_sections() -> None:
    settings = env_settings({"JNDIPURGE__BACKUP__SUFFIX": ".old", "JNDIPURGE__": "ignored"})

    assert settings == {"backup": {"suffix": ".old"}}


def test_apply_override_refuses_to_descend_into_values() -> None:
    settings = {"backup": ".bak"}

    with pytest.raises(ConfigError, match="not a section"):
        apply_override(settings, "backup.suffix", ".old")


def test_set_value_writes_once(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    assert manager.set_value("backup.suffix", ".orig") is True
    assert manager.set_value("backup.suffix", ".orig") is False
    assert manager.read_settings()["backup"] == {"suffix": ".orig"}


def test_set_value_leaves_file_alone_on_invalid_value(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()
    before = manager.read_text()

    with pytest.raises(ConfigError):
        manager.set_value("backup.suffix", "../x")

    assert manager.read_text() == before
