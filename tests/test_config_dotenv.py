from __future__ import annotations

import os
from pathlib import Path

import pytest
from click.testing import CliRunner

from lib_log_loghub import cli as cli_module
from lib_log_loghub import config as loghub_config


@pytest.fixture(autouse=True)
def _reset_dotenv_state() -> None:
    """Reset shared dotenv state around each test."""

    loghub_config._reset_dotenv_state_for_testing()
    yield
    loghub_config._reset_dotenv_state_for_testing()


def test_enable_dotenv_populates_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Loading the nearest .env injects values that are not set yet."""

    nested = tmp_path / "nested"
    nested.mkdir()
    env_file = tmp_path / ".env"
    env_file.write_text("LOGHUB_PROJECT_NAME=dotenv-project\n")
    monkeypatch.chdir(nested)
    monkeypatch.delenv("LOGHUB_PROJECT_NAME", raising=False)

    loaded = loghub_config.enable_dotenv()

    assert loaded == env_file.resolve()
    assert os.environ["LOGHUB_PROJECT_NAME"] == "dotenv-project"

    os.environ.pop("LOGHUB_PROJECT_NAME", None)


def test_enable_dotenv_respects_existing_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Existing environment variables keep precedence over .env entries."""

    nested = tmp_path / "nested"
    nested.mkdir()
    (tmp_path / ".env").write_text("LOGHUB_PROJECT_NAME=dotenv-project\n")
    monkeypatch.chdir(nested)
    monkeypatch.setenv("LOGHUB_PROJECT_NAME", "real-project")

    result = loghub_config.enable_dotenv()

    assert result is not None
    assert os.environ["LOGHUB_PROJECT_NAME"] == "real-project"


def test_enable_dotenv_searches_from_explicit_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    deep = tmp_path / "a" / "b"
    deep.mkdir(parents=True)
    (tmp_path / "a" / ".env").write_text("LOGHUB_TOPIC=from-dotenv\n")
    monkeypatch.delenv("LOGHUB_TOPIC", raising=False)

    loaded = loghub_config.enable_dotenv(deep)

    assert loaded == (tmp_path / "a" / ".env").resolve()
    assert loghub_config.enable_dotenv(tmp_path) == loaded
    assert os.environ["LOGHUB_TOPIC"] == "from-dotenv"

    os.environ.pop("LOGHUB_TOPIC", None)


def test_enable_dotenv_remembers_first_attempt(tmp_path: Path) -> None:
    empty = tmp_path / "empty"
    empty.mkdir()
    first = loghub_config.enable_dotenv(empty)
    (empty / ".env").write_text("LOGHUB_SOURCE=late\n")

    assert loghub_config.enable_dotenv(empty) == first


def test_attributes_from_env_maps_variables() -> None:
    environ = {
        "LOGHUB_PROJECT_NAME": "proj",
        "LOGHUB_MAX_IO_THREAD_SIZE_IN_POOL": "4",
        "LOGHUB_PACKAGE_TIMEOUT_IN_MS": "500",
        "LOGHUB_IGNORE_EXCEPTIONS": "false",
        "LOGHUB_PRODUCER_FACTORY": "console",
        "UNRELATED": "x",
    }

    attributes = loghub_config.attributes_from_env(environ)

    assert attributes == {
        "projectName": "proj",
        "maxIOThreadSizeInPool": "4",
        "packageTimeoutInMS": "500",
        "ignoreExceptions": "false",
        "producerFactory": "console",
    }


@pytest.mark.parametrize(
    ("explicit", "env_value", "expected"),
    [(True, None, True), (False, "1", False), (None, "on", True), (None, "0", False), (None, None, False)],
)
def test_should_use_dotenv(explicit: bool | None, env_value: str | None, expected: bool) -> None:
    assert loghub_config.should_use_dotenv(explicit=explicit, env_value=env_value) is expected


def test_cli_dotenv_toggle_precedence(monkeypatch: pytest.MonkeyPatch) -> None:
    """CLI flag wins over environment toggle when deciding whether to load .env."""

    runner = CliRunner()

    calls: list[tuple[tuple[object, ...], dict[str, object]]] = []

    def record_enable(*args: object, **kwargs: object) -> None:
        calls.append((args, kwargs))

    monkeypatch.setattr(loghub_config, "enable_dotenv", record_enable)
    monkeypatch.delenv(loghub_config.DOTENV_ENV_VAR, raising=False)

    result = runner.invoke(cli_module.cli, ["--use-dotenv", "info"])
    assert result.exit_code == 0
    assert len(calls) == 1

    calls.clear()
    env = {loghub_config.DOTENV_ENV_VAR: "1"}
    result = runner.invoke(cli_module.cli, ["info"], env=env)
    assert result.exit_code == 0
    assert len(calls) == 1

    calls.clear()
    result = runner.invoke(cli_module.cli, ["--no-use-dotenv", "info"], env=env)
    assert result.exit_code == 0
    assert calls == []
