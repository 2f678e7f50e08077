"""Shared fixtures. Keeps the config store and log file out of the real home directory."""

import os
import tempfile
from pathlib import Path

import pytest

_SESSION_DIR = tempfile.mkdtemp(prefix="todo-purge-tests-")
os.environ["TODO_PURGE_CONFIG_DIR"] = _SESSION_DIR
os.environ["TODO_PURGE_LOG_FILE"] = os.path.join(_SESSION_DIR, "todo-purge.log")
os.environ["TODO_PURGE_QUIET"] = "true"

from utils.store import ConfigStore, Workspace  # noqa: E402
from utils.todo import TodoMatch, scan_file  # noqa: E402


@pytest.fixture
def temp_dir(tmp_path):
    return tmp_path


@pytest.fixture
def store(tmp_path, monkeypatch):
    """Config store isolated in a per-test directory."""
    config_dir = tmp_path / "config"
    monkeypatch.setenv("TODO_PURGE_CONFIG_DIR", str(config_dir))
    return ConfigStore(config_dir / "config.json")


@pytest.fixture
def workspace():
    return Workspace(api_key="lin_api_testkey123", team_id="team-1", team_name="Core", team_key="COR")


@pytest.fixture
def write_source(tmp_path):
    """Write a source file and return its path."""

    def _write(name: str, lines: list[str]) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(lines), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_match():
    """Build a TodoMatch for a file by scanning it."""

    def _make(path: Path, line_number: int) -> TodoMatch:
        for todo in scan_file(str(path)):
            if todo.line_number == line_number:
                return todo
        raise AssertionError(f"no TODO on line {line_number} of {path}")

    return _make
