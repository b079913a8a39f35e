"""Shared fixtures for ecce tests."""

import io
import logging

import pytest
from rich.console import Console

from ecce_app_cli.logging_setup import JsonlHandler


@pytest.fixture
def document(tmp_path):
    """Factory writing a document into a temp dir and returning its path."""

    def _make(content: str, name: str = "slides.md"):
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _make


@pytest.fixture
def quiet_console():
    """Console that renders into a buffer instead of the terminal."""
    return Console(file=io.StringIO(), width=120, color_system=None)


@pytest.fixture
def ecce_home(tmp_path, monkeypatch):
    """Point settings and logs at a temp directory."""
    home = tmp_path / "ecce-home"
    monkeypatch.setenv("ECCE_HOME", str(home))
    monkeypatch.setenv("ECCE_LOG_PATH", str(home / "logs" / "ecce.log.jsonl"))
    root = logging.getLogger()
    level = root.level
    yield home
    root.setLevel(level)
    for handler in list(root.handlers):
        if isinstance(handler, JsonlHandler):
            root.removeHandler(handler)
