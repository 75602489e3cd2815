"""Pytest configuration and fixtures."""

import os
import tempfile
from datetime import date
from pathlib import Path

import pytest

from trydir.errors import InputFailure
from trydir.terminal import Key, KeyEvent

FIXED_NOW = 1_760_000_000.0
TODAY = date(2026, 10, 17)


def make_dir(root: Path, name: str, mtime: float) -> Path:
    """Create a directory with a given modification time."""
    path = root / name
    path.mkdir(parents=True)
    os.utime(path, (mtime, mtime))
    return path


def type_text(text: str) -> list[KeyEvent]:
    return [KeyEvent(Key.CHAR, c) for c in text]


def press(*keys: Key) -> list[KeyEvent]:
    return [KeyEvent(k) for k in keys]


class ScriptedTerminal:
    """Terminal double that replays events and records frames."""

    def __init__(self, events, size=(80, 24)):
        self.events = list(events)
        self.width, self.height = size
        self.frames: list[list[str]] = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return None

    def size(self):
        return self.width, self.height

    def draw(self, lines):
        self.frames.append([line.plain for line in lines])

    def read_event(self):
        if not self.events:
            raise InputFailure("script exhausted")
        return self.events.pop(0)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def workspace(temp_dir):
    """Create a workspace root with two dated experiment directories."""
    root = temp_dir / "tries"
    root.mkdir()

    make_dir(root, "foo-2025-01-01", FIXED_NOW - 7200)
    make_dir(root, "bar-2025-01-02", FIXED_NOW - 3600)

    yield root


@pytest.fixture
def config_dir(temp_dir):
    """Config directory for history and logs."""
    path = temp_dir / "config"
    path.mkdir()
    return path
