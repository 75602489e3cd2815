"""Persisted history of workspace roots."""

import os
import tempfile
from pathlib import Path

from trydir.constants import HISTORY_FILENAME
from trydir.errors import HistoryStoreFailure


class WorkspaceHistoryStore:
    """Most-recently-used list of workspace roots.

    Stored one path per line, least recent first, so the file stays easy to
    read and edit by hand.
    """

    def __init__(self, config_dir: Path):
        """Initialize history store.

        Args:
            config_dir: App config directory holding the history file
        """
        self.path = config_dir / HISTORY_FILENAME

    def load(self) -> list[Path]:
        """Load the history, most recent first.

        Returns:
            Deduplicated list of paths (empty if no history exists)

        Raises:
            HistoryStoreFailure: If the file exists but cannot be read
        """
        if not self.path.exists():
            return []

        try:
            with open(self.path, encoding="utf-8") as f:
                lines = f.read().splitlines()
        except (OSError, UnicodeDecodeError) as e:
            raise HistoryStoreFailure(f"Cannot read history {self.path}: {e}") from e

        # Newest occurrence wins when a hand-edited file holds duplicates
        paths: list[Path] = []
        for line in reversed(lines):
            line = line.strip()
            if not line:
                continue
            path = Path(line)
            if path not in paths:
                paths.append(path)
        return paths

    def record(self, path: Path) -> None:
        """Move ``path`` to the front of the history and persist it.

        Raises:
            HistoryStoreFailure: If the history cannot be read or written
        """
        path = Path(os.path.abspath(path.expanduser()))
        paths = [p for p in self.load() if p != path]
        paths.insert(0, path)
        self._write(paths)

    def _write(self, paths: list[Path]) -> None:
        """Atomically replace the history file."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".workspaces.")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    for p in reversed(paths):
                        f.write(f"{p}\n")
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise HistoryStoreFailure(f"Cannot write history {self.path}: {e}") from e


def with_current_first(paths: list[Path], cwd: Path) -> list[Path]:
    """Pin the current directory at the front of a history list.

    Args:
        paths: History, most recent first
        cwd: Current working directory

    Returns:
        ``cwd`` followed by the other paths in their original order
    """
    return [cwd] + [p for p in paths if p != cwd]
