"""Filesystem collaborator: workspace scans, history entries, removal."""

import shutil
import time
from pathlib import Path
from typing import Optional

from trydir.errors import ScanFailure
from trydir.models import Entry, HistorySource, ListSource, ScanSource
from trydir.utils.ignore import IgnoreRules


class WorkspaceFS:
    """Turns list sources into entries and removes directories."""

    def __init__(self, ignore_rules: Optional[IgnoreRules] = None):
        """Initialize filesystem collaborator.

        Args:
            ignore_rules: Rules for hiding scanned directories (built per
                root when not given)
        """
        self.ignore_rules = ignore_rules

    def load_entries(self, source: ListSource) -> list[Entry]:
        """Build the entries for a list source.

        Raises:
            ScanFailure: If a scan root cannot be listed
        """
        if isinstance(source, ScanSource):
            return self.scan(source.root)
        if isinstance(source, HistorySource):
            return self.history_entries(source.paths)
        raise TypeError(f"Unknown list source: {source!r}")

    def scan(self, root: Path) -> list[Entry]:
        """List the visible immediate subdirectories of ``root``.

        A missing root yields no entries; the first "create new" commit
        creates it.
        """
        if not root.exists():
            return []

        rules = self.ignore_rules or IgnoreRules(root)
        entries = []
        try:
            children = sorted(root.iterdir())
        except OSError as e:
            raise ScanFailure(f"Cannot list {root}: {e}") from e

        for path in children:
            try:
                if not path.is_dir() or rules.should_ignore(path):
                    continue
                mtime = path.stat().st_mtime
            except OSError:
                continue  # Vanished or unreadable entry

            entries.append(Entry(name=path.name, path=path, modified_at=mtime))

        return entries

    def history_entries(self, paths: tuple[Path, ...]) -> list[Entry]:
        """Build entries for existing history paths, keeping their order.

        History entries are named by their full path.
        """
        entries = []
        for path in paths:
            try:
                if not path.is_dir():
                    continue
                mtime = path.stat().st_mtime
            except OSError:
                mtime = time.time()

            entries.append(Entry(name=str(path), path=path, modified_at=mtime))

        return entries

    def exists(self, path: Path) -> bool:
        return path.exists()

    def remove(self, path: Path) -> None:
        """Recursively delete a directory.

        Raises:
            OSError: If removal fails
        """
        if path.exists():
            shutil.rmtree(path)
