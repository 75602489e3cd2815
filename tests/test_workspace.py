"""Tests for workspace scanning and removal."""

import pytest

from conftest import FIXED_NOW, make_dir
from trydir.errors import ScanFailure
from trydir.models import HistorySource, ScanSource
from trydir.workspace import WorkspaceFS


def test_scan_lists_directories(workspace):
    """Test that scans return immediate subdirectories with mtimes."""
    (workspace / "notes.txt").write_text("not a directory")
    make_dir(workspace / "foo-2025-01-01", "nested", FIXED_NOW)

    entries = WorkspaceFS().scan(workspace)

    assert [e.name for e in entries] == ["bar-2025-01-02", "foo-2025-01-01"]
    assert entries[0].path == workspace / "bar-2025-01-02"
    assert entries[0].modified_at == pytest.approx(FIXED_NOW - 3600)


def test_scan_hides_dot_directories(workspace):
    """Test hidden directories are not listed."""
    make_dir(workspace, ".cache", FIXED_NOW)

    names = [e.name for e in WorkspaceFS().scan(workspace)]

    assert ".cache" not in names


def test_scan_respects_tryignore(workspace):
    """Test patterns from the workspace ignore file."""
    (workspace / ".tryignore").write_text("# archived\nfoo-*\n")

    names = [e.name for e in WorkspaceFS().scan(workspace)]

    assert names == ["bar-2025-01-02"]


def test_scan_missing_root(temp_dir):
    """Test a missing root yields no entries."""
    assert WorkspaceFS().scan(temp_dir / "missing") == []


def test_scan_root_not_listable(temp_dir):
    """Test a root that cannot be listed raises ScanFailure."""
    root = temp_dir / "file"
    root.write_text("")

    with pytest.raises(ScanFailure):
        WorkspaceFS().scan(root)


def test_load_entries_dispatches(workspace, temp_dir):
    """Test both list sources."""
    fs = WorkspaceFS()

    assert len(fs.load_entries(ScanSource(workspace))) == 2

    entries = fs.load_entries(HistorySource((workspace, temp_dir / "gone")))
    assert [e.name for e in entries] == [str(workspace)]

    with pytest.raises(TypeError):
        fs.load_entries("not a source")


def test_remove_deletes_tree(workspace):
    """Test recursive removal."""
    target = workspace / "foo-2025-01-01"
    (target / "deep").mkdir()
    (target / "deep" / "file.txt").write_text("x")
    fs = WorkspaceFS()

    fs.remove(target)
    fs.remove(target)

    assert not fs.exists(target)
