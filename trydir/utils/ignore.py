"""Directory ignore rules for workspace scans, using pathspec."""

from pathlib import Path

import pathspec

from trydir.constants import BUILTIN_IGNORES, IGNORE_FILENAME


class IgnoreRules:
    """Hides workspace subdirectories matched by built-in and .tryignore patterns."""

    def __init__(self, root: Path):
        """Initialize ignore rules.

        Args:
            root: Workspace root to search for the ignore file
        """
        self.root = root
        self.spec = self._build_spec()

    def _build_spec(self) -> pathspec.PathSpec:
        """Build combined PathSpec from all ignore sources."""
        patterns = list(BUILTIN_IGNORES)

        ignore_path = self.root / IGNORE_FILENAME
        if ignore_path.exists():
            try:
                with open(ignore_path) as f:
                    patterns.extend(f.read().splitlines())
            except OSError:
                pass  # Unreadable ignore file hides nothing extra

        # Filter out empty lines and comments
        patterns = [p.strip() for p in patterns if p.strip() and not p.strip().startswith("#")]

        return pathspec.PathSpec.from_lines("gitwildmatch", patterns)

    def should_ignore(self, path: Path) -> bool:
        """Check if a directory should be hidden from the scan.

        Args:
            path: Directory path (absolute, or relative to the root)

        Returns:
            True if the directory should be hidden
        """
        try:
            rel_path = path.relative_to(self.root) if path.is_absolute() else path
        except ValueError:
            # Outside the workspace root
            return True

        # Trailing slash so directory-only patterns ("build/") match
        return self.spec.match_file(f"{rel_path.as_posix()}/")

    def get_patterns(self) -> list[str]:
        """Get all ignore patterns."""
        return [p.pattern for p in self.spec.patterns]
