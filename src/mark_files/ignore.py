"""Gitignore-style pattern matching for the files a scan should skip."""

from pathlib import Path
from typing import Iterable

from pathspec import PathSpec

from .constants import IGNORE_FILE


# Hidden files and directories are skipped unless explicitly included
HIDDEN = [".*"]

DEFAULTS = [
    # OS files
    "Thumbs.db",
    "desktop.ini",
]


class IgnoreSpec:
    """Manages gitignore-style patterns for file exclusion."""

    def __init__(self, root: Path, extra: Iterable[str] = (), include_hidden: bool = False):
        """Initialize ignore spec with default and custom patterns.

        Args:
            root: Scanned root directory
            extra: Additional patterns to include
            include_hidden: Scan dot-files and dot-directories too
        """
        self.root = root
        patterns = list(DEFAULTS)
        if not include_hidden:
            patterns.extend(HIDDEN)

        # Load project-specific ignore file if it exists
        ignore_file = root / IGNORE_FILE
        if ignore_file.exists():
            for line in ignore_file.read_text(encoding="utf-8").splitlines():
                line = line.strip()
                if line and not line.startswith("#"):
                    patterns.append(line)

        patterns.extend(extra)

        self.spec = PathSpec.from_lines("gitwildmatch", patterns)

    def is_ignored(self, relpath: str) -> bool:
        """Check if a root-relative POSIX path should be ignored."""
        return self.spec.match_file(relpath)

    def should_traverse(self, dirpath: str) -> bool:
        """Check if a directory should be traversed during scanning.

        Args:
            dirpath: Root-relative directory path in POSIX format
        """
        if not dirpath.endswith("/"):
            dirpath = dirpath + "/"
        return not self.spec.match_file(dirpath)
