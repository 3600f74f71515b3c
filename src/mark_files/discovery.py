"""Directory enumeration: the list of files a scan hashes."""

from pathlib import Path
from typing import List, Optional
import logging
import os

from .errors import EnumerationError
from .ignore import IgnoreSpec

logger = logging.getLogger(__name__)


def discover_files(
    root: Path,
    ignore: Optional[IgnoreSpec] = None,
    exclude: Optional[List[Path]] = None,
) -> List[Path]:
    """List regular files under ``root``, sorted, ignored paths removed.

    Symlinks are not followed. Paths in ``exclude`` (such as the snapshot
    file itself) are never returned.

    Args:
        root: Directory to enumerate
        ignore: Patterns to skip (defaults to ``IgnoreSpec(root)``)
        exclude: Absolute paths to leave out

    Returns:
        Absolute paths of the files to scan

    Raises:
        EnumerationError: If ``root`` or any directory below it can't be listed
    """
    if not root.exists():
        raise EnumerationError(root, "the directory doesn't exist")
    if not root.is_dir():
        raise EnumerationError(root, "not a directory")

    root = root.resolve()
    ignore = ignore or IgnoreSpec(root)
    excluded = {p.resolve() for p in (exclude or [])}

    def _on_error(err: OSError) -> None:
        raise EnumerationError(Path(err.filename or root), err.strerror or str(err))

    files: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        current = Path(dirpath)
        rel_dir = current.relative_to(root).as_posix()

        # Prune ignored directories in place so os.walk skips them
        kept = []
        for name in dirnames:
            rel = name if rel_dir == "." else f"{rel_dir}/{name}"
            if ignore.should_traverse(rel):
                kept.append(name)
        dirnames[:] = sorted(kept)

        for name in filenames:
            path = current / name
            rel = name if rel_dir == "." else f"{rel_dir}/{name}"
            if ignore.is_ignored(rel) or path in excluded:
                continue
            if path.is_symlink() or not path.is_file():
                continue
            files.append(path)

    files.sort()
    logger.debug("Discovered %d files under %s", len(files), root)
    return files
