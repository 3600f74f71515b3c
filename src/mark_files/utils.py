"""Utility functions for mark-files."""

from datetime import datetime
from pathlib import Path
import os
import tempfile


def atomic_write_text(path: Path, text: str) -> None:
    """Atomically write text to file with crash safety.

    1. Writes to temp file with fsync to ensure content is on disk
    2. Atomic rename to target path (appears all-at-once)
    3. Fsync parent directory to ensure rename is durable

    Directory fsync is best-effort (not supported on Windows).

    Args:
        path: Target file path
        text: Text content to write
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    # Create temp file in same directory
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        delete=False,
        dir=path.parent,
        prefix=f".{path.name}.tmp-",
        suffix=""
    ) as f:
        f.write(text)
        f.flush()
        os.fsync(f.fileno())
        tmp = Path(f.name)

    try:
        os.replace(tmp, path)

        try:
            flags = os.O_RDONLY
            if hasattr(os, "O_DIRECTORY"):
                flags |= os.O_DIRECTORY

            dirfd = os.open(str(path.parent), flags)
            try:
                os.fsync(dirfd)
            finally:
                os.close(dirfd)
        except OSError:
            # Expected on Windows or filesystems that don't support directory fsync
            pass
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


def format_timestamp(timestamp: int) -> str:
    """Render epoch seconds as local time, e.g. "2017-07-14 02:40:00"."""
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")


def shorten_path(path: str, max_len: int = 48) -> str:
    """Shorten a path for progress display, keeping both ends."""
    if len(path) <= max_len:
        return path
    keep = max_len - 3
    if keep <= 0:
        return path[:max_len]
    head = keep // 2
    tail = keep - head
    return f"{path[:head]}...{path[-tail:]}"
