"""Cross-process lock held for the whole of a run.

Two instances scanning or restoring the same tree at once would race on the
snapshot file and on file timestamps, so every run takes one named,
machine-wide lock from enumeration through the final snapshot write.

The lock is a ``portalocker`` lock on a file in the user cache directory.
Lock files persist; the OS drops the lock itself when the holder exits,
even on a crash.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional
import logging
import re

import platformdirs
import portalocker

from .constants import DEFAULT_LOCK_NAME, DEFAULT_LOCK_TIMEOUT, PROGRAM_NAME
from .errors import LockTimeoutError

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]")


def lock_dir() -> Path:
    """Directory holding lock files."""
    return Path(platformdirs.user_cache_dir(PROGRAM_NAME, appauthor=False)) / "locks"


def lock_path(name: str, directory: Optional[Path] = None) -> Path:
    """Lock file for a lock name (unsafe characters replaced)."""
    return (directory or lock_dir()) / f"{_UNSAFE.sub('_', name)}.lock"


@contextmanager
def acquire_exclusive(
    name: str = DEFAULT_LOCK_NAME,
    timeout: float = DEFAULT_LOCK_TIMEOUT,
    directory: Optional[Path] = None,
) -> Iterator[Path]:
    """Hold the named lock for the duration of the ``with`` block.

    Blocks until the lock is free or ``timeout`` seconds have passed.
    Released on every exit path.

    Args:
        name: Lock name shared by all cooperating processes
        timeout: Seconds to wait before giving up
        directory: Where lock files live (defaults to the user cache dir)

    Yields:
        Path of the lock file

    Raises:
        LockTimeoutError: If the lock could not be acquired in time
    """
    path = lock_path(name, directory)
    path.parent.mkdir(parents=True, exist_ok=True)

    lock = portalocker.Lock(str(path), "w", timeout=timeout)
    try:
        lock.acquire()
    except portalocker.LockException as e:
        raise LockTimeoutError(name, timeout) from e

    logger.debug("Acquired lock %s", path)
    try:
        yield path
    finally:
        lock.release()
        logger.debug("Released lock %s", path)
