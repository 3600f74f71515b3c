"""Parallel scan: hash and stat every file into a snapshot.

A fixed pool of workers drains one shared queue of paths. Each worker pops
a path, computes its record with no lock held, then records the result and
advances progress under the store's lock.
"""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Optional, Protocol, Sequence
import logging
import os

from .core import FileRecord, ScanResult
from .hashing import stat_and_hash
from .snapshot import SnapshotStore, normalize_identifier

logger = logging.getLogger(__name__)

Provider = Callable[[Path], FileRecord]


class ProgressCallback(Protocol):
    """Progress reporting interface.

    Called while the store lock is held: implementations must be quick and
    must not call back into the store.
    """

    def on_start(self, total: int) -> None:
        """Called once before any file is processed."""
        ...

    def on_file_complete(self, path: str) -> None:
        """Called when a file has been recorded."""
        ...

    def on_file_error(self, path: str, error: str) -> None:
        """Called when a file could not be processed."""
        ...


def worker_count(file_count: int, limit: Optional[int] = None) -> int:
    """Number of workers for ``file_count`` files.

    ``min(cpu count, files)``, capped by ``limit``; at least one for any
    non-empty input and zero for an empty one.
    """
    if file_count <= 0:
        return 0
    count = min(os.cpu_count() or 1, file_count)
    if limit is not None:
        count = min(count, limit)
    return max(count, 1)


def scan_files(
    paths: Sequence[Path],
    root: Path,
    provider: Provider = stat_and_hash,
    workers: Optional[int] = None,
    progress: Optional[ProgressCallback] = None,
) -> ScanResult:
    """Compute a record for every path using a pool of workers.

    A file the provider can't read (``OSError`` or ``ValueError``) is
    recorded as a failure and logged; the other files carry on. Anything
    else is a bug and propagates once the pool has stopped.

    Args:
        paths: Files to scan (already filtered and deduplicated)
        root: Directory the identifiers are relative to
        provider: Computes the record of one file
        workers: Upper bound on the worker count
        progress: Optional progress callback

    Returns:
        ScanResult with one record per successfully scanned path
    """
    store = SnapshotStore(paths)
    count = worker_count(store.total, workers)
    if count == 0:
        return ScanResult()
    if progress:
        progress.on_start(store.total)

    on_insert = progress.on_file_complete if progress else None
    on_fail = progress.on_file_error if progress else None

    def drain() -> None:
        while True:
            path = store.pop()
            if path is None:
                return
            identifier = normalize_identifier(path, root)
            try:
                record = provider(path)
            except (OSError, ValueError) as e:
                logger.warning("Skipping %s: %s", identifier, e)
                store.fail(identifier, str(e), on_fail)
                continue
            store.insert(identifier, record, on_insert)

    logger.debug("Scanning %d files with %d workers", store.total, count)
    with ThreadPoolExecutor(max_workers=count, thread_name_prefix="mark-files-scan") as executor:
        futures = [executor.submit(drain) for _ in range(count)]
    # Re-raise the first fatal error, if any, after every worker stopped
    for future in futures:
        future.result()

    return ScanResult(files=store.files, failures=store.failures, workers=count)
