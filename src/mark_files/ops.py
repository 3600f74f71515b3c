"""Core operations for mark-files."""

from functools import partial
from pathlib import Path
from typing import Optional
import logging

from .config import RunConfig, load_run_config
from .core import RunReport
from .discovery import discover_files
from .errors import EmptyScanError
from .hashing import stat_and_hash
from .ignore import IgnoreSpec
from .lock import acquire_exclusive
from .reconcile import compute_restore_actions, summarize_changes
from .restore import TimestampSetter, apply_restore_actions
from .scanner import ProgressCallback, Provider, scan_files
from .snapshot import Snapshot, load_snapshot, save_snapshot
from .timestamps import set_timestamps

logger = logging.getLogger(__name__)


def run(
    source: Path,
    output: Path,
    restore: bool = False,
    config: Optional[RunConfig] = None,
    provider: Optional[Provider] = None,
    setter: TimestampSetter = set_timestamps,
    scan_progress: Optional[ProgressCallback] = None,
    restore_progress: Optional[ProgressCallback] = None,
    lock_dir: Optional[Path] = None,
) -> RunReport:
    """Snapshot ``source`` into ``output``, restoring drifted dates first.

    The whole sequence (enumerate, scan, reconcile, restore, persist) runs
    under the cross-process run lock. The snapshot file is only written
    once every record is known; any fatal error leaves the previous file
    untouched.

    Args:
        source: Directory to snapshot
        output: Snapshot file (read as the baseline when ``restore`` is set)
        restore: Restore timestamps of unchanged files from ``output``
        config: Run settings (defaults to ``<source>/.mark-files.yaml``)
        provider: Hash/stat provider (defaults to ``stat_and_hash``)
        setter: Timestamp-set primitive
        scan_progress: Optional progress callback for the scan
        restore_progress: Optional progress callback for the restore
        lock_dir: Where the run lock file lives

    Returns:
        RunReport describing what happened

    Raises:
        EnumerationError: If ``source`` can't be listed
        EmptyScanError: If no file could be scanned
        SnapshotFormatError: If the baseline snapshot is unreadable
        PersistError: If the new snapshot can't be written
        LockTimeoutError: If another run holds the lock too long
    """
    if config is None:
        config = load_run_config(source)
    if provider is None:
        provider = partial(stat_and_hash, chunk_size=config.chunk_size)
    output = output.absolute()

    with acquire_exclusive(config.lock_name, config.lock_timeout, directory=lock_dir):
        ignore = IgnoreSpec(source, config.ignore, include_hidden=config.include_hidden)
        paths = discover_files(source, ignore, exclude=[output])
        root = source.resolve()
        if not paths:
            raise EmptyScanError(root)

        scan = scan_files(paths, root, provider, workers=config.workers, progress=scan_progress)
        if not scan.files:
            raise EmptyScanError(root, failed=len(scan.failures))
        logger.info("Scanned %d files with %d workers", len(scan.files), scan.workers)

        snapshot = Snapshot(files=scan.files)
        report = RunReport(
            source=root,
            output=output,
            scanned=len(scan.files),
            scan_failures=scan.failures,
        )

        if restore:
            baseline = load_snapshot(output, root=root)
            report.changes = summarize_changes(baseline, snapshot)
            actions = compute_restore_actions(baseline, snapshot)
            logger.info("%d files have drifted dates", len(actions))
            report.restore = apply_restore_actions(
                actions, snapshot, root, setter=setter, progress=restore_progress
            )

        save_snapshot(snapshot, output)

    return report
