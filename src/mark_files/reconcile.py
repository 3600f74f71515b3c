"""Reconciliation: which timestamps drifted while content stayed the same."""

from typing import List

from .core import ChangeSummary, RestoreAction
from .snapshot import Snapshot


def compute_restore_actions(old: Snapshot, new: Snapshot) -> List[RestoreAction]:
    """
    Compare a saved snapshot against a fresh one.

    For every file of ``new`` that ``old`` also knows with the same hash,
    ctime and mtime are judged separately: each one that differs is set
    back to its ``old`` value. New files, deleted files and files whose
    content changed produce nothing.

    Args:
        old: Snapshot loaded from the previous run.
        new: Snapshot just scanned.

    Returns:
        Restore actions sorted by identifier.
    """
    actions = []
    for path in sorted(new.files):
        current = new.files[path]
        previous = old.get(path)

        # New file
        if previous is None:
            continue

        # Content changed, new timestamps are expected
        if previous.sha != current.sha:
            continue

        restore_ctime = previous.ctime if previous.ctime != current.ctime else None
        restore_mtime = previous.mtime if previous.mtime != current.mtime else None
        if restore_ctime is None and restore_mtime is None:
            continue

        actions.append(RestoreAction(
            path=path,
            restore_ctime=restore_ctime,
            restore_mtime=restore_mtime,
            observed_ctime=current.ctime,
            observed_mtime=current.mtime,
        ))

    return actions


def summarize_changes(old: Snapshot, new: Snapshot) -> ChangeSummary:
    """Count new, deleted, modified, drifted and unchanged files."""
    summary = ChangeSummary()
    for path, current in new.files.items():
        previous = old.get(path)
        if previous is None:
            summary.added += 1
        elif previous.sha != current.sha:
            summary.modified += 1
        elif previous.ctime != current.ctime or previous.mtime != current.mtime:
            summary.drifted += 1
        else:
            summary.unchanged += 1
    summary.deleted = sum(1 for path in old.files if path not in new)
    return summary
