"""Applying restore actions to files on disk."""

from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple
import logging

from .core import RestoreAction, RestoreFailure, RestoreReport
from .errors import UnsupportedTimestampError
from .scanner import ProgressCallback
from .snapshot import Snapshot
from .timestamps import set_timestamps

logger = logging.getLogger(__name__)

TimestampSetter = Callable[..., None]


def _restore_fields(
    action: RestoreAction, path: Path, setter: TimestampSetter
) -> Tuple[Dict[str, int], Optional[Exception]]:
    """Apply each flagged field on its own.

    Returns the fields that applied and the first error, if any.
    """
    wanted = {"mtime": action.restore_mtime, "ctime": action.restore_ctime}
    applied: Dict[str, int] = {}
    error: Optional[Exception] = None
    for field, value in wanted.items():
        if value is None:
            continue
        try:
            setter(path, **{field: value})
        except (OSError, UnsupportedTimestampError) as e:
            error = error or e
            continue
        applied[field] = value
    return applied, error


def apply_restore_actions(
    actions: List[RestoreAction],
    snapshot: Snapshot,
    root: Path,
    setter: TimestampSetter = set_timestamps,
    progress: Optional[ProgressCallback] = None,
) -> RestoreReport:
    """Reset drifted timestamps and bring the snapshot in line.

    Only the flagged fields are passed to ``setter``, one call per field;
    the field not passed is left unchanged. A failure is logged and
    collected, and the remaining actions still run. Every field that did
    apply is written back into ``snapshot`` so the persisted snapshot shows
    the post-restore values.

    Args:
        actions: Output of ``compute_restore_actions``
        snapshot: Fresh snapshot, updated in place
        root: Directory the identifiers are relative to
        setter: ``setter(path, ctime=None, mtime=None)`` timestamp primitive
        progress: Optional progress callback

    Returns:
        RestoreReport listing applied actions and failures
    """
    report = RestoreReport()
    if progress:
        progress.on_start(len(actions))

    for action in actions:
        applied, error = _restore_fields(action, root / action.path, setter)

        record = snapshot.get(action.path)
        if applied and record is not None:
            snapshot.replace(action.path, record.model_copy(update=applied))

        if applied:
            report.restored.append(action.model_copy(update={
                "restore_ctime": applied.get("ctime"),
                "restore_mtime": applied.get("mtime"),
            }))
            logger.info("Restored %s of %s", "/".join(sorted(applied)), action.path)

        if error is not None:
            logger.warning("Could not restore %s: %s", action.path, error)
            report.failures.append(RestoreFailure(path=action.path, error=str(error)))
            if progress:
                progress.on_file_error(action.path, str(error))
        elif progress:
            progress.on_file_complete(action.path)

    return report
