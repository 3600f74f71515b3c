"""Core data models for mark-files.

A run produces a fresh snapshot of ``FileRecord``s, compares it against the
snapshot saved by the previous run, and restores the timestamps of files
whose content did not change:

1. Scan: hash + stat every file (``ScanResult``)
2. Reconcile: decide which timestamps drifted (``RestoreAction``)
3. Restore: reset those timestamps on disk (``RestoreReport``)

Everything here is plain data; the algorithms live in ``scanner``,
``reconcile`` and ``restore``.
"""

from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============= File Identity =============

class FileRecord(BaseModel):
    """Content hash and timestamps of one file at scan time."""

    model_config = ConfigDict(frozen=True)

    sha: str = Field(min_length=1)  # hex digest
    ctime: int = Field(ge=0)  # epoch seconds
    mtime: int = Field(ge=0)  # epoch seconds


# ============= Scan Results =============

class ScanFailure(BaseModel):
    """A file that could not be hashed or stat'ed."""

    path: str
    error: str


class ScanResult(BaseModel):
    """Records and per-file failures produced by the worker pool."""

    files: Dict[str, FileRecord] = Field(default_factory=dict)
    failures: List[ScanFailure] = Field(default_factory=list)
    workers: int = 0


# ============= Reconciliation =============

class RestoreAction(BaseModel):
    """Timestamps to reset for one file whose content is unchanged.

    ``None`` means leave that field alone.
    """

    path: str
    restore_ctime: Optional[int] = None
    restore_mtime: Optional[int] = None
    observed_ctime: int
    observed_mtime: int

    @property
    def fields(self) -> List[str]:
        """Names of the fields this action restores."""
        names = []
        if self.restore_ctime is not None:
            names.append("ctime")
        if self.restore_mtime is not None:
            names.append("mtime")
        return names


class ChangeSummary(BaseModel):
    """Counts of how the new snapshot relates to the old one."""

    added: int = 0
    deleted: int = 0
    modified: int = 0
    drifted: int = 0
    unchanged: int = 0

    def summary(self) -> str:
        """Get human-readable summary."""
        parts = [f"{self.unchanged} unchanged"]
        if self.drifted:
            parts.append(f"{self.drifted} with drifted dates")
        if self.modified:
            parts.append(f"{self.modified} modified")
        if self.added:
            parts.append(f"{self.added} new")
        if self.deleted:
            parts.append(f"{self.deleted} deleted")
        return ", ".join(parts)


# ============= Restore Results =============

class RestoreFailure(BaseModel):
    """A restore action that could not be applied."""

    path: str
    error: str


class RestoreReport(BaseModel):
    """Outcome of applying restore actions."""

    restored: List[RestoreAction] = Field(default_factory=list)
    failures: List[RestoreFailure] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


# ============= Run Report =============

class RunReport(BaseModel):
    """Everything a completed run did, for display."""

    source: Path
    output: Path
    scanned: int = 0
    scan_failures: List[ScanFailure] = Field(default_factory=list)
    restore: Optional[RestoreReport] = None
    changes: Optional[ChangeSummary] = None

    @property
    def has_warnings(self) -> bool:
        """Check if any per-file problem was absorbed during the run."""
        return bool(self.scan_failures or (self.restore and self.restore.failures))
