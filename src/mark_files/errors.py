"""Custom exceptions for mark-files.

Fatal conditions are exceptions that abort the run. Per-file problems during
a scan or a restore are collected as result records instead (see
``ScanFailure`` and ``RestoreFailure`` in ``core``).
"""

from pathlib import Path


class MarkFilesError(RuntimeError):
    """Base class for all mark-files errors."""
    pass


class EnumerationError(MarkFilesError):
    """Source directory cannot be listed."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot enumerate directory \"{path}\": {reason}")


class EmptyScanError(MarkFilesError):
    """Scan produced no records, so there is nothing safe to persist."""

    def __init__(self, path: Path, failed: int = 0):
        self.path = path
        self.failed = failed
        detail = f" ({failed} files could not be read)" if failed else ""
        super().__init__(
            f"No files found in \"{path}\"{detail}. "
            f"Refusing to write an empty snapshot over the existing baseline."
        )


# Snapshot file errors
class SnapshotError(MarkFilesError):
    """Base class for snapshot file errors."""
    pass


class SnapshotFormatError(SnapshotError):
    """Snapshot file is not a readable snapshot as a whole."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid snapshot file \"{path}\": {reason}")


class PersistError(SnapshotError):
    """Snapshot file could not be written."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Can't write snapshot file \"{path}\": {reason}")


# Lock errors
class LockTimeoutError(MarkFilesError):
    """Another instance held the run lock for too long."""

    def __init__(self, name: str, timeout: float):
        self.name = name
        self.timeout = timeout
        super().__init__(
            f"Another mark-files run holds lock '{name}' "
            f"(gave up after {timeout:g}s)"
        )


# Timestamp errors
class UnsupportedTimestampError(MarkFilesError):
    """The platform cannot set the requested timestamp field."""

    def __init__(self, field: str, platform: str):
        self.field = field
        self.platform = platform
        super().__init__(f"Setting {field} is not supported on {platform}")
