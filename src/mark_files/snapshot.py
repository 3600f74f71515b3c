"""Snapshots: identifier -> FileRecord maps, and their on-disk format.

On-disk layout (records sorted by name, keys in this order)::

    {
      "files": [
        {"name": "docs/a.txt", "sha": "...", "ctime": 100, "mtime": 200},
        ...
      ]
    }

Earlier versions of the tool wrote ``{"<path>": {"sha", "ctime", "mtime"}}``;
that layout is still accepted when loading.
"""

from collections import deque
from pathlib import Path
from typing import Any, Callable, Deque, Dict, Iterable, Iterator, List, Optional, Tuple, Union
import json
import logging
import threading

from pydantic import BaseModel, Field, ValidationError

from .core import FileRecord, ScanFailure
from .errors import PersistError, SnapshotFormatError
from .utils import atomic_write_text

logger = logging.getLogger(__name__)

_RECORD_KEYS = ("sha", "ctime", "mtime")


def normalize_identifier(path: Union[str, Path], root: Optional[Path] = None) -> str:
    """Return the stable key of a file: its root-relative POSIX path.

    The name is kept exactly as the filesystem reports it (no unicode
    folding), so ``root / identifier`` always points back at the file.

    Args:
        path: File path (absolute, or already relative to ``root``)
        root: Scanned root directory

    Raises:
        ValueError: If ``path`` is outside ``root``
    """
    p = Path(path)
    if root is not None and p.is_absolute():
        p = p.relative_to(root)
    return p.as_posix()


def _normalize_legacy_name(name: str, root: Optional[Path]) -> str:
    """Convert a legacy entry name (absolute, maybe Windows-style) to an identifier."""
    posix = name.replace("\\", "/")
    if root is not None:
        prefix = root.as_posix().replace("\\", "/").rstrip("/") + "/"
        if posix.startswith(prefix):
            posix = posix[len(prefix):]
    return posix


class Snapshot(BaseModel):
    """Complete mapping of file identifiers to records at one point in time."""

    files: Dict[str, FileRecord] = Field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.files)

    def __contains__(self, path: str) -> bool:
        return path in self.files

    def get(self, path: str) -> Optional[FileRecord]:
        return self.files.get(path)

    def replace(self, path: str, record: FileRecord) -> None:
        """Replace the record of an existing identifier."""
        if path not in self.files:
            raise KeyError(path)
        self.files[path] = record

    def sorted_items(self) -> Iterator[Tuple[str, FileRecord]]:
        """Iterate records by identifier, ascending."""
        for path in sorted(self.files):
            yield path, self.files[path]

    # ============= Serialization =============

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        """Build the on-disk structure."""
        return {
            "files": [
                {"name": path, "sha": record.sha, "ctime": record.ctime, "mtime": record.mtime}
                for path, record in self.sorted_items()
            ]
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False) + "\n"

    @classmethod
    def from_dict(cls, data: Any, root: Optional[Path] = None, source: str = "<memory>") -> "Snapshot":
        """Build a snapshot from parsed JSON, skipping malformed entries.

        Args:
            data: Parsed JSON document
            root: Scanned root, used to relativize legacy absolute names
            source: Where the data came from, for messages

        Raises:
            SnapshotFormatError: If the document is neither known layout
        """
        if isinstance(data, dict) and isinstance(data.get("files"), list):
            entries = _iter_entries(data["files"])
            legacy = False
        elif isinstance(data, dict):
            entries = _iter_legacy_entries(data)
            legacy = True
        else:
            raise SnapshotFormatError(Path(source), "expected a JSON object")

        files: Dict[str, FileRecord] = {}
        skipped = 0
        for index, name, raw in entries:
            if not isinstance(name, str) or not name:
                logger.warning("%s: skipping entry %d without a name", source, index)
                skipped += 1
                continue
            if not isinstance(raw, dict) or any(key not in raw for key in _RECORD_KEYS):
                logger.warning("%s: skipping %s (missing fields)", source, name)
                skipped += 1
                continue
            try:
                record = FileRecord.model_validate(
                    {key: raw[key] for key in _RECORD_KEYS}, strict=True
                )
            except ValidationError as e:
                logger.warning("%s: skipping %s (%s)", source, name, e.errors()[0]["msg"])
                skipped += 1
                continue

            path = _normalize_legacy_name(name, root) if legacy else name
            if path in files:
                logger.warning("%s: skipping duplicate entry for %s", source, path)
                skipped += 1
                continue
            files[path] = record

        if skipped:
            logger.warning("%s: %d malformed entries skipped", source, skipped)
        return cls(files=files)


def _iter_entries(items: List[Any]) -> Iterator[Tuple[int, Any, Any]]:
    for index, item in enumerate(items):
        name = item.get("name") if isinstance(item, dict) else None
        yield index, name, item


def _iter_legacy_entries(data: Dict[str, Any]) -> Iterator[Tuple[int, Any, Any]]:
    for index, (name, item) in enumerate(data.items()):
        yield index, name, item


# ============= File I/O =============

def load_snapshot(path: Path, root: Optional[Path] = None) -> Snapshot:
    """Load a persisted snapshot.

    A missing file yields an empty snapshot (no baseline yet).

    Raises:
        SnapshotFormatError: If the file can't be read or parsed as a whole
    """
    if not path.exists():
        logger.warning("No snapshot at %s; nothing to restore from", path)
        return Snapshot()

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SnapshotFormatError(path, str(e)) from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SnapshotFormatError(path, f"not valid JSON ({e})") from e

    snapshot = Snapshot.from_dict(data, root=root, source=str(path))
    logger.debug("Loaded %d records from %s", len(snapshot), path)
    return snapshot


def save_snapshot(snapshot: Snapshot, path: Path) -> None:
    """Write a snapshot atomically, replacing any previous file.

    Raises:
        PersistError: If the file cannot be written
    """
    try:
        atomic_write_text(path, snapshot.to_json())
    except OSError as e:
        raise PersistError(path, str(e)) from e
    logger.debug("Wrote %d records to %s", len(snapshot), path)


# ============= Concurrent Store =============

class SnapshotStore:
    """Work queue and result map shared by the scan workers.

    The pending paths, the records, the failures and the progress counter
    are all guarded by one lock. Callers hold it only to pop a path or to
    record a result, never while hashing.
    """

    def __init__(self, paths: Iterable[Path]):
        self._lock = threading.Lock()
        self._pending: Deque[Path] = deque(paths)
        self._files: Dict[str, FileRecord] = {}
        self._failures: List[ScanFailure] = []
        self.total = len(self._pending)
        self.completed = 0

    def pop(self) -> Optional[Path]:
        """Take the next path to process, or None when the queue is drained."""
        with self._lock:
            if not self._pending:
                return None
            return self._pending.popleft()

    def insert(
        self,
        path: str,
        record: FileRecord,
        on_insert: Optional[Callable[[str], None]] = None,
    ) -> None:
        """Add a record and advance progress atomically.

        Args:
            path: File identifier
            record: Computed record
            on_insert: Optional callback run under the lock after the insert

        Raises:
            KeyError: If the identifier already has a record
        """
        with self._lock:
            if path in self._files:
                raise KeyError(f"Duplicate identifier in scan: {path}")
            self._files[path] = record
            self.completed += 1
            if on_insert is not None:
                on_insert(path)

    def fail(
        self,
        path: str,
        error: str,
        on_fail: Optional[Callable[[str, str], None]] = None,
    ) -> None:
        """Record a per-file failure and advance progress atomically."""
        with self._lock:
            self._failures.append(ScanFailure(path=path, error=error))
            self.completed += 1
            if on_fail is not None:
                on_fail(path, error)

    @property
    def files(self) -> Dict[str, FileRecord]:
        with self._lock:
            return dict(self._files)

    @property
    def failures(self) -> List[ScanFailure]:
        with self._lock:
            return sorted(self._failures, key=lambda f: f.path)
