"""Hash/stat provider: the identity of one file at scan time."""

from pathlib import Path
import hashlib

from .constants import DEFAULT_CHUNK_SIZE
from .core import FileRecord
from .timestamps import read_timestamps


def compute_file_digest(path: Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Compute SHA256 hash of file contents.

    Args:
        path: Path to file to hash
        chunk_size: Bytes read per iteration

    Returns:
        64-character hex digest
    """
    sha256 = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            sha256.update(chunk)
    return sha256.hexdigest()


def stat_and_hash(path: Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> FileRecord:
    """Stat and hash a file.

    Timestamps are read before the content so a write racing the scan shows
    up as a hash change on the next run rather than being masked.

    Raises:
        OSError: If the file cannot be stat'ed or read
        ValueError: If a timestamp is before the epoch
    """
    ctime, mtime = read_timestamps(path)
    if ctime < 0 or mtime < 0:
        raise ValueError(f"Timestamp before 1970 on {path} (ctime={ctime}, mtime={mtime})")
    return FileRecord(sha=compute_file_digest(path, chunk_size), ctime=ctime, mtime=mtime)
