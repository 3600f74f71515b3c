"""Reading and setting file creation/modification times.

``ctime`` means creation time wherever the platform exposes one
(``st_birthtime`` on macOS/BSD and recent Windows builds, ``st_ctime`` on
older Windows). Linux only reports the inode change time, which is used as
is and cannot be set.
"""

from pathlib import Path
from typing import Optional, Tuple
import logging
import os
import sys

from .errors import UnsupportedTimestampError

logger = logging.getLogger(__name__)

# 100ns intervals between 1601-01-01 (FILETIME epoch) and 1970-01-01
_FILETIME_EPOCH_OFFSET = 116444736000000000


def read_timestamps(path: Path) -> Tuple[int, int]:
    """Return ``(ctime, mtime)`` in whole epoch seconds."""
    st = os.stat(path)
    created = getattr(st, "st_birthtime", None)
    if created is None:
        created = st.st_ctime
    return int(created), int(st.st_mtime)


def set_timestamps(path: Path, ctime: Optional[int] = None, mtime: Optional[int] = None) -> None:
    """Set the creation and/or modification time of a file.

    ``None`` leaves a field untouched; ``0`` is a real value (the epoch).

    Raises:
        OSError: If the file cannot be updated
        UnsupportedTimestampError: If ``ctime`` is requested on a platform
            that cannot set creation times (after ``mtime`` was applied)
    """
    if mtime is not None:
        # Keep the access time as it is
        st = os.stat(path)
        os.utime(path, ns=(st.st_atime_ns, mtime * 1_000_000_000))
        logger.debug("Set mtime of %s to %d", path, mtime)

    if ctime is not None:
        if sys.platform != "win32":
            raise UnsupportedTimestampError("ctime", sys.platform)
        _set_creation_time_windows(path, ctime)
        logger.debug("Set ctime of %s to %d", path, ctime)


def _set_creation_time_windows(path: Path, ctime: int) -> None:
    """Set the creation time through ``SetFileTime``."""
    import ctypes
    from ctypes import wintypes

    FILE_WRITE_ATTRIBUTES = 0x100
    FILE_SHARE_READ = 0x00000001
    FILE_SHARE_WRITE = 0x00000002
    OPEN_EXISTING = 3
    FILE_ATTRIBUTE_NORMAL = 0x80

    class FILETIME(ctypes.Structure):
        _fields_ = [("dwLowDateTime", wintypes.DWORD), ("dwHighDateTime", wintypes.DWORD)]

    kernel32 = ctypes.WinDLL("kernel32", use_last_error=True)
    kernel32.CreateFileW.argtypes = [
        wintypes.LPCWSTR, wintypes.DWORD, wintypes.DWORD, wintypes.LPVOID,
        wintypes.DWORD, wintypes.DWORD, wintypes.HANDLE,
    ]
    kernel32.CreateFileW.restype = wintypes.HANDLE
    kernel32.SetFileTime.argtypes = [
        wintypes.HANDLE, ctypes.POINTER(FILETIME), ctypes.POINTER(FILETIME), ctypes.POINTER(FILETIME),
    ]
    kernel32.SetFileTime.restype = wintypes.BOOL
    kernel32.CloseHandle.argtypes = [wintypes.HANDLE]
    kernel32.CloseHandle.restype = wintypes.BOOL

    handle = kernel32.CreateFileW(
        str(path),
        FILE_WRITE_ATTRIBUTES,
        FILE_SHARE_READ | FILE_SHARE_WRITE,
        None,
        OPEN_EXISTING,
        FILE_ATTRIBUTE_NORMAL,
        None,
    )
    if handle == wintypes.HANDLE(-1).value:
        raise ctypes.WinError(ctypes.get_last_error())

    try:
        value = ctime * 10_000_000 + _FILETIME_EPOCH_OFFSET
        created = FILETIME(value & 0xFFFFFFFF, value >> 32)
        # NULL access/write times leave them unchanged
        if not kernel32.SetFileTime(handle, ctypes.byref(created), None, None):
            raise ctypes.WinError(ctypes.get_last_error())
    finally:
        kernel32.CloseHandle(handle)
