"""Constants for mark-files."""

PROGRAM_NAME = "mark-files"
PROGRAM_VERSION = "1.0.0"

# Optional per-directory configuration and ignore files (inside the scanned root)
CONFIG_FILE = ".mark-files.yaml"
IGNORE_FILE = ".mark-files-ignore"

# Name of the cross-process lock guarding a whole run
DEFAULT_LOCK_NAME = "MarkFiles"
DEFAULT_LOCK_TIMEOUT = 300.0

# Hashing
DEFAULT_CHUNK_SIZE = 8192
