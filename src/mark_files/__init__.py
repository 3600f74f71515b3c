"""mark-files - snapshot file identity and restore drifted timestamps."""

from .constants import PROGRAM_VERSION as __version__

__all__ = ["__version__"]
