"""Run configuration helpers."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
import logging

import yaml

from .constants import CONFIG_FILE, DEFAULT_CHUNK_SIZE, DEFAULT_LOCK_NAME, DEFAULT_LOCK_TIMEOUT

logger = logging.getLogger(__name__)


@dataclass
class RunConfig:
    """Settings for a run; every field has a working default."""

    workers: Optional[int] = None  # None: one per CPU
    chunk_size: int = DEFAULT_CHUNK_SIZE
    ignore: List[str] = field(default_factory=list)
    include_hidden: bool = False
    lock_name: str = DEFAULT_LOCK_NAME
    lock_timeout: float = DEFAULT_LOCK_TIMEOUT


def load_run_config(root: Path, config_path: Optional[Path] = None) -> RunConfig:
    """Load configuration from ``config_path`` or ``<root>/.mark-files.yaml``.

    A missing file gives the defaults. An unreadable file, or a value of the
    wrong type, falls back to the defaults with a warning.
    """
    cfg_path = config_path or root / CONFIG_FILE
    if not cfg_path.exists():
        return RunConfig()

    try:
        data = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring config %s: %s", cfg_path, e)
        return RunConfig()

    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: expected a mapping", cfg_path)
        return RunConfig()

    defaults = RunConfig()
    ignore = data.get("ignore", [])
    if isinstance(ignore, str):
        ignore = [ignore]

    try:
        workers = data.get("workers", defaults.workers)
        config = RunConfig(
            workers=int(workers) if workers is not None else None,
            chunk_size=int(data.get("chunk_size", defaults.chunk_size)),
            ignore=[str(p) for p in ignore],
            include_hidden=bool(data.get("include_hidden", defaults.include_hidden)),
            lock_name=str(data.get("lock_name", defaults.lock_name)),
            lock_timeout=float(data.get("lock_timeout", defaults.lock_timeout)),
        )
    except (TypeError, ValueError) as e:
        logger.warning("Ignoring config %s: %s", cfg_path, e)
        return RunConfig()

    if config.workers is not None and config.workers < 1:
        logger.warning("Ignoring workers=%d in %s", config.workers, cfg_path)
        config.workers = None
    if config.chunk_size < 1:
        logger.warning("Ignoring chunk_size=%d in %s", config.chunk_size, cfg_path)
        config.chunk_size = DEFAULT_CHUNK_SIZE
    return config
