"""
Working directory helpers for the mirror worker.
"""

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)

METADATA_DIR = ".git"


def reset_directory(path: Path) -> Path:
    """Delete ``path`` entirely if it exists, then recreate it empty."""
    path = Path(path)
    if path.exists():
        logger.info(f"Removing directory {path}")
        shutil.rmtree(path)
    logger.info(f"Creating directory {path}")
    path.mkdir(parents=True)
    return path


def clear_worktree(path: Path) -> int:
    """
    Remove every file and directory under ``path`` except the git metadata
    directory at its top level.

    Returns:
        Number of files removed
    """
    removed = 0
    for entry in Path(path).iterdir():
        if entry.name == METADATA_DIR:
            continue
        if entry.is_dir() and not entry.is_symlink():
            removed += _remove_tree(entry)
        else:
            entry.unlink()
            removed += 1
    return removed


def _remove_tree(directory: Path) -> int:
    removed = 0
    for entry in directory.iterdir():
        if entry.is_dir() and not entry.is_symlink():
            removed += _remove_tree(entry)
        else:
            entry.unlink()
            removed += 1
    directory.rmdir()
    return removed
