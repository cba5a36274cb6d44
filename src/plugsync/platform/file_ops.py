"""
Filesystem helpers for plugin folders.
"""

from __future__ import annotations

import os
import stat
from pathlib import Path

from plugsync.core.errors import FilesystemError
from plugsync.core.logging import get_logger

logger = get_logger(__name__)

# Git marks pack and object files read-only; make entries removable first.
_WRITABLE_FILE = stat.S_IREAD | stat.S_IWRITE
_WRITABLE_DIR = stat.S_IRWXU


def clear_readonly(path: Path, is_dir: bool = False) -> None:
    os.chmod(path, _WRITABLE_DIR if is_dir else _WRITABLE_FILE)


def path_present(path: Path) -> bool:
    """True for existing entries and for symlinks, dangling or not."""
    return path.is_symlink() or path.exists()


def list_subdirectories(root: Path) -> list[Path]:
    """
    Immediate subdirectories of ``root``, including symlinks to
    directories; empty when ``root`` does not exist.
    """
    if not root.is_dir():
        return []
    return sorted(
        (Path(entry.path) for entry in os.scandir(root) if entry.is_dir()),
        key=lambda p: p.name.casefold(),
    )


def remove_tree(path: Path) -> None:
    """
    Recursively delete ``path``.

    The directory is made writable, its files are made writable and
    deleted, each subdirectory is removed the same way, and the empty
    directory goes last. Symlinks are unlinked and never followed, including
    when ``path`` itself is one.
    """
    try:
        if path.is_symlink():
            path.unlink()
            logger.debug("Removed symlink", path=str(path))
            return
        _remove_tree(path)
    except OSError as e:
        logger.error("Failed to remove directory", path=str(path), error=str(e))
        raise FilesystemError(f"Could not remove {path}: {e}") from e
    logger.debug("Removed directory", path=str(path))


def _remove_tree(path: Path) -> None:
    clear_readonly(path, is_dir=True)

    files: list[Path] = []
    dirs: list[Path] = []
    with os.scandir(path) as entries:
        for entry in entries:
            if entry.is_dir(follow_symlinks=False):
                dirs.append(Path(entry.path))
            else:
                files.append(Path(entry.path))

    for file in files:
        if not file.is_symlink():
            clear_readonly(file)
        file.unlink()

    for directory in dirs:
        _remove_tree(directory)

    path.rmdir()
