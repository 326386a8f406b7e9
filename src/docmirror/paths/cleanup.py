"""Safe directory cleanup for docset mirrors.

Mirrors of local_folder sources hold symlinks into the user's own files.
Clearing a mirror must remove those links without ever following them, so
the original content survives. Removal here is an explicit walk that
inspects every entry with ``follow_symlinks=False`` before deciding how to
remove it.
"""

from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path

from docmirror.errors import DocmirrorError, ErrorKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirectoryInfo:
    """Counts of the immediate children of a directory."""

    files: int = 0
    directories: int = 0
    symlinks: int = 0
    total: int = 0


def _remove_tree(path: Path) -> None:
    """Remove the real directory *path* and its contents, unlinking links."""
    with os.scandir(path) as it:
        entries = list(it)

    for entry in entries:
        try:
            if entry.is_symlink():
                os.unlink(entry.path)
            elif entry.is_dir(follow_symlinks=False):
                _remove_tree(Path(entry.path))
            else:
                os.unlink(entry.path)
        except FileNotFoundError:
            continue

    try:
        path.rmdir()
    except FileNotFoundError:
        pass


def safely_clear_directory(dir_path: Path) -> None:
    """Remove *dir_path* and everything inside it without following symlinks.

    A missing directory is already clear. If *dir_path* is itself a symlink,
    only the link is removed.

    Raises
    ------
    DocmirrorError
        ``PATH_INVALID`` if *dir_path* exists but is not a directory.
    OSError
        Any other filesystem failure, unmodified.
    """
    try:
        st = dir_path.lstat()
    except FileNotFoundError:
        return

    if stat.S_ISLNK(st.st_mode):
        if not dir_path.is_dir():
            msg = f"Path is not a directory: {dir_path}"
            raise DocmirrorError(ErrorKind.PATH_INVALID, msg, {"dir_path": dir_path})
        logger.info("Mirror %s is a symlink; removing the link only", dir_path)
        dir_path.unlink()
        return

    if not stat.S_ISDIR(st.st_mode):
        msg = f"Path is not a directory: {dir_path}"
        raise DocmirrorError(ErrorKind.PATH_INVALID, msg, {"dir_path": dir_path})

    info = get_directory_info(dir_path)
    logger.debug(
        "Clearing %s (%d files, %d directories, %d symlinks)",
        dir_path,
        info.files,
        info.directories,
        info.symlinks,
    )
    try:
        _remove_tree(dir_path)
    except FileNotFoundError:
        return


def contains_symlinks(dir_path: Path) -> bool:
    """Return True if any immediate child of *dir_path* is a symlink."""
    try:
        with os.scandir(dir_path) as it:
            return any(entry.is_symlink() for entry in it)
    except FileNotFoundError:
        return False


def get_directory_info(dir_path: Path) -> DirectoryInfo:
    """Classify the immediate children of *dir_path* without following links.

    Entries that are neither files, directories nor links (sockets, FIFOs)
    only count towards ``total``.
    """
    files = directories = symlinks = total = 0
    try:
        with os.scandir(dir_path) as it:
            for entry in it:
                total += 1
                if entry.is_symlink():
                    symlinks += 1
                elif entry.is_dir(follow_symlinks=False):
                    directories += 1
                elif entry.is_file(follow_symlinks=False):
                    files += 1
    except FileNotFoundError:
        return DirectoryInfo()
    return DirectoryInfo(files=files, directories=directories, symlinks=symlinks, total=total)
