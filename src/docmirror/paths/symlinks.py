"""Symlink materialization for local_folder sources.

Each source path is represented inside the docset mirror by a symlink named
after the path's final segment and pointing at its absolute location.
"""

from __future__ import annotations

import contextlib
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from docmirror.errors import DocmirrorError, ErrorKind

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


def resolve_source_path(source_path: str, project_root: Path) -> Path:
    """Resolve *source_path* to an absolute path.

    Relative paths are resolved against *project_root*; absolute paths are
    used verbatim (normalized, never dereferenced).
    """
    path = Path(source_path)
    if path.is_absolute():
        return Path(os.path.normpath(path))
    return Path(os.path.normpath(project_root / path))


def symlink_name(source_path: str, resolved: Path) -> str:
    """Return the link name for *source_path*: its final path segment.

    Paths without a usable final segment (``"."``, ``"/"``) fall back to the
    resolved directory name.
    """
    name = Path(source_path).name
    if name in ("", ".", ".."):
        name = resolved.name
    return name or "unknown"


def _rollback(created: Sequence[tuple[Path, str | None]]) -> None:
    """Undo links made by a failed batch, restoring any link they replaced."""
    for link_path, previous in reversed(created):
        with contextlib.suppress(OSError):
            link_path.unlink()
        if previous is not None:
            with contextlib.suppress(OSError):
                os.symlink(previous, link_path)


def create_symlinks(
    source_paths: Sequence[str],
    target_dir: Path,
    project_root: Path,
) -> list[Path]:
    """Create one symlink per source path inside *target_dir*.

    The batch is all-or-nothing: every source is checked before any link is
    written, and if a later link fails the links made by this call are
    removed and any links they replaced are restored. Re-running with the
    same arguments replaces existing links in place.

    Returns the created link paths in input order.

    Raises
    ------
    DocmirrorError
        ``PATH_INVALID`` if a source path does not exist or two sources map
        to the same link name, ``IO_FAILURE`` if a link cannot be created
        (e.g. a real file occupies its name).
    """
    context = {
        "source_paths": list(source_paths),
        "target_dir": target_dir,
        "project_root": project_root,
    }

    planned: list[tuple[Path, Path]] = []
    claimed: dict[str, str] = {}
    for source_path in source_paths:
        resolved = resolve_source_path(source_path, project_root)
        if not resolved.exists():
            msg = f"Failed to create symlinks: source path does not exist: {resolved}"
            raise DocmirrorError(
                ErrorKind.PATH_INVALID,
                msg,
                {**context, "cause": FileNotFoundError(str(resolved))},
            )
        name = symlink_name(source_path, resolved)
        if name in claimed:
            msg = (
                f"Failed to create symlinks: {claimed[name]!r} and {source_path!r} "
                f"both map to link name {name!r}"
            )
            raise DocmirrorError(ErrorKind.PATH_INVALID, msg, {**context, "link_name": name})
        claimed[name] = source_path
        planned.append((resolved, target_dir / name))

    try:
        target_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        msg = f"Failed to create symlink directory {target_dir}: {exc}"
        raise DocmirrorError(ErrorKind.IO_FAILURE, msg, {**context, "cause": exc}) from exc

    # (link, target it replaced or None)
    created: list[tuple[Path, str | None]] = []
    for resolved, link_path in planned:
        previous: str | None = None
        if link_path.is_symlink():
            with contextlib.suppress(OSError):
                previous = os.readlink(link_path)
                link_path.unlink()
        try:
            os.symlink(resolved, link_path, target_is_directory=resolved.is_dir())
        except OSError as exc:
            _rollback(created)
            if previous is not None:
                with contextlib.suppress(OSError):
                    os.symlink(previous, link_path)
            msg = f"Failed to create symlink {link_path} -> {resolved}: {exc}"
            raise DocmirrorError(ErrorKind.IO_FAILURE, msg, {**context, "cause": exc}) from exc
        logger.debug("Linked %s -> %s", link_path, resolved)
        created.append((link_path, previous))

    return [link_path for link_path, _ in created]


def validate_symlinks(target_dir: Path) -> bool:
    """Return True if every symlink directly inside *target_dir* resolves.

    Non-link entries are ignored. A missing or unreadable directory counts
    as invalid.
    """
    try:
        with os.scandir(target_dir) as it:
            for entry in it:
                if entry.is_symlink() and not os.path.exists(entry.path):
                    logger.debug("Broken symlink: %s", entry.path)
                    return False
    except OSError:
        return False
    return True


def remove_symlinks(target_dir: Path) -> None:
    """Unlink every symlink directly inside *target_dir*.

    Regular files and directories are left alone; a missing directory is a
    no-op.
    """
    try:
        with os.scandir(target_dir) as it:
            links = [Path(entry.path) for entry in it if entry.is_symlink()]
    except FileNotFoundError:
        return

    for link in links:
        try:
            link.unlink()
        except FileNotFoundError:
            continue
        logger.debug("Removed symlink %s", link)
