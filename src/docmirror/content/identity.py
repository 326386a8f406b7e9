"""Content identity: stable SHA-256 fingerprints of source state.

Two computations over unchanged source state always return the same hex
digest; any added, removed, resized or touched file changes it.
"""

from __future__ import annotations

import hashlib
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from docmirror.paths.symlinks import resolve_source_path

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)


def _tree_entries(root: Path) -> list[str]:
    """List ``relpath:size:mtime_ns`` for every file under *root*.

    Symlinked directories below *root* are recorded but not descended into.
    A plain file *root* yields a single entry.
    """
    try:
        st = root.stat()
    except FileNotFoundError:
        return ["<missing>"]

    if not root.is_dir():
        return [f".:{st.st_size}:{st.st_mtime_ns}"]

    entries: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        dirnames.sort()
        base = Path(dirpath)
        for name in sorted(filenames + [d for d in dirnames if (base / d).is_symlink()]):
            full = base / name
            rel = full.relative_to(root).as_posix()
            try:
                fst = full.lstat()
            except FileNotFoundError:
                continue
            entries.append(f"{rel}:{fst.st_size}:{fst.st_mtime_ns}")
    return entries


def local_folder_content_id(source_paths: Iterable[str], project_root: Path) -> str:
    """Fingerprint a set of local folders by resolved path and file listing."""
    digest = hashlib.sha256()
    for source_path in source_paths:
        resolved = resolve_source_path(source_path, project_root)
        digest.update(f"path:{resolved}\n".encode())
        for entry in _tree_entries(resolved):
            digest.update(f"{entry}\n".encode())
    return digest.hexdigest()


def git_content_id(url: str, commit: str | None, paths: Iterable[str]) -> str:
    """Fingerprint a git source by URL, remote commit and extracted paths.

    A ``None`` commit (remote unreachable) hashes only URL and paths, so the
    identity stays stable while offline.
    """
    path_key = ",".join(sorted(paths)) or "all"
    if commit:
        key = f"{url}:{commit}:{path_key}"
    else:
        key = f"{url}:{path_key}"
    return hashlib.sha256(key.encode()).hexdigest()


def hash_files(root: Path, files: Iterable[str]) -> str:
    """Hash file names and bytes under *root* in sorted order.

    Unreadable files are skipped with a warning.
    """
    digest = hashlib.sha256()
    for rel in sorted(files):
        try:
            content = (root / rel).read_bytes()
        except OSError as exc:
            logger.warning("Could not hash %s: %s", rel, exc)
            continue
        digest.update(rel.encode())
        digest.update(content)
    return digest.hexdigest()
