"""Git repository loader: shallow clone, then copy documentation into the mirror."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import re
import shutil
import subprocess
import tempfile
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Literal

from docmirror.config import SourceConfig, SourceType
from docmirror.content.base import ContentLoader, LoadResult
from docmirror.content.file_filter import is_documentation_file
from docmirror.content.identity import git_content_id, hash_files
from docmirror.errors import DocmirrorError, ErrorKind

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = "main"
FALLBACK_BRANCH = "master"
CLONE_TIMEOUT_S = 120
LS_REMOTE_TIMEOUT_S = 30

_GIT_URL_PATTERNS = (
    re.compile(r"^https://github\.com/[\w\-.]+/[\w\-.]+(?:\.git)?$"),
    re.compile(r"^https://gitlab\.com/[\w\-./]+(?:\.git)?$"),
    re.compile(r"^https://[\w\-.]+/[\w\-./]+\.git$"),
    re.compile(r"^git@[\w\-.]+:[\w\-./]+\.git$"),
    re.compile(r"^file://\S+$"),
    re.compile(r"^\.{0,2}/\S*\.git$"),
)


def is_valid_git_url(url: str) -> bool:
    """Return True if *url* looks like a clonable git remote."""
    return any(pattern.match(url) for pattern in _GIT_URL_PATTERNS)


def _authenticated_url(url: str, token: str | None) -> str:
    if token and url.startswith("https://"):
        return url.replace("https://", f"https://{token}@", 1)
    return url


def _redact(text: str, token: str | None) -> str:
    return text.replace(token, "***") if token else text


def _run_git(args: list[str], *, timeout: int) -> str:
    env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
    proc = subprocess.run(  # noqa: S603
        ["git", *args],  # noqa: S607
        capture_output=True,
        text=True,
        timeout=timeout,
        env=env,
        check=True,
    )
    return proc.stdout


def _link_conflict(link: Path, target_path: Path, rel: str) -> DocmirrorError:
    msg = f"Refusing to write {rel}: {link} is a symlink inside the mirror"
    return DocmirrorError(
        ErrorKind.PATH_INVALID,
        msg,
        {"conflict": link, "target_path": target_path, "file": rel},
    )


def _copy_file(src: Path, target_path: Path, rel: str) -> None:
    """Copy *src* to ``target_path / rel`` without writing through a symlink.

    Every component below *target_path* is checked before it is used, so a
    link placed in the mirror by another source is never followed.
    """
    parts = PurePosixPath(rel).parts
    dst = target_path
    for part in parts[:-1]:
        dst = dst / part
        if dst.is_symlink():
            raise _link_conflict(dst, target_path, rel)
        dst.mkdir(exist_ok=True)
    dst = dst / parts[-1]
    if dst.is_symlink():
        raise _link_conflict(dst, target_path, rel)
    shutil.copyfile(src, dst)


def _iter_repo_files(root: Path) -> list[Path]:
    """Regular files under *root*, skipping ``.git`` and symlinks, sorted."""
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d != ".git")
        base = Path(dirpath)
        for name in sorted(filenames):
            path = base / name
            if path.is_symlink() or not path.is_file():
                continue
            found.append(path)
    return found


def _select_files(clone_dir: Path, paths: Sequence[str]) -> Iterator[tuple[Path, str]]:
    """Yield ``(file, repo-relative path)`` pairs to extract from *clone_dir*.

    Without configured *paths* every documentation file is selected.
    """
    root = clone_dir.resolve()
    if not paths:
        for file in _iter_repo_files(clone_dir):
            rel = file.relative_to(clone_dir).as_posix()
            if is_documentation_file(rel):
                yield file, rel
        return

    for rel_path in paths:
        src = (clone_dir / rel_path).resolve()
        if src != root and root not in src.parents:
            logger.warning("Skipping %s: outside the repository", rel_path)
            continue
        if src.is_dir():
            for file in _iter_repo_files(src):
                yield file, file.relative_to(root).as_posix()
        elif src.is_file():
            yield src, src.relative_to(root).as_posix()
        else:
            logger.warning("Could not extract %s: not found in repository", rel_path)


class GitRepoLoader(ContentLoader):
    """Loads documentation from GitHub, GitLab or any reachable git remote."""

    source_type = SourceType.GIT_REPO

    def validate_config(self, source: SourceConfig) -> Literal[True] | str:
        if not source.url:
            return "Git repository URL is required"
        if not is_valid_git_url(source.url):
            return f"Invalid Git repository URL: {source.url}"
        return True

    async def load(self, source: SourceConfig, target_path: Path) -> LoadResult:
        try:
            return await asyncio.to_thread(self._load_sync, source, target_path)
        except DocmirrorError as exc:
            logger.warning("Git load failed for %s: %s", source.url, exc)
            return LoadResult.failed(exc.to_failure())

    async def get_content_id(self, source: SourceConfig) -> str:
        commit = await asyncio.to_thread(self._remote_commit, source)
        return git_content_id(source.url or "", commit, source.paths)

    # -- internals -------------------------------------------------------

    def _load_sync(self, source: SourceConfig, target_path: Path) -> LoadResult:
        with tempfile.TemporaryDirectory(prefix="docmirror-git-") as tmp:
            clone_dir = Path(tmp) / "repo"
            self._clone(source, clone_dir, target_path)
            files = self._extract(clone_dir, target_path, source.paths)
        content_hash = hash_files(target_path, files)
        logger.info("Extracted %d file(s) from %s into %s", len(files), source.url, target_path)
        return LoadResult(success=True, files=files, content_hash=content_hash)

    def _clone(self, source: SourceConfig, clone_dir: Path, target_path: Path) -> None:
        url = source.url or ""
        branches = [source.branch] if source.branch else [DEFAULT_BRANCH, FALLBACK_BRANCH]
        auth_url = _authenticated_url(url, source.token)

        last_error = ""
        for branch in branches:
            try:
                _run_git(
                    ["clone", "--depth", "1", "--branch", branch, auth_url, str(clone_dir)],
                    timeout=CLONE_TIMEOUT_S,
                )
            except subprocess.CalledProcessError as exc:
                last_error = _redact((exc.stderr or "").strip() or str(exc), source.token)
                logger.debug("Clone of %s at %s failed: %s", url, branch, last_error)
                shutil.rmtree(clone_dir, ignore_errors=True)
                continue
            except (subprocess.TimeoutExpired, OSError) as exc:
                last_error = _redact(str(exc), source.token)
                break
            logger.debug("Cloned %s at %s", url, branch)
            return

        msg = f"Failed to clone repository {url}: {last_error}"
        raise DocmirrorError(
            ErrorKind.FETCH_FAILED,
            msg,
            {"url": url, "branches": branches, "target_path": target_path},
        )

    def _extract(
        self,
        clone_dir: Path,
        target_path: Path,
        paths: Sequence[str],
    ) -> list[str]:
        """Copy configured *paths*, or every documentation file, into *target_path*.

        If a file would have to be written through a symlink already in the
        mirror, the files copied so far are removed and the error propagates.
        """
        target_path.mkdir(parents=True, exist_ok=True)
        extracted: list[str] = []
        try:
            for src, rel in _select_files(clone_dir, paths):
                extracted.extend(self._copy_one(src, target_path, rel))
        except DocmirrorError:
            for rel in extracted:
                with contextlib.suppress(OSError):
                    (target_path / rel).unlink()
            raise
        return sorted(set(extracted))

    @staticmethod
    def _copy_one(src: Path, target_path: Path, rel: str) -> list[str]:
        try:
            _copy_file(src, target_path, rel)
        except OSError as exc:
            logger.warning("Could not copy %s: %s", rel, exc)
            return []
        return [rel]

    @staticmethod
    def _remote_commit(source: SourceConfig) -> str | None:
        """Return the remote head commit for the configured branch, or None."""
        if not source.url:
            return None
        ref = source.branch or "HEAD"
        try:
            output = _run_git(
                ["ls-remote", _authenticated_url(source.url, source.token), ref],
                timeout=LS_REMOTE_TIMEOUT_S,
            )
        except (subprocess.SubprocessError, OSError) as exc:
            logger.debug("ls-remote failed for %s: %s", source.url, _redact(str(exc), source.token))
            return None
        first = output.strip().splitlines()
        if not first:
            return None
        return first[0].split("\t", 1)[0] or None
