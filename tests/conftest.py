"""Shared test fixtures for docmirror."""

from __future__ import annotations

import shutil
import subprocess
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture()
def project(tmp_path: Path) -> Path:
    """A project with two doc folders and a ``.knowledge`` directory."""
    proj = tmp_path / "proj"
    (proj / "docs" / "a").mkdir(parents=True)
    (proj / "docs" / "b").mkdir(parents=True)
    (proj / "docs" / "a" / "intro.md").write_text("# A\n")
    (proj / "docs" / "b" / "guide.md").write_text("# B\n")
    (proj / ".knowledge").mkdir()
    return proj


def _git(cwd: Path, *args: str) -> None:
    subprocess.run(
        ["git", *args],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
    )


@pytest.fixture()
def git_remote(tmp_path: Path) -> Path:
    """A local git repository on branch ``main`` with docs and code files."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    repo = tmp_path / "remote"
    repo.mkdir()
    _git(repo, "init", "-q")
    _git(repo, "checkout", "-q", "-b", "main")
    _git(repo, "config", "user.email", "docs@example.com")
    _git(repo, "config", "user.name", "Docs")
    _git(repo, "config", "commit.gpgsign", "false")

    (repo / "README.md").write_text("# Remote\n")
    (repo / "LICENSE").write_text("MIT\n")
    (repo / "docs").mkdir()
    (repo / "docs" / "usage.md").write_text("Usage\n")
    (repo / "docs" / "api.rst").write_text("API\n")
    (repo / "src").mkdir()
    (repo / "src" / "main.py").write_text("print('hi')\n")
    (repo / "tests").mkdir()
    (repo / "tests" / "notes.md").write_text("test notes\n")

    _git(repo, "add", "-A")
    _git(repo, "commit", "-q", "-m", "initial")
    return repo
