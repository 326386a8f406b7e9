"""Documentation file filter applied when extracting whole repositories."""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

_METADATA_FILE_RE = re.compile(r"^(CHANGELOG|LICENSE|CONTRIBUTING|AUTHORS|CODE_OF_CONDUCT)", re.I)
_README_RE = re.compile(r"^README", re.I)
_EXAMPLES_DIR_RE = re.compile(r"\b(examples?|samples?)\b", re.I)

EXCLUDED_DIRS: frozenset[str] = frozenset(
    {
        "node_modules",
        "vendor",
        ".git",
        "build",
        "dist",
        "target",
        ".cache",
        "__tests__",
        "test",
        "tests",
        ".github",
        ".vscode",
        ".idea",
    }
)

DOC_EXTENSIONS: frozenset[str] = frozenset({".md", ".mdx", ".rst", ".txt", ".adoc", ".asciidoc"})

# Binary artifacts excluded even inside examples/ and samples/.
BINARY_EXTENSIONS: frozenset[str] = frozenset(
    {".exe", ".bin", ".so", ".dll", ".dylib", ".a", ".o", ".obj"}
)


def is_documentation_file(relative_path: str) -> bool:
    """Return True if *relative_path* (POSIX, repo-relative) is documentation.

    README files and documentation extensions count anywhere outside the
    excluded build/dependency/test directories. Inside ``examples``/``samples``
    directories every non-binary file counts.
    """
    path = PurePosixPath(relative_path.replace("\\", "/"))
    name = path.name
    extension = path.suffix.lower()

    if _METADATA_FILE_RE.match(name):
        return False

    dir_parts = path.parts[:-1]
    if any(part in EXCLUDED_DIRS for part in dir_parts):
        return False

    if _README_RE.match(name):
        return True

    if extension in DOC_EXTENSIONS:
        return True

    if _EXAMPLES_DIR_RE.search("/".join(dir_parts)):
        return extension not in BINARY_EXTENSIONS

    return False


def filter_documentation_files(paths: Iterable[str]) -> list[str]:
    """Keep only documentation files, preserving order."""
    return [p for p in paths if is_documentation_file(p)]
