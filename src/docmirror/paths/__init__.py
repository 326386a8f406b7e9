"""Mirror directory primitives: symlink materialization and safe cleanup."""

from docmirror.paths.cleanup import (
    DirectoryInfo,
    contains_symlinks,
    get_directory_info,
    safely_clear_directory,
)
from docmirror.paths.symlinks import (
    create_symlinks,
    remove_symlinks,
    resolve_source_path,
    symlink_name,
    validate_symlinks,
)

__all__ = [
    "DirectoryInfo",
    "contains_symlinks",
    "create_symlinks",
    "get_directory_info",
    "remove_symlinks",
    "resolve_source_path",
    "safely_clear_directory",
    "symlink_name",
    "validate_symlinks",
]
