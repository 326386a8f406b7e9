"""Content loading: loader contract, source variants, and the dispatcher."""

from docmirror.content.api_docs import ApiDocumentationLoader
from docmirror.content.base import ContentLoader, LoadResult
from docmirror.content.file_filter import filter_documentation_files, is_documentation_file
from docmirror.content.git_repo import GitRepoLoader
from docmirror.content.identity import git_content_id, hash_files, local_folder_content_id
from docmirror.content.local_folder import LocalFolderLoader
from docmirror.content.registry import LoaderRegistry

__all__ = [
    "ApiDocumentationLoader",
    "ContentLoader",
    "GitRepoLoader",
    "LoadResult",
    "LoaderRegistry",
    "LocalFolderLoader",
    "filter_documentation_files",
    "git_content_id",
    "hash_files",
    "is_documentation_file",
    "local_folder_content_id",
]
