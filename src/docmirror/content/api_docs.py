"""API documentation loader (not implemented yet).

Routing and validation work normally so that configs can be checked before
the unsupported operation is reached.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from docmirror.config import SourceConfig, SourceType
from docmirror.content.base import ContentLoader, LoadResult
from docmirror.errors import DocmirrorError, ErrorKind

if TYPE_CHECKING:
    from pathlib import Path


class ApiDocumentationLoader(ContentLoader):
    source_type = SourceType.API_DOCUMENTATION

    def validate_config(self, source: SourceConfig) -> Literal[True] | str:
        if not source.url:
            return "API documentation URL is required"
        return True

    async def load(self, source: SourceConfig, target_path: Path) -> LoadResult:
        msg = (
            "API documentation loading is not yet implemented. "
            "Use git_repo type for repositories with API documentation."
        )
        raise DocmirrorError(
            ErrorKind.NOT_IMPLEMENTED,
            msg,
            {"url": source.url, "target_path": target_path},
        )

    async def get_content_id(self, source: SourceConfig) -> str:
        msg = "API documentation content ID generation is not yet implemented."
        raise DocmirrorError(ErrorKind.NOT_IMPLEMENTED, msg, {"url": source.url})
