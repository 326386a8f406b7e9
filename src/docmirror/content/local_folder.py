"""Local folder loader: materializes folders as symlinks into the mirror."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Literal

from docmirror.config import SourceConfig, SourceType
from docmirror.content.base import ContentLoader, LoadResult
from docmirror.content.identity import local_folder_content_id
from docmirror.paths.symlinks import create_symlinks, resolve_source_path

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


class LocalFolderLoader(ContentLoader):
    """Links each configured path into the mirror; never copies user data."""

    source_type = SourceType.LOCAL_FOLDER
    materializes_links = True

    def __init__(self, project_root: Path) -> None:
        self.project_root = project_root

    def validate_config(self, source: SourceConfig) -> Literal[True] | str:
        if not source.paths:
            return "Local folder source requires at least one path"
        for raw in source.paths:
            if not raw.strip():
                return "Local folder paths must not be empty"
            resolved = resolve_source_path(raw, self.project_root)
            if not resolved.exists():
                return f"Local folder path does not exist: {resolved}"
        return True

    async def load(self, source: SourceConfig, target_path: Path) -> LoadResult:
        links = await asyncio.to_thread(
            create_symlinks, source.paths, target_path, self.project_root
        )
        content_hash = await self.get_content_id(source)
        logger.info("Linked %d local path(s) into %s", len(links), target_path)
        return LoadResult(
            success=True,
            files=[str(link) for link in links],
            content_hash=content_hash,
        )

    async def get_content_id(self, source: SourceConfig) -> str:
        return await asyncio.to_thread(
            local_folder_content_id, source.paths, self.project_root
        )
