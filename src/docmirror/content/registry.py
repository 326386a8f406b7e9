"""Loader registry: route a source to its loader and enforce validate-before-load."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from docmirror.content.api_docs import ApiDocumentationLoader
from docmirror.content.base import LoadResult
from docmirror.content.git_repo import GitRepoLoader
from docmirror.content.local_folder import LocalFolderLoader
from docmirror.errors import DocmirrorError, ErrorKind, SyncFailure

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from docmirror.config import SourceConfig
    from docmirror.content.base import ContentLoader

logger = logging.getLogger(__name__)


class LoaderRegistry:
    """Ordered set of loaders; the first one whose ``can_handle`` is true wins.

    :meth:`dispatch` is the loader boundary: loader exceptions come back as
    failed :class:`LoadResult` values carrying a :class:`SyncFailure`.
    """

    def __init__(self, loaders: Sequence[ContentLoader]) -> None:
        self._loaders: tuple[ContentLoader, ...] = tuple(loaders)

    @classmethod
    def default(cls, project_root: Path) -> LoaderRegistry:
        return cls(
            [
                LocalFolderLoader(project_root),
                GitRepoLoader(),
                ApiDocumentationLoader(),
            ]
        )

    @property
    def loaders(self) -> tuple[ContentLoader, ...]:
        return self._loaders

    def loader_for(self, source: SourceConfig) -> ContentLoader | None:
        for loader in self._loaders:
            if loader.can_handle(source):
                return loader
        return None

    def require_loader(self, source: SourceConfig) -> ContentLoader:
        """Like :meth:`loader_for` but raises ``UNSUPPORTED_SOURCE_TYPE``."""
        loader = self.loader_for(source)
        if loader is None:
            msg = f"Unsupported source type: {source.type!r}"
            raise DocmirrorError(
                ErrorKind.UNSUPPORTED_SOURCE_TYPE,
                msg,
                {"source_type": source.type, "location": source.location},
            )
        return loader

    async def dispatch(self, source: SourceConfig, target_path: Path) -> LoadResult:
        """Validate *source* with its loader, then load it into *target_path*.

        ``load`` is never called for an unsupported type or a config that
        fails validation.
        """
        try:
            loader = self.require_loader(source)
        except DocmirrorError as exc:
            return LoadResult.failed(exc.to_failure())

        verdict = loader.validate_config(source)
        if verdict is not True:
            failure = SyncFailure(
                kind=ErrorKind.CONFIG_INVALID,
                message=str(verdict),
                context={"source_type": source.type, "location": source.location},
            )
            logger.warning("Invalid %s source %s: %s", source.type, source.location, verdict)
            return LoadResult.failed(failure)

        try:
            return await loader.load(source, target_path)
        except DocmirrorError as exc:
            logger.warning("Loading %s failed: %s", source.location, exc)
            return LoadResult.failed(exc.to_failure())
        except OSError as exc:
            logger.warning("I/O failure loading %s: %s", source.location, exc)
            failure = SyncFailure(
                kind=ErrorKind.IO_FAILURE,
                message=f"Failed to load {source.location}: {exc}",
                context={
                    "source_type": source.type,
                    "location": source.location,
                    "target_path": target_path,
                    "cause": exc,
                },
            )
            return LoadResult.failed(failure)
