"""Content loader contract shared by every source variant."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar, Literal

if TYPE_CHECKING:
    from pathlib import Path

    from docmirror.config import SourceConfig, SourceType
    from docmirror.errors import SyncFailure


@dataclass
class LoadResult:
    """Outcome of one ``load`` call, owned by the caller."""

    success: bool
    files: list[str] = field(default_factory=list)
    content_hash: str = ""
    error: str | None = None
    failure: SyncFailure | None = None

    @classmethod
    def failed(cls, failure: SyncFailure) -> LoadResult:
        return cls(success=False, error=failure.message, failure=failure)


class ContentLoader(abc.ABC):
    """Materializes one kind of source into a mirror directory.

    The set of variants is closed: each subclass declares the
    :class:`~docmirror.config.SourceType` it owns in ``source_type`` and
    ``can_handle`` matches on that tag alone.
    """

    source_type: ClassVar[SourceType]
    # Loaders that place symlinks in the mirror run before those that copy files.
    materializes_links: ClassVar[bool] = False

    def can_handle(self, source: SourceConfig) -> bool:
        """Return True if *source* has this loader's type tag. Never raises."""
        return source.type == self.source_type.value

    @abc.abstractmethod
    def validate_config(self, source: SourceConfig) -> Literal[True] | str:
        """Return True, or a message describing why *source* is unusable."""

    @abc.abstractmethod
    async def load(self, source: SourceConfig, target_path: Path) -> LoadResult:
        """Materialize *source* into *target_path*.

        Must be idempotent, and must leave *target_path* no worse than before
        when it fails.
        """

    @abc.abstractmethod
    async def get_content_id(self, source: SourceConfig) -> str:
        """Return the current content identity of *source*."""
