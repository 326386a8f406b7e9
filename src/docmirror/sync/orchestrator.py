"""Docset sync orchestrator: decide, clear, load, aggregate."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from docmirror.content.base import LoadResult
from docmirror.errors import DocmirrorError
from docmirror.paths.cleanup import get_directory_info, safely_clear_directory
from docmirror.paths.symlinks import validate_symlinks

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from docmirror.config import SourceConfig
    from docmirror.content.registry import LoaderRegistry

logger = logging.getLogger(__name__)


@dataclass
class SourceSyncResult:
    """Outcome for one source of a docset."""

    index: int
    source: SourceConfig
    result: LoadResult
    content_id: str | None = None


@dataclass
class DocsetSyncResult:
    """Aggregate outcome of syncing one docset."""

    docset_id: str
    mirror_dir: Path
    sources: list[SourceSyncResult] = field(default_factory=list)
    skipped: bool = False
    forced: bool = False

    @property
    def success(self) -> bool:
        return self.skipped or all(s.result.success for s in self.sources)

    @property
    def failures(self) -> list[SourceSyncResult]:
        return [s for s in self.sources if not s.result.success]

    @property
    def files(self) -> list[str]:
        return [f for s in self.sources for f in s.result.files]


def is_materialized(mirror_dir: Path) -> bool:
    """True if *mirror_dir* exists, has entries, and all its links resolve."""
    if not mirror_dir.is_dir():
        return False
    if get_directory_info(mirror_dir).total == 0:
        return False
    return validate_symlinks(mirror_dir)


def _ids_unchanged(
    current: Sequence[str | None],
    recorded: Sequence[str | None] | None,
) -> bool:
    if recorded is None or len(recorded) != len(current):
        return False
    return all(cur is not None and cur == rec for cur, rec in zip(current, recorded))


class DocsetSyncOrchestrator:
    """Synchronizes one docset's sources into its mirror directory.

    Sync is whole-or-nothing per docset: any changed identity (or ``force``)
    clears the mirror and reloads every source. Clearing always completes
    before the first loader writes into the directory, and symlinking
    sources are in place before any copying source starts.
    """

    def __init__(self, registry: LoaderRegistry) -> None:
        self.registry = registry

    async def content_id(self, source: SourceConfig) -> str | None:
        """Return *source*'s content identity, or None if it cannot be computed."""
        loader = self.registry.loader_for(source)
        if loader is None:
            return None
        try:
            return await loader.get_content_id(source)
        except (DocmirrorError, OSError) as exc:
            logger.debug("No content id for %s: %s", source.location, exc)
            return None

    async def sync(
        self,
        docset_id: str,
        sources: Sequence[SourceConfig],
        mirror_dir: Path,
        recorded_ids: Sequence[str | None] | None = None,
        *,
        force: bool = False,
    ) -> DocsetSyncResult:
        """Bring *mirror_dir* up to date with *sources*.

        *recorded_ids* are the identities recorded at the previous sync,
        aligned with *sources* by index. Nothing is persisted here.

        Raises
        ------
        DocmirrorError, OSError
            If the mirror directory cannot be cleared. Per-source load
            failures are reported in the result instead.
        """
        content_ids = list(await asyncio.gather(*(self.content_id(s) for s in sources)))

        if not force and _ids_unchanged(content_ids, recorded_ids) and is_materialized(mirror_dir):
            logger.info("Docset %s unchanged; skipping sync", docset_id)
            return DocsetSyncResult(
                docset_id=docset_id,
                mirror_dir=mirror_dir,
                sources=[
                    SourceSyncResult(
                        index=i,
                        source=src,
                        result=LoadResult(success=True, content_hash=cid or ""),
                        content_id=cid,
                    )
                    for i, (src, cid) in enumerate(zip(sources, content_ids))
                ],
                skipped=True,
            )

        logger.info(
            "Syncing docset %s into %s (%d source(s)%s)",
            docset_id,
            mirror_dir,
            len(sources),
            ", forced" if force else "",
        )
        await asyncio.to_thread(safely_clear_directory, mirror_dir)
        mirror_dir.mkdir(parents=True, exist_ok=True)

        results = await self._load_all(sources, mirror_dir)

        outcome = DocsetSyncResult(
            docset_id=docset_id,
            mirror_dir=mirror_dir,
            sources=[
                SourceSyncResult(index=i, source=src, result=res, content_id=cid)
                for i, (src, res, cid) in enumerate(zip(sources, results, content_ids))
            ],
            forced=force,
        )
        for failed in outcome.failures:
            logger.warning(
                "Source %d of %s failed: %s", failed.index, docset_id, failed.result.error
            )
        return outcome

    async def _load_all(
        self,
        sources: Sequence[SourceConfig],
        mirror_dir: Path,
    ) -> list[LoadResult]:
        """Dispatch every source into *mirror_dir*, results in source order.

        Link-placing sources load first, concurrently; the rest follow once
        their links exist, so copied files can be checked against them.
        """
        linking = [i for i, src in enumerate(sources) if self._places_links(src)]
        copying = [i for i in range(len(sources)) if i not in linking]

        results: dict[int, LoadResult] = {}
        for phase in (linking, copying):
            loaded = await asyncio.gather(
                *(self.registry.dispatch(sources[i], mirror_dir) for i in phase)
            )
            results.update(zip(phase, loaded))
        return [results[i] for i in range(len(sources))]

    def _places_links(self, source: SourceConfig) -> bool:
        loader = self.registry.loader_for(source)
        return loader is not None and loader.materializes_links
