"""Per-docset metadata file recording what the last sync materialized."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path

    from docmirror.sync.orchestrator import DocsetSyncResult

logger = logging.getLogger(__name__)

METADATA_FILENAME = ".docmirror-metadata.json"
METADATA_VERSION = "1.0"


@dataclass
class SourceMetadata:
    """What one source contributed at the last sync."""

    index: int
    type: str
    location: str
    status: str  # success | error
    content_id: str | None = None
    content_hash: str = ""
    files: list[str] = field(default_factory=list)
    error: str | None = None


@dataclass
class DocsetMetadata:
    docset_id: str
    last_refresh: str  # ISO 8601
    sources: list[SourceMetadata] = field(default_factory=list)
    version: str = METADATA_VERSION

    def recorded_ids(self) -> list[str | None]:
        """Content ids by source index; failed sources record None."""
        return [s.content_id if s.status == "success" else None for s in self.sources]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DocsetMetadata:
        sources = [SourceMetadata(**raw) for raw in data.get("sources", [])]
        return cls(
            docset_id=data["docset_id"],
            last_refresh=data["last_refresh"],
            sources=sources,
            version=data.get("version", METADATA_VERSION),
        )


def metadata_from_result(result: DocsetSyncResult) -> DocsetMetadata:
    """Build metadata for a completed (non-skipped) sync."""
    sources = [
        SourceMetadata(
            index=s.index,
            type=s.source.type,
            location=s.source.location,
            status="success" if s.result.success else "error",
            content_id=s.content_id,
            content_hash=s.result.content_hash,
            files=list(s.result.files),
            error=s.result.error,
        )
        for s in result.sources
    ]
    return DocsetMetadata(
        docset_id=result.docset_id,
        last_refresh=datetime.now(tz=timezone.utc).isoformat(),
        sources=sources,
    )


def load_metadata(mirror_dir: Path) -> DocsetMetadata | None:
    """Read the metadata file in *mirror_dir*, or None if absent or unreadable."""
    path = mirror_dir / METADATA_FILENAME
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable metadata %s: %s", path, exc)
        return None

    try:
        return DocsetMetadata.from_dict(raw)
    except (KeyError, TypeError) as exc:
        logger.warning("Ignoring malformed metadata %s: %s", path, exc)
        return None


def save_metadata(mirror_dir: Path, metadata: DocsetMetadata) -> Path:
    """Write *metadata* into *mirror_dir*, creating the directory if needed."""
    mirror_dir.mkdir(parents=True, exist_ok=True)
    path = mirror_dir / METADATA_FILENAME
    path.write_text(json.dumps(metadata.to_dict(), indent=2) + "\n", encoding="utf-8")
    return path
