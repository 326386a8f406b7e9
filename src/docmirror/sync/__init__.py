"""Docset synchronization: orchestration and recorded sync state."""

from docmirror.sync.metadata import (
    METADATA_FILENAME,
    DocsetMetadata,
    SourceMetadata,
    load_metadata,
    metadata_from_result,
    save_metadata,
)
from docmirror.sync.orchestrator import (
    DocsetSyncOrchestrator,
    DocsetSyncResult,
    SourceSyncResult,
    is_materialized,
)

__all__ = [
    "METADATA_FILENAME",
    "DocsetMetadata",
    "DocsetSyncOrchestrator",
    "DocsetSyncResult",
    "SourceMetadata",
    "SourceSyncResult",
    "is_materialized",
    "load_metadata",
    "metadata_from_result",
    "save_metadata",
]
