"""Error kinds and structured failures for mirror synchronization.

Every failure carries a kind and a context mapping (source paths, target
directory, project root, underlying cause) so callers can render a
diagnostic without re-deriving state.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Any


class ErrorKind(str, enum.Enum):
    """Failure categories surfaced by the sync core."""

    PATH_INVALID = "PATH_INVALID"
    CONFIG_INVALID = "CONFIG_INVALID"
    CONFIG_NOT_FOUND = "CONFIG_NOT_FOUND"
    UNSUPPORTED_SOURCE_TYPE = "UNSUPPORTED_SOURCE_TYPE"
    NOT_IMPLEMENTED = "NOT_IMPLEMENTED"
    IO_FAILURE = "IO_FAILURE"
    FETCH_FAILED = "FETCH_FAILED"


def _plain(value: Any) -> Any:
    """Convert a context value to something JSON can serialize."""
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, PurePath):
        return str(value)
    if isinstance(value, BaseException):
        return f"{type(value).__name__}: {value}"
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_plain(v) for v in value]
    return str(value)


@dataclass(frozen=True)
class SyncFailure:
    """A failure recorded in a result instead of raised."""

    kind: ErrorKind
    message: str
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "context": _plain(self.context),
        }


class DocmirrorError(Exception):
    """Base error for docmirror.

    Attributes:
        kind: The :class:`ErrorKind` of the failure.
        context: Structured diagnostic fields.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.kind = kind
        self.context: dict[str, Any] = dict(context or {})
        super().__init__(message)

    @property
    def message(self) -> str:
        return str(self)

    def to_failure(self) -> SyncFailure:
        return SyncFailure(kind=self.kind, message=self.message, context=self.context)
