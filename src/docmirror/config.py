"""Knowledge config: discovery, YAML loading, and mirror path calculation."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from docmirror.errors import DocmirrorError, ErrorKind

logger = logging.getLogger(__name__)

CONFIG_DIR = ".knowledge"
CONFIG_FILENAMES = ("config.yaml", "config.yml")
DOCSETS_DIR = "docsets"

_GITIGNORE_HEADER = "# docmirror - materialized docsets\n"
_GITIGNORE_RULE = "docsets/"

# Keys lifted into SourceConfig fields; everything else lands in ``options``.
_SOURCE_FIELDS = frozenset({"type", "url", "path", "paths", "branch", "token"})


class SourceType(str, enum.Enum):
    """Kinds of documentation sources."""

    LOCAL_FOLDER = "local_folder"
    GIT_REPO = "git_repo"
    API_DOCUMENTATION = "api_documentation"


@dataclass(frozen=True)
class SourceConfig:
    """One configured documentation source.

    ``type`` stays a plain string so that unknown types survive loading and
    are reported by the dispatcher rather than by the parser.
    """

    type: str
    url: str | None = None
    paths: tuple[str, ...] = ()
    branch: str | None = None
    token: str | None = field(default=None, repr=False)
    options: MappingProxyType[str, Any] = field(
        default_factory=lambda: MappingProxyType({}),
        hash=False,
    )

    @property
    def location(self) -> str:
        """Human-readable origin: the URL, or the joined local paths."""
        if self.url:
            return self.url
        return ", ".join(self.paths)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SourceConfig:
        paths = data.get("paths") or ()
        if isinstance(paths, str):
            paths = (paths,)
        # A single ``path`` key is accepted as shorthand for ``paths``.
        if not paths and isinstance(data.get("path"), str):
            paths = (data["path"],)
        extra = {k: v for k, v in data.items() if k not in _SOURCE_FIELDS}
        return cls(
            type=str(data.get("type", "")),
            url=data.get("url"),
            paths=tuple(str(p) for p in paths),
            branch=data.get("branch"),
            token=data.get("token"),
            options=MappingProxyType(extra),
        )

    def to_dict(self) -> dict[str, Any]:
        """Inverse of :meth:`from_dict`; unset fields are omitted."""
        data: dict[str, Any] = {"type": self.type}
        if self.url:
            data["url"] = self.url
        if self.paths:
            data["paths"] = list(self.paths)
        if self.branch:
            data["branch"] = self.branch
        if self.token:
            data["token"] = self.token
        data.update(self.options)
        return data


@dataclass(frozen=True)
class DocsetConfig:
    """A named set of sources materialized into one mirror directory."""

    id: str
    name: str
    sources: tuple[SourceConfig, ...]
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "name": self.name}
        if self.description:
            data["description"] = self.description
        data["sources"] = [s.to_dict() for s in self.sources]
        return data


@dataclass(frozen=True)
class KnowledgeConfig:
    """Top-level contents of ``.knowledge/config.yaml``."""

    version: str
    docsets: tuple[DocsetConfig, ...]

    def get_docset(self, docset_id: str) -> DocsetConfig | None:
        for docset in self.docsets:
            if docset.id == docset_id:
                return docset
        return None

    def with_docset(self, docset: DocsetConfig) -> KnowledgeConfig:
        """Return a copy with *docset* appended.

        Raises
        ------
        DocmirrorError
            ``CONFIG_INVALID`` if a docset with the same id already exists.
        """
        if self.get_docset(docset.id) is not None:
            msg = f"Docset with ID '{docset.id}' already exists"
            raise DocmirrorError(ErrorKind.CONFIG_INVALID, msg, {"docset_id": docset.id})
        return replace(self, docsets=(*self.docsets, docset))

    def to_dict(self) -> dict[str, Any]:
        return {"version": self.version, "docsets": [d.to_dict() for d in self.docsets]}


def find_config_path(start: Path) -> Path | None:
    """Walk up from *start* looking for ``.knowledge/config.yaml``."""
    current = start.resolve()
    for directory in (current, *current.parents):
        for name in CONFIG_FILENAMES:
            candidate = directory / CONFIG_DIR / name
            if candidate.is_file():
                return candidate
    return None


def _invalid(config_path: Path, reason: str) -> DocmirrorError:
    return DocmirrorError(
        ErrorKind.CONFIG_INVALID,
        f"Invalid configuration {config_path}: {reason}",
        {"config_path": config_path},
    )


def _parse_docset(raw: Any, index: int, config_path: Path) -> DocsetConfig:
    if not isinstance(raw, dict):
        raise _invalid(config_path, f"docset #{index} is not a mapping")

    docset_id = raw.get("id")
    name = raw.get("name")
    if not isinstance(docset_id, str) or not docset_id.strip():
        raise _invalid(config_path, f"docset #{index} has no id")
    if not isinstance(name, str) or not name.strip():
        raise _invalid(config_path, f"docset '{docset_id}' has no name")

    raw_sources = raw.get("sources")
    if not isinstance(raw_sources, list) or not raw_sources:
        raise _invalid(config_path, f"docset '{docset_id}' must have sources configured")

    sources: list[SourceConfig] = []
    for src in raw_sources:
        if not isinstance(src, dict) or not isinstance(src.get("type"), str):
            raise _invalid(config_path, f"docset '{docset_id}' has a source without a type")
        sources.append(SourceConfig.from_dict(src))

    description = raw.get("description") or ""
    if not isinstance(description, str):
        raise _invalid(config_path, f"docset '{docset_id}' description must be a string")

    return DocsetConfig(
        id=docset_id,
        name=name,
        sources=tuple(sources),
        description=description,
    )


def load_config(config_path: Path) -> KnowledgeConfig:
    """Load and structurally validate a knowledge config file.

    Per-source semantics (URL shape, path existence) are left to the
    content loaders.

    Raises
    ------
    DocmirrorError
        ``CONFIG_NOT_FOUND`` if the file is missing, ``CONFIG_INVALID`` if
        it does not parse or has the wrong structure.
    """
    try:
        text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise DocmirrorError(
            ErrorKind.CONFIG_NOT_FOUND,
            f"Configuration file not found: {config_path}",
            {"config_path": config_path, "cause": exc},
        ) from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise DocmirrorError(
            ErrorKind.CONFIG_INVALID,
            f"Failed to parse YAML configuration: {exc}",
            {"config_path": config_path, "cause": exc},
        ) from exc

    if not isinstance(data, dict):
        raise _invalid(config_path, "top level must be a mapping")

    version = data.get("version")
    if not isinstance(version, str):
        raise _invalid(config_path, "'version' must be a string")

    raw_docsets = data.get("docsets")
    if not isinstance(raw_docsets, list):
        raise _invalid(config_path, "'docsets' must be a list")

    docsets = tuple(_parse_docset(raw, i, config_path) for i, raw in enumerate(raw_docsets))
    return KnowledgeConfig(version=version, docsets=docsets)


def save_config(config: KnowledgeConfig, config_path: Path) -> None:
    """Write *config* to *config_path* as YAML.

    Comments and key order of a hand-written file are not preserved.

    Raises
    ------
    DocmirrorError
        ``IO_FAILURE`` if the file cannot be written.
    """
    text = yaml.safe_dump(config.to_dict(), sort_keys=False, allow_unicode=True)
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise DocmirrorError(
            ErrorKind.IO_FAILURE,
            f"Failed to save configuration {config_path}: {exc}",
            {"config_path": config_path, "cause": exc},
        ) from exc
    logger.info("Saved configuration to %s", config_path)


def project_root_for(config_path: Path) -> Path:
    """Return the project root: the parent of the ``.knowledge`` directory."""
    return config_path.resolve().parent.parent


def mirror_path_for(docset: DocsetConfig, config_path: Path) -> Path:
    """Return the tool-owned mirror directory for *docset*."""
    return config_path.resolve().parent / DOCSETS_DIR / docset.id


def ensure_knowledge_gitignore(config_path: Path) -> None:
    """Make sure ``.knowledge/.gitignore`` ignores materialized docsets.

    Failures are logged and swallowed: a missing ignore rule never blocks a
    sync.
    """
    gitignore = config_path.resolve().parent / ".gitignore"
    try:
        if gitignore.exists():
            content = gitignore.read_text(encoding="utf-8")
            if _GITIGNORE_RULE in content.splitlines():
                return
            prefix = "" if not content or content.endswith("\n") else "\n"
            with gitignore.open("a", encoding="utf-8") as fh:
                fh.write(f"{prefix}\n{_GITIGNORE_HEADER}{_GITIGNORE_RULE}\n")
        else:
            gitignore.write_text(f"{_GITIGNORE_HEADER}{_GITIGNORE_RULE}\n", encoding="utf-8")
    except OSError as exc:
        logger.warning("Could not update %s: %s", gitignore, exc)
