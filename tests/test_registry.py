"""Tests for docmirror.content.registry: routing and validate-before-load."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

import pytest

from docmirror.config import SourceConfig, SourceType
from docmirror.content.api_docs import ApiDocumentationLoader
from docmirror.content.base import ContentLoader, LoadResult
from docmirror.content.git_repo import GitRepoLoader
from docmirror.content.local_folder import LocalFolderLoader
from docmirror.content.registry import LoaderRegistry
from docmirror.errors import DocmirrorError, ErrorKind

if TYPE_CHECKING:
    from pathlib import Path


class RecordingLoader(ContentLoader):
    """Local-folder stand-in that counts calls and can be told to fail."""

    source_type = SourceType.LOCAL_FOLDER

    def __init__(
        self,
        *,
        verdict: Literal[True] | str = True,
        error: Exception | None = None,
    ) -> None:
        self.verdict = verdict
        self.error = error
        self.validate_calls = 0
        self.load_calls = 0

    def validate_config(self, source: SourceConfig) -> Literal[True] | str:
        self.validate_calls += 1
        return self.verdict

    async def load(self, source: SourceConfig, target_path: Path) -> LoadResult:
        self.load_calls += 1
        if self.error is not None:
            raise self.error
        return LoadResult(success=True, files=["x"], content_hash="h")

    async def get_content_id(self, source: SourceConfig) -> str:
        return "id"


class TestRouting:
    def test_default_registry_order(self, tmp_path: Path) -> None:
        loaders = LoaderRegistry.default(tmp_path).loaders
        assert [type(loader) for loader in loaders] == [
            LocalFolderLoader,
            GitRepoLoader,
            ApiDocumentationLoader,
        ]

    @pytest.mark.parametrize("kind", list(SourceType))
    def test_exactly_one_loader_per_type(self, tmp_path: Path, kind: SourceType) -> None:
        registry = LoaderRegistry.default(tmp_path)
        source = SourceConfig(type=kind.value)
        matches = [loader for loader in registry.loaders if loader.can_handle(source)]
        assert len(matches) == 1
        assert registry.loader_for(source) is matches[0]
        assert matches[0].source_type is kind

    def test_unknown_type(self, tmp_path: Path) -> None:
        registry = LoaderRegistry.default(tmp_path)
        source = SourceConfig(type="ftp", url="ftp://host/docs")
        assert registry.loader_for(source) is None
        with pytest.raises(DocmirrorError) as exc_info:
            registry.require_loader(source)
        assert exc_info.value.kind is ErrorKind.UNSUPPORTED_SOURCE_TYPE
        assert exc_info.value.context["source_type"] == "ftp"

    def test_first_match_wins(self) -> None:
        first, second = RecordingLoader(), RecordingLoader()
        registry = LoaderRegistry([first, second])
        assert registry.loader_for(SourceConfig(type="local_folder")) is first


class TestDispatch:
    @pytest.mark.asyncio()
    async def test_success(self, tmp_path: Path) -> None:
        loader = RecordingLoader()
        result = await LoaderRegistry([loader]).dispatch(
            SourceConfig(type="local_folder", paths=("docs",)), tmp_path
        )
        assert result.success is True
        assert loader.validate_calls == 1
        assert loader.load_calls == 1

    @pytest.mark.asyncio()
    async def test_invalid_config_never_loads(self, tmp_path: Path) -> None:
        loader = RecordingLoader(verdict="paths missing")
        result = await LoaderRegistry([loader]).dispatch(
            SourceConfig(type="local_folder"), tmp_path
        )
        assert result.success is False
        assert result.error == "paths missing"
        assert result.failure is not None
        assert result.failure.kind is ErrorKind.CONFIG_INVALID
        assert loader.load_calls == 0

    @pytest.mark.asyncio()
    async def test_unsupported_type(self, tmp_path: Path) -> None:
        loader = RecordingLoader()
        result = await LoaderRegistry([loader]).dispatch(SourceConfig(type="ftp"), tmp_path)
        assert result.success is False
        assert result.failure is not None
        assert result.failure.kind is ErrorKind.UNSUPPORTED_SOURCE_TYPE
        assert loader.validate_calls == 0
        assert loader.load_calls == 0

    @pytest.mark.asyncio()
    async def test_loader_error_becomes_failure(self, tmp_path: Path) -> None:
        error = DocmirrorError(ErrorKind.PATH_INVALID, "gone", {"source_paths": ["docs"]})
        result = await LoaderRegistry([RecordingLoader(error=error)]).dispatch(
            SourceConfig(type="local_folder", paths=("docs",)), tmp_path
        )
        assert result.success is False
        assert result.failure is not None
        assert result.failure.kind is ErrorKind.PATH_INVALID
        assert result.failure.context == {"source_paths": ["docs"]}

    @pytest.mark.asyncio()
    async def test_os_error_becomes_io_failure(self, tmp_path: Path) -> None:
        error = PermissionError(13, "Permission denied")
        result = await LoaderRegistry([RecordingLoader(error=error)]).dispatch(
            SourceConfig(type="local_folder", paths=("docs",)), tmp_path
        )
        assert result.success is False
        assert result.failure is not None
        assert result.failure.kind is ErrorKind.IO_FAILURE
        assert result.failure.context["cause"] is error
        assert result.failure.context["target_path"] == tmp_path

    @pytest.mark.asyncio()
    async def test_api_documentation_reports_not_implemented(self, tmp_path: Path) -> None:
        registry = LoaderRegistry.default(tmp_path)
        source = SourceConfig(type="api_documentation", url="https://api.example.com")
        result = await registry.dispatch(source, tmp_path / "mirror")
        assert result.success is False
        assert result.failure is not None
        assert result.failure.kind is ErrorKind.NOT_IMPLEMENTED
        assert result.failure.context["url"] == "https://api.example.com"
