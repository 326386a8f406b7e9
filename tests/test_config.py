"""Tests for docmirror.config."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import yaml

from docmirror.config import (
    DocsetConfig,
    SourceConfig,
    ensure_knowledge_gitignore,
    find_config_path,
    load_config,
    mirror_path_for,
    project_root_for,
    save_config,
)
from docmirror.errors import DocmirrorError, ErrorKind

if TYPE_CHECKING:
    from pathlib import Path

VALID = """\
version: "1.0"
docsets:
  - id: project-docs
    name: Project docs
    description: Local guides
    sources:
      - type: local_folder
        paths: [./docs/a, ./docs/b]
  - id: upstream
    name: Upstream
    sources:
      - type: git_repo
        url: https://github.com/org/repo
        branch: develop
        paths: [docs]
        depth: 1
      - type: local_folder
        path: ./docs/a
"""


def _write(project: Path, text: str) -> Path:
    path = project / ".knowledge" / "config.yaml"
    path.write_text(text)
    return path


class TestLoadConfig:
    def test_valid(self, project: Path) -> None:
        config = load_config(_write(project, VALID))

        assert config.version == "1.0"
        assert [d.id for d in config.docsets] == ["project-docs", "upstream"]
        docs = config.get_docset("project-docs")
        assert docs is not None
        assert docs.description == "Local guides"
        assert docs.sources[0].paths == ("./docs/a", "./docs/b")

        upstream = config.get_docset("upstream")
        assert upstream is not None
        git = upstream.sources[0]
        assert git.url == "https://github.com/org/repo"
        assert git.branch == "develop"
        assert git.options["depth"] == 1
        assert upstream.sources[1].paths == ("./docs/a",)

    def test_unknown_docset(self, project: Path) -> None:
        assert load_config(_write(project, VALID)).get_docset("nope") is None

    def test_unknown_source_type_survives(self, project: Path) -> None:
        text = 'version: "1"\ndocsets:\n  - {id: x, name: X, sources: [{type: ftp}]}\n'
        config = load_config(_write(project, text))
        assert config.docsets[0].sources[0].type == "ftp"

    def test_missing_file(self, project: Path) -> None:
        path = project / ".knowledge" / "config.yaml"
        with pytest.raises(DocmirrorError) as exc_info:
            load_config(path)
        assert exc_info.value.kind is ErrorKind.CONFIG_NOT_FOUND
        assert exc_info.value.context["config_path"] == path

    def test_bad_yaml(self, project: Path) -> None:
        with pytest.raises(DocmirrorError) as exc_info:
            load_config(_write(project, "version: [unclosed\n"))
        assert exc_info.value.kind is ErrorKind.CONFIG_INVALID

    @pytest.mark.parametrize(
        ("text", "fragment"),
        [
            ("- just a list\n", "top level"),
            ("docsets: []\n", "'version'"),
            ('version: "1"\n', "'docsets'"),
            ('version: "1"\ndocsets: [{name: X, sources: [{type: a}]}]\n', "no id"),
            ('version: "1"\ndocsets: [{id: x, sources: [{type: a}]}]\n', "no name"),
            ('version: "1"\ndocsets: [{id: x, name: X, sources: []}]\n', "sources"),
            ('version: "1"\ndocsets: [{id: x, name: X, sources: [{url: u}]}]\n', "type"),
        ],
    )
    def test_structural_errors(self, project: Path, text: str, fragment: str) -> None:
        with pytest.raises(DocmirrorError) as exc_info:
            load_config(_write(project, text))
        assert exc_info.value.kind is ErrorKind.CONFIG_INVALID
        assert fragment in str(exc_info.value)


class TestSourceConfig:
    def test_location_prefers_url(self) -> None:
        source = SourceConfig(type="git_repo", url="https://x/y.git", paths=("docs",))
        assert source.location == "https://x/y.git"

    def test_location_joins_paths(self) -> None:
        assert SourceConfig(type="local_folder", paths=("a", "b")).location == "a, b"

    def test_paths_string_shorthand(self) -> None:
        source = SourceConfig.from_dict({"type": "local_folder", "paths": "./docs"})
        assert source.paths == ("./docs",)


class TestPaths:
    def test_find_config_walks_up(self, project: Path) -> None:
        config_path = _write(project, VALID)
        nested = project / "docs" / "a"
        assert find_config_path(nested) == config_path.resolve()

    def test_find_config_accepts_yml(self, project: Path) -> None:
        path = project / ".knowledge" / "config.yml"
        path.write_text(VALID)
        assert find_config_path(project) == path.resolve()

    def test_find_config_missing(self, tmp_path: Path) -> None:
        assert find_config_path(tmp_path) is None

    def test_mirror_and_root(self, project: Path) -> None:
        config_path = _write(project, VALID)
        docset = load_config(config_path).docsets[0]
        assert project_root_for(config_path) == project.resolve()
        assert mirror_path_for(docset, config_path) == (
            project.resolve() / ".knowledge" / "docsets" / "project-docs"
        )


class TestGitignore:
    def test_creates(self, project: Path) -> None:
        config_path = _write(project, VALID)
        ensure_knowledge_gitignore(config_path)
        text = (project / ".knowledge" / ".gitignore").read_text()
        assert "docsets/" in text.splitlines()

    def test_appends_once(self, project: Path) -> None:
        config_path = _write(project, VALID)
        gitignore = project / ".knowledge" / ".gitignore"
        gitignore.write_text("*.tmp")

        ensure_knowledge_gitignore(config_path)
        ensure_knowledge_gitignore(config_path)

        lines = gitignore.read_text().splitlines()
        assert lines[0] == "*.tmp"
        assert lines.count("docsets/") == 1


class TestSaveConfig:
    def test_round_trip(self, project: Path) -> None:
        config_path = _write(project, VALID)
        config = load_config(config_path)

        save_config(config, config_path)

        assert load_config(config_path) == config

    def test_keeps_extra_source_options(self, project: Path) -> None:
        config_path = _write(project, VALID)
        save_config(load_config(config_path), config_path)

        raw = yaml.safe_load(config_path.read_text())
        assert raw["docsets"][1]["sources"][0]["depth"] == 1
        assert raw["docsets"][1]["sources"][1] == {"type": "local_folder", "paths": ["./docs/a"]}

    def test_with_docset_appends(self, project: Path) -> None:
        config = load_config(_write(project, VALID))
        extra = DocsetConfig(id="new", name="New", sources=(SourceConfig(type="local_folder"),))

        updated = config.with_docset(extra)

        assert [d.id for d in updated.docsets] == ["project-docs", "upstream", "new"]
        assert [d.id for d in config.docsets] == ["project-docs", "upstream"]

    def test_with_docset_rejects_duplicate(self, project: Path) -> None:
        config = load_config(_write(project, VALID))
        duplicate = DocsetConfig(id="upstream", name="Dup", sources=())
        with pytest.raises(DocmirrorError) as exc_info:
            config.with_docset(duplicate)
        assert exc_info.value.kind is ErrorKind.CONFIG_INVALID
        assert "already exists" in str(exc_info.value)
