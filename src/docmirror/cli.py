"""Docmirror CLI entry point."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from docmirror import __version__
from docmirror.config import (
    DocsetConfig,
    SourceConfig,
    SourceType,
    ensure_knowledge_gitignore,
    find_config_path,
    load_config,
    mirror_path_for,
    project_root_for,
    save_config,
)
from docmirror.content.git_repo import is_valid_git_url
from docmirror.content.registry import LoaderRegistry
from docmirror.errors import DocmirrorError, ErrorKind
from docmirror.paths.cleanup import get_directory_info
from docmirror.paths.symlinks import resolve_source_path, validate_symlinks
from docmirror.sync.metadata import load_metadata, metadata_from_result, save_metadata
from docmirror.sync.orchestrator import DocsetSyncOrchestrator

if TYPE_CHECKING:
    from docmirror.config import KnowledgeConfig
    from docmirror.sync.orchestrator import DocsetSyncResult

_CONFIG_OPTION = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to config.yaml (default: search upwards for .knowledge/config.yaml).",
)


@click.group()
@click.version_option(version=__version__, prog_name="docmirror")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """Docmirror - project-local mirrors of documentation sources."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _load(config_path: Path | None) -> tuple[Path, KnowledgeConfig]:
    """Locate and parse the config, exiting with status 1 on failure."""
    path = config_path or find_config_path(Path.cwd())
    if path is None:
        click.echo(
            "Error: no configuration found. Run from a directory with .knowledge/config.yaml.",
            err=True,
        )
        sys.exit(1)
    try:
        return path, load_config(path)
    except DocmirrorError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


def _sync(docset: DocsetConfig, config_path: Path, *, force: bool) -> DocsetSyncResult:
    mirror = mirror_path_for(docset, config_path)
    registry = LoaderRegistry.default(project_root_for(config_path))
    orchestrator = DocsetSyncOrchestrator(registry)

    previous = load_metadata(mirror)
    recorded = previous.recorded_ids() if previous is not None else None

    result = asyncio.run(
        orchestrator.sync(docset.id, docset.sources, mirror, recorded, force=force)
    )
    if not result.skipped:
        save_metadata(mirror, metadata_from_result(result))
    return result


def _display_path(path: Path, root: Path) -> str:
    """*path* relative to *root* when it lies inside it."""
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


def _report(result: DocsetSyncResult, *, quiet: bool) -> None:
    if result.skipped:
        if not quiet:
            click.echo(f"{result.docset_id}: up to date, skipped.")
        return

    for item in result.sources:
        src = item.source
        if item.result.success:
            if not quiet:
                click.echo(f"  [ok] {src.type} {src.location} ({len(item.result.files)} files)")
        else:
            kind = item.result.failure.kind.value if item.result.failure else "ERROR"
            click.echo(f"  [ERR] {src.type} {src.location}: {kind} {item.result.error}", err=True)

    if result.success:
        if not quiet:
            click.echo(f"{result.docset_id}: synced into {result.mirror_dir}")
    else:
        click.echo(
            f"{result.docset_id}: {len(result.failures)} of {len(result.sources)} source(s) failed",
            err=True,
        )


@main.command()
@click.argument("docset_id")
@_CONFIG_OPTION
@click.option("--force", is_flag=True, default=False, help="Re-create the mirror if it exists.")
@click.pass_context
def init(ctx: click.Context, docset_id: str, *, config_path: Path | None, force: bool) -> None:
    """Materialize DOCSET_ID's sources into its mirror directory."""
    quiet = ctx.obj.get("quiet", False)
    path, config = _load(config_path)

    docset = config.get_docset(docset_id)
    if docset is None:
        available = ", ".join(d.id for d in config.docsets) or "none"
        click.echo(f"Error: docset '{docset_id}' not found. Available: {available}", err=True)
        sys.exit(1)

    ensure_knowledge_gitignore(path)
    mirror = mirror_path_for(docset, path)
    if mirror.exists() and not force:
        info = get_directory_info(mirror)
        click.echo(f"{docset_id}: {mirror} already exists ({info.total} entries). Use --force.")
        return

    try:
        result = _sync(docset, path, force=True)
    except (DocmirrorError, OSError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    _report(result, quiet=quiet)
    if not result.success:
        sys.exit(1)


@main.command()
@click.argument("docset_id", required=False)
@_CONFIG_OPTION
@click.option("--force", "-f", is_flag=True, default=False, help="Re-sync even if unchanged.")
@click.pass_context
def refresh(
    ctx: click.Context,
    docset_id: str | None,
    *,
    config_path: Path | None,
    force: bool,
) -> None:
    """Re-sync one docset, or all of them, when their sources changed."""
    quiet = ctx.obj.get("quiet", False)
    path, config = _load(config_path)

    if docset_id is not None:
        docset = config.get_docset(docset_id)
        if docset is None:
            available = ", ".join(d.id for d in config.docsets) or "none"
            click.echo(f"Error: docset '{docset_id}' not found. Available: {available}", err=True)
            sys.exit(1)
        docsets = [docset]
    else:
        docsets = list(config.docsets)

    if not docsets:
        click.echo("No docsets configured.")
        return

    ensure_knowledge_gitignore(path)
    failed = 0
    for docset in docsets:
        try:
            result = _sync(docset, path, force=force)
        except (DocmirrorError, OSError) as exc:
            click.echo(f"{docset.id}: Error: {exc}", err=True)
            failed += 1
            continue
        _report(result, quiet=quiet)
        if not result.success:
            failed += 1

    if failed:
        sys.exit(1)



_PRESETS = ("git-repo", "local-folder")


def _preset_docset(
    preset: str,
    *,
    docset_id: str,
    name: str,
    description: str | None,
    url: str | None,
    path: str | None,
    branch: str | None,
    project_root: Path,
) -> DocsetConfig:
    """Build a one-source docset from a preset."""
    if preset == "git-repo":
        if not url:
            msg = "--url is required for the git-repo preset"
            raise DocmirrorError(ErrorKind.CONFIG_INVALID, msg)
        if not is_valid_git_url(url):
            msg = f"Invalid Git repository URL: {url}"
            raise DocmirrorError(ErrorKind.CONFIG_INVALID, msg)
        source = SourceConfig(type=SourceType.GIT_REPO.value, url=url, branch=branch)
        default_description = f"Git repository: {url}"
    else:
        if not path:
            msg = "--path is required for the local-folder preset"
            raise DocmirrorError(ErrorKind.CONFIG_INVALID, msg)
        if not resolve_source_path(path, project_root).is_dir():
            msg = f"Path is not an existing directory: {path}"
            raise DocmirrorError(ErrorKind.CONFIG_INVALID, msg)
        source = SourceConfig(type=SourceType.LOCAL_FOLDER.value, paths=(path,))
        default_description = f"Local documentation: {path}"

    return DocsetConfig(
        id=docset_id,
        name=name,
        sources=(source,),
        description=description or default_description,
    )


@main.command()
@click.option("--preset", type=click.Choice(_PRESETS), required=True, help="Source preset.")
@click.option("--id", "docset_id", required=True, help="Unique docset ID.")
@click.option("--name", required=True, help="Human-readable docset name.")
@click.option("--description", default=None, help="Docset description.")
@click.option("--url", default=None, help="Git repository URL (git-repo preset).")
@click.option("--path", "folder", default=None, help="Local folder path (local-folder preset).")
@click.option("--branch", default=None, help="Git branch (default: main, then master).")
@_CONFIG_OPTION
def create(
    *,
    preset: str,
    docset_id: str,
    name: str,
    description: str | None,
    url: str | None,
    folder: str | None,
    branch: str | None,
    config_path: Path | None,
) -> None:
    """Add a docset to the configuration from a preset."""
    path, config = _load(config_path)

    try:
        docset = _preset_docset(
            preset,
            docset_id=docset_id,
            name=name,
            description=description,
            url=url,
            path=folder,
            branch=branch,
            project_root=project_root_for(path),
        )
        updated = config.with_docset(docset)
        save_config(updated, path)
    except DocmirrorError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Created docset '{docset_id}'.")
    click.echo(f"  Config saved to: {path}")
    click.echo(f"  Run 'docmirror init {docset_id}' to materialize it.")

@main.command()
@_CONFIG_OPTION
@click.option("--json", "output_json", is_flag=True, help="Structured JSON output.")
def status(*, config_path: Path | None, output_json: bool) -> None:
    """Show mirror state for every configured docset."""
    path, config = _load(config_path)

    rows: list[dict[str, object]] = []
    for docset in config.docsets:
        mirror = mirror_path_for(docset, path)
        info = get_directory_info(mirror)
        metadata = load_metadata(mirror)
        rows.append(
            {
                "id": docset.id,
                "name": docset.name,
                "sources": len(docset.sources),
                "mirror": str(mirror),
                "exists": mirror.is_dir(),
                "entries": info.total,
                "symlinks": info.symlinks,
                "links_ok": validate_symlinks(mirror) if mirror.is_dir() else False,
                "last_refresh": metadata.last_refresh if metadata else None,
            }
        )

    if output_json:
        click.echo(json.dumps({"docsets": rows, "count": len(rows)}, indent=2))
        return

    from rich.console import Console
    from rich.table import Table

    project_root = project_root_for(path)
    console = Console()
    table = Table(title=f"Docsets ({len(rows)})")
    table.add_column("Docset", style="cyan")
    table.add_column("Mirror", overflow="fold")
    table.add_column("Sources", justify="right")
    table.add_column("Entries", justify="right")
    table.add_column("Symlinks", justify="right")
    table.add_column("Links")
    table.add_column("Last refresh")

    for row in rows:
        if not row["exists"]:
            links = "[dim]not initialized[/]"
        elif row["links_ok"]:
            links = "[green]ok[/]"
        else:
            links = "[red]broken[/]"
        table.add_row(
            str(row["id"]),
            _display_path(Path(str(row["mirror"])), project_root),
            str(row["sources"]),
            str(row["entries"]),
            str(row["symlinks"]),
            links,
            str(row["last_refresh"] or "-"),
        )
    console.print(table)
