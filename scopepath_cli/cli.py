"""Typer-based CLI for ScopePath."""

from __future__ import annotations

import fnmatch
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional, Tuple

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
from rich.table import Table

from . import __version__
from .affected import scan_affected_files_for_multiple
from .cli_config import config_app
from .config_manager import load_scope_config
from .conflicts import check_conflict
from .models import ScopeSyntax, ScriptRecord, SuggestionInput, get_syntax
from .orchestrator import BatchRenamer
from .parser import read_declarations
from .scanner import scan_scripts
from .suggester import parse_exclude_list, resolve_root, suggest_scope_name

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="🧭 ScopePath — keep namespaces in sync with your folder structure.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(config_app, name="config")


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"ScopePath CLI v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every rewrite."),
):
    """ScopePath: rename namespaces from folder paths and fix every reference."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


# ---------------------------------------------------------------------------
# Option resolution
# ---------------------------------------------------------------------------

def _resolve_settings(
    source: Path,
    root: Optional[Path],
    prefix: Optional[str],
    exclude: Optional[str],
    use_source_as_root: Optional[bool],
    collapse: Optional[bool],
    syntax_name: Optional[str],
) -> Tuple[SuggestionInput, ScopeSyntax]:
    """Merge command-line options over the saved [scope] settings."""
    saved = load_scope_config()

    try:
        syntax = get_syntax(syntax_name or saved["syntax"])
    except ValueError as exc:
        raise typer.BadParameter(str(exc))

    if use_source_as_root is None:
        use_source_as_root = bool(saved["use_source_as_root"])
    project_root = str(root.resolve()) if root else (saved["project_root"] or str(Path.cwd()))

    raw_exclude = exclude if exclude is not None else saved["exclude"]
    if isinstance(raw_exclude, list):
        raw_exclude = ",".join(str(part) for part in raw_exclude)

    options = SuggestionInput(
        root_path=resolve_root(str(source), use_source_as_root, project_root),
        prefix=prefix if prefix is not None else saved["prefix"],
        exclude_segments=parse_exclude_list(raw_exclude),
        collapse_duplicates=collapse if collapse is not None else bool(saved["collapse_duplicates"]),
    )
    return options, syntax


def _resolve_search_root(search: Optional[Path]) -> Path:
    if search is not None:
        return search.resolve()
    saved = load_scope_config()["search_root"]
    return Path(saved).expanduser().resolve() if saved else Path.cwd()


def _status(record: ScriptRecord) -> str:
    if record.has_type_name_conflict:
        return "[red]CONFLICT[/red]"
    if record.has_no_scope:
        return "[yellow]NO SCOPE[/yellow]"
    if record.needs_change:
        return "[cyan]CHANGE[/cyan]"
    return "[green]OK[/green]"


def _select(
    records: List[ScriptRecord],
    include_unscoped: bool,
    allow_conflicts: bool,
    pattern: Optional[str],
) -> List[ScriptRecord]:
    selected = []
    for record in records:
        wanted = record.needs_change or (include_unscoped and record.has_no_scope)
        if pattern and not fnmatch.fnmatch(record.relative_path, pattern):
            wanted = False
        if wanted and record.has_type_name_conflict and not allow_conflicts:
            console.print(f"[yellow]⚠️  Skipping {record.relative_path}:[/yellow] {record.conflict_message}")
            wanted = False
        record.is_selected = wanted
        if wanted:
            selected.append(record)
    return selected


def _apply_overrides(records: List[ScriptRecord], overrides: List[str]) -> None:
    by_path = {r.relative_path: r for r in records}
    for item in overrides:
        rel, sep, name = item.partition("=")
        if not sep or not name.strip():
            raise typer.BadParameter(f"Expected RELATIVE_PATH=SCOPE, got '{item}'")
        record = by_path.get(rel.strip())
        if record is None:
            raise typer.BadParameter(f"No scanned file at '{rel.strip()}'")
        record.set_suggestion(name.strip())


# Shared option declarations
_ROOT_OPT = typer.Option(None, "--root", help="Project root used with --no-use-source-as-root.")
_PREFIX_OPT = typer.Option(None, "--prefix", "-p", help="Leading scope segment(s).")
_EXCLUDE_OPT = typer.Option(None, "--exclude", "-x", help="Comma-separated folder names to drop, e.g. 'Runtime,Scripts'.")
_SOURCE_ROOT_OPT = typer.Option(
    None, "--use-source-as-root/--no-use-source-as-root", help="Derive names from the source folder itself."
)
_COLLAPSE_OPT = typer.Option(None, "--collapse/--no-collapse", help="Collapse adjacent duplicate segments.")
_SYNTAX_OPT = typer.Option(None, "--syntax", help="Syntax preset: csharp (default) or generic.")
_FILTER_OPT = typer.Option(None, "--filter", "-f", help="Only files whose relative path matches this glob.")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command("scan")
def scan(
    source: Path = typer.Argument(..., exists=True, file_okay=False, help="Folder with the files to check."),
    root: Optional[Path] = _ROOT_OPT,
    prefix: Optional[str] = _PREFIX_OPT,
    exclude: Optional[str] = _EXCLUDE_OPT,
    use_source_as_root: Optional[bool] = _SOURCE_ROOT_OPT,
    collapse: Optional[bool] = _COLLAPSE_OPT,
    syntax: Optional[str] = _SYNTAX_OPT,
    only_changes: bool = typer.Option(False, "--only-changes", help="Hide files that are already correct."),
    pattern: Optional[str] = _FILTER_OPT,
    as_json: bool = typer.Option(False, "--json", help="Print records as JSON."),
):
    """🔍 List every file with its current and suggested scope."""
    source = source.resolve()
    options, scope_syntax = _resolve_settings(source, root, prefix, exclude, use_source_as_root, collapse, syntax)
    records = scan_scripts(source, options, scope_syntax)

    if pattern:
        records = [r for r in records if fnmatch.fnmatch(r.relative_path, pattern)]
    if only_changes:
        records = [r for r in records if r.needs_change or r.has_no_scope or r.has_warning]

    if as_json:
        payload = []
        for record in records:
            item = asdict(record)
            item.update(needs_change=record.needs_change, has_no_scope=record.has_no_scope)
            payload.append(item)
        typer.echo(json.dumps(payload, indent=2))
        return

    if not records:
        typer.echo("No files found.")
        raise typer.Exit(code=0)

    table = Table(title=f"Scopes under {source}", show_header=True)
    table.add_column("File", style="cyan")
    table.add_column("Current")
    table.add_column("Suggested")
    table.add_column("Status")
    for record in records:
        table.add_row(
            record.relative_path,
            record.current_scope_name or "[dim]—[/dim]",
            record.suggested_scope_name,
            _status(record),
        )
    console.print(table)

    needs_change = sum(1 for r in records if r.needs_change)
    no_scope = sum(1 for r in records if r.has_no_scope)
    conflicts = sum(1 for r in records if r.has_type_name_conflict)
    typer.echo(
        f"Scan complete. {len(records)} files found. "
        f"{needs_change} need change, {no_scope} without scope, {conflicts} conflicts."
    )


@app.command("suggest")
def suggest(
    file: Path = typer.Argument(..., help="Source file to name."),
    root: Path = typer.Option(..., "--root", "-r", help="Folder whose name starts the scope."),
    prefix: str = typer.Option("", "--prefix", "-p", help="Leading scope segment(s)."),
    exclude: str = typer.Option("", "--exclude", "-x", help="Comma-separated folder names to drop."),
    collapse: bool = typer.Option(True, "--collapse/--no-collapse", help="Collapse adjacent duplicate segments."),
    syntax: str = typer.Option("csharp", "--syntax", help="Syntax preset used to read declared types."),
):
    """💡 Print the suggested scope for one file."""
    name = suggest_scope_name(
        str(file.resolve()),
        str(root.resolve()),
        prefix=prefix,
        exclude_segments=parse_exclude_list(exclude),
        collapse_duplicates=collapse,
    )
    typer.echo(name)

    if file.is_file():
        try:
            facts = read_declarations(file, get_syntax(syntax))
        except ValueError as exc:
            raise typer.BadParameter(str(exc))
        has_conflict, message = check_conflict(name, facts.type_names)
        if has_conflict:
            typer.echo(f"⚠️  {message}")


@app.command("preview")
def preview(
    source: Path = typer.Argument(..., exists=True, file_okay=False, help="Folder with the files to rename."),
    search: Optional[Path] = typer.Option(None, "--search", "-s", help="Folder searched for references."),
    root: Optional[Path] = _ROOT_OPT,
    prefix: Optional[str] = _PREFIX_OPT,
    exclude: Optional[str] = _EXCLUDE_OPT,
    use_source_as_root: Optional[bool] = _SOURCE_ROOT_OPT,
    collapse: Optional[bool] = _COLLAPSE_OPT,
    syntax: Optional[str] = _SYNTAX_OPT,
    pattern: Optional[str] = _FILTER_OPT,
    allow_conflicts: bool = typer.Option(False, "--allow-conflicts", help="Include files with name conflicts."),
):
    """👀 Show which files reference the types that would move."""
    source = source.resolve()
    options, scope_syntax = _resolve_settings(source, root, prefix, exclude, use_source_as_root, collapse, syntax)
    search_root = _resolve_search_root(search)

    records = scan_scripts(source, options, scope_syntax)
    selected = _select(records, include_unscoped=False, allow_conflicts=allow_conflicts, pattern=pattern)
    if not selected:
        typer.echo("No files need a new scope.")
        raise typer.Exit(code=0)

    affected = scan_affected_files_for_multiple(selected, search_root, scope_syntax)

    for record in selected:
        reports = affected.get(record.file_path, [])
        console.print(
            f"\n[bold]{record.relative_path}[/bold]  "
            f"{record.current_scope_name} → [cyan]{record.suggested_scope_name}[/cyan]"
        )
        if not reports:
            console.print("  [dim]no other files affected[/dim]")
        for report in reports:
            console.print(f"  • {report.relative_path}")
            for reference in report.references:
                console.print(f"      {reference}", markup=False)

    total = sum(len(v) for v in affected.values())
    typer.echo(f"\n{len(selected)} file(s) to rename, {total} affected file(s).")


@app.command("apply")
def apply(
    source: Path = typer.Argument(..., exists=True, file_okay=False, help="Folder with the files to rename."),
    search: Optional[Path] = typer.Option(None, "--search", "-s", help="Folder searched for references."),
    root: Optional[Path] = _ROOT_OPT,
    prefix: Optional[str] = _PREFIX_OPT,
    exclude: Optional[str] = _EXCLUDE_OPT,
    use_source_as_root: Optional[bool] = _SOURCE_ROOT_OPT,
    collapse: Optional[bool] = _COLLAPSE_OPT,
    syntax: Optional[str] = _SYNTAX_OPT,
    pattern: Optional[str] = _FILTER_OPT,
    overrides: List[str] = typer.Option([], "--set", help="Hand-edited scope: RELATIVE_PATH=SCOPE (repeatable)."),
    include_unscoped: bool = typer.Option(False, "--include-unscoped", help="Also add a scope to files without one."),
    allow_conflicts: bool = typer.Option(False, "--allow-conflicts", help="Rename files with name conflicts too."),
    auto_apply: bool = typer.Option(False, "--auto-apply", "--yes", "-y", help="Apply changes without confirmation."),
):
    """✏️  Rename scopes and update every reference.

    Example:
      scopepath apply Assets/Game --prefix Studio --exclude Scripts -y
    """
    source = source.resolve()
    options, scope_syntax = _resolve_settings(source, root, prefix, exclude, use_source_as_root, collapse, syntax)
    search_root = _resolve_search_root(search)

    records = scan_scripts(source, options, scope_syntax)
    _apply_overrides(records, overrides)
    selected = _select(records, include_unscoped, allow_conflicts, pattern)
    if not selected:
        typer.echo("No files need a new scope.")
        raise typer.Exit(code=0)

    table = Table(title="Planned changes", show_header=True)
    table.add_column("File", style="cyan")
    table.add_column("From")
    table.add_column("To")
    for record in selected:
        table.add_row(record.relative_path, record.current_scope_name or "[dim]—[/dim]", record.suggested_scope_name)
    console.print(table)

    if not auto_apply:
        confirmed = typer.confirm(
            f"\n❓ {len(selected)} file(s) will be modified and references under {search_root} updated. Continue?",
            default=False,
        )
        if not confirmed:
            typer.echo("❌ Cancelled")
            raise typer.Exit(code=0)

    renamer = BatchRenamer(search_root, scope_syntax)
    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("[cyan]Applying changes...", total=1.0)

        def _report(fraction: float, message: str) -> None:
            progress.update(task, completed=fraction, description=f"[cyan]{message}")

        summary = renamer.run(records, progress=_report)

    for outcome in summary.outcomes:
        if not outcome.success:
            typer.echo(f"❌ {outcome.old_scope_name or '(none)'} → {outcome.new_scope_name}: {outcome.error_message}")

    typer.echo(
        f"Complete. {summary.succeeded}/{len(summary.outcomes)} renamed, "
        f"{summary.files_modified} file(s) modified, "
        f"{summary.references_updated} reference(s) updated, "
        f"{summary.imports_removed} unused import(s) removed."
    )
    if summary.failed:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
