"""CLI commands for managing saved scan defaults."""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from . import config
from .config_manager import clear_scope_config, load_scope_config, save_scope_config
from .models import SYNTAX_PRESETS

console = Console()

config_app = typer.Typer(
    help="⚙️  Configuration — default prefix, exclusions and syntax.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@config_app.command("show")
def show_config():
    """Show the effective [scope] settings."""
    settings = load_scope_config()
    table = Table(title=f"Settings ({config.CONFIG_FILE})", show_header=True)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in settings.items():
        table.add_row(key, repr(value))
    console.print(table)


@config_app.command("set")
def set_config(
    prefix: Optional[str] = typer.Option(None, "--prefix", help="Leading scope segment(s)."),
    exclude: Optional[str] = typer.Option(None, "--exclude", help="Comma-separated folder names to drop."),
    use_source_as_root: Optional[bool] = typer.Option(
        None, "--use-source-as-root/--no-use-source-as-root", help="Derive names from the source folder."
    ),
    collapse: Optional[bool] = typer.Option(
        None, "--collapse/--no-collapse", help="Collapse adjacent duplicate segments."
    ),
    syntax: Optional[str] = typer.Option(None, "--syntax", help="Syntax preset: csharp or generic."),
    search_root: Optional[str] = typer.Option(None, "--search", help="Default folder searched for references."),
    project_root: Optional[str] = typer.Option(None, "--project-root", help="Root used without --use-source-as-root."),
):
    """Save default settings to the config file."""
    if syntax is not None and syntax not in SYNTAX_PRESETS:
        raise typer.BadParameter(f"Unknown syntax '{syntax}'. Choose from: {', '.join(sorted(SYNTAX_PRESETS))}")

    values = {
        "prefix": prefix,
        "exclude": exclude,
        "use_source_as_root": use_source_as_root,
        "collapse_duplicates": collapse,
        "syntax": syntax,
        "search_root": search_root,
        "project_root": project_root,
    }
    values = {k: v for k, v in values.items() if v is not None}
    if not values:
        typer.echo("Nothing to save. Pass at least one option.")
        raise typer.Exit(code=1)

    if not save_scope_config(**values):
        typer.echo(f"❌ Could not write {config.CONFIG_FILE}")
        raise typer.Exit(code=1)
    typer.echo(f"✅ Saved {', '.join(sorted(values))} to {config.CONFIG_FILE}")


@config_app.command("reset")
def reset_config():
    """Remove saved settings and fall back to defaults."""
    if not clear_scope_config():
        typer.echo(f"❌ Could not write {config.CONFIG_FILE}")
        raise typer.Exit(code=1)
    typer.echo("✅ Settings reset to defaults.")
