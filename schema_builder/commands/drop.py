"""Destructive schema commands."""

from typing import Optional

import typer
from rich.prompt import Confirm

from .introspect import DatabaseOption, console, open_schema


def drop_all(
    database: Optional[str] = DatabaseOption,
    views: bool = typer.Option(False, "--views", help="Also drop all views"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation prompt"),
):
    """Drop every table (and optionally every view)."""
    with open_schema(database) as schema:
        tables = schema.get_table_listing()
        view_names = [view.name for view in schema.get_views()] if views else []
        if not tables and not view_names:
            console.print("[yellow]Nothing to drop.[/yellow]")
            return

        console.print("[bold]Objects to drop:[/bold]")
        for name in view_names:
            console.print(f"  - view {name}")
        for name in tables:
            console.print(f"  - table {name}")

        if not force:
            if not Confirm.ask(f"\nDrop {len(tables)} table(s) and {len(view_names)} view(s)?"):
                console.print("[yellow]Aborted.[/yellow]")
                raise typer.Exit(0)

        if view_names:
            schema.drop_all_views()
        schema.drop_all_tables()
        console.print(f"[green]Dropped {len(tables)} table(s) and {len(view_names)} view(s).[/green]")
