"""Schema inspection commands."""

import json
from contextlib import contextmanager
from typing import Iterator, Optional

import typer
from rich.console import Console
from rich.table import Table

from ..database import connect
from ..errors import SchemaError
from ..schema import SchemaBuilder

console = Console()

DatabaseOption = typer.Option(None, "--database", "-d", help="Database URL (default: configured database_url)")


@contextmanager
def open_schema(database: Optional[str]) -> Iterator[SchemaBuilder]:
    """Open a schema builder, reporting connection and schema errors."""
    try:
        with connect(database) as connection:
            yield connection.get_schema_builder()
    except (SchemaError, ImportError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def _print_json(rows) -> None:
    console.print_json(json.dumps([row.to_dict() for row in rows], default=str))


def _yes_no(value: bool) -> str:
    return "[green]yes[/green]" if value else "no"


def list_tables(
    database: Optional[str] = DatabaseOption,
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
):
    """List tables."""
    with open_schema(database) as schema:
        tables = schema.get_tables()
        if as_json:
            _print_json(tables)
            return
        if not tables:
            console.print("[yellow]No tables found.[/yellow]")
            return

        table = Table(title="Tables")
        table.add_column("Name", style="cyan")
        table.add_column("Schema", style="blue")
        table.add_column("Size", justify="right")
        table.add_column("Comment", style="green")
        for info in tables:
            table.add_row(
                info.name,
                info.schema or "",
                str(info.size) if info.size is not None else "",
                info.comment or "",
            )
        console.print(table)


def list_views(
    database: Optional[str] = DatabaseOption,
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
):
    """List views."""
    with open_schema(database) as schema:
        views = schema.get_views()
        if as_json:
            _print_json(views)
            return
        if not views:
            console.print("[yellow]No views found.[/yellow]")
            return

        table = Table(title="Views")
        table.add_column("Name", style="cyan")
        table.add_column("Schema", style="blue")
        table.add_column("Definition", style="green")
        for info in views:
            table.add_row(info.name, info.schema or "", (info.definition or "").strip())
        console.print(table)


def list_columns(
    table_name: str = typer.Argument(..., help="Table name"),
    database: Optional[str] = DatabaseOption,
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
):
    """List the columns of a table."""
    with open_schema(database) as schema:
        columns = schema.get_columns(table_name)
        if as_json:
            _print_json(columns)
            return
        if not columns:
            console.print(f"[yellow]Table '{table_name}' not found or has no columns.[/yellow]")
            raise typer.Exit(1)

        table = Table(title=f"Columns of {table_name}")
        table.add_column("Name", style="cyan")
        table.add_column("Type", style="magenta")
        table.add_column("Nullable")
        table.add_column("Default", style="blue")
        table.add_column("Auto Increment")
        table.add_column("Comment", style="green")
        for column in columns:
            table.add_row(
                column.name,
                column.type,
                _yes_no(column.nullable),
                column.default if column.default is not None else "",
                _yes_no(column.auto_increment),
                column.comment or "",
            )
        console.print(table)


def list_indexes(
    table_name: str = typer.Argument(..., help="Table name"),
    database: Optional[str] = DatabaseOption,
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
):
    """List the indexes of a table."""
    with open_schema(database) as schema:
        indexes = schema.get_indexes(table_name)
        if as_json:
            _print_json(indexes)
            return
        if not indexes:
            console.print(f"[yellow]No indexes found on '{table_name}'.[/yellow]")
            return

        table = Table(title=f"Indexes of {table_name}")
        table.add_column("Name", style="cyan")
        table.add_column("Columns", style="magenta")
        table.add_column("Unique")
        table.add_column("Primary")
        for index in indexes:
            table.add_row(index.name, ", ".join(index.columns), _yes_no(index.unique), _yes_no(index.primary))
        console.print(table)


def list_foreign_keys(
    table_name: str = typer.Argument(..., help="Table name"),
    database: Optional[str] = DatabaseOption,
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
):
    """List the foreign keys of a table."""
    with open_schema(database) as schema:
        foreign_keys = schema.get_foreign_keys(table_name)
        if as_json:
            _print_json(foreign_keys)
            return
        if not foreign_keys:
            console.print(f"[yellow]No foreign keys found on '{table_name}'.[/yellow]")
            return

        table = Table(title=f"Foreign keys of {table_name}")
        table.add_column("Name", style="cyan")
        table.add_column("Columns", style="magenta")
        table.add_column("References", style="green")
        table.add_column("On Update")
        table.add_column("On Delete")
        for fk in foreign_keys:
            table.add_row(
                fk.name or "",
                ", ".join(fk.columns),
                f"{fk.foreign_table} ({', '.join(fk.foreign_columns)})",
                fk.on_update or "",
                fk.on_delete or "",
            )
        console.print(table)


def column_type(
    table_name: str = typer.Argument(..., help="Table name"),
    column_name: str = typer.Argument(..., help="Column name"),
    full: bool = typer.Option(False, "--full", help="Show the full type definition"),
    database: Optional[str] = DatabaseOption,
):
    """Show the type of a column."""
    with open_schema(database) as schema:
        console.print(schema.get_column_type(table_name, column_name, full_definition=full))
