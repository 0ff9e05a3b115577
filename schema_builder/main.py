"""schema-builder CLI - Main entry point."""

import logging

import typer
from rich.console import Console

from .commands import drop, introspect
from .config import settings

app = typer.Typer(
    name="schema-builder",
    help="Inspect database schemas and manage tables",
    add_completion=False,
)

app.command("tables")(introspect.list_tables)
app.command("views")(introspect.list_views)
app.command("columns")(introspect.list_columns)
app.command("indexes")(introspect.list_indexes)
app.command("foreign-keys")(introspect.list_foreign_keys)
app.command("column-type")(introspect.column_type)
app.command("drop-all")(drop.drop_all)

console = Console()


@app.command()
def config():
    """Show current configuration."""
    console.print("[bold]Current Configuration[/bold]")
    console.print(f"  Database URL: {settings.database_url}")
    console.print(f"  Table Prefix: {settings.table_prefix or 'Not set'}")
    console.print(f"  Default String Length: {settings.default_string_length}")
    console.print(f"  PostgreSQL Schema: {settings.postgres_schema}")
    console.print(f"  SQL Server Schema: {settings.sqlsrv_schema}")
    console.print(f"  SQLite Foreign Keys: {'Enabled' if settings.sqlite_foreign_keys else 'Disabled'}")
    console.print(f"  MySQL Engine: {settings.mysql_engine or 'Server default'}")
    console.print(f"  MySQL Charset: {settings.mysql_charset or 'Server default'}")
    console.print(f"  MySQL Collation: {settings.mysql_collation or 'Server default'}")
    console.print(f"  Log Level: {settings.log_level}")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every executed statement"),
):
    """
    schema-builder - Inspect database schemas and manage tables.

    Examples:

        schema-builder tables --database sqlite:///app.db

        schema-builder indexes users -d mysql://root@localhost/app

        schema-builder column-type users email --full

        schema-builder drop-all --views --force
    """
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


if __name__ == "__main__":
    app()
