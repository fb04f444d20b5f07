# brandsync/cli/main_cli.py
import typer

from . import config  # noqa: F401  (loads .env before settings)
from . import legacy_cli, theme_cli
from .utils_cli import run_async
from ..storage.sqlite_base import close_sqlite_db_connection, get_sqlite_db_connection

# Main CLI application with help enabled when no arguments are provided
app = typer.Typer(
    name="brandsync",
    help="BrandSync Command Line Interface.",
    no_args_is_help=True
)

db_app = typer.Typer(name="db", help="Manage the SQLite token store.", no_args_is_help=True)

app.add_typer(theme_cli.app, name="theme")
app.add_typer(legacy_cli.app, name="legacy")
app.add_typer(db_app, name="db")


@app.callback()
def main_callback():
    """
    BrandSync main CLI application.
    Use 'brandsync theme --help' to inspect resolved themes.
    """
    pass


@db_app.command("init")
def init_db():
    """Create the token document and legacy field tables."""
    async def _init():
        await get_sqlite_db_connection()
        await close_sqlite_db_connection()

    run_async(_init())
    typer.secho("SQLite schema initialized.", fg=typer.colors.GREEN)


def cli_entry_point():
    """Entry point function for console script registration in pyproject.toml"""
    app()


if __name__ == "__main__":
    cli_entry_point()
