"""Main rolegate CLI application."""

import typer
from rich.console import Console

from rolegate import __version__
from rolegate.commands import check, roles, tree
from rolegate.core.logging import configure_logging


console = Console()

app = typer.Typer(
    name="rolegate",
    help="Inspect role hierarchies and check permissions.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Register commands
app.command(name="roles")(roles.list_roles)
app.command(name="tree")(tree.show_tree)
app.command(name="check")(check.check)


@app.callback(invoke_without_command=True)
def version_callback(
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version and exit."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", help="Log policy loading and core events."
    ),
) -> None:
    """rolegate CLI - Inspect role hierarchies and check permissions."""
    if version:
        console.print(f"[bold cyan]rolegate[/bold cyan] version {__version__}")
        raise typer.Exit()

    configure_logging(level="DEBUG" if verbose else "WARNING")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
