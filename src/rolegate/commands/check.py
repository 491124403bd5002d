"""Command: rolegate check - Check whether roles grant a permission."""

from pathlib import Path

import typer
from rich.console import Console


console = Console()


def check(
    roles: list[str] = typer.Option(
        ..., "--role", "-r", help="Role held by the user (repeatable)"
    ),
    permission: str = typer.Option(
        ..., "--permission", help="Permission code, e.g. system.user.view"
    ),
    policy: Path | None = typer.Option(
        None, "--policy", "-p", help="Policy file (defaults to the configured policy)"
    ),
) -> None:
    """Check whether a set of roles grants a permission.

    Exits 0 when allowed and 1 when denied.
    """
    from rolegate.core.errors import AppException
    from rolegate.utils import EXIT_USAGE_ERROR, load_core, print_error

    core = load_core(policy, console)

    try:
        allowed = core.checker.for_user(roles).can(permission)
    except AppException as e:
        print_error(e, console)
        raise typer.Exit(EXIT_USAGE_ERROR) from e

    if core.catalog.get_by_code(permission) is None:
        console.print(
            f"[yellow]Warning:[/yellow] Permission '{permission}' is not in the catalog."
        )

    if allowed:
        console.print(f"[green]✓ allowed[/green] {permission}")
        return

    console.print(f"[red]✗ denied[/red] {permission}")
    raise typer.Exit(1)
