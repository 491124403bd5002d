"""Command: rolegate tree - Show the permission tree."""

from pathlib import Path

import typer
from rich.console import Console
from rich.tree import Tree

from rolegate.modules.permissions.models import PermissionNode


console = Console()


def _add_branch(parent: Tree, node: PermissionNode) -> None:
    label = f"[cyan]{node.code}[/cyan]"
    if node.name != node.code:
        label += f" {node.name}"
    label += f" [dim]({node.type})[/dim]"
    branch = parent.add(label)
    for child in node.children:
        _add_branch(branch, child)


def show_tree(
    roles: list[str] | None = typer.Option(
        None,
        "--role",
        "-r",
        help="Only show permissions effective for these roles (repeatable)",
    ),
    policy: Path | None = typer.Option(
        None, "--policy", "-p", help="Policy file (defaults to the configured policy)"
    ),
) -> None:
    """Show the permission tree.

    Without --role the whole catalog is shown; with it, only what the
    given roles hold directly or through inheritance.
    """
    from rolegate.core.errors import AppException
    from rolegate.utils import EXIT_USAGE_ERROR, load_core, print_error

    core = load_core(policy, console)

    if roles:
        try:
            nodes = core.checker.for_user(roles).tree()
        except AppException as e:
            print_error(e, console)
            raise typer.Exit(EXIT_USAGE_ERROR) from e
        title = f"Permissions for {', '.join(roles)}"
    else:
        nodes = core.tree_builder.build(core.catalog.all())
        title = "Permissions"

    if not nodes:
        console.print("[yellow]No permissions.[/yellow]")
        return

    tree = Tree(f"[bold]{title}[/bold]")
    for node in nodes:
        _add_branch(tree, node)

    console.print()
    console.print(tree)
    console.print()
