"""Command: rolegate roles - List the role hierarchy."""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from rolegate.modules.roles.models import RoleNode


console = Console()


def list_roles(
    policy: Path | None = typer.Option(
        None, "--policy", "-p", help="Policy file (defaults to the configured policy)"
    ),
) -> None:
    """List roles with their parents and hierarchy levels.

    Roles are shown in hierarchy order, each senior before its juniors.
    """
    from rolegate.utils import load_core

    core = load_core(policy, console)
    graph = core.role_graph

    if len(graph) == 0:
        console.print("[yellow]No roles defined.[/yellow]")
        return

    table = Table(title="Roles", show_header=True)
    table.add_column("Id", style="cyan", no_wrap=True)
    table.add_column("Name", no_wrap=True)
    table.add_column("Parent", style="green", no_wrap=True)
    table.add_column("Level", justify="right")
    table.add_column("Description")

    def add_rows(node: RoleNode) -> None:
        parent = graph.parent(node.id)
        table.add_row(
            node.id,
            node.name,
            parent.id if parent else "",
            str(graph.level(node.id)),
            node.description or "",
        )
        for child in node.children:
            add_rows(child)

    for root in graph.hierarchy_tree():
        add_rows(root)

    console.print()
    console.print(table)
    console.print()
