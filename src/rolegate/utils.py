"""Utility functions for the rolegate CLI."""

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from rolegate.config import get_settings
from rolegate.core.errors import AppException
from rolegate.main import AuthorizationCore, create_core
from rolegate.policy.loader import load_policy


# Exit code for unusable input, distinct from a denied check.
EXIT_USAGE_ERROR = 2


def load_core(policy_path: Path | None, console: Console) -> AuthorizationCore:
    """Build a core from ``policy_path``, the configured policy or the defaults.

    Prints the error and exits when the policy cannot be loaded.
    """
    try:
        policy = load_policy(policy_path) if policy_path is not None else None
        return create_core(policy=policy, settings=get_settings())
    except AppException as e:
        print_error(e, console)
        raise typer.Exit(EXIT_USAGE_ERROR) from e


def print_error(exc: AppException, console: Console) -> None:
    """Print an application error with any field-level details."""
    console.print(f"[red]Error:[/red] {escape(exc.message)}", soft_wrap=True)
    for error in exc.details.get("errors", []):
        message = escape(str(error.get("message")))
        console.print(f"  [dim]{error.get('field')}:[/dim] {message}", soft_wrap=True)
