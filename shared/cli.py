"""Console helpers shared by the CLI tools."""

import functools
import sys
from typing import Any, Callable

import click
from rich.console import Console
from rich.markup import escape

# Status messages go to stderr so stdout stays clean for piped output.
console = Console(stderr=True)


def success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]✓[/bold green] {escape(message)}")


def error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]✗ Error:[/bold red] {escape(message)}")


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """
    Turn unexpected exceptions in a click command into a clean exit.

    Click's own exceptions (usage errors, ``sys.exit``) pass through.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except (click.ClickException, click.exceptions.Exit, SystemExit):
            raise
        except KeyboardInterrupt:
            error("Interrupted")
            sys.exit(130)
        except Exception as e:
            error(f"Unexpected error: {e}")
            sys.exit(1)

    return wrapper
