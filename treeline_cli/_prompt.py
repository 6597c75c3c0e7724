"""Interactive list selection."""

from __future__ import annotations

from typing import Any, Optional

from rich.console import Console
from rich.prompt import IntPrompt
from rich.table import Table

from treeline.errors import TreelineError


def select(choices: list[dict], message: str, console: Optional[Console] = None) -> Any:
    """Show `choices` ({"name", "value"}) as a numbered list and return the chosen value."""
    if not choices:
        raise TreelineError("Nothing to choose from.")
    console = console or Console(stderr=True)

    grid = Table.grid(padding=(0, 2))
    grid.add_column(style="cyan", justify="right")
    grid.add_column(style="white")
    for i, choice in enumerate(choices, 1):
        grid.add_row(str(i), choice["name"])

    console.print(f"[bold]{message}[/bold]")
    console.print(grid)
    kwargs = {"default": 1} if len(choices) == 1 else {}
    index = IntPrompt.ask(
        "Number",
        console=console,
        choices=[str(i) for i in range(1, len(choices) + 1)],
        show_choices=False,
        **kwargs,
    )
    return choices[index - 1]["value"]
