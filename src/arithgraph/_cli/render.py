"""Rich rendering utilities for CLI commands."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from rich.panel import Panel
from rich.table import Table

from arithgraph._dot import node_label
from arithgraph._ops import OpKind

if TYPE_CHECKING:
    from rich.console import Console

    from arithgraph._builder import Builder, ConstraintResult


def render_summary(builder: Builder, console: Console, title: str = "Circuit") -> None:
    """Render node counts per kind and the number of constraints.

    Args:
        builder: The graph to summarize.
        console: Rich Console to output to.
        title: Panel title.

    """
    counts = Counter(view.kind for view in builder.nodes())

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Kind", style="bold")
    table.add_column("Nodes", justify="right")

    for kind in OpKind:
        style = _get_kind_style(kind)
        table.add_row(f"[{style}]{kind.upper()}[/{style}]", str(counts[kind]))

    console.print(
        Panel(
            table,
            title=f"[bold]{title}[/bold]",
            subtitle=f"[dim]{len(builder)} nodes, {len(builder.constraints)} constraints[/dim]",
            border_style="cyan",
        ),
    )


def render_node_table(builder: Builder, console: Console) -> None:
    """Render every node with its operation and value."""
    table = Table(show_header=True, header_style="bold cyan", box=None)
    table.add_column("Id", style="dim", justify="right")
    table.add_column("Kind")
    table.add_column("Operation")
    table.add_column("Value", justify="right")

    for view in builder.nodes():
        style = _get_kind_style(view.kind)
        value = "[dim]-[/dim]" if view.value is None else str(view.value)
        table.add_row(
            str(view.id.index),
            f"[{style}]{view.kind.upper()}[/{style}]",
            node_label(view),
            value,
        )

    console.print(table)


def render_constraint_results(results: list[ConstraintResult], console: Console) -> None:
    """Render constraint outcomes as a table inside a panel."""
    if not results:
        console.print("[dim]No constraints declared[/dim]")
        return

    table = Table(show_header=True, header_style="bold cyan", box=None)
    table.add_column("Constraint", style="dim")
    table.add_column("Values")
    table.add_column("Result")

    for result in results:
        status = "[green]✓ PASS[/green]" if result.holds else "[red]✗ FAIL[/red]"
        table.add_row(
            f"{result.lhs} == {result.rhs}",
            f"{result.lhs_value} / {result.rhs_value}",
            status,
        )

    console.print(Panel(table, title="[bold]Constraint Results[/bold]", border_style="cyan"))


def _get_kind_style(kind: OpKind) -> str:
    match kind:
        case OpKind.INPUT:
            return "blue"
        case OpKind.CONST:
            return "magenta"
        case OpKind.HINT:
            return "yellow"
        case _:
            return "green"
