from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from arithgraph._dot import to_dot, write_dot
from arithgraph._errors import GraphError
from arithgraph._io import export_to_toml, load_assignment_from_toml

from .config import ArithgraphConfig, ConfigError, ModuleSource, ScriptSource, get_config
from .discover import circuit_source_from_argument, load_builder_from_source
from .render import render_constraint_results, render_node_table, render_summary

if TYPE_CHECKING:
    from arithgraph._builder import Builder

app = typer.Typer()

logger = logging.getLogger(__name__)
# Console for stderr (info/errors)
err_console = Console(stderr=True)
# Console for stdout (results)
out_console = Console()

PathArgument = Annotated[
    str | None,
    typer.Argument(help="Path to Python script or module path (e.g., examples.polynomial:build)"),
]
BuilderOption = Annotated[
    str | None,
    typer.Option("--builder", help="Name of the Builder variable or factory (for script paths only)"),
]


@app.callback()
def callback(
    *,
    verbose: bool = typer.Option(default=False, help="Enable verbose output"),
) -> None:
    """Arithgraph CLI."""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Configure rich logging handler to output to stderr
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=err_console,
                show_time=False,
                show_path=verbose,
                rich_tracebacks=True,
            ),
        ],
    )


def _get_config() -> ArithgraphConfig:
    try:
        return get_config()
    except ConfigError as e:
        err_console.print(f"[red]Configuration error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e


def _load_builder(path: str | None, config: ArithgraphConfig, builder_var: str | None = None) -> Builder:
    """Load a builder from the CLI path or from config."""
    if path is not None:
        source = circuit_source_from_argument(path, builder_var)
    elif isinstance(config.circuit, ScriptSource) and builder_var:
        source = replace(config.circuit, name=builder_var)
    else:
        source = config.circuit

    match source:
        case ScriptSource(script=script):
            err_console.print(f"[cyan]Loading circuit from script:[/cyan] {script}")
        case ModuleSource(module_path=module_path):
            err_console.print(f"[cyan]Loading circuit from module:[/cyan] {module_path}")
        case None:
            err_console.print(
                "[red]Error: No circuit specified. Provide a path argument "
                "or configure \\[tool.arithgraph].circuit in pyproject.toml.[/red]",
            )
            raise typer.Exit(code=1)

    return load_builder_from_source(source)


@app.command()
def run(  # noqa: PLR0913
    path: PathArgument = None,
    *,
    input: Annotated[  # noqa: A002
        Path | None,
        typer.Option("-i", "--input", help="Path to input TOML file"),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("-o", "--output", help="Path to output TOML file"),
    ] = None,
    builder_var: BuilderOption = None,
    dot: Annotated[
        Path | None,
        typer.Option("--dot", help="Also write the evaluated graph in DOT format"),
    ] = None,
    verify: Annotated[
        bool,
        typer.Option("--verify", help="Exit non-zero if any constraint fails"),
    ] = False,
) -> None:
    """Evaluate a circuit on the given inputs and check its constraints."""
    err_console.print()
    config = _get_config()

    effective_input = input if input is not None else config.input
    if effective_input is None:
        err_console.print("[red]Error: Input file required. Use -i/--input or configure \\[tool.arithgraph].input[/red]")
        raise typer.Exit(code=1)
    effective_output = output if output is not None else config.output
    effective_dot = dot if dot is not None else config.dot

    builder = _load_builder(path, config, builder_var)
    err_console.print(f"[cyan]Circuit:[/cyan] [bold]{len(builder)} nodes[/bold]")
    err_console.print()

    err_console.print(f"[cyan]Loading input from:[/cyan] {effective_input}")
    try:
        assignment = load_assignment_from_toml(builder, effective_input)
    except (ValidationError, ValueError) as e:
        err_console.print(f"[red]Invalid input file: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e

    err_console.print("[cyan]Propagating values...[/cyan]")
    try:
        builder.fill_nodes(assignment)
        report = builder.constraint_report()
    except GraphError as e:
        err_console.print(f"[red]✗ {type(e).__name__}: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e
    passed = all(result.holds for result in report)
    err_console.print()

    render_node_table(builder, out_console)
    out_console.print()
    render_constraint_results(report, err_console)
    err_console.print()

    if not passed:
        err_console.print("[red]✗ Some constraints failed[/red]")

    if effective_output is not None:
        err_console.print(f"[cyan]Exporting results to:[/cyan] {effective_output}")
        effective_output.parent.mkdir(parents=True, exist_ok=True)
        export_to_toml(builder, effective_output)

    if effective_dot is not None:
        err_console.print(f"[cyan]Writing DOT graph to:[/cyan] {effective_dot}")
        effective_dot.parent.mkdir(parents=True, exist_ok=True)
        write_dot(builder, effective_dot, show_values=True)

    err_console.print()
    err_console.print("[green]✓ Evaluation complete[/green]")
    err_console.print()

    if verify and not passed:
        raise typer.Exit(code=1)

    raise typer.Exit(code=0)


@app.command()
def check(
    path: PathArgument = None,
    *,
    builder_var: BuilderOption = None,
) -> None:
    """Load a circuit and summarize it without evaluating."""
    err_console.print()
    config = _get_config()
    builder = _load_builder(path, config, builder_var)
    err_console.print()

    render_summary(builder, err_console)

    err_console.print()
    err_console.print("[green]✓ Circuit loaded[/green]")
    err_console.print()


@app.command()
def dot(
    path: PathArgument = None,
    *,
    output: Annotated[
        Path | None,
        typer.Option(
            "-o",
            "--output",
            help="Path to output DOT file (defaults to the dot config setting, else stdout)",
        ),
    ] = None,
    builder_var: BuilderOption = None,
) -> None:
    """Write the structure of a circuit in Graphviz DOT format."""
    config = _get_config()
    builder = _load_builder(path, config, builder_var)

    output = output if output is not None else config.dot
    if output is None:
        # Plain print so that the output can be piped to graphviz
        print(to_dot(builder), end="")  # noqa: T201
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    write_dot(builder, output)
    err_console.print(f"[green]✓ DOT graph written to {output}[/green]")


def main() -> None:
    app()
