"""Graphviz DOT export of a computation graph."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from ._ops import OpKind

if TYPE_CHECKING:
    from ._builder import Builder, NodeView

logger = logging.getLogger(__name__)


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def node_label(view: NodeView) -> str:
    """Get the display label of a node."""
    match view.kind:
        case OpKind.INPUT:
            return f"Input {view.label}" if view.label else "Input"
        case OpKind.CONST:
            return f"Const({view.constant})"
        case OpKind.ADD:
            lhs, rhs = view.operands
            return f"Add {lhs} + {rhs}"
        case OpKind.MUL:
            lhs, rhs = view.operands
            return f"Mul {lhs} * {rhs}"
        case OpKind.HINT:
            return "Hint"


def to_dot(builder: Builder, *, name: str = "ComputationalGraph", show_values: bool = False) -> str:
    """Render the graph in DOT format.

    Each node becomes one line, and each operand reference one edge pointing
    from the operand to the node using it. Equality constraints are drawn as
    dashed edges without arrow heads.

    Args:
        builder: The graph to render.
        name: Name of the digraph, quoted in the output.
        show_values: Append resolved values to node labels.

    Returns:
        The DOT source text, ending with a newline.

    """
    lines = [f'digraph "{_escape(name)}" {{']
    for view in builder.nodes():
        label = node_label(view)
        if show_values and view.value is not None:
            label += f" = {view.value}"
        lines.append(f'  {view.id} [label="{_escape(label)}"]')
        lines.extend(f"  {operand} -> {view.id};" for operand in view.operands)
    lines.extend(f"  {lhs} -> {rhs} [style=dashed, dir=none];" for lhs, rhs in builder.constraints)
    lines.append("}")
    return "\n".join(lines) + "\n"


def write_dot(builder: Builder, path: Path | str, *, show_values: bool = False) -> None:
    """Write the DOT rendering of the graph to a file."""
    path = Path(path)
    path.write_text(to_dot(builder, show_values=show_values))
    logger.debug(f"Wrote DOT graph to {path}")
