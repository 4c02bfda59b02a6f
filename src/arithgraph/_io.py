"""Loading input assignments and exporting results as TOML."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt

from ._ops import NodeId

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ._builder import Builder

logger = logging.getLogger(__name__)


class InputFile(BaseModel):
    """Schema of an input TOML file.

    Example:
        [inputs]
        x = 3
        "4" = 7  # input node with id 4

    """

    model_config = ConfigDict(extra="forbid")

    inputs: dict[str, NonNegativeInt] = Field(default_factory=dict)


def toml_to_assignment(builder: Builder, toml_contents: Mapping[str, Any]) -> dict[NodeId, int]:
    """Convert parsed TOML contents into an assignment for `Builder.fill_nodes`.

    Keys of the ``inputs`` table are input labels, or decimal node ids for
    unlabelled inputs.

    Raises:
        pydantic.ValidationError: If the contents do not match `InputFile`.
        ValueError: If a key is neither a known label nor a node id.

    """
    input_file = InputFile.model_validate(toml_contents)
    labels = builder.input_ids()

    assignment: dict[NodeId, int] = {}
    for key, value in input_file.inputs.items():
        if key in labels:
            assignment[labels[key]] = value
        elif key.isdecimal():
            assignment[NodeId(int(key))] = value
        else:
            msg = f"Input key '{key}' is neither an input label nor a node id"
            raise ValueError(msg)
    return assignment


def load_assignment_from_toml(builder: Builder, input_path: Path | str) -> dict[NodeId, int]:
    """Load input values for a graph from a TOML file."""
    input_path = Path(input_path)
    with input_path.open("rb") as f:
        toml_contents = tomllib.load(f)

    assignment = toml_to_assignment(builder, toml_contents)
    logger.debug(f"Loaded {len(assignment)} input value(s) from {input_path}")
    return assignment


def results_to_dict(builder: Builder) -> dict[str, Any]:
    """Convert the state of a graph to a dictionary suitable for TOML export.

    Absent values are omitted since TOML has no null. The structure is:

        {
            "nodes": {"0": {"kind": "input", "label": "x", "value": 3}, ...},
            "constraints": [{"lhs": 4, "rhs": 5, "lhs_value": 17, "rhs_value": 17, "holds": True}, ...],
        }

    """
    nodes: dict[str, Any] = {}
    values: dict[NodeId, int | None] = {}
    for view in builder.nodes():
        entry: dict[str, Any] = {"kind": str(view.kind)}
        if view.label is not None:
            entry["label"] = view.label
        if view.constant is not None:
            entry["constant"] = view.constant
        if view.operands:
            entry["operands"] = [operand.index for operand in view.operands]
        if view.value is not None:
            entry["value"] = view.value
        nodes[str(view.id.index)] = entry
        values[view.id] = view.value

    constraints: list[dict[str, Any]] = []
    for lhs, rhs in builder.constraints:
        entry = {"lhs": lhs.index, "rhs": rhs.index}
        lhs_value, rhs_value = values[lhs], values[rhs]
        if lhs_value is not None:
            entry["lhs_value"] = lhs_value
        if rhs_value is not None:
            entry["rhs_value"] = rhs_value
        if lhs_value is not None and rhs_value is not None:
            entry["holds"] = lhs_value == rhs_value
        constraints.append(entry)

    return {"nodes": nodes, "constraints": constraints}


def export_to_toml(builder: Builder, output_path: Path | str) -> None:
    """Export node values and constraint outcomes to a TOML file."""
    toml_data = results_to_dict(builder)

    output_path = Path(output_path)
    with output_path.open("wb") as f:
        tomli_w.dump(toml_data, f)

    logger.debug(f"Exported results to {output_path}")
