"""Reading the ``[tool.arithgraph]`` table of pyproject.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator


class ConfigError(Exception):
    """Error in arithgraph configuration."""


@dataclass(slots=True, frozen=True)
class ScriptSource:
    """Circuit script with optional Builder variable or factory name."""

    script: Path
    name: str | None = None


@dataclass(slots=True, frozen=True)
class ModuleSource:
    """Importable circuit given as 'module.path:name' (e.g., 'examples.polynomial:build')."""

    module_path: str


CircuitSource = ScriptSource | ModuleSource


class ScriptTable(BaseModel):
    """Table form of the circuit setting: ``{ script = "circuit.py", name = "build" }``."""

    model_config = ConfigDict(extra="forbid")

    script: Path
    name: str | None = None


class ToolSection(BaseModel):
    """Schema of the ``[tool.arithgraph]`` table.

    Example:
        [tool.arithgraph]
        circuit = { script = "examples/polynomial.py", name = "build" }
        input = "examples/polynomial.toml"
        output = "results.toml"
        dot = "graph.dot"

    Paths are relative to the directory containing pyproject.toml.
    """

    model_config = ConfigDict(extra="forbid")

    circuit: str | ScriptTable | None = None
    input: Path | None = None
    output: Path | None = None
    dot: Path | None = None

    @field_validator("circuit")
    @classmethod
    def _check_module_path(cls, value: str | ScriptTable | None) -> str | ScriptTable | None:
        if isinstance(value, str) and ":" not in value:
            msg = f"Invalid module path '{value}'. Expected format: 'module.path:variable_name'"
            raise ValueError(msg)
        return value


@dataclass(slots=True, frozen=True)
class ArithgraphConfig:
    """Defaults for the CLI commands, with paths resolved against the project root."""

    circuit: CircuitSource | None = None
    input: Path | None = None
    output: Path | None = None
    dot: Path | None = None
    project_root: Path | None = None


def find_pyproject_toml(start_dir: Path | None = None) -> Path | None:
    """Find the nearest pyproject.toml in `start_dir` (default: cwd) or its parents."""
    start = (start_dir or Path.cwd()).resolve()
    for directory in (start, *start.parents):
        candidate = directory / "pyproject.toml"
        if candidate.is_file():
            return candidate
    return None


def _to_config(section: ToolSection, project_root: Path) -> ArithgraphConfig:
    def resolve(path: Path | None) -> Path | None:
        # Joining keeps absolute paths unchanged
        return None if path is None else project_root / path

    circuit: CircuitSource | None
    match section.circuit:
        case str(module_path):
            circuit = ModuleSource(module_path=module_path)
        case ScriptTable(script=script, name=name):
            circuit = ScriptSource(script=project_root / script, name=name)
        case _:
            circuit = None

    return ArithgraphConfig(
        circuit=circuit,
        input=resolve(section.input),
        output=resolve(section.output),
        dot=resolve(section.dot),
        project_root=project_root,
    )


def load_config(pyproject_path: Path) -> ArithgraphConfig:
    """Load and validate ``[tool.arithgraph]`` from a pyproject.toml.

    Raises:
        ConfigError: If the file is not valid TOML or the table does not match `ToolSection`.

    """
    with pyproject_path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {pyproject_path}: {e}"
            raise ConfigError(msg) from e

    try:
        section = ToolSection.model_validate(data.get("tool", {}).get("arithgraph", {}))
    except ValidationError as e:
        msg = f"Invalid [tool.arithgraph] in {pyproject_path}:\n{e}"
        raise ConfigError(msg) from e

    return _to_config(section, pyproject_path.parent)


def get_config() -> ArithgraphConfig:
    """Get config from the nearest pyproject.toml, or an empty one if there is none."""
    pyproject_path = find_pyproject_toml()
    if pyproject_path is None:
        return ArithgraphConfig()
    return load_config(pyproject_path)
