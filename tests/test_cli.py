"""Tests for circuit discovery and the CLI commands."""

import tomllib
import uuid
from pathlib import Path

import pytest
from typer.testing import CliRunner

import arithgraph as ag
from arithgraph._cli.config import ModuleSource, ScriptSource
from arithgraph._cli.discover import (
    circuit_source_from_argument,
    import_target,
    load_builder_from_module_path,
    load_builder_from_script,
    load_builder_from_source,
)
from arithgraph._cli.main import app

CIRCUIT = """
from math import isqrt

import arithgraph as ag


def build():
    builder = ag.Builder()
    x = builder.init("x")
    r = builder.hint([x], lambda vals: isqrt(vals[0]))
    builder.assert_equal(builder.mul(r, r), x)
    return builder


def not_a_builder():
    return 42


builder = build()
number = 7
"""

runner = CliRunner()


def _write_circuit(directory: Path, code: str = CIRCUIT) -> Path:
    # Unique module names, since imported modules are cached in sys.modules
    script = directory / f"circuit_{uuid.uuid4().hex}.py"
    script.write_text(code)
    return script


def _write_input(directory: Path, x: int) -> Path:
    input_path = directory / "input.toml"
    input_path.write_text(f"[inputs]\nx = {x}\n")
    return input_path


# --- Discovery ---


class TestImportTarget:
    def test_plain_script(self, tmp_path: Path) -> None:
        script = tmp_path / "circuit.py"
        script.write_text("")

        assert import_target(script) == ("circuit", tmp_path.resolve())

    def test_script_in_package(self, tmp_path: Path) -> None:
        package = tmp_path / "pkg"
        package.mkdir()
        (package / "__init__.py").write_text("")
        script = package / "circuit.py"
        script.write_text("")

        assert import_target(script) == ("pkg.circuit", tmp_path.resolve())

    def test_package_init(self, tmp_path: Path) -> None:
        package = tmp_path / "pkg"
        package.mkdir()
        init = package / "__init__.py"
        init.write_text("")

        assert import_target(init) == ("pkg", tmp_path.resolve())


class TestCircuitSourceFromArgument:
    def test_module_path(self) -> None:
        assert circuit_source_from_argument("examples.polynomial:build", "ignored") == ModuleSource(
            module_path="examples.polynomial:build",
        )

    def test_script_path(self) -> None:
        assert circuit_source_from_argument("circuit.py", "build") == ScriptSource(
            script=Path("circuit.py"),
            name="build",
        )


class TestLoadBuilder:
    def test_finds_module_level_builder(self, tmp_path: Path) -> None:
        builder = load_builder_from_script(_write_circuit(tmp_path))

        assert isinstance(builder, ag.Builder)
        assert len(builder) == 3

    def test_factory_gives_fresh_builders(self, tmp_path: Path) -> None:
        script = _write_circuit(tmp_path)

        first = load_builder_from_script(script, "build")
        second = load_builder_from_script(script, "build")

        assert first is not second

    def test_missing_name(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="Could not find 'missing'"):
            load_builder_from_script(_write_circuit(tmp_path), "missing")

    def test_not_a_builder(self, tmp_path: Path) -> None:
        with pytest.raises(TypeError, match="not a Builder"):
            load_builder_from_script(_write_circuit(tmp_path), "number")

    def test_factory_returning_other_type(self, tmp_path: Path) -> None:
        with pytest.raises(TypeError, match="returned int"):
            load_builder_from_script(_write_circuit(tmp_path), "not_a_builder")

    def test_no_builder_in_module(self, tmp_path: Path) -> None:
        script = _write_circuit(tmp_path, "value = 1\n")

        with pytest.raises(ValueError, match="Could not find a Builder"):
            load_builder_from_script(script)

    def test_module_path_requires_colon(self) -> None:
        with pytest.raises(ValueError, match="module.path:variable_name"):
            load_builder_from_module_path("arithgraph")

    def test_from_sources(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        script = _write_circuit(tmp_path)
        monkeypatch.syspath_prepend(str(tmp_path))

        from_script = load_builder_from_source(ScriptSource(script=script, name="build"))
        from_module = load_builder_from_source(ModuleSource(module_path=f"{script.stem}:build"))

        assert len(from_script) == len(from_module) == 3


# --- Commands ---


class TestRunCommand:
    def test_passing_constraints(self, tmp_path: Path) -> None:
        script = _write_circuit(tmp_path)
        output = tmp_path / "out" / "result.toml"
        dot = tmp_path / "graph.dot"

        result = runner.invoke(
            app,
            [
                "run",
                str(script),
                "--builder",
                "build",
                "-i",
                str(_write_input(tmp_path, 16)),
                "-o",
                str(output),
                "--dot",
                str(dot),
                "--verify",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "Evaluation complete" in result.output
        with output.open("rb") as f:
            data = tomllib.load(f)
        assert data["nodes"]["1"]["value"] == 4
        assert data["constraints"][0]["holds"] is True
        assert 'Node1 [label="Hint = 4"]' in dot.read_text()

    def test_failing_constraint_with_verify(self, tmp_path: Path) -> None:
        script = _write_circuit(tmp_path)

        result = runner.invoke(
            app,
            ["run", str(script), "--builder", "build", "-i", str(_write_input(tmp_path, 15)), "--verify"],
        )

        assert result.exit_code == 1
        assert "Some constraints failed" in result.output

    def test_failing_constraint_without_verify(self, tmp_path: Path) -> None:
        script = _write_circuit(tmp_path)

        result = runner.invoke(
            app,
            ["run", str(script), "--builder", "build", "-i", str(_write_input(tmp_path, 15))],
        )

        assert result.exit_code == 0

    def test_missing_input_value(self, tmp_path: Path) -> None:
        script = _write_circuit(tmp_path)
        input_path = tmp_path / "empty.toml"
        input_path.write_text("[inputs]\n")

        result = runner.invoke(app, ["run", str(script), "--builder", "build", "-i", str(input_path)])

        assert result.exit_code == 1
        assert "MissingInputError" in result.output

    def test_invalid_input_file(self, tmp_path: Path) -> None:
        script = _write_circuit(tmp_path)
        input_path = tmp_path / "bad.toml"
        input_path.write_text("[inputs]\ny = 1\n")

        result = runner.invoke(app, ["run", str(script), "--builder", "build", "-i", str(input_path)])

        assert result.exit_code == 1
        assert "Invalid input file" in result.output

    def test_input_required(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        script = _write_circuit(tmp_path)

        result = runner.invoke(app, ["run", str(script)])

        assert result.exit_code == 1
        assert "Input file required" in result.output

    def test_uses_config_defaults(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        script = _write_circuit(tmp_path)
        _write_input(tmp_path, 16)
        (tmp_path / "pyproject.toml").write_text(
            f"""
[tool.arithgraph]
circuit = {{ script = "{script.name}", name = "build" }}
input = "input.toml"
output = "result.toml"
""",
        )
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(app, ["run", "--verify"])

        assert result.exit_code == 0, result.output
        assert (tmp_path / "result.toml").is_file()

    def test_config_module_circuit_and_dot(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        script = _write_circuit(tmp_path)
        _write_input(tmp_path, 16)
        (tmp_path / "pyproject.toml").write_text(
            f"""
[tool.arithgraph]
circuit = "{script.stem}:build"
input = "input.toml"
dot = "out/graph.dot"
""",
        )
        monkeypatch.chdir(tmp_path)
        monkeypatch.syspath_prepend(str(tmp_path))

        result = runner.invoke(app, ["run", "--verify"])

        assert result.exit_code == 0, result.output
        assert "Loading circuit from module" in result.output
        assert 'Node1 [label="Hint = 4"]' in (tmp_path / "out" / "graph.dot").read_text()

    def test_builder_option_overrides_config_name(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        script = _write_circuit(tmp_path)
        _write_input(tmp_path, 16)
        (tmp_path / "pyproject.toml").write_text(
            f"""
[tool.arithgraph]
circuit = {{ script = "{script.name}", name = "number" }}
input = "input.toml"
""",
        )
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(app, ["run", "--builder", "build"])

        assert result.exit_code == 0, result.output

    def test_invalid_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "pyproject.toml").write_text("[tool.arithgraph]\noverflow = 'error'\n")
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(app, ["run", "-i", str(_write_input(tmp_path, 1))])

        assert result.exit_code == 1
        assert "Configuration error" in result.output

    def test_no_circuit(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(app, ["run", "-i", str(_write_input(tmp_path, 1))])

        assert result.exit_code == 1
        assert "No circuit specified" in result.output


def test_check_command(tmp_path: Path) -> None:
    result = runner.invoke(app, ["check", str(_write_circuit(tmp_path))])

    assert result.exit_code == 0, result.output
    assert "Circuit loaded" in result.output


class TestDotCommand:
    def test_stdout(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["dot", str(_write_circuit(tmp_path)), "--builder", "build"])

        assert result.exit_code == 0, result.output
        assert 'digraph "ComputationalGraph" {' in result.output
        assert "Node0 -> Node1;" in result.output

    def test_file(self, tmp_path: Path) -> None:
        output = tmp_path / "graph.dot"

        result = runner.invoke(app, ["dot", str(_write_circuit(tmp_path)), "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert output.read_text().startswith('digraph "ComputationalGraph" {')
