"""Locating circuit scripts and modules and the builders they define."""

from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from arithgraph._builder import Builder

from .config import CircuitSource, ModuleSource, ScriptSource

if TYPE_CHECKING:
    from types import ModuleType

logger = logging.getLogger(__name__)


def import_target(script_path: Path) -> tuple[str, Path]:
    """Get the dotted module name of a script and the directory to import it from.

    Enclosing directories holding an ``__init__.py`` are treated as packages,
    so a circuit inside a package can use relative imports.
    """
    script_path = script_path.resolve()
    parts = [] if script_path.stem == "__init__" else [script_path.stem]
    root = script_path.parent
    while (root / "__init__.py").is_file():
        parts.insert(0, root.name)
        root = root.parent
    return ".".join(parts), root


def _as_builder(obj: object, name: str, module_name: str) -> Builder:
    """Return a Builder from a module attribute.

    The attribute is either a Builder or a zero-argument factory returning
    one. A factory gives a fresh graph on every call, so the same module can
    be evaluated several times in one process.
    """
    if isinstance(obj, Builder):
        return obj
    if callable(obj):
        built = obj()
        if isinstance(built, Builder):
            return built
        msg = f"'{name}' in {module_name} returned {type(built).__name__}, not a Builder"
        raise TypeError(msg)
    msg = f"'{name}' in {module_name} is not a Builder or a Builder factory"
    raise TypeError(msg)


def _find_builder(module: ModuleType, name: str | None) -> Builder:
    if name:
        if not hasattr(module, name):
            msg = f"Could not find '{name}' in {module.__name__}"
            raise ValueError(msg)
        return _as_builder(getattr(module, name), name, module.__name__)

    for attr in dir(module):
        obj = getattr(module, attr)
        if isinstance(obj, Builder):
            logger.debug(f"Found builder: {attr}")
            return obj

    msg = "Could not find a Builder in module, try using --builder"
    raise ValueError(msg)


def load_builder_from_script(script_path: Path, builder_name: str | None = None) -> Builder:
    """Load a builder from a Python script path.

    Args:
        script_path: Path to the Python script defining the circuit
        builder_name: Name of the Builder variable or factory. If None, the
            first module-level Builder instance is used

    Raises:
        ImportError: If the script cannot be imported
        ValueError: If no builder is found or the named attribute doesn't exist
        TypeError: If the named attribute is not a Builder or a factory of one

    """
    module_name, import_root = import_target(script_path)
    if str(import_root) not in sys.path:
        sys.path.insert(0, str(import_root))

    try:
        module = importlib.import_module(module_name)
    except ImportError:
        logger.exception(f"Could not import circuit script {script_path}")
        raise

    return _find_builder(module, builder_name)


def load_builder_from_module_path(module_path: str) -> Builder:
    """Load a builder from a module path (e.g., 'examples.polynomial:build').

    Raises:
        ValueError: If module path format is invalid
        TypeError: If the specified variable is not a Builder or a factory of one

    """
    if ":" not in module_path:
        msg = "Module path must be in format 'module.path:variable_name'"
        raise ValueError(msg)

    module_name, builder_name = module_path.split(":", 1)
    module = importlib.import_module(module_name)
    return _find_builder(module, builder_name)


def circuit_source_from_argument(path: str, builder_name: str | None = None) -> CircuitSource:
    """Interpret a CLI path argument: 'module.path:name' or a script path."""
    if ":" in path:
        return ModuleSource(module_path=path)
    return ScriptSource(script=Path(path), name=builder_name)


def load_builder_from_source(source: CircuitSource) -> Builder:
    """Load a builder from a CircuitSource (script or module)."""
    match source:
        case ScriptSource(script=script, name=name):
            return load_builder_from_script(script, name)
        case ModuleSource(module_path=module_path):
            return load_builder_from_module_path(module_path)
