"""Unsigned integer computation graphs with hints and equality constraints."""

__all__ = [
    "Add",
    "AlreadySetError",
    "ArithmeticOverflowError",
    "Builder",
    "Const",
    "ConstraintResult",
    "GraphError",
    "GraphStore",
    "Handle",
    "Hint",
    "InputFile",
    "InvalidValueError",
    "MissingInputError",
    "Mul",
    "Node",
    "NodeId",
    "NodeView",
    "NotEvaluatedError",
    "OpKind",
    "OutOfRangeError",
    "OverflowPolicy",
    "export_to_toml",
    "load_assignment_from_toml",
    "to_dot",
    "write_dot",
]

from ._builder import Builder, ConstraintResult, Handle, NodeView, OverflowPolicy
from ._dot import to_dot, write_dot
from ._errors import (
    AlreadySetError,
    ArithmeticOverflowError,
    GraphError,
    InvalidValueError,
    MissingInputError,
    NotEvaluatedError,
    OutOfRangeError,
)
from ._io import InputFile, export_to_toml, load_assignment_from_toml
from ._ops import Add, Const, Hint, Mul, NodeId, OpKind
from ._store import GraphStore, Node
