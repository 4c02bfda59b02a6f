"""Node identifiers and operation descriptors."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum, auto
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence


@dataclass(frozen=True, slots=True, order=True)
class NodeId:
    """Stable identity of a node, assigned densely in creation order.

    Only used for identity and indexing, never for arithmetic.
    """

    index: int

    def __str__(self) -> str:
        return f"Node{self.index}"


class OpKind(StrEnum):
    """The kind of a node, derived from its operation."""

    INPUT = auto()  # No operation, value supplied by the caller
    CONST = auto()
    ADD = auto()
    MUL = auto()
    HINT = auto()  # Value computed by an external function


@dataclass(frozen=True, slots=True)
class Const:
    """Fixed literal value."""

    value: int


@dataclass(frozen=True, slots=True)
class Add:
    """Sum of the values of two nodes."""

    lhs: NodeId
    rhs: NodeId


@dataclass(frozen=True, slots=True)
class Mul:
    """Product of the values of two nodes."""

    lhs: NodeId
    rhs: NodeId


@dataclass(frozen=True, slots=True)
class Hint:
    """Value produced by an opaque function over other node values.

    Attributes:
        inputs: Operand ids, in the positional order passed to ``func``.
        func: Pure function from the operand values to a single value.

    """

    inputs: tuple[NodeId, ...]
    func: Callable[[Sequence[int]], int] = field(compare=False)


Op = Const | Add | Mul | Hint


def op_kind(op: Op | None) -> OpKind:
    """Get the kind tag of an operation (``INPUT`` when there is none)."""
    match op:
        case None:
            return OpKind.INPUT
        case Const():
            return OpKind.CONST
        case Add():
            return OpKind.ADD
        case Mul():
            return OpKind.MUL
        case Hint():
            return OpKind.HINT
        case _:
            msg = f"Unknown operation type: {type(op)}"
            raise TypeError(msg)


def operands(op: Op | None) -> tuple[NodeId, ...]:
    """Get the operand ids referenced by an operation, in positional order."""
    match op:
        case Add(lhs, rhs) | Mul(lhs, rhs):
            return (lhs, rhs)
        case Hint(inputs, _):
            return inputs
        case _:
            return ()
