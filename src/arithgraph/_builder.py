"""Construction API, value propagation and constraint checking."""

from __future__ import annotations

import logging
import operator
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from ._errors import (
    AlreadySetError,
    ArithmeticOverflowError,
    InvalidValueError,
    MissingInputError,
    NotEvaluatedError,
    OutOfRangeError,
)
from ._ops import Add, Const, Hint, Mul, NodeId, OpKind
from ._store import GraphStore

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence

    from ._ops import Op
    from ._store import Node

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 32


class OverflowPolicy(StrEnum):
    """What happens when an addition or multiplication leaves the unsigned range."""

    WRAP = "wrap"  # Reduce modulo 2**width
    ERROR = "error"  # Raise ArithmeticOverflowError


@dataclass(frozen=True, slots=True)
class Handle:
    """Reference to a node, returned by the construction methods of a Builder.

    A handle is only valid on the builder that issued it.
    """

    id: NodeId
    store: GraphStore | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True, slots=True)
class ConstraintResult:
    """Outcome of a single equality constraint."""

    lhs: NodeId
    rhs: NodeId
    lhs_value: int
    rhs_value: int

    @property
    def holds(self) -> bool:
        return self.lhs_value == self.rhs_value


@dataclass(frozen=True, slots=True)
class NodeView:
    """Read-only snapshot of a node for export and display.

    Attributes:
        id: The node identifier.
        kind: Operation tag of the node.
        operands: Operand ids in positional order.
        value: The resolved value, if any.
        label: Label of an input node, if any.
        constant: The literal of a CONST node, None otherwise.

    """

    id: NodeId
    kind: OpKind
    operands: tuple[NodeId, ...]
    value: int | None = None
    label: str | None = None
    constant: int | None = None


class Builder:
    """Builds an unsigned integer computation graph and evaluates it.

    Operands are always handles of nodes that already exist, so every node only
    refers to nodes with smaller identifiers and ascending identifier order is
    a topological order.

    Typical use:

        >>> b = Builder()
        >>> x = b.init("x")
        >>> out = b.add(b.mul(x, x), b.constant(5))
        >>> b.fill_nodes({x.id: 3})
        >>> b.value_of(out)
        14

    Args:
        overflow: Policy applied to additions and multiplications.
        width: Bit width of the unsigned values.

    """

    def __init__(
        self,
        *,
        overflow: OverflowPolicy | str = OverflowPolicy.WRAP,
        width: int = DEFAULT_WIDTH,
    ) -> None:
        if width <= 0:
            msg = f"Width must be positive, got {width}"
            raise ValueError(msg)
        self._store = GraphStore()
        self._constraints: list[tuple[NodeId, NodeId]] = []
        self._labels: dict[str, NodeId] = {}
        self.overflow = OverflowPolicy(overflow)
        self.width = width

    @property
    def max_value(self) -> int:
        """Largest representable value."""
        return (1 << self.width) - 1

    @property
    def constraints(self) -> tuple[tuple[NodeId, NodeId], ...]:
        """Declared equality constraints, in declaration order."""
        return tuple(self._constraints)

    def __len__(self) -> int:
        return len(self._store)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def _new_node(self, op: Op | None, label: str | None = None) -> Handle:
        node_id = self._store.allocate(op, label=label)
        logger.debug("Created %s with op %r", node_id, op)
        return Handle(node_id, self._store)

    def _require(self, handle: Handle) -> NodeId:
        """Check that a handle was issued by this builder and return its id."""
        if not isinstance(handle, Handle):
            msg = f"Expected a Handle, got {type(handle).__name__}"
            raise TypeError(msg)
        if handle.store is not self._store:
            msg = f"{handle.id} was not created by this builder"
            raise OutOfRangeError(msg, handle.id)
        return handle.id

    def _check_range(self, value: object, what: str, node_id: NodeId | None = None) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            msg = f"{what} must be an int, got {type(value).__name__}"
            raise InvalidValueError(msg, node_id)
        if not 0 <= value <= self.max_value:
            msg = f"{what} {value} is outside the unsigned {self.width}-bit range"
            raise InvalidValueError(msg, node_id)
        return value

    def init(self, label: str | None = None) -> Handle:
        """Declare a free input node, whose value is supplied to `fill_nodes`.

        Args:
            label: Optional unique name usable as an assignment key.

        """
        if label is not None and label in self._labels:
            msg = f"Input label '{label}' is already used by {self._labels[label]}"
            raise ValueError(msg)
        handle = self._new_node(None, label)
        if label is not None:
            self._labels[label] = handle.id
        return handle

    def constant(self, value: int) -> Handle:
        """Create a node that always evaluates to `value`."""
        return self._new_node(Const(self._check_range(value, "Constant")))

    def add(self, x: Handle, y: Handle) -> Handle:
        """Create a node evaluating to the sum of two nodes."""
        return self._new_node(Add(self._require(x), self._require(y)))

    def mul(self, x: Handle, y: Handle) -> Handle:
        """Create a node evaluating to the product of two nodes."""
        return self._new_node(Mul(self._require(x), self._require(y)))

    def hint(self, inputs: Iterable[Handle], func: Callable[[Sequence[int]], int]) -> Handle:
        """Create a node whose value is computed by `func` from other nodes.

        The function receives the values of `inputs` as a tuple, in order, and
        must be pure. Its result is not verified unless constrained with
        `assert_equal`.
        """
        if not callable(func):
            msg = f"Hint function must be callable, got {type(func).__name__}"
            raise TypeError(msg)
        return self._new_node(Hint(tuple(self._require(h) for h in inputs), func))

    def assert_equal(self, x: Handle, y: Handle) -> None:
        """Require the values of two nodes to be equal after propagation."""
        self._constraints.append((self._require(x), self._require(y)))

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def input_ids(self) -> dict[str, NodeId]:
        """Get the ids of labelled input nodes, keyed by label."""
        return dict(self._labels)

    def value_of(self, node: Handle | NodeId) -> int | None:
        """Get the current value of a node, None if not resolved yet."""
        node_id = self._require(node) if isinstance(node, Handle) else node
        return self._store.get(node_id).value

    def nodes(self) -> list[NodeView]:
        """Snapshot every node, in ascending id order."""
        return [
            NodeView(
                id=node.id,
                kind=node.kind,
                operands=node.operands,
                value=node.value,
                label=node.label,
                constant=node.op.value if isinstance(node.op, Const) else None,
            )
            for node in self._store
        ]

    def resolve_assignment(self, assignment: Mapping[NodeId | Handle | str, int]) -> dict[NodeId, int]:
        """Normalize an assignment keyed by ids, handles or input labels.

        Raises:
            ValueError: If a label does not name an input node.
            OutOfRangeError: If a handle was issued by another builder.

        """
        resolved: dict[NodeId, int] = {}
        for key, value in assignment.items():
            match key:
                case NodeId():
                    resolved[key] = value
                case Handle():
                    resolved[self._require(key)] = value
                case str():
                    if key not in self._labels:
                        msg = f"Unknown input label '{key}'"
                        raise ValueError(msg)
                    resolved[self._labels[key]] = value
                case _:
                    msg = f"Unsupported assignment key: {key!r}"
                    raise TypeError(msg)
        return resolved

    # ------------------------------------------------------------------
    # Propagation
    # ------------------------------------------------------------------

    def _arith(self, node_id: NodeId, func: Callable[[int, int], int], symbol: str, lhs: int, rhs: int) -> int:
        result = func(lhs, rhs)
        if result <= self.max_value:
            return result
        if self.overflow is OverflowPolicy.WRAP:
            return result & self.max_value
        msg = f"{node_id}: {lhs} {symbol} {rhs} overflows {self.width}-bit unsigned range"
        raise ArithmeticOverflowError(msg, node_id)

    def _resolve(self, node: Node, assignment: Mapping[NodeId, int]) -> int:
        """Compute the value of one node from its already resolved operands."""
        match node.op:
            case None:
                if node.id not in assignment:
                    name = f"{node.id} ('{node.label}')" if node.label else str(node.id)
                    msg = f"No value supplied for input {name}"
                    raise MissingInputError(msg, node.id)
                return self._check_range(assignment[node.id], f"Input {node.id}", node.id)
            case Const(value):
                return value
            case Add(lhs, rhs):
                return self._arith(node.id, operator.add, "+", self._operand(lhs), self._operand(rhs))
            case Mul(lhs, rhs):
                return self._arith(node.id, operator.mul, "*", self._operand(lhs), self._operand(rhs))
            case Hint(inputs, func):
                result = func(tuple(self._operand(i) for i in inputs))
                return self._check_range(result, f"Hint result for {node.id}", node.id)
            case _:
                msg = f"Unknown operation on {node.id}: {node.op!r}"
                raise TypeError(msg)

    def _operand(self, node_id: NodeId) -> int:
        value = self._store.get(node_id).value
        # Operands have smaller ids and were resolved earlier in the pass
        assert value is not None, f"{node_id} used before being resolved"  # noqa: S101
        return value

    def fill_nodes(self, assignment: Mapping[NodeId | Handle | str, int]) -> None:
        """Resolve every node value from the values of the free inputs.

        Nodes are visited once, in ascending id order. Values given for nodes
        that have an operation are ignored. The pass may run only once: calling
        it again on a graph that already holds values raises AlreadySetError
        before any node is visited. On failure, nodes resolved so far keep
        their values.

        Args:
            assignment: Values of the input nodes, keyed by id, handle or label.

        Raises:
            MissingInputError: If an input node has no value in `assignment`.
            ArithmeticOverflowError: On overflow with the ERROR policy.
            InvalidValueError: If an input or hint value is not in range.
            AlreadySetError: If the graph was already filled.

        """
        filled = next((node for node in self._store if node.value is not None), None)
        if filled is not None:
            msg = f"Graph was already filled ({filled.id} = {filled.value}), build a new graph to evaluate again"
            raise AlreadySetError(msg, filled.id)

        values = self.resolve_assignment(assignment)
        for node_id, value in values.items():
            if node_id not in self._store:
                logger.warning("Ignoring value for unknown node %s", node_id)
            elif not self._store.get(node_id).is_input():
                logger.debug("Ignoring value for non-input %s", node_id)
            else:
                logger.debug("Setting input %s = %s", node_id, value)

        for node in self._store:
            value = self._resolve(node, values)
            self._store.set_value(node.id, value)
            logger.debug("Computed %s = %d", node.id, value)

    # ------------------------------------------------------------------
    # Constraints
    # ------------------------------------------------------------------

    def _evaluated(self, node_id: NodeId) -> int:
        value = self._store.get(node_id).value
        if value is None:
            msg = f"{node_id} has no value, run fill_nodes before checking constraints"
            raise NotEvaluatedError(msg, node_id)
        return value

    def constraint_report(self) -> list[ConstraintResult]:
        """Evaluate every constraint, in declaration order.

        Raises:
            NotEvaluatedError: If a constrained node has no value.

        """
        return [
            ConstraintResult(lhs=a, rhs=b, lhs_value=self._evaluated(a), rhs_value=self._evaluated(b))
            for a, b in self._constraints
        ]

    def check_constraints(self) -> bool:
        """Check that every equality constraint holds.

        All constraints are evaluated; each failing one is logged.

        Raises:
            NotEvaluatedError: If a constrained node has no value.

        """
        report = self.constraint_report()
        for result in report:
            if not result.holds:
                logger.warning(
                    "Constraint failed: %s = %d != %s = %d",
                    result.lhs,
                    result.lhs_value,
                    result.rhs,
                    result.rhs_value,
                )
        return all(result.holds for result in report)
