"""Append-only arena of graph nodes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ._errors import AlreadySetError, OutOfRangeError
from ._ops import NodeId, op_kind, operands

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ._ops import Op, OpKind


@dataclass(slots=True)
class Node:
    """A vertex of the computation graph.

    Attributes:
        id: Identifier assigned at creation.
        op: How the value is derived. None for free input nodes.
        label: Optional human-readable name (input nodes only).
        value: The resolved value, None until computed or supplied.

    """

    id: NodeId
    op: Op | None = None
    label: str | None = None
    value: int | None = None

    @property
    def kind(self) -> OpKind:
        return op_kind(self.op)

    @property
    def operands(self) -> tuple[NodeId, ...]:
        return operands(self.op)

    def is_input(self) -> bool:
        """Check if this is a free input node (no operation)."""
        return self.op is None


@dataclass(slots=True)
class GraphStore:
    """Ordered collection of nodes addressed by dense integer identifiers.

    Nodes are never removed, and the structure of a node never changes after
    allocation. The only mutation is the single assignment of its value.
    """

    _nodes: list[Node] = field(default_factory=list)

    def allocate(self, op: Op | None, *, label: str | None = None) -> NodeId:
        """Append a new node without a value and return its fresh identifier."""
        node_id = NodeId(len(self._nodes))
        self._nodes.append(Node(id=node_id, op=op, label=label))
        return node_id

    def get(self, node_id: NodeId) -> Node:
        """Get the node with the given identifier.

        Raises:
            OutOfRangeError: If the identifier was never allocated.

        """
        if not 0 <= node_id.index < len(self._nodes):
            msg = f"{node_id} was never allocated (store holds {len(self._nodes)} nodes)"
            raise OutOfRangeError(msg, node_id)
        return self._nodes[node_id.index]

    def set_value(self, node_id: NodeId, value: int) -> None:
        """Assign the value of a node.

        Raises:
            OutOfRangeError: If the identifier was never allocated.
            AlreadySetError: If the node already has a value.

        """
        node = self.get(node_id)
        if node.value is not None:
            msg = f"{node_id} already has value {node.value}, refusing to set {value}"
            raise AlreadySetError(msg, node_id)
        node.value = value

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return isinstance(node_id, NodeId) and 0 <= node_id.index < len(self._nodes)
