"""Exceptions raised while building, evaluating and checking a graph."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ._ops import NodeId


class GraphError(Exception):
    """Base class for all arithgraph errors.

    Attributes:
        node_id: The node the error refers to, if any.

    """

    def __init__(self, message: str, node_id: NodeId | None = None) -> None:
        super().__init__(message)
        self.node_id = node_id


class OutOfRangeError(GraphError, IndexError):
    """A node identifier was never allocated by the store."""


class AlreadySetError(GraphError):
    """A node value was assigned twice."""


class MissingInputError(GraphError, KeyError):
    """A free input node has no value in the assignment."""

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class ArithmeticOverflowError(GraphError, OverflowError):
    """An addition or multiplication left the unsigned range."""


class NotEvaluatedError(GraphError):
    """A constraint refers to a node without a value."""


class InvalidValueError(GraphError, ValueError):
    """A value is not an unsigned integer of the configured width."""
