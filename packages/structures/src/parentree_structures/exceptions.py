"""Exceptions raised while building and querying trees.

Built on the common exception framework from parentree_common. Where a
built-in exception describes the same failure, it is mixed in so callers can
catch e.g. ``TypeError`` or ``AttributeError`` as well.
"""

from typing import Any

from parentree_common import (
    ConfigurationError,
    NotFoundError,
    ParentreeError,
    ValidationError,
)


class TreeError(ParentreeError):
    """Base exception for tree errors."""

    pass


class InvalidOptionError(TreeError, ConfigurationError, TypeError):
    """Raised when a tree option has an unusable value."""

    pass


class InvalidDatatypeError(TreeError, ValidationError, TypeError):
    """Raised when the data source or a record has an unusable shape."""

    pass


class InvalidParentError(TreeError, ValidationError):
    """Raised when a record references itself or an unknown node as parent."""

    pass


class NodeNotFoundError(TreeError, NotFoundError, LookupError):
    """Raised when no node has the requested id."""

    def __init__(self, node_id: Any):
        super().__init__(
            f"Invalid node primary key {node_id}",
            context={"node_id": node_id},
        )


class UnknownPropertyError(TreeError, NotFoundError, AttributeError):
    """Raised when a node has no property with the requested name."""

    def __init__(self, name: str, node_id: Any):
        super().__init__(
            f"Undefined property: {name} (Node ID: {node_id})",
            context={"property": name, "node_id": node_id},
        )


__all__ = [
    "TreeError",
    "InvalidOptionError",
    "InvalidDatatypeError",
    "InvalidParentError",
    "NodeNotFoundError",
    "UnknownPropertyError",
]
