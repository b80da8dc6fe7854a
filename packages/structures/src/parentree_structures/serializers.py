"""JSON serializer strategies for trees.

A Tree delegates its JSON form to a serializer: an object with a
``serialize(root_nodes)`` method, or a plain function taking the same
argument. The serializer receives the root-level nodes in build order and
returns any JSON-serializable value.

Two strategies are provided:
- FlatTreeJsonSerializer (the default): one record per node, in depth-first
  pre-order, with parent references only.
- HierarchicalTreeJsonSerializer: nested records, each node's children under a
  configurable key.

Typical usage example:

    ```python
    from parentree_structures import HierarchicalTreeJsonSerializer, Tree

    tree = Tree(records, json_serializer=HierarchicalTreeJsonSerializer())
    tree.to_json()
    # '[{"id":1,"parent":0,"children":[{"id":2,"parent":1}]}]'
    ```
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Dict, List, Protocol, Union, runtime_checkable

from parentree_common import serialize, serialize_list

from parentree_structures.node import Node


@runtime_checkable
class TreeJsonSerializer(Protocol):
    """Protocol for objects producing a tree's JSON-serializable form."""

    def serialize(self, root_nodes: List[Node]) -> Any:
        """Serialize a tree given its root-level nodes.

        Args:
            root_nodes: The synthetic root's children, in build order.

        Returns:
            A value json.dumps() can encode.
        """
        ...


SerializerType = Union[TreeJsonSerializer, Callable[[List[Node]], Any]]


class FlatTreeJsonSerializer:
    """Serializes a tree as a flat list of node records.

    Nodes appear in depth-first pre-order, so decoding the list and building
    a new Tree from it reproduces the same tree.
    """

    def serialize(self, root_nodes: List[Node]) -> List[Dict[str, Any]]:
        return serialize_list(
            [node for root in root_nodes for node in root.iter_descendants(include_self=True)]
        )


class HierarchicalTreeJsonSerializer:
    """Serializes a tree as nested node records.

    Each node's record gets its children's records under ``children_key``.
    Leaf records have no such key.

    Args:
        children_key: Name of the field holding child records.
    """

    def __init__(self, children_key: str = "children"):
        self.children_key = children_key

    def serialize(self, root_nodes: List[Node]) -> List[Dict[str, Any]]:
        return [self._serialize_node(node) for node in root_nodes]

    def _serialize_node(self, node: Node) -> Dict[str, Any]:
        data = serialize(node)
        if node.has_children():
            data[self.children_key] = [self._serialize_node(child) for child in node.children]
        return data


def is_serializer(value: Any) -> bool:
    """Check whether a value can be used as a tree serializer."""
    return isinstance(value, TreeJsonSerializer) or callable(value)


def run_serializer(serializer: SerializerType, root_nodes: List[Node]) -> Any:
    """Apply a serializer object or function to the root-level nodes."""
    if isinstance(serializer, TreeJsonSerializer):
        return serializer.serialize(root_nodes)
    return serializer(root_nodes)
