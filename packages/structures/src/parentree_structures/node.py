"""Tree node holding one flat record and its links to parent and children.

A Node wraps a single input record (its properties) together with the
identifier of the record and of its parent record. Nodes are linked into a
hierarchy by a Tree; once linked, each node knows its parent and its ordered
children and offers navigation in every direction.

Property names are case-insensitive: a record with a ``Name`` field can be
read with ``node.get("name")``, ``node.get("NAME")`` or ``node.name``.

Typical usage example:

    ```python
    from parentree_structures import Node

    root = Node(0)
    europe = Node(1, 0, {"id": 1, "name": "Europe", "parent": 0})
    germany = Node(7, 1, {"id": 7, "name": "Germany", "parent": 1})
    root.add_child(europe)
    europe.add_child(germany)

    print(germany.name)                               # "Germany"
    print(germany.level)                              # 2
    print([str(n) for n in germany.get_ancestors()])  # ["1"]
    ```
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator, Mapping
from typing import Any, Deque, Dict, List

from requests.structures import CaseInsensitiveDict

from parentree_structures.exceptions import InvalidParentError, UnknownPropertyError

ID_FIELD = "id"
PARENT_FIELD = "parent"


def id_as_text(value: Any) -> str:
    """String form of an identifier, with None rendered as an empty string."""
    return "" if value is None else str(value)


class Node:
    """A node in a tree built from flat records.

    Attributes:
        id: The node's identifier, exactly as supplied.
        parent_id: The identifier of the parent node (the linked parent's id
            once linked).
        parent: The parent Node, or None for the root or an unattached node.
        children: Copy of the ordered list of child nodes.
        level: Number of hops from the root (root has level 0).

    Any other attribute name is looked up case-insensitively among the
    record's properties, so ``node.name`` is equivalent to ``node.get("name")``.
    Names that collide with the attributes above must be read with get().
    """

    def __init__(
        self,
        node_id: Any,
        parent_id: Any = None,
        properties: Mapping[str, Any] | None = None,
    ):
        """Initialize a node.

        Args:
            node_id: The node's identifier.
            parent_id: The identifier of the parent node, None for a root.
            properties: The record's fields, in their original order. Field
                names are kept as given and matched case-insensitively.
        """
        self._id = node_id
        self._parent_id = parent_id
        self._properties: Dict[str, Any] = {
            str(key): value for key, value in (properties or {}).items()
        }
        # fields differing only by case share one entry here; exact names win in get()
        self._lookup: CaseInsensitiveDict = CaseInsensitiveDict(self._properties)
        self._parent: Node | None = None
        self._children: List[Node] = []

    def __repr__(self) -> str:
        return f"Node({self._id!r}, parent={self.parent_id!r})"

    def __str__(self) -> str:
        return id_as_text(self._id)

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal attribute lookup fails
        if name.startswith("_"):
            raise AttributeError(name)
        return self.get(name)

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        return name.lower() in (ID_FIELD, PARENT_FIELD) or name in self._lookup

    @property
    def id(self) -> Any:
        """This node's identifier, verbatim as supplied."""
        return self._id

    @property
    def parent_id(self) -> Any:
        """The identifier of this node's parent.

        Returns:
            The linked parent's id, or the parent id the node was created with
            while it is not linked.
        """
        return self._parent._id if self._parent is not None else self._parent_id

    @property
    def parent(self) -> Node | None:
        """This node's parent, or None if this is a root or unattached node."""
        return self._parent

    @property
    def children(self) -> List[Node]:
        """This node's children as a new ordered list (empty for a leaf)."""
        return list(self._children)

    @property
    def properties(self) -> Dict[str, Any]:
        """A copy of the record's fields with their original names."""
        return dict(self._properties)

    def has_children(self) -> bool:
        """Check if this node has any children."""
        return len(self._children) > 0

    @property
    def num_children(self) -> int:
        """Number of direct children."""
        return len(self._children)

    @property
    def level(self) -> int:
        """Depth of this node in the tree.

        The root node has level 0, its children level 1, and so on.
        """
        result = 0
        curp = self._parent
        while curp is not None:
            curp = curp._parent
            result += 1
        return result

    @property
    def next_sibling(self) -> Node | None:
        """The next sibling of this node.

        Returns:
            Next node in the parent's children list, or None if this is the
            last child or has no parent.
        """
        result = None
        if self._parent is not None:
            sibs = self._parent._children
            nextsib = sibs.index(self) + 1
            if nextsib < len(sibs):
                result = sibs[nextsib]
        return result

    @property
    def prev_sibling(self) -> Node | None:
        """The previous sibling of this node.

        Returns:
            Previous node in the parent's children list, or None if this is
            the first child or has no parent.
        """
        result = None
        if self._parent is not None:
            sibs = self._parent._children
            prevsib = sibs.index(self) - 1
            if prevsib >= 0:
                result = sibs[prevsib]
        return result

    def get(self, name: str) -> Any:
        """Get a property value by case-insensitive name.

        The ``id`` and ``parent`` names always resolve to the node's current
        id and parent id, even when the record stored them under other field
        names. When the record has fields differing only by case, an exact
        name match is preferred.

        Args:
            name: The property name.

        Returns:
            The property value.

        Raises:
            UnknownPropertyError: If the node has no such property.

        Example:
            ```python
            node = Node(16, 0, {"Key": "value"})
            node.get("key")     # "value"
            node.get("parent")  # 0
            node.get("foobar")  # raises UnknownPropertyError
            ```
        """
        lowered = name.lower()
        if lowered == ID_FIELD:
            return self._id
        if lowered == PARENT_FIELD:
            return self.parent_id
        if name in self._properties:
            return self._properties[name]
        if name not in self._lookup:
            raise UnknownPropertyError(name, self._id)
        return self._lookup[name]

    def add_child(self, child: Node) -> None:
        """Append a child node to this node.

        A child attached elsewhere is first pruned from its former parent.
        Adding a node that is already a child of this node changes nothing.

        Args:
            child: The node to attach.

        Raises:
            InvalidParentError: If the child is this node or one of its
                ancestors.
        """
        if child._parent is self:
            return
        node: Node | None = self
        while node is not None:
            if node is child:
                raise InvalidParentError(
                    f"Node with ID {id_as_text(child._id)} cannot become a child of "
                    f"its own descendant with ID {id_as_text(self._id)}",
                    context={"node_id": child._id, "parent_id": self._id},
                )
            node = node._parent
        child.prune()
        self._children.append(child)
        child._parent = self
        child._parent_id = self._id

    def prune(self) -> Node | None:
        """Detach this node (and its subtree) from its parent.

        Returns:
            This node's former parent, or None if it had none.
        """
        result = self._parent
        if self._parent is not None:
            self._parent._children.remove(self)
            self._parent = None
        return result

    def get_ancestors(self, include_self: bool = False) -> List[Node]:
        """Get this node's ancestors, nearest first.

        The walk stops below the root: a node without a parent is never
        included.

        Args:
            include_self: If True, starts the list with this node.

        Returns:
            Ordered list from the parent (or self) up to a root-level node.

        Example:
            ```python
            # root(0) -> europe(1) -> germany(7) -> hamburg(11)
            [n.id for n in hamburg.get_ancestors()]                   # [7, 1]
            [n.id for n in hamburg.get_ancestors(include_self=True)]  # [11, 7, 1]
            ```
        """
        ancestors: List[Node] = []
        node = self if include_self else self._parent
        while node is not None and node._parent is not None:
            ancestors.append(node)
            node = node._parent
        return ancestors

    def iter_descendants(self, include_self: bool = False) -> Iterator[Node]:
        """Iterate over this node's descendants in depth-first pre-order.

        Each child is followed by its whole subtree before the next sibling.

        Args:
            include_self: If True, yields this node first.
        """
        queue: Deque[Node] = deque()
        if include_self:
            queue.append(self)
        else:
            queue.extend(self._children)
        while bool(queue):  # true while length(queue) > 0
            item = queue.popleft()
            yield item
            queue.extendleft(reversed(item._children))

    def get_descendants(self, include_self: bool = False) -> List[Node]:
        """Get this node's descendants in depth-first pre-order.

        Args:
            include_self: If True, the list starts with this node.

        Returns:
            List of descendant nodes.

        Example:
            ```python
            # (1 (2 4 5) 3)
            [n.id for n in node1.get_descendants()]  # [2, 4, 5, 3]
            ```
        """
        return list(self.iter_descendants(include_self=include_self))

    def get_siblings(self, include_self: bool = False) -> List[Node]:
        """Get the children of this node's parent, in order.

        Args:
            include_self: If True, keeps this node in the list.

        Returns:
            List of sibling nodes. A node without a parent has no siblings.
        """
        if self._parent is None:
            return [self] if include_self else []
        return [node for node in self._parent._children if include_self or node is not self]

    def to_dict(self) -> Dict[str, Any]:
        """Get the node's record with current id and parent values.

        Properties keep their insertion order and spelling. The ``id`` and
        ``parent`` values replace any stored copies in place: a field named
        exactly ``id``/``parent`` is preferred, otherwise the first field
        matching case-insensitively; when the record had no such field, the
        canonical name is appended.

        Returns:
            Dictionary suitable for JSON encoding.

        Example:
            ```python
            Node("xyz", 456, {"foo": "bar", "gggg": 123}).to_dict()
            # {"foo": "bar", "gggg": 123, "id": "xyz", "parent": 456}
            ```
        """
        result = self.properties
        for field, value in ((ID_FIELD, self._id), (PARENT_FIELD, self.parent_id)):
            key = field
            if field not in result:
                key = next((name for name in result if name.lower() == field), field)
            result[key] = value
        return result
