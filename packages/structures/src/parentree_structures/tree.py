"""Tree built from flat records that reference their parent's id.

This module provides a Tree that turns a flat sequence of records, each with
an id field and a parent id field, into a linked hierarchy of Node objects
below a synthetic root. Records whose parent id equals the root id become the
root-level nodes; this comparison is made on the ids' text form, so ``"0"``
and ``0`` are both root-level under the default root id. All other id lookups
are strict.

The Tree class supports:
- Lookup by id and by a path of property values
- Depth-first pre-order traversal (also via iteration)
- Rebuilding from new data
- Indented outline and parenthesized string forms
- JSON serialization through pluggable serializers
- Building visual representations with Graphviz

Typical usage example:

    ```python
    from parentree_structures import Tree

    records = [
        {"id": 1, "name": "Europe", "parent": 0},
        {"id": 7, "name": "Germany", "parent": 1},
        {"id": 3, "name": "America", "parent": 0},
    ]
    tree = Tree(records)

    print(tree)
    # - 1
    #   - 7
    # - 3

    germany = tree.get_node_by_value_path("name", ["Europe", "Germany"])
    print(germany.level)  # 2
    print(tree.to_json())
    # [{"id":1,"name":"Europe","parent":0},{"id":7,"name":"Germany","parent":1},...]
    ```
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from typing import Any, Dict, List, Tuple

import graphviz
from pyparsing import OneOrMore, ParseException, nested_expr

from parentree_common import SerializationError

from parentree_structures.exceptions import (
    InvalidDatatypeError,
    InvalidParentError,
    NodeNotFoundError,
)
from parentree_structures.node import ID_FIELD, PARENT_FIELD, Node, id_as_text
from parentree_structures.options import BuildWarningCallback, TreeOptions, is_scalar
from parentree_structures.serializers import (
    FlatTreeJsonSerializer,
    SerializerType,
    run_serializer,
)

logger = logging.getLogger(__name__)

NodeKey = Tuple[type, Any]


def node_key(node_id: Any) -> NodeKey:
    """Dictionary key for an id, so that ids only match on equal type and value."""
    return (type(node_id), node_id)


def strictly_equal(value: Any, other: Any) -> bool:
    """Check two values for equality without cross-type matches (1 != 1.0 != "1")."""
    return type(value) is type(other) and value == other


class Tree:
    """A hierarchy of nodes built from flat records with parent references.

    The tree owns every node, keyed by id, including the synthetic root which
    is never part of the input data. Building is done in two passes so that a
    record may reference a parent appearing later in the input: the first pass
    creates all nodes and groups child ids by parent id (in order of first
    appearance of each parent id), the second pass links each group to its
    parent. Sibling order therefore always follows input order.

    Attributes:
        root_id: Identifier of the synthetic root.
        id_key: Record field holding a record's id.
        parent_key: Record field holding a record's parent id.
        options: The validated TreeOptions.

    Example:
        ```python
        tree = Tree(
            [{"id_node": "car", "id_parent": "vehicle"}, {"id_node": "vehicle", "id_parent": ""}],
            root_id="",
            id_key="id_node",
            parent_key="id_parent",
        )
        [node.id for node in tree]  # ["vehicle", "car"]
        ```

    Note:
        Iterating a tree, get_nodes() and len() only cover nodes reachable
        from the root. Records left unattached through the build warning
        callback can still be fetched with get_node_by_id().
    """

    def __init__(
        self,
        data: Iterable[Mapping[str, Any]],
        root_id: Any = 0,
        id_key: str = ID_FIELD,
        parent_key: str = PARENT_FIELD,
        build_warning_callback: BuildWarningCallback | None = None,
        json_serializer: SerializerType | None = None,
    ):
        """Initialize and build a tree.

        Args:
            data: Iterable of records (mappings from field name to value).
            root_id: Identifier of the synthetic root. Defaults to 0.
            id_key: Record field holding a record's id. Defaults to "id".
            parent_key: Record field holding a record's parent id. Defaults to
                "parent". A record without this field has parent id None.
            build_warning_callback: Optional function called with
                (node, parent_id) for records whose parent id is unknown,
                instead of failing the build. Such nodes stay unattached.
            json_serializer: Optional serializer object (with a serialize()
                method) or function receiving the root-level nodes. Defaults
                to FlatTreeJsonSerializer.

        Raises:
            InvalidOptionError: If an option has an unusable value.
            InvalidDatatypeError: If data is not an iterable of records.
            InvalidParentError: If a record is its own parent or references an
                unknown parent (without a build warning callback).
        """
        self._options = TreeOptions(
            root_id=root_id,
            id_key=id_key,
            parent_key=parent_key,
            build_warning_callback=build_warning_callback,
            json_serializer=json_serializer,
        )
        self._serializer: SerializerType = (
            self._options.json_serializer or FlatTreeJsonSerializer()
        )
        self._nodes: Dict[NodeKey, Node] = self._build(data)

    @classmethod
    def from_options(
        cls,
        data: Iterable[Mapping[str, Any]],
        options: TreeOptions | Mapping[str, Any] | None = None,
    ) -> Tree:
        """Build a tree using a TreeOptions instance or an option mapping.

        Args:
            data: Iterable of records.
            options: TreeOptions, or a mapping with case-insensitive keys such
                as "rootId", "id", "parent", "buildWarningCallback" and
                "jsonSerializer".

        Returns:
            The built Tree.

        Example:
            ```python
            tree = Tree.from_options(records, {"rootId": "", "ID": "id_node"})
            ```
        """
        if not isinstance(options, TreeOptions):
            options = TreeOptions.from_dict(options or {})
        return cls(
            data,
            root_id=options.root_id,
            id_key=options.id_key,
            parent_key=options.parent_key,
            build_warning_callback=options.build_warning_callback,
            json_serializer=options.json_serializer,
        )

    @classmethod
    def from_json(cls, json_text: str | bytes, **options: Any) -> Tree:
        """Build a tree from a JSON array of records.

        Args:
            json_text: JSON text, e.g. as produced by to_json() with the flat
                serializer.
            **options: Constructor keyword arguments.

        Returns:
            The built Tree.

        Raises:
            SerializationError: If the text is not valid JSON.
        """
        try:
            data = json.loads(json_text)
        except ValueError as e:
            raise SerializationError(
                f"Failed to decode tree JSON: {e}",
                context={"error": str(e)},
            ) from e
        return cls(data, **options)

    def __repr__(self) -> str:
        return f"Tree(root_id={self.root_id!r}, nodes={len(self)})"

    def __str__(self) -> str:
        """Render the tree as an indented outline, one line per node.

        Each line is ``"  " * (level - 1) + "- " + str(node)``. When a node's
        string spans several lines, the following lines are indented to the
        node's text.
        """
        lines = []
        for node in self.get_nodes():
            indent = "  " * (node.level - 1)
            text = str(node).replace("\n", "\n" + indent + "  ")
            lines.append(f"{indent}- {text}")
        return "\n".join(lines)

    def __iter__(self) -> Iterator[Node]:
        """Iterate over the nodes in depth-first pre-order.

        Each call starts a fresh iteration over the current nodes.
        """
        return iter(self.get_nodes())

    def __len__(self) -> int:
        return len(self.get_nodes())

    @property
    def options(self) -> TreeOptions:
        return self._options

    @property
    def root_id(self) -> Any:
        return self._options.root_id

    @property
    def id_key(self) -> str:
        return self._options.id_key

    @property
    def parent_key(self) -> str:
        return self._options.parent_key

    @property
    def root(self) -> Node:
        """The synthetic root node."""
        return self._nodes[node_key(self.root_id)]

    def create_node(self, node_id: Any, parent_id: Any, properties: Mapping[str, Any]) -> Node:
        """Create a node for a record.

        Subclasses can override this to use a Node subclass.
        """
        return Node(node_id, parent_id, properties)

    def get_nodes(self) -> List[Node]:
        """Get all nodes below the root in depth-first pre-order.

        Returns:
            Flat list ordered as the hierarchy reads: the first root-level
            node, its whole subtree, then the next root-level node, and so on.
        """
        return self.root.get_descendants()

    def get_node_by_id(self, node_id: Any) -> Node:
        """Get a node by its id.

        The id must match in type and value: ``"5"`` does not find node ``5``.

        Args:
            node_id: The node's id. The root id returns the synthetic root.

        Returns:
            The node.

        Raises:
            NodeNotFoundError: If there is no node with this id.
        """
        node = self._nodes.get(node_key(node_id)) if is_scalar(node_id) else None
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    def get_root_nodes(self) -> List[Node]:
        """Get the root-level nodes in build order."""
        return self.root.children

    def get_node_by_value_path(self, name: str, values: Sequence[Any]) -> Node | None:
        """Find a node by the values of one property along its ancestry.

        Starting at the root level, picks the first node whose property equals
        the first value, then searches that node's children for the second
        value, and so on. Comparison is case-sensitive and type-safe; nodes
        without the property never match.

        Args:
            name: Property name (case-insensitive).
            values: Property values from the root level downwards.

        Returns:
            The node matching the last value, or None if any level has no
            match (or values is empty).

        Example:
            ```python
            hamburg = tree.get_node_by_value_path("name", ["Europe", "Germany", "Hamburg"])
            tree.get_node_by_value_path("name", ["Europe", "Germany", "Frankfurt"])  # None
            ```
        """
        found: Node | None = None
        candidates = self.get_root_nodes()
        for token in values:
            found = next(
                (
                    node
                    for node in candidates
                    if name in node and strictly_equal(node.get(name), token)
                ),
                None,
            )
            if found is None:
                return None
            candidates = found.children
        return found

    def rebuild_with_data(self, data: Iterable[Mapping[str, Any]]) -> None:
        """Replace all nodes with a tree built from new data.

        Uses the same options as the current tree. The new nodes only replace
        the current ones once the build succeeded, so a failing rebuild leaves
        the tree unchanged.

        Args:
            data: Iterable of records.

        Raises:
            InvalidDatatypeError: If data is not an iterable of records.
            InvalidParentError: If a parent reference is invalid.
        """
        self._nodes = self._build(data)

    def json_serialize(self) -> Any:
        """Get the JSON-serializable form produced by the configured serializer."""
        return run_serializer(self._serializer, self.get_root_nodes())

    def to_json(self, **kwargs: Any) -> str:
        """Encode the tree as JSON.

        Args:
            **kwargs: Passed to json.dumps(). Compact separators are used
                unless ``separators`` is given.

        Returns:
            The JSON text.
        """
        kwargs.setdefault("separators", (",", ":"))
        return json.dumps(self.json_serialize(), **kwargs)

    def to_records(self) -> List[Dict[str, Any]]:
        """Get one record per node in depth-first pre-order (flat form)."""
        return FlatTreeJsonSerializer().serialize(self.get_root_nodes())

    def as_string(self, delim: str = " ", multiline: bool = False) -> str:
        """Get a parenthesized string representation of this tree.

        The synthetic root's id comes first; nodes with children are wrapped
        in parentheses together with their children.

        Args:
            delim: The delimiter/indentation to use between levels.
            multiline: If True, puts each node on its own line, indented by
                ``delim`` per level.

        Returns:
            String such as ``"(0 5 (1 (7 11) 10))"``.
        """
        return _node_as_string(self.root, delim, multiline)

    def build_dot(
        self, node_name_fn: Callable[[Node], str] | None = None, **kwargs: Any
    ) -> graphviz.Digraph:
        """Build a Graphviz Digraph of the nodes below the root.

        Args:
            node_name_fn: Optional function giving a node's label. Defaults to
                str(node), i.e. the node id.
            **kwargs: Passed to the graphviz.Digraph constructor (e.g. name,
                format, node_attr).

        Returns:
            A graphviz.Digraph with one vertex per node and one edge per
            parent/child link (root-level nodes have no incoming edge).

        Example:
            ```python
            dot = tree.build_dot(node_name_fn=lambda n: n.get("name"), format="svg")
            print(dot.source)
            ```
        """
        if node_name_fn is None:
            def node_name_fn(n: Node) -> str:
                return str(n)
        dot = graphviz.Digraph(**kwargs)
        nodes = self.get_nodes()
        ids = {}  # ids[node] -> idx
        for idx, node in enumerate(nodes):
            ids[node] = idx
            dot.node(f"N_{idx:03}", node_name_fn(node))
        for node in nodes:
            if node.parent in ids:
                dot.edge(f"N_{ids[node.parent]:03}", f"N_{ids[node]:03}")
        return dot

    def _build(self, data: Iterable[Mapping[str, Any]]) -> Dict[NodeKey, Node]:
        """Create and link the nodes for the given records.

        Works on a fresh node map, which is returned; the tree itself is not
        modified.
        """
        if isinstance(data, (str, bytes, Mapping)) or not isinstance(data, Iterable):
            raise InvalidDatatypeError(
                "Data must be an iterable",
                context={"type": type(data).__name__},
            )

        id_key, parent_key = self.id_key, self.parent_key
        logger.debug(f"Building tree with root id {self.root_id!r}")

        nodes: Dict[NodeKey, Node] = {node_key(self.root_id): self.create_node(self.root_id, None, {})}
        # parent key -> (parent id, child ids), in order of first appearance
        children: Dict[NodeKey, Tuple[Any, List[Any]]] = {}

        for row in data:
            if not isinstance(row, Mapping):
                raise InvalidDatatypeError(
                    f"Records must be mappings, got {type(row).__name__}",
                    context={"type": type(row).__name__},
                )
            if id_key not in row:
                raise InvalidDatatypeError(
                    f"Record has no “{id_key}” field",
                    context={"field": id_key, "record": dict(row)},
                )
            node_id, parent_id = row[id_key], row.get(parent_key)
            for field, value in ((id_key, node_id), (parent_key, parent_id)):
                if not is_scalar(value):
                    raise InvalidDatatypeError(
                        f"Field “{field}” must hold a scalar or null",
                        context={"field": field, "type": type(value).__name__},
                    )
            nodes[node_key(node_id)] = self.create_node(node_id, parent_id, row)
            children.setdefault(node_key(parent_id), (parent_id, []))[1].append(node_id)

        root = nodes[node_key(self.root_id)]
        for parent_id, child_ids in children.values():
            parent = nodes.get(node_key(parent_id))
            if parent is None and id_as_text(parent_id) == id_as_text(self.root_id):
                # root-level records match the root id by its text form ("0" and 0)
                parent = root
            for node_id in child_ids:
                node = nodes[node_key(node_id)]
                if id_as_text(parent_id) == id_as_text(node_id):
                    raise InvalidParentError(
                        f"Node with ID {id_as_text(node_id)} references its own ID as parent ID",
                        context={"node_id": node_id, "parent_id": parent_id},
                    )
                if parent is not None:
                    parent.add_child(node)
                elif self._options.build_warning_callback is not None:
                    logger.warning(
                        f"Node with ID {id_as_text(node_id)} points to non-existent parent "
                        f"with ID {parent_id!r}; leaving it unattached"
                    )
                    self._options.build_warning_callback(node, parent_id)
                else:
                    raise InvalidParentError(
                        f"Node with ID {id_as_text(node_id)} points to non-existent parent "
                        f"with ID {parent_id!r}",
                        context={"node_id": node_id, "parent_id": parent_id},
                    )

        logger.debug(f"Built tree with {len(nodes) - 1} nodes")
        return nodes


def _node_as_string(node: Node, delim: str, multiline: bool) -> str:
    if node.has_children():
        btwn = "\n" if multiline else ""
        result = "(" + str(node)
        for child in node.children:
            d = (child.level if multiline else 1) * delim
            result += btwn + d + _node_as_string(child, delim, multiline)
        result += ")"
    else:
        result = str(node)
    return result


def build_tree_from_string(from_string: str, **options: Any) -> Tree:
    """Build a Tree from a parenthesized string representation.

    Parses strings as produced by Tree.as_string(). The first token is the
    synthetic root's id; every other token becomes a node whose parent is the
    enclosing group's first token. All ids are strings.

    Args:
        from_string: The tree string, e.g. ``"(root (a b c) d)"``.
        **options: Constructor keyword arguments other than root_id.

    Returns:
        The built Tree.

    Raises:
        InvalidDatatypeError: If the string cannot be parsed.

    Example:
        ```python
        tree = build_tree_from_string("(root (a b c) d)")
        [node.id for node in tree.get_root_nodes()]  # ["a", "d"]
        tree.as_string()                             # "(root (a b c) d)"
        ```
    """
    text = from_string.strip()
    if not text.startswith("("):
        return Tree([], root_id=text, **options)
    try:
        data = OneOrMore(nested_expr()).parse_string(text, parse_all=True).as_list()
    except ParseException as e:
        raise InvalidDatatypeError(
            f"Cannot parse tree string: {e}",
            context={"string": from_string},
        ) from e
    root = data[0]
    if len(data) > 1 or not root or isinstance(root[0], list):
        raise InvalidDatatypeError(
            "Tree string must be a single group starting with the root id",
            context={"string": from_string},
        )
    id_key = options.get("id_key", ID_FIELD)
    parent_key = options.get("parent_key", PARENT_FIELD)
    records: List[Dict[str, Any]] = []
    for child in root[1:]:
        _collect_records(child, root[0], records, id_key, parent_key)
    return Tree(records, root_id=root[0], **options)


def _collect_records(
    data: Any, parent_id: str, records: List[Dict[str, Any]], id_key: str, parent_key: str
) -> None:
    if isinstance(data, list) and len(data) > 0:
        if isinstance(data[0], list):
            raise InvalidDatatypeError(
                "Each group must start with a node id",
                context={"group": data},
            )
        records.append({id_key: data[0], parent_key: parent_id})
        for cdata in data[1:]:
            _collect_records(cdata, data[0], records, id_key, parent_key)
    else:
        records.append({id_key: data, parent_key: parent_id})
