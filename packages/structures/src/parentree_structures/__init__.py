"""Trees built from flat records that reference their parent's id.

The parentree-structures package turns flat data, such as rows of a database
table with ``id`` and ``parent`` columns, into a navigable hierarchy.

## Modules

### Tree - The hierarchy
- Two-pass build that tolerates parents listed after their children
- Sibling order that always follows input order
- Lookup by id and by a path of property values
- Depth-first iteration, outline and parenthesized string forms
- JSON serialization with pluggable serializers and Graphviz visualization

### Node - One record in the hierarchy
- Case-insensitive property access (``node.get("name")`` or ``node.name``)
- Navigation to parent, children, ancestors, descendants and siblings

### Serializers - JSON output shapes
- FlatTreeJsonSerializer: one record per node (default, round-trips)
- HierarchicalTreeJsonSerializer: nested records with a children key

### Frames - pandas integration
- Build a tree from a DataFrame and export a tree to one

## Quick Example

```python
from parentree_structures import Tree

tree = Tree(
    [
        {"id": 1, "name": "Europe", "parent": 0},
        {"id": 7, "name": "Germany", "parent": 1},
        {"id": 11, "name": "Hamburg", "parent": 7},
    ]
)

hamburg = tree.get_node_by_value_path("name", ["Europe", "Germany", "Hamburg"])
print(hamburg.level)                              # 3
print([n.name for n in hamburg.get_ancestors()])  # ["Germany", "Europe"]
print(tree)
# - 1
#   - 7
#     - 11
```
"""

from parentree_structures.exceptions import (
    InvalidDatatypeError,
    InvalidOptionError,
    InvalidParentError,
    NodeNotFoundError,
    TreeError,
    UnknownPropertyError,
)
from parentree_structures.node import Node
from parentree_structures.options import TreeOptions
from parentree_structures.serializers import (
    FlatTreeJsonSerializer,
    HierarchicalTreeJsonSerializer,
    TreeJsonSerializer,
)
from parentree_structures.tree import Tree, build_tree_from_string

__version__ = "1.0.0"

__all__ = [
    "FlatTreeJsonSerializer",
    "HierarchicalTreeJsonSerializer",
    "InvalidDatatypeError",
    "InvalidOptionError",
    "InvalidParentError",
    "Node",
    "NodeNotFoundError",
    "Tree",
    "TreeError",
    "TreeJsonSerializer",
    "TreeOptions",
    "UnknownPropertyError",
    "build_tree_from_string",
]
