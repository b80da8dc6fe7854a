"""Conversion of nodes to plain records.

Anything with a ``to_dict()`` method is Serializable. Tree serializers turn
nodes into JSON-ready records with serialize() and serialize_list(), which
check each object up front so a bad node is reported as a SerializationError
naming its type instead of failing later inside json.dumps().

Example:
    ```python
    from parentree_common import serialize
    from parentree_structures import Node

    serialize(Node(7, 1, {"name": "Germany"}))
    # {'name': 'Germany', 'id': 7, 'parent': 1}
    ```
"""

from collections.abc import Iterable
from typing import Any, Dict, List, Protocol, runtime_checkable

from parentree_common.exceptions import SerializationError


@runtime_checkable
class Serializable(Protocol):
    """Protocol for objects that convert to a record."""

    def to_dict(self) -> Dict[str, Any]:
        ...


def serialize(obj: Any) -> Dict[str, Any]:
    """Get an object's record.

    Args:
        obj: A Serializable, usually a Node.

    Returns:
        The dictionary returned by ``obj.to_dict()``.

    Raises:
        SerializationError: If the object has no to_dict() method or it does
            not return a dict.
    """
    if not isinstance(obj, Serializable):
        raise SerializationError(
            f"Cannot convert {type(obj).__name__} to a record: it has no to_dict() method",
            context={"type": type(obj).__name__},
        )
    record = obj.to_dict()
    if not isinstance(record, dict):
        raise SerializationError(
            f"{type(obj).__name__}.to_dict() returned {type(record).__name__}, expected a dict",
            context={"type": type(obj).__name__, "record_type": type(record).__name__},
        )
    return record


def serialize_list(items: Iterable[Any]) -> List[Dict[str, Any]]:
    """Get the records of several objects, in order."""
    return [serialize(item) for item in items]


__all__ = [
    "Serializable",
    "serialize",
    "serialize_list",
]
