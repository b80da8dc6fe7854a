"""Error types shared by the parentree packages.

All parentree errors derive from ParentreeError. Besides the message, each
error keeps a ``context`` dictionary with the ids, field names or option
names involved, so a caller can tell which record broke a build without
parsing the message:

    ```python
    from parentree_common import ParentreeError
    from parentree_structures import Tree

    try:
        tree = Tree(records)
    except ParentreeError as e:
        logger.error(f"Cannot build tree: {e} {e.context}")
    ```

The subclasses group failures by kind. Tree errors in parentree_structures
derive from one of them.
"""

from typing import Any, Dict


class ParentreeError(Exception):
    """Base exception for all parentree packages.

    Args:
        message: Human-readable error message.
        context: Identifiers involved in the failure, e.g.
            ``{"node_id": 123, "parent_id": 456}``. The error keeps a copy.
    """

    def __init__(self, message: str, context: Dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = dict(context) if context else {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, context={self.context!r})"


class ValidationError(ParentreeError):
    """Input records have an unusable shape or reference."""

    pass


class ConfigurationError(ParentreeError):
    """A setting has an unusable value."""

    pass


class NotFoundError(ParentreeError):
    """A node or property was requested that does not exist."""

    pass


class SerializationError(ParentreeError):
    """Converting nodes to records, or decoding JSON input, failed."""

    pass


__all__ = [
    "ParentreeError",
    "ValidationError",
    "ConfigurationError",
    "NotFoundError",
    "SerializationError",
]
