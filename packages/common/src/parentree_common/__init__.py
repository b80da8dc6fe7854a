"""Common utilities and base classes for parentree packages.

- **Exceptions**: Unified exception hierarchy with context support
- **Serialization**: Protocol and helpers turning nodes into records

Example:
    ```python
    from parentree_common import ParentreeError, serialize

    raise ParentreeError("Something went wrong", context={"node_id": 5})
    ```
"""

from parentree_common.exceptions import (
    ConfigurationError,
    NotFoundError,
    ParentreeError,
    SerializationError,
    ValidationError,
)
from parentree_common.serialization import (
    Serializable,
    serialize,
    serialize_list,
)

__version__ = "1.0.0"

__all__ = [
    "__version__",
    # Exceptions
    "ParentreeError",
    "ValidationError",
    "ConfigurationError",
    "NotFoundError",
    "SerializationError",
    # Serialization
    "Serializable",
    "serialize",
    "serialize_list",
]
