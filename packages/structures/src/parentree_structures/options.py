"""Per-tree configuration.

TreeOptions collects everything that shapes how flat records become a tree:
the synthetic root's id, the record fields holding ids and parent ids, what to
do with records whose parent cannot be found, and how to serialize the tree to
JSON. Options are validated on creation, before any data is touched.

Option mappings (e.g. loaded from a config file) are read case-insensitively
and accept both camelCase and snake_case names:

    ```python
    from parentree_structures import TreeOptions

    options = TreeOptions.from_dict({"rootId": "", "ID": "id_node", "parent": "id_parent"})
    options.root_id     # ""
    options.id_key      # "id_node"
    options.parent_key  # "id_parent"
    ```
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from requests.structures import CaseInsensitiveDict

from parentree_structures.exceptions import InvalidOptionError
from parentree_structures.node import Node
from parentree_structures.serializers import SerializerType, is_serializer

BuildWarningCallback = Callable[[Node, Any], Any]

_OPTION_NAMES = CaseInsensitiveDict(
    {
        "rootId": "root_id",
        "root_id": "root_id",
        "id": "id_key",
        "id_key": "id_key",
        "parent": "parent_key",
        "parent_key": "parent_key",
        "buildWarningCallback": "build_warning_callback",
        "build_warning_callback": "build_warning_callback",
        "onBuildWarning": "build_warning_callback",
        "on_build_warning": "build_warning_callback",
        "jsonSerializer": "json_serializer",
        "json_serializer": "json_serializer",
    }
)


def is_scalar(value: Any) -> bool:
    """Check whether a value can serve as a node identifier."""
    return value is None or isinstance(value, (str, int, float))


@dataclass
class TreeOptions:
    """Settings for building a tree.

    Attributes:
        root_id: Identifier of the synthetic root node. Records whose parent
            id equals it become root-level nodes.
        id_key: Record field holding a record's id.
        parent_key: Record field holding a record's parent id.
        build_warning_callback: Optional function called with (node, parent_id)
            for each record whose parent id is unknown. When set, such records
            are left unattached instead of failing the build.
        json_serializer: Optional serializer object or function; the flat
            serializer is used when None.

    Raises:
        InvalidOptionError: If any setting has an unusable value.
    """

    root_id: Any = 0
    id_key: str = "id"
    parent_key: str = "parent"
    build_warning_callback: BuildWarningCallback | None = None
    json_serializer: SerializerType | None = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Check all settings.

        Raises:
            InvalidOptionError: Naming the first offending option.
        """
        if not is_scalar(self.root_id):
            raise InvalidOptionError(
                "Option “rootId” must be scalar or null",
                context={"option": "rootId", "type": type(self.root_id).__name__},
            )
        for option, value in (("id", self.id_key), ("parent", self.parent_key)):
            if not isinstance(value, str) or not value:
                raise InvalidOptionError(
                    f"Option “{option}” must be a string",
                    context={"option": option, "type": type(value).__name__},
                )
        if self.build_warning_callback is not None and not callable(self.build_warning_callback):
            raise InvalidOptionError(
                "Option “buildWarningCallback” must be callable",
                context={
                    "option": "buildWarningCallback",
                    "type": type(self.build_warning_callback).__name__,
                },
            )
        if self.json_serializer is not None and not is_serializer(self.json_serializer):
            raise InvalidOptionError(
                "Option “jsonSerializer” must be a serializer object or a callable",
                context={"option": "jsonSerializer", "type": type(self.json_serializer).__name__},
            )

    @classmethod
    def from_dict(cls, options: Mapping[str, Any]) -> TreeOptions:
        """Create options from a mapping with case-insensitive keys.

        Args:
            options: Mapping using any of the accepted option names.

        Returns:
            Validated TreeOptions.

        Raises:
            InvalidOptionError: If a key is unknown or a value is unusable.
        """
        kwargs = {}
        for key, value in options.items():
            name = _OPTION_NAMES.get(key) if isinstance(key, str) else None
            if name is None:
                raise InvalidOptionError(
                    f"Unknown option “{key}”",
                    context={"option": key, "known": sorted(set(_OPTION_NAMES.values()))},
                )
            kwargs[name] = value
        return cls(**kwargs)
