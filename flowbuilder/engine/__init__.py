"""Graph engine: connection derivation and pure mutations."""

from flowbuilder.engine.connections import (
    derive_connections,
    iter_connections,
    outgoing_connections,
    reachable_ids,
)
from flowbuilder.engine.defaults import (
    DEFAULT_LAYOUT,
    LayoutDirection,
    build_node,
)
from flowbuilder.engine.mutations import (
    NodeUpdate,
    add_option,
    delete_node,
    insert_node,
    move_node,
    new_workflow,
    remove_option,
    rename_option,
    update_node,
)

__all__ = [
    # connections
    "derive_connections",
    "iter_connections",
    "outgoing_connections",
    "reachable_ids",
    # defaults
    "DEFAULT_LAYOUT",
    "LayoutDirection",
    "build_node",
    # mutations
    "NodeUpdate",
    "add_option",
    "delete_node",
    "insert_node",
    "move_node",
    "new_workflow",
    "remove_option",
    "rename_option",
    "update_node",
]
