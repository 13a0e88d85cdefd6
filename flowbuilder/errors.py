"""Typed failures raised by the flow engine.

Engine functions raise these; the graph store and the canvas turn them into
``MutationResult`` values so nothing propagates into the renderer.
"""


class FlowError(Exception):
    """Base class for all flow errors."""

    code = "flow_error"

    def __init__(self, message: str, node_id: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.node_id = node_id


class UnknownNodeError(FlowError):
    """An operation named a node id that does not exist."""

    code = "invalid_reference"

    def __init__(self, node_id: str) -> None:
        super().__init__(f"Node not found: {node_id}", node_id=node_id)


class ProtectedNodeError(FlowError):
    """Attempted to delete the root or to add a step under an end node."""

    code = "protected_node"


class InvalidUpdateError(FlowError):
    """A patch named fields that do not apply to the node's kind."""

    code = "invalid_update"


class DuplicateOptionError(FlowError):
    """A decision node already has an option with this label."""

    code = "structural_desync"


class UnknownOptionError(FlowError):
    """A decision node has no option with this label."""

    code = "structural_desync"


class InvalidViewportError(FlowError):
    code = "invalid_viewport"


class InteractionError(FlowError):
    """A drag/pan move arrived without a matching session."""

    code = "no_active_session"


class SnapshotLoadError(FlowError):
    """Persisted data could not be decoded into a valid snapshot."""

    code = "invalid_snapshot"


class SnapshotSinkError(FlowError):
    """A snapshot could not be written to or read from its sink."""

    code = "persistence_failed"
