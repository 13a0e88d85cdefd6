"""Which node, if any, is active in the property inspector."""

from flowbuilder.errors import UnknownNodeError
from flowbuilder.models.results import MutationResult
from flowbuilder.models.workflow_graph import WorkflowGraph


class SelectionState:
    """At most one selected node id."""

    def __init__(self) -> None:
        self._selected: str | None = None

    @property
    def selected(self) -> str | None:
        return self._selected

    def select(self, node_id: str | None, graph: WorkflowGraph | None = None) -> MutationResult:
        """Select ``node_id`` (None clears the selection).

        When a graph is given, ids missing from it are rejected and the
        previous selection is kept.
        """
        if node_id is not None and graph is not None and node_id not in graph:
            return MutationResult.failure(UnknownNodeError(node_id))
        self._selected = node_id
        return MutationResult.success(node_id=node_id)

    def clear(self) -> None:
        self._selected = None
