"""Graph store: owns the current snapshot of one flow.

All mutation goes through the store. Each entry point runs an engine
function against the current snapshot and, on success, swaps in the result
with a single assignment; readers holding the previous snapshot keep a
complete, valid graph. Failures come back as ``MutationResult`` values.
"""

from collections.abc import Callable

from flowbuilder.engine import mutations
from flowbuilder.engine.connections import derive_connections
from flowbuilder.engine.defaults import DEFAULT_LAYOUT, LayoutDirection
from flowbuilder.engine.mutations import NodeUpdate
from flowbuilder.errors import FlowError
from flowbuilder.models.connection import Connection
from flowbuilder.models.results import MutationResult
from flowbuilder.models.workflow_graph import WorkflowGraph
from flowbuilder.models.workflow_node import NodeKind, Position
from flowbuilder.utils.logger import get_logger

log = get_logger(__name__)

GraphListener = Callable[[WorkflowGraph, WorkflowGraph], None]


class GraphStore:
    """Single source of truth for a flow's nodes and root.

    Usage:
        store = GraphStore()
        result = store.insert_node(store.root_id, "menu")
        store.get_connections()
    """

    def __init__(
        self,
        graph: WorkflowGraph | None = None,
        layout: LayoutDirection = DEFAULT_LAYOUT,
    ) -> None:
        """
        Args:
            graph: initial snapshot; a fresh single-root flow when omitted
            layout: placement direction for inserted nodes
        """
        self.layout = LayoutDirection(layout)
        self._graph = graph if graph is not None else mutations.new_workflow()
        self._connections: list[Connection] = derive_connections(self._graph)
        self._version = 0
        self._listeners: list[GraphListener] = []

    # --- reads ---

    def get_graph(self) -> WorkflowGraph:
        """The current immutable snapshot."""
        return self._graph

    def get_connections(self) -> list[Connection]:
        """Connections derived from the current snapshot."""
        return list(self._connections)

    @property
    def root_id(self) -> str:
        return self._graph.root_id

    @property
    def version(self) -> int:
        """Number of snapshots swapped in since the store was created."""
        return self._version

    # --- change notification ---

    def subscribe(self, listener: GraphListener) -> None:
        """Call ``listener(old, new)`` after every snapshot swap."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: GraphListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def replace(self, graph: WorkflowGraph) -> None:
        """Swap in a new snapshot and recompute connections."""
        previous = self._graph
        connections = derive_connections(graph)
        self._graph = graph
        self._connections = connections
        self._version += 1
        for listener in list(self._listeners):
            try:
                listener(previous, graph)
            except Exception:
                log.exception("graph listener %r failed", listener)

    def _apply(
        self,
        operation: str,
        step: Callable[[WorkflowGraph], WorkflowGraph],
        node_id: str | None = None,
    ) -> MutationResult:
        try:
            graph = step(self._graph)
        except FlowError as exc:
            log.info("%s rejected: %s", operation, exc.message)
            return MutationResult.failure(exc)
        if graph is not self._graph:
            self.replace(graph)
        return MutationResult.success(node_id=node_id, version=self._version)

    # --- mutations ---

    def insert_node(
        self,
        parent_id: str,
        kind: NodeKind | str,
        condition: str | None = None,
    ) -> MutationResult:
        """Add a node under ``parent_id``; the result carries the new node id."""
        created: list[str] = []

        def step(graph: WorkflowGraph) -> WorkflowGraph:
            graph, node_id = mutations.insert_node(graph, parent_id, kind, condition, self.layout)
            created.append(node_id)
            return graph

        result = self._apply("insert", step)
        if result.ok:
            result.node_id = created[0]
        return result

    def delete_node(self, node_id: str) -> MutationResult:
        return self._apply("delete", lambda graph: mutations.delete_node(graph, node_id), node_id)

    def update_node(self, node_id: str, changes: NodeUpdate | dict) -> MutationResult:
        return self._apply("update", lambda graph: mutations.update_node(graph, node_id, changes), node_id)

    def move_node(self, node_id: str, position: Position) -> MutationResult:
        return self._apply("move", lambda graph: mutations.move_node(graph, node_id, position), node_id)

    def add_option(self, node_id: str, label: str | None = None) -> MutationResult:
        return self._apply("add option", lambda graph: mutations.add_option(graph, node_id, label)[0], node_id)

    def rename_option(self, node_id: str, old: str, new: str) -> MutationResult:
        return self._apply("rename option", lambda graph: mutations.rename_option(graph, node_id, old, new), node_id)

    def remove_option(self, node_id: str, label: str) -> MutationResult:
        return self._apply("remove option", lambda graph: mutations.remove_option(graph, node_id, label), node_id)

    def __repr__(self) -> str:
        return f"GraphStore(root_id={self.root_id!r}, nodes={len(self._graph)}, version={self._version})"
