"""The canvas host: one open flow with its viewport, selection and pointer session.

This is the surface a rendering layer talks to. Every method returns a
definite value or a ``MutationResult``; nothing raises into the caller.
"""

from typing import Any

from flowbuilder.adapters.persistence import SnapshotSink
from flowbuilder.canvas.interaction import InteractionSession
from flowbuilder.canvas.selection import SelectionState
from flowbuilder.canvas.viewport import ViewportState
from flowbuilder.engine.defaults import DEFAULT_LAYOUT, LayoutDirection
from flowbuilder.engine.mutations import NodeUpdate
from flowbuilder.errors import FlowError
from flowbuilder.models.connection import Connection
from flowbuilder.models.results import MutationResult
from flowbuilder.models.viewport import Viewport
from flowbuilder.models.workflow_graph import WorkflowGraph
from flowbuilder.models.workflow_node import NodeKind, Position
from flowbuilder.store import GraphStore
from flowbuilder.utils.logger import get_logger

log = get_logger(__name__)


class Canvas:
    """High-level interface for one open flow.

    Usage:
        from flowbuilder import Canvas

        canvas = Canvas()
        menu = canvas.insert_node(canvas.get_graph().root_id, "menu").node_id
        canvas.insert_node(menu, "text-message", condition="Option 1")
        canvas.render_state()
    """

    def __init__(
        self,
        graph: WorkflowGraph | None = None,
        layout: LayoutDirection = DEFAULT_LAYOUT,
        sink: SnapshotSink | None = None,
    ) -> None:
        """
        Args:
            graph: initial snapshot; a fresh flow with a single start node if None
            layout: placement direction for new nodes
            sink: where save()/load() persist the graph; None disables both
        """
        self.store = GraphStore(graph, layout=layout)
        self.viewport = ViewportState()
        self.selection = SelectionState()
        self.session = InteractionSession(self.store, self.viewport)
        self.sink = sink
        self.store.subscribe(self._drop_stale_selection)

    def _drop_stale_selection(self, previous: WorkflowGraph, current: WorkflowGraph) -> None:
        selected = self.selection.selected
        if selected is not None and selected not in current:
            self.selection.clear()

    # --- graph ---

    def get_graph(self) -> WorkflowGraph:
        return self.store.get_graph()

    def get_connections(self) -> list[Connection]:
        return self.store.get_connections()

    def insert_node(self, parent_id: str, kind: NodeKind | str, condition: str | None = None) -> MutationResult:
        return self.store.insert_node(parent_id, kind, condition)

    def delete_node(self, node_id: str) -> MutationResult:
        return self.store.delete_node(node_id)

    def update_node(self, node_id: str, changes: NodeUpdate | dict) -> MutationResult:
        return self.store.update_node(node_id, changes)

    def add_option(self, node_id: str, label: str | None = None) -> MutationResult:
        return self.store.add_option(node_id, label)

    def rename_option(self, node_id: str, old: str, new: str) -> MutationResult:
        return self.store.rename_option(node_id, old, new)

    def remove_option(self, node_id: str, label: str) -> MutationResult:
        return self.store.remove_option(node_id, label)

    # --- pointer sessions ---

    def begin_drag(self, node_id: str, pointer: Position) -> MutationResult:
        return self.session.begin_drag(node_id, pointer)

    def move_drag(self, pointer: Position) -> MutationResult:
        return self.session.move_drag(pointer)

    def end_drag(self) -> MutationResult:
        return self.session.end_drag()

    def begin_pan(self, pointer: Position) -> MutationResult:
        return self.session.begin_pan(pointer)

    def move_pan(self, pointer: Position) -> MutationResult:
        return self.session.move_pan(pointer)

    def end_pan(self) -> MutationResult:
        return self.session.end_pan()

    # --- viewport ---

    def set_zoom(self, factor: float) -> MutationResult:
        return self.viewport.set_zoom(factor)

    def set_pan(self, offset: Position) -> MutationResult:
        return self.viewport.set_pan(offset)

    def reset_viewport(self) -> None:
        self.viewport.reset()

    def get_viewport(self) -> Viewport:
        return self.viewport.viewport

    # --- selection ---

    def select_node(self, node_id: str | None) -> MutationResult:
        return self.selection.select(node_id, self.get_graph())

    def get_selection(self) -> str | None:
        return self.selection.selected

    # --- persistence ---

    def save(self) -> MutationResult:
        """Write the current snapshot to the sink."""
        if self.sink is None:
            log.info("save requested but no sink is configured")
            return MutationResult.success()
        try:
            self.sink.save(self.get_graph())
        except FlowError as exc:
            return MutationResult.failure(exc)
        return MutationResult.success(version=self.store.version)

    def load(self) -> MutationResult:
        """Replace the current snapshot with the one in the sink.

        Any drag or pan in progress is abandoned.
        """
        if self.sink is None:
            log.info("load requested but no sink is configured")
            return MutationResult.success()
        try:
            graph = self.sink.load()
        except FlowError as exc:
            return MutationResult.failure(exc)
        self.session.end_drag()
        self.session.end_pan()
        self.store.replace(graph)
        return MutationResult.success(version=self.store.version)

    def render_state(self) -> dict[str, Any]:
        """Everything a renderer needs for one frame, as plain data."""
        graph = self.get_graph()
        return {
            "root_id": graph.root_id,
            "nodes": [node.model_dump(mode="json") for node in graph.nodes.values()],
            "connections": [connection.model_dump() for connection in self.get_connections()],
            "viewport": self.get_viewport().model_dump(),
            "selection": self.get_selection(),
        }

    def __repr__(self) -> str:
        return f"Canvas(store={self.store!r}, selection={self.get_selection()!r})"
