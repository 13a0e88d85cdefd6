"""flowbuilder - graph model and editing engine for chatbot/workflow builders."""

from flowbuilder.models import (
    Connection,
    MutationError,
    MutationResult,
    NodeKind,
    Position,
    Viewport,
    WorkflowGraph,
    WorkflowNode,
)
from flowbuilder.engine import (
    LayoutDirection,
    NodeUpdate,
    derive_connections,
    iter_connections,
    new_workflow,
)
from flowbuilder.errors import FlowError
from flowbuilder.store import GraphStore
from flowbuilder.canvas import Canvas
from flowbuilder.adapters import FileSnapshotSink, HttpSnapshotSink, MemorySnapshotSink

__all__ = [
    # Data model
    "Connection",
    "NodeKind",
    "Position",
    "Viewport",
    "WorkflowGraph",
    "WorkflowNode",
    # Results and errors
    "FlowError",
    "MutationError",
    "MutationResult",
    # Engine
    "LayoutDirection",
    "NodeUpdate",
    "derive_connections",
    "iter_connections",
    "new_workflow",
    # High-level APIs
    "GraphStore",
    "Canvas",
    # Persistence
    "FileSnapshotSink",
    "HttpSnapshotSink",
    "MemorySnapshotSink",
]
