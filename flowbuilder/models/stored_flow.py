"""Data model for persisted flows.

Wraps a graph snapshot with the bookkeeping the server keeps for it.
"""

from pydantic import BaseModel

from flowbuilder.models.connection import Connection
from flowbuilder.models.workflow_graph import WorkflowGraph


class StoredFlow(BaseModel):
    """a saved flow as kept by the server."""

    flow_id: str
    name: str
    description: str | None = None
    graph: WorkflowGraph
    created_at: str
    updated_at: str


class FlowView(StoredFlow):
    """a saved flow plus the connections derived from its graph."""

    connections: list[Connection]
