"""API routes for stored flows and node editing.

Node edits load the stored snapshot, run the engine against it and store
the result; engine failures map to 404 (unknown node), 409 (protected node)
or 422 (anything else).
"""

import threading
from collections.abc import Callable
from typing import NoReturn

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from flowbuilder.engine import mutations
from flowbuilder.engine.connections import derive_connections
from flowbuilder.engine.defaults import DEFAULT_LAYOUT
from flowbuilder.engine.mutations import NodeUpdate
from flowbuilder.errors import FlowError
from flowbuilder.models.stored_flow import FlowView, StoredFlow
from flowbuilder.models.workflow_graph import WorkflowGraph
from flowbuilder.models.workflow_node import NodeKind
from flowbuilder.utils.identifiers import generate_flow_id, utc_timestamp
from flowbuilder.utils.logger import get_logger
from flowserver.flow_db import (
    delete_flow as db_delete_flow,
    flow_exists as db_flow_exists,
    get_flow as db_get_flow,
    list_flows as db_list_flows,
    upsert_flow as db_upsert_flow,
)

log = get_logger("server.flows")

router = APIRouter()

# read-modify-write of a stored flow must not interleave
_edit_lock = threading.Lock()

STATUS_BY_CODE = {
    "invalid_reference": 404,
    "protected_node": 409,
}


class CreateFlowRequest(BaseModel):
    """request body for creating a new single-root flow."""

    name: str = "Untitled flow"
    description: str | None = None
    root_kind: NodeKind = NodeKind.start


class UpsertFlowRequest(BaseModel):
    """request body for saving a whole snapshot."""

    name: str
    description: str | None = None
    graph: WorkflowGraph


class InsertNodeRequest(BaseModel):
    parent_id: str
    kind: NodeKind
    condition: str | None = None


class AddOptionRequest(BaseModel):
    label: str | None = None


class RenameOptionRequest(BaseModel):
    label: str


class NodeEditResponse(BaseModel):
    """the edited flow plus the node the edit created or touched."""

    node_id: str | None = None
    flow: FlowView


def _raise_for(exc: FlowError) -> NoReturn:
    raise HTTPException(
        status_code=STATUS_BY_CODE.get(exc.code, 422),
        detail={"code": exc.code, "message": exc.message, "node_id": exc.node_id},
    )


def _view(flow: StoredFlow) -> FlowView:
    return FlowView(**dict(flow), connections=derive_connections(flow.graph))


def _load(flow_id: str) -> StoredFlow:
    flow = db_get_flow(flow_id)
    if not flow:
        raise HTTPException(status_code=404, detail=f"Flow not found: {flow_id}")
    return flow


def _edit(flow_id: str, step: Callable[[WorkflowGraph], WorkflowGraph]) -> FlowView:
    """Apply one engine step to a stored flow and persist the result."""
    with _edit_lock:
        flow = _load(flow_id)
        try:
            graph = step(flow.graph)
        except FlowError as exc:
            log.info("edit of flow %s rejected: %s", flow_id, exc.message)
            _raise_for(exc)
        if graph is not flow.graph:
            flow = flow.model_copy(update={"graph": graph, "updated_at": utc_timestamp()})
            db_upsert_flow(flow)
    return _view(flow)


# --- flows ---


@router.get("/flows")
def list_flows() -> list[FlowView]:
    """list all stored flows, most recently updated first."""
    return [_view(flow) for flow in db_list_flows()]


@router.post("/flows")
def create_flow(request: CreateFlowRequest) -> FlowView:
    """create a flow holding only its root node."""
    try:
        graph = mutations.new_workflow(request.root_kind)
    except FlowError as exc:
        _raise_for(exc)

    now = utc_timestamp()
    flow = StoredFlow(
        flow_id=generate_flow_id(),
        name=request.name,
        description=request.description,
        graph=graph,
        created_at=now,
        updated_at=now,
    )
    db_upsert_flow(flow)
    log.info("created flow %s (%s)", flow.flow_id, flow.name)
    return _view(flow)


@router.get("/flows/{flow_id}")
def get_flow(flow_id: str) -> FlowView:
    """get a flow with its derived connections."""
    return _view(_load(flow_id))


@router.put("/flows/{flow_id}")
def upsert_flow(flow_id: str, request: UpsertFlowRequest) -> FlowView:
    """create or replace a flow's snapshot.

    Uses PUT for idempotent upsert - safe to call on every save.
    """
    now = utc_timestamp()
    with _edit_lock:
        existing = db_get_flow(flow_id)
        flow = StoredFlow(
            flow_id=flow_id,
            name=request.name,
            description=request.description,
            graph=request.graph,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        db_upsert_flow(flow)
    return _view(flow)


@router.delete("/flows/{flow_id}")
def delete_flow(flow_id: str) -> dict:
    """delete a flow."""
    if not db_flow_exists(flow_id):
        raise HTTPException(status_code=404, detail=f"Flow not found: {flow_id}")
    db_delete_flow(flow_id)
    log.info("deleted flow %s", flow_id)
    return {"deleted": flow_id}


# --- nodes ---


@router.post("/flows/{flow_id}/nodes")
def insert_node(flow_id: str, request: InsertNodeRequest) -> NodeEditResponse:
    """add a node under an existing parent."""
    created: list[str] = []

    def step(graph: WorkflowGraph) -> WorkflowGraph:
        graph, node_id = mutations.insert_node(
            graph, request.parent_id, request.kind, request.condition, DEFAULT_LAYOUT
        )
        created.append(node_id)
        return graph

    flow = _edit(flow_id, step)
    return NodeEditResponse(node_id=created[0], flow=flow)


@router.patch("/flows/{flow_id}/nodes/{node_id}")
def update_node(flow_id: str, node_id: str, request: NodeUpdate) -> NodeEditResponse:
    """patch label, position or kind-specific fields of a node."""
    flow = _edit(flow_id, lambda graph: mutations.update_node(graph, node_id, request))
    return NodeEditResponse(node_id=node_id, flow=flow)


@router.delete("/flows/{flow_id}/nodes/{node_id}")
def delete_node(flow_id: str, node_id: str) -> NodeEditResponse:
    """delete a node, reconnecting its parent to its successors."""
    flow = _edit(flow_id, lambda graph: mutations.delete_node(graph, node_id))
    return NodeEditResponse(node_id=node_id, flow=flow)


@router.post("/flows/{flow_id}/nodes/{node_id}/options")
def add_option(flow_id: str, node_id: str, request: AddOptionRequest) -> NodeEditResponse:
    """add an option (and its empty branch slot) to a decision node."""
    flow = _edit(flow_id, lambda graph: mutations.add_option(graph, node_id, request.label)[0])
    return NodeEditResponse(node_id=node_id, flow=flow)


@router.put("/flows/{flow_id}/nodes/{node_id}/options/{label}")
def rename_option(flow_id: str, node_id: str, label: str, request: RenameOptionRequest) -> NodeEditResponse:
    """rename an option, keeping whatever its branch points at."""
    flow = _edit(flow_id, lambda graph: mutations.rename_option(graph, node_id, label, request.label))
    return NodeEditResponse(node_id=node_id, flow=flow)


@router.delete("/flows/{flow_id}/nodes/{node_id}/options/{label}")
def remove_option(flow_id: str, node_id: str, label: str) -> NodeEditResponse:
    """remove an option and its branch slot."""
    flow = _edit(flow_id, lambda graph: mutations.remove_option(graph, node_id, label))
    return NodeEditResponse(node_id=node_id, flow=flow)
