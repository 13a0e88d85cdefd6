"""Core data models for flowbuilder."""

from flowbuilder.models.workflow_node import (
    DECISION_KINDS,
    ActionPayload,
    BranchLinks,
    BranchPayload,
    EndPayload,
    MenuPayload,
    MessagePayload,
    NodeKind,
    Position,
    SequenceLinks,
    StartPayload,
    TagsPayload,
    WorkflowNode,
)
from flowbuilder.models.workflow_graph import WorkflowGraph
from flowbuilder.models.connection import Connection
from flowbuilder.models.viewport import MAX_ZOOM, MIN_ZOOM, Viewport
from flowbuilder.models.results import MutationError, MutationResult
from flowbuilder.models.stored_flow import FlowView, StoredFlow

__all__ = [
    # nodes
    "DECISION_KINDS",
    "NodeKind",
    "Position",
    "WorkflowNode",
    "StartPayload",
    "MenuPayload",
    "TagsPayload",
    "MessagePayload",
    "EndPayload",
    "ActionPayload",
    "BranchPayload",
    "SequenceLinks",
    "BranchLinks",
    # graph
    "WorkflowGraph",
    "Connection",
    # canvas
    "Viewport",
    "MIN_ZOOM",
    "MAX_ZOOM",
    # results
    "MutationError",
    "MutationResult",
    # server
    "StoredFlow",
    "FlowView",
]
