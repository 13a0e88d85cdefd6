"""Default labels, payloads and placement for newly created nodes."""

import os
from enum import Enum

from flowbuilder.models.workflow_node import (
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


class LayoutDirection(str, Enum):
    """Where a new node is placed relative to its parent."""

    vertical = "vertical"  # below the parent
    horizontal = "horizontal"  # to the right of the parent


LAYOUT_OFFSETS: dict[LayoutDirection, tuple[float, float]] = {
    LayoutDirection.vertical: (0.0, 150.0),
    LayoutDirection.horizontal: (300.0, 0.0),
}


def _env_layout(default: LayoutDirection = LayoutDirection.vertical) -> LayoutDirection:
    """Read FLOW_LAYOUT from env, fallback to default."""
    value = os.getenv("FLOW_LAYOUT", default.value).lower()
    try:
        return LayoutDirection(value)
    except ValueError:
        return default


DEFAULT_LAYOUT = _env_layout()

ROOT_POSITION = Position(x=400, y=50)

DEFAULT_LABELS: dict[NodeKind, str] = {
    NodeKind.start: "Start",
    NodeKind.menu: "Menu",
    NodeKind.tags: "Tags",
    NodeKind.text_message: "Text Message",
    NodeKind.end: "End",
    NodeKind.action: "New Step",
    NodeKind.branch: "Branch",
}

DEFAULT_QUESTION = "Please select an option:"
DEFAULT_MENU_OPTIONS = ("Option 1", "Option 2")
DEFAULT_BRANCH_OPTIONS = ("true", "false")
DEFAULT_OPTION_LABEL = "New Option"


def default_payload(kind: NodeKind):
    """Fresh payload for a node of ``kind``."""
    if kind is NodeKind.start:
        return StartPayload()
    if kind is NodeKind.menu:
        return MenuPayload(question=DEFAULT_QUESTION, options=DEFAULT_MENU_OPTIONS)
    if kind is NodeKind.tags:
        return TagsPayload()
    if kind is NodeKind.text_message:
        return MessagePayload()
    if kind is NodeKind.end:
        return EndPayload()
    if kind is NodeKind.action:
        return ActionPayload()
    if kind is NodeKind.branch:
        return BranchPayload(options=DEFAULT_BRANCH_OPTIONS)
    raise ValueError(f"Unknown node kind: {kind}")


def build_node(
    kind: NodeKind,
    node_id: str,
    position: Position,
    label: str | None = None,
) -> WorkflowNode:
    """Create a node with its kind's default label and payload.

    Decision nodes get one unattached branch slot per default option.
    """
    payload = default_payload(kind)
    if kind.is_decision:
        links = BranchLinks(paths={option: "" for option in payload.options})
    else:
        links = SequenceLinks()
    return WorkflowNode(
        id=node_id,
        label=label if label is not None else DEFAULT_LABELS[kind],
        position=position,
        payload=payload,
        links=links,
    )


def placement(parent: WorkflowNode, layout: LayoutDirection) -> Position:
    """Position of a node added under ``parent``."""
    dx, dy = LAYOUT_OFFSETS[LayoutDirection(layout)]
    return parent.position.offset(dx, dy)
