"""Pure graph mutations.

Each function takes a snapshot and returns the next one; the input is never
modified. Invalid requests raise a ``FlowError`` subclass and leave nothing
half-applied, because the new snapshot only exists once it validated.
"""

from typing import Any

from pydantic import BaseModel, ValidationError, field_validator

from flowbuilder.engine.connections import reachable_ids
from flowbuilder.engine.defaults import (
    DEFAULT_LAYOUT,
    DEFAULT_LABELS,
    DEFAULT_OPTION_LABEL,
    ROOT_POSITION,
    LayoutDirection,
    build_node,
    placement,
)
from flowbuilder.errors import (
    DuplicateOptionError,
    InvalidUpdateError,
    ProtectedNodeError,
    UnknownOptionError,
)
from flowbuilder.models.workflow_graph import WorkflowGraph
from flowbuilder.models.workflow_node import (
    PAYLOAD_FIELDS,
    BranchLinks,
    NodeKind,
    Position,
    SequenceLinks,
    WorkflowNode,
)
from flowbuilder.utils.identifiers import generate_node_id
from flowbuilder.utils.logger import get_logger

log = get_logger(__name__)


class NodeUpdate(BaseModel):
    """Field-level patch for a node.

    Options and branch paths are not patchable here; they change together
    through add_option / rename_option / remove_option.
    """

    model_config = {"extra": "forbid"}

    label: str | None = None
    position: Position | None = None
    question: str | None = None
    tags: tuple[str, ...] | None = None
    message_content: str | None = None

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, tags: tuple[str, ...] | None) -> tuple[str, ...] | None:
        """Strip whitespace, drop blanks and repeats, keep first-seen order."""
        if tags is None:
            return None
        cleaned = (tag.strip() for tag in tags)
        return tuple(dict.fromkeys(tag for tag in cleaned if tag))


def _replace(model: BaseModel, node_id: str | None = None, **changes: Any):
    """Validated copy of a frozen model with ``changes`` applied."""
    try:
        return type(model)(**{**dict(model), **changes})
    except ValidationError as exc:
        raise InvalidUpdateError(str(exc), node_id=node_id) from exc


def _commit(graph: WorkflowGraph, changed: dict[str, WorkflowNode], removed: tuple[str, ...] = ()) -> WorkflowGraph:
    try:
        return graph.with_nodes(changed, removed)
    except ValidationError as exc:
        raise InvalidUpdateError(str(exc)) from exc


def _decision_links(node: WorkflowNode) -> BranchLinks:
    if not isinstance(node.links, BranchLinks):
        raise InvalidUpdateError(
            f"{node.kind.value} node {node.id} has no options", node_id=node.id
        )
    return node.links


def _with_branches(node: WorkflowNode, paths: dict[str, str], children: tuple[str, ...]) -> WorkflowNode:
    """Rebuild a decision node so its options follow ``paths`` exactly."""
    payload = _replace(node.payload, node.id, options=tuple(paths))
    return _replace(node, node.id, payload=payload, links=BranchLinks(paths=paths, children=children))


def _with_children(node: WorkflowNode, children: tuple[str, ...]) -> WorkflowNode:
    links = node.links
    if isinstance(links, BranchLinks):
        return _replace(node, node.id, links=BranchLinks(paths=links.paths, children=children))
    return _replace(node, node.id, links=SequenceLinks(children=children))


def _parse_kind(kind: NodeKind | str, node_id: str | None = None) -> NodeKind:
    try:
        return NodeKind(kind)
    except ValueError as exc:
        raise InvalidUpdateError(f"unknown node kind {kind!r}", node_id=node_id) from exc


def new_workflow(
    root_kind: NodeKind | str = NodeKind.start,
    label: str | None = None,
    position: Position | None = None,
) -> WorkflowGraph:
    """Single-node graph whose root is a fresh node of ``root_kind``.

    The chatbot flow starts from a ``start`` node; the action/branch workflow
    starts from an ``action`` node labelled "Start".
    """
    kind = _parse_kind(root_kind)
    if kind.is_terminal:
        raise ProtectedNodeError("an end node cannot be the root of a flow")
    if label is None:
        label = DEFAULT_LABELS[NodeKind.start]
    root = build_node(kind, generate_node_id(), position or ROOT_POSITION, label=label)
    return WorkflowGraph(nodes={root.id: root}, root_id=root.id)


def insert_node(
    graph: WorkflowGraph,
    parent_id: str,
    kind: NodeKind | str,
    condition: str | None = None,
    layout: LayoutDirection = DEFAULT_LAYOUT,
) -> tuple[WorkflowGraph, str]:
    """Add a new node of ``kind`` under ``parent_id``.

    With a condition on a decision parent the new node fills that branch
    slot (adding the option if it does not exist yet). A target previously
    held by the slot is kept as an unlabelled child of the parent so it stays
    reachable. Otherwise the new node is appended to the parent's children.

    Returns the new snapshot and the new node's id.
    """
    parent = graph.get(parent_id)
    if parent.kind.is_terminal:
        raise ProtectedNodeError(
            f"cannot add a step after end node {parent_id}", node_id=parent_id
        )

    kind = _parse_kind(kind, parent_id)
    new_id = generate_node_id()
    node = build_node(kind, new_id, placement(parent, layout))

    links = parent.links
    if isinstance(links, BranchLinks) and condition:
        paths = dict(links.paths)
        children = links.children
        displaced = paths.get(condition)
        if displaced and displaced not in children:
            children = children + (displaced,)
        paths[condition] = new_id
        parent = _with_branches(parent, paths, children)
    else:
        if condition:
            log.debug("ignoring condition %r for %s parent %s", condition, parent.kind.value, parent_id)
        parent = _with_children(parent, links.children + (new_id,))

    log.debug("inserted %s node %s under %s", kind.value, new_id, parent_id)
    return _commit(graph, {parent.id: parent, new_id: node}), new_id


def _detach(node: WorkflowNode, target_id: str) -> tuple[dict[str, str] | None, tuple[str, ...]]:
    """Paths and children of ``node`` with every reference to ``target_id`` gone.

    Labelled references lose their key entirely.
    """
    children = tuple(child for child in node.children if child != target_id)
    paths = node.branch_paths
    if paths is not None:
        paths = {label: child for label, child in paths.items() if child != target_id}
    return paths, children


def _primary_parent(graph: WorkflowGraph, parents: tuple[str, ...]) -> str:
    if len(parents) == 1:
        return parents[0]
    reached = reachable_ids(graph)
    return next((parent for parent in parents if parent in reached), parents[0])


def delete_node(graph: WorkflowGraph, node_id: str) -> WorkflowGraph:
    """Remove a node and reconnect its parent to everything it led to.

    The parent is the first node linking to ``node_id`` (in node-map order)
    that is reachable from the root, or the first linking node when none is.
    Its link is removed (a branch key goes away together with its option)
    and the deleted node's successors are appended to the parent's plain
    children. Their branch labels are not carried over. Any other node that
    also linked here drops the reference; branch slots become unattached.
    """
    if node_id == graph.root_id:
        raise ProtectedNodeError("the root node cannot be deleted", node_id=node_id)
    node = graph.get(node_id)

    successors = tuple(dict.fromkeys(node.children + tuple(c for c in (node.branch_paths or {}).values() if c)))
    changed: dict[str, WorkflowNode] = {}

    parents = graph.parents_of(node_id)
    if parents:
        primary = graph.nodes[_primary_parent(graph, parents)]
        paths, children = _detach(primary, node_id)
        kept = set(children) | {child for child in (paths or {}).values() if child}
        children = children + tuple(child for child in successors if child not in kept)
        if paths is None:
            changed[primary.id] = _with_children(primary, children)
        else:
            changed[primary.id] = _with_branches(primary, paths, children)

        for other_id in parents:
            if other_id == primary.id:
                continue
            other = graph.nodes[other_id]
            children = tuple(child for child in other.children if child != node_id)
            if other.branch_paths is None:
                changed[other_id] = _with_children(other, children)
            else:
                paths = {
                    label: ("" if child == node_id else child)
                    for label, child in other.branch_paths.items()
                }
                changed[other_id] = _with_branches(other, paths, children)
        log.debug("deleted node %s, reconnected %d successor(s) to %s", node_id, len(successors), primary.id)
    else:
        log.debug("deleted detached node %s", node_id)

    return _commit(graph, changed, removed=(node_id,))


def _parse_update(changes: NodeUpdate | dict, node_id: str) -> NodeUpdate:
    if isinstance(changes, NodeUpdate):
        return changes
    try:
        return NodeUpdate.model_validate(changes)
    except ValidationError as exc:
        raise InvalidUpdateError(str(exc), node_id=node_id) from exc


def update_node(graph: WorkflowGraph, node_id: str, changes: NodeUpdate | dict) -> WorkflowGraph:
    """Shallow-merge ``changes`` into a node; unspecified fields stay as they are."""
    node = graph.get(node_id)
    update = _parse_update(changes, node_id)

    node_changes: dict[str, Any] = {}
    payload_changes: dict[str, Any] = {}
    for field in sorted(update.model_fields_set):
        value = getattr(update, field)
        if value is None:
            raise InvalidUpdateError(f"{field} cannot be cleared", node_id=node_id)
        if field == "label":
            if not value.strip():
                raise InvalidUpdateError("label cannot be empty", node_id=node_id)
            node_changes["label"] = value
        elif field == "position":
            node_changes["position"] = value
        else:
            if node.kind not in PAYLOAD_FIELDS[field]:
                raise InvalidUpdateError(
                    f"{node.kind.value} nodes have no {field!r} field", node_id=node_id
                )
            payload_changes[field] = value

    if payload_changes:
        node_changes["payload"] = _replace(node.payload, node_id, **payload_changes)
    if not node_changes:
        return graph

    log.debug("updated node %s: %s", node_id, ", ".join(sorted(update.model_fields_set)))
    return _commit(graph, {node_id: _replace(node, node_id, **node_changes)})


def move_node(graph: WorkflowGraph, node_id: str, position: Position) -> WorkflowGraph:
    node = graph.get(node_id)
    return _commit(graph, {node_id: _replace(node, node_id, position=position)})


def _next_option_label(paths: dict[str, str]) -> str:
    label = DEFAULT_OPTION_LABEL
    suffix = 2
    while label in paths:
        label = f"{DEFAULT_OPTION_LABEL} {suffix}"
        suffix += 1
    return label


def add_option(graph: WorkflowGraph, node_id: str, label: str | None = None) -> tuple[WorkflowGraph, str]:
    """Append an option and its empty branch slot in one step.

    Without a label the next free "New Option" label is used. Returns the new
    snapshot and the label that was added.
    """
    node = graph.get(node_id)
    links = _decision_links(node)
    if label is None:
        label = _next_option_label(links.paths)
    if not label.strip():
        raise InvalidUpdateError("option label cannot be empty", node_id=node_id)
    if label in links.paths:
        raise DuplicateOptionError(f"option {label!r} already exists on {node_id}", node_id=node_id)

    paths = {**links.paths, label: ""}
    log.debug("added option %r to %s", label, node_id)
    return _commit(graph, {node_id: _with_branches(node, paths, links.children)}), label


def rename_option(graph: WorkflowGraph, node_id: str, old: str, new: str) -> WorkflowGraph:
    """Rename an option, keeping its slot position and its target."""
    node = graph.get(node_id)
    links = _decision_links(node)
    if old not in links.paths:
        raise UnknownOptionError(f"option {old!r} not found on {node_id}", node_id=node_id)
    if old == new:
        return graph
    if not new.strip():
        raise InvalidUpdateError("option label cannot be empty", node_id=node_id)
    if new in links.paths:
        raise DuplicateOptionError(f"option {new!r} already exists on {node_id}", node_id=node_id)

    paths = {(new if label == old else label): child for label, child in links.paths.items()}
    return _commit(graph, {node_id: _with_branches(node, paths, links.children)})


def remove_option(graph: WorkflowGraph, node_id: str, label: str) -> WorkflowGraph:
    """Drop an option and its branch slot together.

    A node the slot pointed at becomes an unlabelled child of the decision
    node instead of being cut off.
    """
    node = graph.get(node_id)
    links = _decision_links(node)
    if label not in links.paths:
        raise UnknownOptionError(f"option {label!r} not found on {node_id}", node_id=node_id)

    paths = {key: child for key, child in links.paths.items() if key != label}
    children = links.children
    target = links.paths[label]
    if target and target not in children and target not in paths.values():
        children = children + (target,)
    return _commit(graph, {node_id: _with_branches(node, paths, children)})


__all__ = [
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
