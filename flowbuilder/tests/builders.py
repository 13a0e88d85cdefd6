"""Hand-built graphs for tests."""

from flowbuilder.models.connection import Connection
from flowbuilder.models.workflow_graph import WorkflowGraph
from flowbuilder.models.workflow_node import NodeKind, WorkflowNode


def make_node(
    node_id: str,
    kind: str = "action",
    children: tuple[str, ...] = (),
    paths: dict[str, str] | None = None,
    x: float = 0.0,
    y: float = 0.0,
    **fields,
) -> WorkflowNode:
    """Build a node; for decision kinds the options follow ``paths``."""
    kind = NodeKind(kind)
    payload = {"kind": kind.value, **fields}
    if kind.is_decision:
        paths = dict(paths or {})
        payload["options"] = list(paths)
        links = {"mode": "branches", "paths": paths, "children": list(children)}
    else:
        links = {"mode": "sequence", "children": list(children)}
    return WorkflowNode.model_validate({
        "id": node_id,
        "label": node_id,
        "position": {"x": x, "y": y},
        "payload": payload,
        "links": links,
    })


def make_graph(*nodes: WorkflowNode, root_id: str | None = None) -> WorkflowGraph:
    return WorkflowGraph(nodes={node.id: node for node in nodes}, root_id=root_id or nodes[0].id)


def menu_flow() -> WorkflowGraph:
    """A(start) -> B(menu x:C, y:D); C -> E(end); D -> E."""
    return make_graph(
        make_node("A", "start", children=("B",)),
        make_node("B", "menu", paths={"x": "C", "y": "D"}, question="Pick one"),
        make_node("C", "text-message", children=("E",), message_content="chose x"),
        make_node("D", "text-message", children=("E",), message_content="chose y"),
        make_node("E", "end"),
    )


def triples(connections: list[Connection]) -> set[tuple[str, str, str | None]]:
    return {connection.as_triple() for connection in connections}
