"""Derive the renderable edge set from the node links.

The walk is depth-first from the root and visits every node at most once,
so converging branches are expanded a single time. Cycles are excluded by
``WorkflowGraph`` validation, which is what guarantees termination.
"""

from collections.abc import Iterator

from flowbuilder.models.connection import Connection
from flowbuilder.models.workflow_graph import WorkflowGraph
from flowbuilder.models.workflow_node import WorkflowNode


def outgoing_connections(node: WorkflowNode) -> list[Connection]:
    """Connections leaving one node: labelled branch paths, then plain children."""
    connections = []
    paths = node.branch_paths
    if paths is not None:
        for condition, child_id in paths.items():
            if child_id:
                connections.append(Connection.between(node.id, child_id, condition))
    for child_id in node.children:
        connections.append(Connection.between(node.id, child_id))
    return connections


def iter_connections(graph: WorkflowGraph) -> Iterator[Connection]:
    """Lazily yield every connection reachable from the root.

    Each edge is followed immediately by the walk into its target (pre-order),
    matching the recursive formulation but without the recursion limit.
    Edges pointing at ids missing from the graph are skipped.
    """
    root = graph.nodes.get(graph.root_id)
    if root is None:
        return

    visited = {root.id}
    stack = [iter(outgoing_connections(root))]
    while stack:
        connection = next(stack[-1], None)
        if connection is None:
            stack.pop()
            continue

        target = graph.nodes.get(connection.target)
        if target is None:
            continue
        yield connection

        if target.id not in visited:
            visited.add(target.id)
            stack.append(iter(outgoing_connections(target)))


def derive_connections(graph: WorkflowGraph) -> list[Connection]:
    """Eager form of iter_connections."""
    return list(iter_connections(graph))


def reachable_ids(graph: WorkflowGraph) -> set[str]:
    """Root plus every node some derived connection points at."""
    if graph.root_id not in graph.nodes:
        return set()
    reached = {graph.root_id}
    reached.update(connection.target for connection in iter_connections(graph))
    return reached
