"""Structural statistics for a flow.

Useful for spotting steps nobody can reach, menu options with nothing
attached, and paths that stop before an end node.
"""

from collections import Counter, defaultdict, deque
from dataclasses import dataclass, field

from flowbuilder.engine.connections import derive_connections
from flowbuilder.models.workflow_graph import WorkflowGraph


@dataclass
class FlowSummary:
    """Summary of a flow's structure."""

    root_id: str
    node_count: int
    connection_count: int
    nodes_by_kind: dict[str, int] = field(default_factory=dict)
    reachable: list[str] = field(default_factory=list)
    unreachable: list[str] = field(default_factory=list)
    unattached_slots: list[tuple[str, str]] = field(default_factory=list)  # (node_id, option)
    terminals: list[str] = field(default_factory=list)
    dead_ends: list[str] = field(default_factory=list)  # non-end nodes with no way out
    max_depth: int = 0


def _longest_path(root_id: str, edges: list[tuple[str, str]]) -> int:
    """Length in edges of the longest path from the root (the graph is a DAG)."""
    successors: dict[str, list[str]] = defaultdict(list)
    indegree: Counter[str] = Counter()
    for source, target in edges:
        successors[source].append(target)
        indegree[target] += 1

    depth = {root_id: 0}
    queue = deque([root_id])
    while queue:
        node_id = queue.popleft()
        for target in successors[node_id]:
            depth[target] = max(depth.get(target, 0), depth[node_id] + 1)
            indegree[target] -= 1
            if indegree[target] == 0:
                queue.append(target)
    return max(depth.values())


def flow_summary(graph: WorkflowGraph) -> FlowSummary:
    """Compute structural statistics for one snapshot.

    Args:
        graph: the flow to inspect

    Returns:
        FlowSummary with counts, reachability and open ends.
    """
    connections = derive_connections(graph)
    reached = {graph.root_id} | {connection.target for connection in connections}

    summary = FlowSummary(
        root_id=graph.root_id,
        node_count=len(graph),
        connection_count=len(connections),
        nodes_by_kind=dict(Counter(node.kind.value for node in graph.nodes.values())),
    )

    for node_id, node in graph.nodes.items():
        if node_id in reached:
            summary.reachable.append(node_id)
        else:
            summary.unreachable.append(node_id)

        paths = node.branch_paths or {}
        summary.unattached_slots.extend((node_id, option) for option, child in paths.items() if not child)

        if node.kind.is_terminal:
            summary.terminals.append(node_id)
        elif not node.successors():
            summary.dead_ends.append(node_id)

    summary.max_depth = _longest_path(
        graph.root_id, [(connection.source, connection.target) for connection in connections]
    )
    return summary
