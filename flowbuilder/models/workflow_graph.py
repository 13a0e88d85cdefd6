"""Immutable snapshot of a whole flow.

Every mutation produces a new ``WorkflowGraph``; an existing snapshot is
never edited, so a reader holding one always sees a consistent graph.
"""

from typing import Annotated, Self

from pydantic import AfterValidator, BaseModel, PrivateAttr, model_validator

from flowbuilder.errors import UnknownNodeError
from flowbuilder.models.workflow_node import WorkflowNode


class NodeMap(dict):
    """Read-only node map held by a snapshot.

    Still a ``dict`` for lookups and serialization; every in-place edit
    raises ``TypeError``.
    """

    def _read_only(self, *args, **kwargs):
        raise TypeError("graph snapshots are immutable; build a new one with with_nodes()")

    __setitem__ = __delitem__ = __ior__ = _read_only
    clear = pop = popitem = setdefault = update = _read_only

    def __reduce__(self):
        return (NodeMap, (dict(self),))


def _find_cycle(nodes: dict[str, WorkflowNode]) -> str | None:
    """Return a node id that sits on a cycle, or None for an acyclic graph."""
    # 0 = unvisited, 1 = on the current path, 2 = done
    state: dict[str, int] = {}
    for start in nodes:
        if state.get(start):
            continue
        state[start] = 1
        stack = [(start, iter(nodes[start].successors()))]
        while stack:
            node_id, targets = stack[-1]
            for target in targets:
                if target not in nodes:
                    continue
                seen = state.get(target, 0)
                if seen == 1:
                    return target
                if seen == 0:
                    state[target] = 1
                    stack.append((target, iter(nodes[target].successors())))
                    break
            else:
                state[node_id] = 2
                stack.pop()
    return None


class WorkflowGraph(BaseModel):
    """The node map plus the designated root."""

    model_config = {"frozen": True, "extra": "forbid"}

    nodes: Annotated[dict[str, WorkflowNode], AfterValidator(NodeMap)]
    root_id: str

    # child id -> parent ids, in node-map order
    _parents: dict[str, tuple[str, ...]] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context) -> None:
        parents: dict[str, list[str]] = {}
        for node_id, node in self.nodes.items():
            for target in dict.fromkeys(node.successors()):
                parents.setdefault(target, []).append(node_id)
        self._parents = {child: tuple(ids) for child, ids in parents.items()}

    @model_validator(mode="after")
    def validate_structure(self) -> Self:
        """Root exists, every link resolves, and no node is its own ancestor."""
        if self.root_id not in self.nodes:
            raise ValueError(f"root node {self.root_id!r} is not in the graph")

        for key, node in self.nodes.items():
            if key != node.id:
                raise ValueError(f"node stored under {key!r} has id {node.id!r}")
            for target in node.successors():
                if target not in self.nodes:
                    raise ValueError(f"node {key!r} links to unknown node {target!r}")

        cycle_at = _find_cycle(self.nodes)
        if cycle_at is not None:
            raise ValueError(f"cycle detected through node {cycle_at!r}")
        return self

    @property
    def root(self) -> WorkflowNode:
        return self.nodes[self.root_id]

    def get(self, node_id: str) -> WorkflowNode:
        """Look up a node, raising UnknownNodeError for unknown ids."""
        node = self.nodes.get(node_id)
        if node is None:
            raise UnknownNodeError(node_id)
        return node

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def parents_of(self, node_id: str) -> tuple[str, ...]:
        """Ids of nodes linking to ``node_id``, in node-map order."""
        return self._parents.get(node_id, ())

    def with_nodes(self, changed: dict[str, WorkflowNode], removed: tuple[str, ...] = ()) -> "WorkflowGraph":
        """Build the next snapshot from this one.

        Untouched nodes are shared with the new snapshot; order of the
        node map is preserved and new nodes are appended.
        """
        nodes = {node_id: node for node_id, node in self.nodes.items() if node_id not in removed}
        nodes.update(changed)
        return WorkflowGraph(nodes=nodes, root_id=self.root_id)
