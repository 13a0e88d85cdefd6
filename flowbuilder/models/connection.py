"""Derived edges between nodes.

Connections are never stored; they are recomputed from the node links
whenever the graph changes.
"""

from pydantic import BaseModel


class Connection(BaseModel):
    """a directed edge, optionally labelled with a branch condition."""

    model_config = {"frozen": True}

    id: str
    source: str
    target: str
    condition: str | None = None

    @classmethod
    def between(cls, source: str, target: str, condition: str | None = None) -> "Connection":
        if condition is None:
            connection_id = f"{source}-{target}"
        else:
            connection_id = f"{source}-{target}-{condition}"
        return cls(id=connection_id, source=source, target=target, condition=condition)

    def as_triple(self) -> tuple[str, str, str | None]:
        return (self.source, self.target, self.condition)
