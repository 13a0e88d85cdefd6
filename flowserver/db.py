"""database initialization helpers."""

from flowserver.flow_db import init_db as init_flow_db


def init_all() -> None:
    """initialize all sqlite tables."""
    init_flow_db()
