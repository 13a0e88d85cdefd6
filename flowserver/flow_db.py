"""SQLite storage for flows.

One row per flow: the bookkeeping fields as columns and the graph snapshot
as JSON. Rows are turned back into ``StoredFlow`` on read, which re-runs
every graph invariant.
"""

import os
import sqlite3
from pathlib import Path

from flowbuilder.models.stored_flow import StoredFlow
from flowbuilder.models.workflow_graph import WorkflowGraph

DEFAULT_DB_PATH = Path(__file__).parent / "data" / "flows.db"
FLOW_DB_PATH = Path(os.getenv("FLOW_DB_PATH", str(DEFAULT_DB_PATH)))

_COLUMNS = "flow_id, name, description, graph_json, created_at, updated_at"


def _connect() -> sqlite3.Connection:
    FLOW_DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(FLOW_DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def _to_flow(row: sqlite3.Row) -> StoredFlow:
    return StoredFlow(
        flow_id=row["flow_id"],
        name=row["name"],
        description=row["description"],
        graph=WorkflowGraph.model_validate_json(row["graph_json"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def init_db() -> None:
    with _connect() as conn:
        conn.execute(
            """
            create table if not exists flows (
                flow_id text primary key,
                name text not null,
                description text,
                graph_json text not null,
                created_at text not null,
                updated_at text not null
            )
            """
        )
        conn.execute("create index if not exists flows_updated_at on flows (updated_at)")


def upsert_flow(flow: StoredFlow) -> None:
    """insert a flow, or overwrite everything but its creation time."""
    with _connect() as conn:
        conn.execute(
            f"""
            insert into flows ({_COLUMNS}) values (?, ?, ?, ?, ?, ?)
            on conflict(flow_id) do update set
                name = excluded.name,
                description = excluded.description,
                graph_json = excluded.graph_json,
                updated_at = excluded.updated_at
            """,
            (
                flow.flow_id,
                flow.name,
                flow.description,
                flow.graph.model_dump_json(),
                flow.created_at,
                flow.updated_at,
            ),
        )


def flow_exists(flow_id: str) -> bool:
    with _connect() as conn:
        row = conn.execute("select 1 from flows where flow_id = ?", (flow_id,)).fetchone()
    return row is not None


def get_flow(flow_id: str) -> StoredFlow | None:
    with _connect() as conn:
        row = conn.execute(f"select {_COLUMNS} from flows where flow_id = ?", (flow_id,)).fetchone()
    return _to_flow(row) if row else None


def list_flows() -> list[StoredFlow]:
    """all flows, most recently updated first."""
    with _connect() as conn:
        rows = conn.execute(f"select {_COLUMNS} from flows order by updated_at desc").fetchall()
    return [_to_flow(row) for row in rows]


def delete_flow(flow_id: str) -> bool:
    """delete a flow; False when there was nothing to delete."""
    with _connect() as conn:
        cursor = conn.execute("delete from flows where flow_id = ?", (flow_id,))
    return cursor.rowcount > 0
