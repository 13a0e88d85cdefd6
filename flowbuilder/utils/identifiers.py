"""Ids for nodes and stored flows, and the timestamps the server records."""

import uuid
from datetime import datetime, timezone

NODE_ID_LENGTH = 12


def generate_node_id() -> str:
    """Short random hex id; unique enough within one flow and readable in edge ids."""
    return uuid.uuid4().hex[:NODE_ID_LENGTH]


def generate_flow_id() -> str:
    return str(uuid.uuid4())


def utc_timestamp() -> str:
    """Current time as ISO 8601 in UTC; sorts lexically in time order."""
    return datetime.now(timezone.utc).isoformat()
