"""Utility functions for flowbuilder."""

from flowbuilder.utils.identifiers import (
    generate_flow_id,
    generate_node_id,
    utc_timestamp,
)
from flowbuilder.utils.logger import get_logger, init_logger

__all__ = [
    "generate_flow_id",
    "generate_node_id",
    "utc_timestamp",
    "get_logger",
    "init_logger",
]
