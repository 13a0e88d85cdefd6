"""Adapters for saving and loading flow snapshots."""

from flowbuilder.adapters.persistence import (
    FileSnapshotSink,
    HttpSnapshotSink,
    MemorySnapshotSink,
    SnapshotSink,
    dump_graph,
    load_graph,
)

__all__ = [
    "SnapshotSink",
    "MemorySnapshotSink",
    "FileSnapshotSink",
    "HttpSnapshotSink",
    "dump_graph",
    "load_graph",
]
