"""Snapshot sinks: where a canvas saves its graph and loads it back.

The encoding is pydantic JSON of ``WorkflowGraph``; loading re-runs every
graph invariant, so a tampered or truncated file is rejected instead of
producing a broken snapshot.
"""

from pathlib import Path
from typing import Protocol

import httpx
from pydantic import ValidationError

from flowbuilder.errors import SnapshotLoadError, SnapshotSinkError
from flowbuilder.models.workflow_graph import WorkflowGraph
from flowbuilder.utils.logger import get_logger

log = get_logger(__name__)


def dump_graph(graph: WorkflowGraph, indent: int | None = 2) -> str:
    """Serialize a snapshot to JSON text."""
    return graph.model_dump_json(indent=indent)


def load_graph(text: str | bytes) -> WorkflowGraph:
    """Decode JSON text into a validated snapshot."""
    try:
        return WorkflowGraph.model_validate_json(text)
    except ValidationError as exc:
        raise SnapshotLoadError(f"invalid flow snapshot: {exc}") from exc


class SnapshotSink(Protocol):
    """Protocol for saving and loading graph snapshots."""

    def save(self, graph: WorkflowGraph) -> None:
        """Persist the snapshot."""
        ...

    def load(self) -> WorkflowGraph:
        """Return the last persisted snapshot."""
        ...


class MemorySnapshotSink:
    """keeps the last saved snapshot in memory."""

    def __init__(self) -> None:
        self.saved: WorkflowGraph | None = None

    def save(self, graph: WorkflowGraph) -> None:
        self.saved = graph

    def load(self) -> WorkflowGraph:
        if self.saved is None:
            raise SnapshotLoadError("nothing has been saved yet")
        return self.saved


class FileSnapshotSink:
    """Writes the snapshot to a JSON file (atomic replace)."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def save(self, graph: WorkflowGraph) -> None:
        """Write via a temp file and replace, so readers never see half a file."""
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(dump_graph(graph), encoding="utf-8")
            tmp.replace(self.path)
        except OSError as exc:
            log.warning("failed to save flow to %s: %s", self.path, exc)
            raise SnapshotSinkError(f"could not write {self.path}: {exc}") from exc

    def load(self) -> WorkflowGraph:
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SnapshotSinkError(f"could not read {self.path}: {exc}") from exc
        return load_graph(text)


class HttpSnapshotSink:
    """Saves to and loads from the flow server."""

    def __init__(
        self,
        flow_id: str,
        base_url: str = "http://localhost:8000",
        name: str = "Untitled flow",
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        """
        Args:
            flow_id: id of the flow on the server
            base_url: base URL of the flow server
            name: display name used when the flow is first created
            timeout: HTTP request timeout in seconds
            client: reuse this client instead of opening one per request
        """
        self.flow_id = flow_id
        self.base_url = base_url.rstrip("/")
        self.name = name
        self.timeout = timeout
        self.client = client

    @property
    def url(self) -> str:
        return f"{self.base_url}/api/flows/{self.flow_id}"

    def _request(self, method: str, **kwargs) -> httpx.Response:
        if self.client is not None:
            return self.client.request(method, self.url, **kwargs)
        with httpx.Client(timeout=self.timeout) as client:
            return client.request(method, self.url, **kwargs)

    def save(self, graph: WorkflowGraph) -> None:
        body = {"name": self.name, "graph": graph.model_dump(mode="json")}
        try:
            response = self._request("PUT", json=body)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            log.warning("failed to save flow %s: %s", self.flow_id, exc)
            raise SnapshotSinkError(f"could not save flow {self.flow_id}: {exc}") from exc

    def load(self) -> WorkflowGraph:
        try:
            response = self._request("GET")
            if response.status_code == 404:
                raise SnapshotSinkError(f"flow not found: {self.flow_id}")
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise SnapshotSinkError(f"could not load flow {self.flow_id}: {exc}") from exc

        try:
            return WorkflowGraph.model_validate(response.json()["graph"])
        except (ValueError, KeyError, TypeError) as exc:
            raise SnapshotLoadError(f"invalid flow payload from server: {exc}") from exc
