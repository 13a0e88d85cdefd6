"""Tests for the flow API routes."""

import pytest
from fastapi.testclient import TestClient

from flowbuilder.adapters.persistence import HttpSnapshotSink
from flowbuilder.canvas import Canvas
from flowbuilder.tests.builders import menu_flow, triples
from flowserver import flow_db
from flowserver.app import app


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(flow_db, "FLOW_DB_PATH", tmp_path / "flows.db")
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def flow(client):
    """A stored flow holding only its start node."""
    response = client.post("/api/flows", json={"name": "Support bot"})
    assert response.status_code == 200
    return response.json()


def add_node(client, flow_id, parent_id, kind, condition=None):
    body = {"parent_id": parent_id, "kind": kind}
    if condition is not None:
        body["condition"] = condition
    return client.post(f"/api/flows/{flow_id}/nodes", json=body)


class TestFlows:
    """Test flow-level CRUD."""

    def test_health(self, client):
        data = client.get("/").json()
        assert data["status"] == "ok"
        assert data["endpoints"]["flows"] == "/api/flows"

    def test_create(self, flow):
        assert flow["name"] == "Support bot"
        root = flow["graph"]["nodes"][flow["graph"]["root_id"]]
        assert root["payload"]["kind"] == "start"
        assert flow["connections"] == []
        assert flow["created_at"] == flow["updated_at"]

    def test_create_with_action_root(self, client):
        data = client.post("/api/flows", json={"root_kind": "action"}).json()
        assert data["name"] == "Untitled flow"
        root = data["graph"]["nodes"][data["graph"]["root_id"]]
        assert root["payload"]["kind"] == "action"

    def test_description_is_stored(self, client):
        created = client.post("/api/flows", json={"name": "Orders", "description": "order status bot"}).json()
        fetched = client.get(f"/api/flows/{created['flow_id']}").json()
        assert fetched["description"] == "order status bot"

    def test_create_with_end_root(self, client):
        response = client.post("/api/flows", json={"root_kind": "end"})
        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "protected_node"

    def test_get_and_list(self, client, flow):
        assert client.get(f"/api/flows/{flow['flow_id']}").json()["flow_id"] == flow["flow_id"]
        assert [item["flow_id"] for item in client.get("/api/flows").json()] == [flow["flow_id"]]

    def test_get_missing(self, client):
        assert client.get("/api/flows/nope").status_code == 404

    def test_upsert(self, client):
        graph = menu_flow().model_dump(mode="json")
        response = client.put("/api/flows/fixed-id", json={"name": "Menu", "graph": graph})
        assert response.status_code == 200
        data = response.json()
        assert data["flow_id"] == "fixed-id"
        assert len(data["connections"]) == 5

        again = client.put("/api/flows/fixed-id", json={"name": "Renamed", "graph": graph}).json()
        assert again["name"] == "Renamed"
        assert again["created_at"] == data["created_at"]

    def test_upsert_rejects_invalid_graph(self, client):
        graph = menu_flow().model_dump(mode="json")
        graph["nodes"]["C"]["links"]["children"] = ["ghost"]
        response = client.put("/api/flows/bad", json={"name": "Bad", "graph": graph})
        assert response.status_code == 422
        assert client.get("/api/flows/bad").status_code == 404

    def test_delete(self, client, flow):
        flow_id = flow["flow_id"]
        assert client.delete(f"/api/flows/{flow_id}").json() == {"deleted": flow_id}
        assert client.get(f"/api/flows/{flow_id}").status_code == 404
        assert client.delete(f"/api/flows/{flow_id}").status_code == 404


class TestNodeEdits:
    """Test node edits against a stored flow."""

    def test_insert(self, client, flow):
        flow_id, root = flow["flow_id"], flow["graph"]["root_id"]
        response = add_node(client, flow_id, root, "menu")
        assert response.status_code == 200
        data = response.json()

        menu_id = data["node_id"]
        assert data["flow"]["graph"]["nodes"][menu_id]["payload"]["kind"] == "menu"
        assert data["flow"]["connections"] == [
            {"id": f"{root}-{menu_id}", "source": root, "target": menu_id, "condition": None}
        ]
        stored = client.get(f"/api/flows/{flow_id}").json()
        assert menu_id in stored["graph"]["nodes"]

    def test_insert_with_condition(self, client, flow):
        flow_id, root = flow["flow_id"], flow["graph"]["root_id"]
        menu_id = add_node(client, flow_id, root, "menu").json()["node_id"]
        data = add_node(client, flow_id, menu_id, "text-message", condition="yes").json()

        message_id = data["node_id"]
        paths = data["flow"]["graph"]["nodes"][menu_id]["links"]["paths"]
        assert paths["yes"] == message_id
        assert {"id": f"{menu_id}-{message_id}-yes", "source": menu_id, "target": message_id, "condition": "yes"} in data["flow"]["connections"]

    def test_insert_unknown_parent(self, client, flow):
        response = add_node(client, flow["flow_id"], "ghost", "action")
        assert response.status_code == 404
        assert response.json()["detail"]["node_id"] == "ghost"

    def test_insert_unknown_kind(self, client, flow):
        response = add_node(client, flow["flow_id"], flow["graph"]["root_id"], "webhook")
        assert response.status_code == 422

    def test_insert_into_missing_flow(self, client):
        assert add_node(client, "nope", "A", "action").status_code == 404

    def test_update(self, client, flow):
        flow_id, root = flow["flow_id"], flow["graph"]["root_id"]
        message_id = add_node(client, flow_id, root, "text-message").json()["node_id"]

        response = client.patch(
            f"/api/flows/{flow_id}/nodes/{message_id}",
            json={"label": "Greeting", "message_content": "Hi there"},
        )
        assert response.status_code == 200
        node = response.json()["flow"]["graph"]["nodes"][message_id]
        assert node["label"] == "Greeting"
        assert node["payload"]["message_content"] == "Hi there"

    def test_update_wrong_field(self, client, flow):
        flow_id, root = flow["flow_id"], flow["graph"]["root_id"]
        response = client.patch(f"/api/flows/{flow_id}/nodes/{root}", json={"question": "?"})
        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "invalid_update"

    def test_delete_node(self, client, flow):
        flow_id, root = flow["flow_id"], flow["graph"]["root_id"]
        first = add_node(client, flow_id, root, "action").json()["node_id"]
        second = add_node(client, flow_id, first, "end").json()["node_id"]

        data = client.delete(f"/api/flows/{flow_id}/nodes/{first}").json()
        assert first not in data["flow"]["graph"]["nodes"]
        assert [c["id"] for c in data["flow"]["connections"]] == [f"{root}-{second}"]

    def test_delete_root(self, client, flow):
        flow_id, root = flow["flow_id"], flow["graph"]["root_id"]
        response = client.delete(f"/api/flows/{flow_id}/nodes/{root}")
        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "protected_node"

    def test_failed_edit_keeps_stored_flow(self, client, flow):
        flow_id, root = flow["flow_id"], flow["graph"]["root_id"]
        end_id = add_node(client, flow_id, root, "end").json()["node_id"]
        before = client.get(f"/api/flows/{flow_id}").json()

        assert add_node(client, flow_id, end_id, "action").status_code == 409
        assert client.get(f"/api/flows/{flow_id}").json() == before


class TestOptionEdits:
    """Test option routes on a decision node."""

    @pytest.fixture
    def branch(self, client, flow):
        flow_id, root = flow["flow_id"], flow["graph"]["root_id"]
        return flow_id, add_node(client, flow_id, root, "branch").json()["node_id"]

    def test_add(self, client, branch):
        flow_id, node_id = branch
        data = client.post(f"/api/flows/{flow_id}/nodes/{node_id}/options", json={"label": "maybe"}).json()
        node = data["flow"]["graph"]["nodes"][node_id]
        assert node["payload"]["options"] == ["true", "false", "maybe"]
        assert node["links"]["paths"]["maybe"] == ""

    def test_add_generated_label(self, client, branch):
        flow_id, node_id = branch
        data = client.post(f"/api/flows/{flow_id}/nodes/{node_id}/options", json={}).json()
        assert data["flow"]["graph"]["nodes"][node_id]["payload"]["options"][-1] == "New Option"

    def test_add_duplicate(self, client, branch):
        flow_id, node_id = branch
        response = client.post(f"/api/flows/{flow_id}/nodes/{node_id}/options", json={"label": "true"})
        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "structural_desync"

    def test_rename(self, client, branch):
        flow_id, node_id = branch
        response = client.put(f"/api/flows/{flow_id}/nodes/{node_id}/options/true", json={"label": "yes"})
        assert response.status_code == 200
        options = response.json()["flow"]["graph"]["nodes"][node_id]["payload"]["options"]
        assert options == ["yes", "false"]

    def test_remove(self, client, branch):
        flow_id, node_id = branch
        response = client.delete(f"/api/flows/{flow_id}/nodes/{node_id}/options/false")
        assert response.json()["flow"]["graph"]["nodes"][node_id]["links"]["paths"] == {"true": ""}

    def test_remove_unknown(self, client, branch):
        flow_id, node_id = branch
        assert client.delete(f"/api/flows/{flow_id}/nodes/{node_id}/options/nope").status_code == 422


class TestHttpSnapshotSink:
    """A canvas saving to and loading from the server."""

    def test_round_trip(self, client):
        sink = HttpSnapshotSink("canvas-flow", base_url="http://testserver", name="Canvas", client=client)
        canvas = Canvas(menu_flow(), sink=sink)
        assert canvas.save().ok
        assert client.get("/api/flows/canvas-flow").json()["name"] == "Canvas"

        canvas.delete_node("C")
        assert canvas.load().ok
        assert triples(canvas.get_connections()) == triples(Canvas(menu_flow()).get_connections())

    def test_load_missing(self, client):
        sink = HttpSnapshotSink("missing", base_url="http://testserver", client=client)
        assert Canvas(sink=sink).load().error.code == "persistence_failed"
