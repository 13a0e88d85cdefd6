"""Tests for node and graph validation and serialization."""

import copy

import pytest
from pydantic import ValidationError

from flowbuilder.errors import UnknownNodeError
from flowbuilder.models.connection import Connection
from flowbuilder.models.workflow_graph import WorkflowGraph
from flowbuilder.models.workflow_node import (
    BranchLinks,
    MenuPayload,
    NodeKind,
    SequenceLinks,
    WorkflowNode,
)
from flowbuilder.tests.builders import make_graph, make_node, menu_flow


class TestNodeKind:
    """Test kind helpers."""

    def test_decision_kinds(self):
        assert NodeKind.menu.is_decision
        assert NodeKind.branch.is_decision
        assert not NodeKind.text_message.is_decision
        assert not NodeKind.action.is_decision

    def test_only_end_is_terminal(self):
        assert [kind for kind in NodeKind if kind.is_terminal] == [NodeKind.end]

    def test_kind_values(self):
        """Kinds use the wire names of the builder."""
        assert NodeKind("text-message") is NodeKind.text_message


class TestNodeValidation:
    """Test WorkflowNode invariants."""

    def test_decision_node_requires_branch_links(self):
        """A menu node with a plain sequence is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            WorkflowNode(
                id="m",
                label="Menu",
                payload=MenuPayload(options=("a",)),
                links=SequenceLinks(),
            )
        assert "branch links" in str(exc_info.value)

    def test_options_must_match_paths(self):
        """Branch path keys and options must agree exactly."""
        with pytest.raises(ValidationError) as exc_info:
            WorkflowNode(
                id="m",
                label="Menu",
                payload=MenuPayload(options=("a", "b")),
                links=BranchLinks(paths={"a": ""}),
            )
        assert "must match its options" in str(exc_info.value)

    def test_options_order_must_match_paths(self):
        with pytest.raises(ValidationError):
            WorkflowNode(
                id="m",
                label="Menu",
                payload=MenuPayload(options=("b", "a")),
                links=BranchLinks(paths={"a": "", "b": ""}),
            )

    def test_plain_node_cannot_use_branch_links(self):
        with pytest.raises(ValidationError):
            WorkflowNode.model_validate({
                "id": "t",
                "label": "Tags",
                "payload": {"kind": "tags"},
                "links": {"mode": "branches", "paths": {}},
            })

    def test_end_node_cannot_have_children(self):
        with pytest.raises(ValidationError) as exc_info:
            make_node("E", "end", children=("X",))
        assert "end node" in str(exc_info.value)

    def test_self_link_rejected(self):
        with pytest.raises(ValidationError):
            make_node("A", "action", children=("A",))

    def test_payload_fields_are_kind_specific(self):
        """A tags payload does not accept a question."""
        with pytest.raises(ValidationError):
            make_node("T", "tags", question="nope")

    def test_branch_paths_only_on_decisions(self):
        node = make_node("B", "branch", paths={"true": "", "false": ""})
        assert node.branch_paths == {"true": "", "false": ""}
        assert node.options == ("true", "false")
        assert make_node("A").branch_paths is None

    def test_successors_skip_unattached_slots(self):
        node = make_node("B", "menu", children=("Z",), paths={"x": "C", "y": ""})
        assert node.successors() == ("C", "Z")
        assert node.references("C")
        assert not node.references("")


class TestGraphValidation:
    """Test WorkflowGraph invariants."""

    def test_root_must_exist(self):
        with pytest.raises(ValidationError) as exc_info:
            WorkflowGraph(nodes={"A": make_node("A")}, root_id="missing")
        assert "root node" in str(exc_info.value)

    def test_children_must_resolve(self):
        with pytest.raises(ValidationError) as exc_info:
            make_graph(make_node("A", children=("ghost",)))
        assert "unknown node 'ghost'" in str(exc_info.value)

    def test_branch_targets_must_resolve(self):
        with pytest.raises(ValidationError):
            make_graph(make_node("B", "branch", paths={"true": "ghost"}))

    def test_unattached_slot_is_allowed(self):
        graph = make_graph(make_node("B", "branch", paths={"true": "", "false": ""}))
        assert graph.root_id == "B"

    def test_cycle_rejected(self):
        """No node may be its own ancestor."""
        with pytest.raises(ValidationError) as exc_info:
            make_graph(
                make_node("A", children=("B",)),
                make_node("B", children=("C",)),
                make_node("C", children=("A",)),
            )
        assert "cycle" in str(exc_info.value)

    def test_cycle_through_branch_rejected(self):
        with pytest.raises(ValidationError):
            make_graph(
                make_node("A", children=("B",)),
                make_node("B", "branch", paths={"true": "A", "false": ""}),
            )

    def test_convergence_is_allowed(self):
        """Two branches may rejoin at the same node."""
        graph = menu_flow()
        assert graph.parents_of("E") == ("C", "D")

    def test_key_must_match_node_id(self):
        with pytest.raises(ValidationError):
            WorkflowGraph(nodes={"X": make_node("A")}, root_id="X")

    def test_get_unknown_node(self):
        graph = menu_flow()
        with pytest.raises(UnknownNodeError) as exc_info:
            graph.get("nope")
        assert exc_info.value.node_id == "nope"
        assert exc_info.value.code == "invalid_reference"

    def test_parents_of(self):
        graph = menu_flow()
        assert graph.parents_of("A") == ()
        assert graph.parents_of("B") == ("A",)
        assert graph.parents_of("C") == ("B",)

    def test_node_map_is_read_only(self):
        """The snapshot node map cannot be edited in place."""
        graph = menu_flow()
        with pytest.raises(TypeError):
            graph.nodes.pop("A")
        with pytest.raises(TypeError):
            graph.nodes["Z"] = graph.nodes["E"]
        with pytest.raises(TypeError):
            del graph.nodes["E"]
        with pytest.raises(TypeError):
            graph.nodes.update({})
        assert list(graph.nodes) == ["A", "B", "C", "D", "E"]

    def test_node_map_copies(self):
        graph = menu_flow()
        assert copy.deepcopy(graph).model_dump() == graph.model_dump()
        assert type(graph.model_dump()["nodes"]) is dict

    def test_nodes_are_frozen(self):
        graph = menu_flow()
        with pytest.raises(ValidationError):
            graph.nodes["A"].label = "changed"


class TestRoundTrip:
    """Test graph serialization."""

    def test_graph_round_trip(self):
        """A graph should serialize and deserialize to an equivalent snapshot."""
        graph = menu_flow()
        restored = WorkflowGraph.model_validate_json(graph.model_dump_json())

        assert restored.root_id == graph.root_id
        assert restored.model_dump() == graph.model_dump()
        assert restored.nodes["B"].branch_paths == {"x": "C", "y": "D"}
        assert restored.nodes["B"].payload.question == "Pick one"
        assert restored.parents_of("E") == ("C", "D")


class TestConnection:
    def test_unlabelled_id(self):
        connection = Connection.between("A", "B")
        assert connection.id == "A-B"
        assert connection.condition is None

    def test_labelled_id(self):
        connection = Connection.between("B", "C", "yes")
        assert connection.id == "B-C-yes"
        assert connection.as_triple() == ("B", "C", "yes")
