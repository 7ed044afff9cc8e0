"""
tests/topology/test_topology_graph_view.py - 그래프 뷰 구성 테스트
"""

import pytest

from core.exceptions import TopologyError
from topology.graph import (
    EMPTY_NO_RELATIONSHIPS,
    EMPTY_NO_RESOURCES,
    GraphView,
    build_graph_view,
    edge_tooltip,
    node_tooltip,
)
from topology.graph.view import GraphNode
from topology.types import Relationship, RelationshipType, connects_to_metadata, security_group_rule


@pytest.fixture
def focus(make_resource):
    return [make_resource("a", "ec2", application="web"), make_resource("b", "ec2", application="web")]


@pytest.fixture
def external(make_resource):
    return [make_resource("x", "aurora", application="db")]


class TestEmptyStates:
    """빈 상태 구분"""

    def test_no_resources(self):
        view = build_graph_view([], [])
        assert view.empty_message == EMPTY_NO_RESOURCES == "No resources to display"

    def test_no_relationships(self, make_resource):
        view = build_graph_view([make_resource("r1", "lambda")], [])
        assert view.empty_message == EMPTY_NO_RELATIONSHIPS == "No relationships found between resources"

    def test_all_edges_unresolvable(self, focus):
        """끝점을 찾을 수 없는 관계만 있으면 관계 없음 상태"""
        view = build_graph_view(focus, [Relationship("a", "ghost", RelationshipType.CONNECTS_TO)])

        assert view.edges == []
        assert view.empty_message == EMPTY_NO_RELATIONSHIPS
        assert len(view.diagnostics) == 1

    def test_graph_present(self, focus):
        view = build_graph_view(focus, [Relationship("a", "b", RelationshipType.CONNECTS_TO)])
        assert view.empty_message is None


class TestBuildGraphView:
    """노드/엣지 구성"""

    def test_external_node_added_when_referenced(self, focus, external, make_resource):
        unused = make_resource("y", "lambda")
        edges = [
            Relationship("a", "b", RelationshipType.CONNECTS_TO),
            Relationship("a", "x", RelationshipType.CONNECTS_TO),
        ]

        view = build_graph_view(focus, edges, [*external, unused])

        assert [n.id for n in view.nodes] == ["a", "b", "x"]
        assert [n.is_external for n in view.nodes] == [False, False, True]
        assert view.external_count == 1
        assert view.edges == edges

    def test_hide_external(self, focus, external):
        edges = [
            Relationship("a", "b", RelationshipType.CONNECTS_TO),
            Relationship("x", "a", RelationshipType.TRIGGERS),
        ]

        view = build_graph_view(focus, edges, external, show_external=False)

        assert [n.id for n in view.nodes] == ["a", "b"]
        assert view.edges == [edges[0]]
        assert view.diagnostics == []

    def test_edges_between_externals_ignored(self, focus, make_resource):
        externals = [make_resource("x", "ec2"), make_resource("y", "ec2")]
        view = build_graph_view(focus, [Relationship("x", "y", RelationshipType.CONNECTS_TO)], externals)

        assert view.edges == []
        assert view.diagnostics == []

    def test_unknown_endpoint_diagnostic(self, focus):
        view = build_graph_view(focus, [Relationship("ghost", "a", RelationshipType.DEPENDS_ON)])

        assert view.edges == []
        assert "ghost" in view.diagnostics[0]

    def test_duplicate_edges_collapsed(self, focus):
        edges = [
            Relationship("a", "b", RelationshipType.CONNECTS_TO, {"n": 1}),
            Relationship("a", "b", RelationshipType.CONNECTS_TO, {"n": 2}),
        ]
        view = build_graph_view(focus, edges)
        assert view.edges == [edges[0]]

    def test_focus_wins_over_external(self, focus):
        """focus와 외부 목록에 같은 리소스가 있으면 focus로 표시"""
        view = build_graph_view(focus, [Relationship("a", "b", RelationshipType.CONNECTS_TO)], [focus[1]])
        assert view.external_count == 0


class TestNeighbors:
    """hover 강조 대상"""

    def test_incident_and_neighbors(self, focus, external):
        edges = [
            Relationship("a", "b", RelationshipType.CONNECTS_TO),
            Relationship("x", "a", RelationshipType.TRIGGERS),
        ]
        view = build_graph_view(focus, edges, external)

        assert view.incident_edges("a") == edges
        assert view.neighbors("a") == {"b", "x"}
        assert view.neighbors("b") == {"a"}
        assert view.node("x").is_external
        assert view.node("missing") is None


class TestFromPayload:
    """렌더 입력 JSON 계약"""

    def test_payload(self, focus, external):
        payload = {
            "resources": [r.to_dict() for r in focus],
            "relationships": [{"sourceId": "a", "targetId": "x", "type": "connects_to"}],
            "externalResources": [r.to_dict() for r in external],
            "showExternalResources": True,
        }

        view = GraphView.from_payload(payload)

        assert [n.id for n in view.nodes] == ["a", "b", "x"]
        assert len(view.edges) == 1

    def test_payload_hide_external(self, focus, external):
        payload = {
            "resources": [r.to_dict() for r in focus],
            "relationships": [{"sourceId": "a", "targetId": "x", "type": "connects_to"}],
            "externalResources": [r.to_dict() for r in external],
            "showExternalResources": False,
        }

        view = GraphView.from_payload(payload)

        assert view.empty_message == EMPTY_NO_RELATIONSHIPS

    def test_invalid_payload(self):
        with pytest.raises(TopologyError):
            GraphView.from_payload([])  # type: ignore[arg-type]


class TestTooltips:
    """툴팁 텍스트"""

    def test_connects_to_tooltip(self):
        edge = Relationship(
            "a",
            "b",
            RelationshipType.CONNECTS_TO,
            connects_to_metadata(
                ["sg-app"],
                ["sg-db"],
                [security_group_rule("tcp", 3306, 3306, "sg-app", "inbound")],
            ),
        )

        assert edge_tooltip(edge) == (
            "connects to\n"
            "Security Groups:\n"
            "  Source: sg-app\n"
            "  Target: sg-db\n"
            "  Inbound Rule:\n"
            "    Protocol: tcp\n"
            "    Port: 3306"
        )

    def test_port_range(self):
        edge = Relationship(
            "a",
            "b",
            RelationshipType.CONNECTS_TO,
            connects_to_metadata(["s"], ["t"], [security_group_rule("tcp", 8000, 8100, "s", "outbound")]),
        )
        text = edge_tooltip(edge)
        assert "Outbound Rule:" in text
        assert "Ports: 8000-8100" in text

    def test_other_metadata(self):
        edge = Relationship("a", "b", RelationshipType.ROUTES_TO, {"protocol": "HTTP", "port": 80})
        assert edge_tooltip(edge) == "routes to\nprotocol: HTTP\nport: 80"

    def test_no_metadata(self):
        assert edge_tooltip(Relationship("a", "b", RelationshipType.INSTANCE_OF)) == "instance of"

    def test_node_tooltip(self, make_resource):
        node = GraphNode(make_resource("x", "aurora", name="orders-db", application="db"), is_external=True)
        assert node_tooltip(node) == "orders-db (aurora)\nApplication: db\nStatus: running\nExternal"
