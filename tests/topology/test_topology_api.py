"""
tests/topology/test_topology_api.py - FastAPI 엔드포인트 테스트
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from core.config import DiscoveryConfig
from core.exceptions import DiscoveryError, InventoryError
from topology.api import create_app


@pytest.fixture
def inventory(demo_resources, db_cluster, make_resource):
    return [*demo_resources, db_cluster, make_resource("i-other", "ec2", application="other")]


@pytest.fixture
def client(inventory, demo_provider):
    app = create_app(lambda: inventory, provider=demo_provider, config=DiscoveryConfig(max_workers=4, timeout=10))
    return TestClient(app)


class TestResources:
    def test_list_resources(self, client, inventory):
        response = client.get("/api/resources")

        assert response.status_code == 200
        assert [r["id"] for r in response.json()] == [r.id for r in inventory]


class TestResourceRelationships:
    """GET /api/resource-relationships"""

    def test_all_resources(self, client, ecs_service, db_instance, db_cluster):
        response = client.get("/api/resource-relationships")

        assert response.status_code == 200
        body = response.json()
        assert len(body["resources"]) == 4
        assert body["externalResources"] == []
        keys = {(r["sourceId"], r["targetId"], r["type"]) for r in body["relationships"]}
        assert (ecs_service.id, db_instance.id, "connects_to") in keys
        assert (db_instance.id, db_cluster.id, "instance_of") in keys

    def test_connects_to_metadata(self, client, ecs_service, db_instance):
        body = client.get("/api/resource-relationships").json()

        edge = next(
            r for r in body["relationships"] if r["sourceId"] == ecs_service.id and r["targetId"] == db_instance.id
        )
        rule = edge["metadata"]["securityGroups"]["rules"][0]
        assert (rule["protocol"], rule["fromPort"], rule["toPort"], rule["direction"]) == ("tcp", 3306, 3306, "inbound")

    def test_application_filter(self, client):
        """application 지정 시 나머지는 externalResources"""
        body = client.get("/api/resource-relationships", params={"application": "test-app2"}).json()

        assert len(body["resources"]) == 3
        assert [r["id"] for r in body["externalResources"]] == ["i-other"]

    def test_unknown_application(self, client):
        """리소스가 없는 애플리케이션은 200 + 빈 결과"""
        response = client.get("/api/resource-relationships", params={"application": "missing"})

        assert response.status_code == 200
        body = response.json()
        assert body["resources"] == []
        assert body["relationships"] == []
        assert len(body["externalResources"]) == 4

    def test_inventory_failure(self, demo_provider):
        def broken():
            raise InventoryError("boom", regions=["us-east-1"])

        client = TestClient(create_app(broken, provider=demo_provider))
        response = client.get("/api/resource-relationships")

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to fetch AWS resources"
        assert "boom" in response.json()["detail"]

    def test_discovery_failure(self, client):
        with patch("topology.api.RelationshipDiscovery") as discovery_class:
            discovery_class.return_value.run.side_effect = DiscoveryError("inventory unavailable")
            response = client.get("/api/resource-relationships")

        assert response.status_code == 500
        assert response.json() == {
            "error": "Failed to fetch resource relationships",
            "detail": "관계 탐색 실패: inventory unavailable",
        }

    def test_unexpected_error(self, demo_provider):
        def broken():
            raise RuntimeError("secret internals")

        client = TestClient(create_app(broken, provider=demo_provider), raise_server_exceptions=False)
        response = client.get("/api/resource-relationships")

        assert response.status_code == 500
        assert response.json()["error"] == "Internal error"
        assert "secret" not in response.text


class TestResourceGraph:
    """GET /api/resource-graph"""

    def test_graph_html(self, client):
        response = client.get("/api/resource-graph", params={"application": "test-app2"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "service-test-2" in response.text
        assert "echarts" in response.text

    def test_empty_graph(self, client):
        response = client.get("/api/resource-graph", params={"application": "missing"})

        assert response.status_code == 200
        assert "No resources to display" in response.text
