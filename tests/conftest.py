"""
tests/conftest.py - pytest 공통 픽스처

관계 탐색 테스트용 가짜 Provider와 리소스 팩토리, 데모 토폴로지를 제공합니다.

Usage:
    def test_something(make_resource, fake_provider):
        lb = make_resource("arn:aws:elasticloadbalancing:...", "alb")
        fake_provider.target_groups[lb.id] = [...]
"""

import os
import sys
import threading
import time
from pathlib import Path
from typing import Any

import pytest
from botocore.exceptions import ClientError

# 프로젝트 루트를 sys.path에 추가
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from topology.types import Resource, ResourceStatus, ResourceType  # noqa: E402

# =============================================================================
# 환경 설정
# =============================================================================


@pytest.fixture(autouse=True)
def setup_test_environment():
    """테스트 환경 설정"""
    os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
    os.environ.setdefault("AWS_SECURITY_TOKEN", "testing")
    os.environ.setdefault("AWS_SESSION_TOKEN", "testing")

    yield


# =============================================================================
# 헬퍼
# =============================================================================


def create_client_error(
    code: str = "AccessDenied",
    message: str = "Access Denied",
    operation: str = "TestOperation",
) -> ClientError:
    """테스트용 ClientError 생성"""
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


def build_resource(
    resource_id: str,
    resource_type: str | ResourceType,
    name: str | None = None,
    region: str = "us-east-1",
    **kwargs: Any,
) -> Resource:
    """테스트용 Resource 생성 (name 생략 시 ID의 마지막 구간)"""
    if name is None:
        name = resource_id.split("/")[-1].split(":")[-1]
    return Resource(
        id=resource_id,
        type=ResourceType(resource_type),
        name=name,
        region=region,
        **kwargs,
    )


@pytest.fixture
def make_resource():
    """Resource 팩토리"""
    return build_resource


@pytest.fixture
def client_error():
    """ClientError 팩토리"""
    return create_client_error


# =============================================================================
# 가짜 Provider
# =============================================================================


class FakeProvider:
    """TopologyProvider 테스트 더블

    조회 결과는 키별 dict로 지정하고, 모든 호출은 (메서드, 키)로 기록됩니다.
    errors / delays에 (메서드, 키)를 넣으면 해당 호출이 예외를 던지거나 지연됩니다.
    """

    def __init__(self) -> None:
        self.target_groups: dict[str, list[dict[str, Any]]] = {}
        self.target_health: dict[str, list[dict[str, Any]]] = {}
        self.policies: dict[str, dict[str, Any] | None] = {}
        self.environments: dict[str, dict[str, str]] = {}
        self.api_resources: dict[str, list[dict[str, Any]]] = {}
        self.rule_targets: dict[str, list[dict[str, Any]]] = {}
        self.security_groups: dict[str, dict[str, Any] | None] = {}
        self.errors: dict[tuple[str, str], Exception] = {}
        self.delays: dict[tuple[str, str], float] = {}
        self.calls: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def _record(self, method: str, key: str) -> None:
        with self._lock:
            self.calls.append((method, key))
        delay = self.delays.get((method, key))
        if delay:
            time.sleep(delay)
        error = self.errors.get((method, key))
        if error is not None:
            raise error

    def call_count(self, method: str, key: str | None = None) -> int:
        with self._lock:
            return sum(1 for m, k in self.calls if m == method and (key is None or k == key))

    def describe_target_groups(self, load_balancer_arn, region):
        self._record("describe_target_groups", load_balancer_arn)
        return list(self.target_groups.get(load_balancer_arn, []))

    def describe_target_health(self, target_group_arn, region):
        self._record("describe_target_health", target_group_arn)
        return list(self.target_health.get(target_group_arn, []))

    def get_function_policy(self, function_name, region):
        self._record("get_function_policy", function_name)
        return self.policies.get(function_name)

    def get_function_environment(self, function_name, region):
        self._record("get_function_environment", function_name)
        return dict(self.environments.get(function_name, {}))

    def get_rest_api_resources(self, rest_api_id, region):
        self._record("get_rest_api_resources", rest_api_id)
        return list(self.api_resources.get(rest_api_id, []))

    def list_rule_targets(self, rule_name, region, event_bus_name=None):
        self._record("list_rule_targets", rule_name)
        return list(self.rule_targets.get(rule_name, []))

    def describe_security_group(self, group_id, region):
        self._record("describe_security_group", group_id)
        return self.security_groups.get(group_id)


@pytest.fixture
def fake_provider():
    """빈 FakeProvider"""
    return FakeProvider()


@pytest.fixture
def make_context(fake_provider):
    """DiscoveryContext 팩토리 (provider 기본값: fake_provider)"""
    from topology.context import DiscoveryContext

    def _make(resources, provider=None):
        return DiscoveryContext(resources=list(resources), provider=provider or fake_provider)

    return _make


# =============================================================================
# 데모 토폴로지: ECS 서비스 → Aurora 인스턴스 (tcp/3306)
# =============================================================================

APP_SG = "sg-0123456789abcdef0"
DB_SG = "sg-0fedcba9876543210"
ECS_SERVICE_ARN = "arn:aws:ecs:us-east-1:123456789012:service/test-cluster/service-test-2"
DB_INSTANCE_ARN = "arn:aws:rds:us-east-1:123456789012:db:database-2-instance-1"
DB_CLUSTER_ARN = "arn:aws:rds:us-east-1:123456789012:cluster:database-2"


def demo_rule_sets() -> dict[str, dict[str, Any]]:
    """DB 그룹 inbound 3306이 앱 그룹을 참조하는 규칙 세트"""
    return {
        DB_SG: {
            "GroupId": DB_SG,
            "IpPermissions": [
                {
                    "IpProtocol": "tcp",
                    "FromPort": 3306,
                    "ToPort": 3306,
                    "UserIdGroupPairs": [{"GroupId": APP_SG, "UserId": "123456789012"}],
                    "IpRanges": [],
                }
            ],
            "IpPermissionsEgress": [],
        },
        APP_SG: {
            "GroupId": APP_SG,
            "IpPermissions": [],
            "IpPermissionsEgress": [
                {"IpProtocol": "-1", "IpRanges": [{"CidrIp": "0.0.0.0/0"}], "UserIdGroupPairs": []},
            ],
        },
    }


@pytest.fixture
def ecs_service():
    return build_resource(
        ECS_SERVICE_ARN,
        ResourceType.ECS,
        name="service-test-2",
        application="test-app2",
        details={
            "clusterName": "test-cluster",
            "networkConfiguration": {"awsvpcConfiguration": {"securityGroups": [APP_SG], "subnets": ["subnet-1"]}},
        },
    )


@pytest.fixture
def db_instance():
    return build_resource(
        DB_INSTANCE_ARN,
        ResourceType.AURORA_INSTANCE,
        name="database-2-instance-1",
        application="test-app2",
        security_groups=[DB_SG],
        cluster_id="database-2",
    )


@pytest.fixture
def db_cluster():
    return build_resource(DB_CLUSTER_ARN, ResourceType.AURORA, name="database-2", application="test-app2")


@pytest.fixture
def demo_provider(fake_provider):
    fake_provider.security_groups.update(demo_rule_sets())
    return fake_provider


@pytest.fixture
def demo_resources(ecs_service, db_instance):
    return [ecs_service, db_instance]


@pytest.fixture
def stopped_resource():
    return build_resource("i-0stopped", ResourceType.EC2, status=ResourceStatus.STOPPED)
