"""
tests/topology/test_topology_extractors.py - 리소스 타입별 관계 추출기 테스트
"""

import pytest

from core.exceptions import APICallError
from topology.extractors import EXTRACTORS, run_extractor
from topology.extractors.api_gateway import extract_rest_api, rest_api_id
from topology.extractors.database import (
    cluster_short_name,
    extract_db_cluster,
    extract_db_instance,
    resolve_cluster,
)
from topology.extractors.event_bus import extract_event_rule
from topology.extractors.function import extract_function, policy_triggers
from topology.extractors.load_balancer import extract_load_balancer, target_group_arns
from topology.extractors.network import extract_instance, extract_service
from topology.extractors.workflow import extract_state_machine
from topology.types import RelationshipType, ResourceType

LB_ARN = "arn:aws:elasticloadbalancing:us-east-1:123456789012:loadbalancer/app/web-alb/50dc6c495c0c9188"
TG_ARN = "arn:aws:elasticloadbalancing:us-east-1:123456789012:targetgroup/web/73e2d6bc24d8a067"
OTHER_SERVICE_ARN = "arn:aws:ecs:us-east-1:123456789012:service/test-cluster/batch-worker"
FN_ARN = "arn:aws:lambda:us-east-1:123456789012:function:order-processor"
OTHER_FN_ARN = "arn:aws:lambda:us-east-1:123456789012:function:notifier"
RULE_ARN = "arn:aws:events:us-east-1:123456789012:rule/nightly"


def _edges(relationships):
    return [(r.source_id, r.target_id, r.type.value) for r in relationships]


class TestExtractorTable:
    def test_every_type_has_extractor(self):
        assert set(EXTRACTORS) == set(ResourceType)

    def test_load_balancers_share_extractor(self):
        assert EXTRACTORS[ResourceType.ALB] is EXTRACTORS[ResourceType.NLB]


class TestLoadBalancer:
    """ALB/NLB → 백엔드 routes_to"""

    @pytest.fixture
    def resources(self, make_resource, ecs_service):
        service = make_resource(
            ecs_service.id,
            "ecs",
            details={**ecs_service.details, "targetGroupArns": [TG_ARN]},
        )
        return [
            make_resource(LB_ARN, "alb", name="web-alb"),
            make_resource("i-web", "ec2"),
            make_resource(OTHER_SERVICE_ARN, "ecs", details={"clusterName": "test-cluster"}),
            service,
        ]

    def test_match_by_id_and_target_group(self, resources, make_context, fake_provider, ecs_service):
        """EC2는 대상 ID, ECS는 대상 그룹을 선언한 서비스 (같은 클러스터의 다른 서비스는 제외)"""
        fake_provider.target_groups[LB_ARN] = [
            {"TargetGroupArn": TG_ARN, "Protocol": "HTTP"},
            {"Protocol": "TCP"},
        ]
        fake_provider.target_health[TG_ARN] = [
            {"Target": {"Id": "i-web", "Port": 80}},
            {"Target": {"Id": "10.0.1.15", "Port": 8080, "AvailabilityZone": "us-east-1a"}},
        ]
        ctx = make_context(resources)

        edges = extract_load_balancer(resources[0], ctx)

        assert _edges(edges) == [
            (LB_ARN, "i-web", "routes_to"),
            (LB_ARN, ecs_service.id, "routes_to"),
        ]
        assert edges[0].metadata == {"protocol": "HTTP", "port": 80}
        assert edges[1].metadata == {"protocol": "HTTP", "port": 8080}

    def test_undeclared_target_group(self, resources, make_context, fake_provider):
        """어느 ECS 서비스도 선언하지 않은 대상 그룹의 ip 대상은 매칭 없음"""
        other_group = TG_ARN.replace("/web/", "/batch/")
        fake_provider.target_groups[LB_ARN] = [{"TargetGroupArn": other_group, "Protocol": "HTTP"}]
        fake_provider.target_health[other_group] = [
            {"Target": {"Id": "10.0.2.20", "Port": 8080}},
            {"Target": {"Id": "i-unknown", "Port": 80}},
        ]

        assert extract_load_balancer(resources[0], make_context(resources)) == []

    def test_malformed_target_group_list(self, make_resource):
        service = make_resource(OTHER_SERVICE_ARN, "ecs", details={"targetGroupArns": TG_ARN})
        assert target_group_arns(service) == []

    def test_no_target_groups(self, resources, make_context, fake_provider):
        assert extract_load_balancer(resources[0], make_context(resources)) == []
        assert fake_provider.call_count("describe_target_health") == 0

    def test_failure_yields_no_edges(self, resources, make_context, fake_provider, client_error):
        """조회 실패는 run_extractor 경계에서 기록되고 관계 0개"""
        fake_provider.errors[("describe_target_groups", LB_ARN)] = APICallError.from_client_error(
            "elbv2", "describe_target_groups", client_error("AccessDenied")
        )
        ctx = make_context(resources)

        assert run_extractor(resources[0], ctx) == []
        error = ctx.errors.errors[0]
        assert error.resource_id == LB_ARN
        assert error.operation == "describe_target_groups"
        assert error.service == "elbv2"
        assert error.error_code == "AccessDenied"


class TestFunction:
    """Lambda triggers / depends_on"""

    @pytest.fixture
    def resources(self, make_resource):
        return [
            make_resource(FN_ARN, "lambda"),
            make_resource(OTHER_FN_ARN, "lambda"),
            make_resource(RULE_ARN, "eventbridge", details={"kind": "rule", "ruleName": "nightly"}),
        ]

    def test_policy_triggers(self, resources, make_context, fake_provider):
        fake_provider.policies["order-processor"] = {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Effect": "Allow",
                    "Principal": {"Service": "events.amazonaws.com"},
                    "Action": "lambda:InvokeFunction",
                    "Condition": {"ArnLike": {"AWS:SourceArn": RULE_ARN}},
                },
                {
                    "Principal": {"Service": "sns.amazonaws.com"},
                    "Condition": {"ArnEquals": {"AWS:SourceArn": "arn:aws:sns:us-east-1:123456789012:unknown"}},
                },
                {"Principal": {"AWS": "arn:aws:iam::123456789012:root"}, "Action": "lambda:InvokeFunction"},
            ],
        }

        edges = extract_function(resources[0], make_context(resources))

        assert _edges(edges) == [(RULE_ARN, FN_ARN, "triggers")]
        assert edges[0].metadata == {"eventType": "events.amazonaws.com"}

    def test_environment_dependencies(self, resources, make_context, fake_provider):
        fake_provider.environments["order-processor"] = {
            "NOTIFIER_ARN": OTHER_FN_ARN,
            "TABLE_ARN": "arn:aws:dynamodb:us-east-1:123456789012:table/orders",
            "STAGE": "prod",
        }

        edges = extract_function(resources[0], make_context(resources))

        assert _edges(edges) == [(FN_ARN, OTHER_FN_ARN, "depends_on")]
        assert edges[0].metadata == {"accessType": "environment"}

    def test_no_policy_is_not_error(self, resources, make_context):
        """정책이 없으면 트리거 0개, 에러 아님"""
        ctx = make_context(resources)

        assert extract_function(resources[0], ctx) == []
        assert not ctx.errors.has_errors

    def test_policy_failure_keeps_dependencies(self, resources, make_context, fake_provider, client_error):
        """정책 조회 실패와 무관하게 환경 변수 의존성은 유지"""
        fake_provider.errors[("get_function_policy", "order-processor")] = client_error("AccessDeniedException")
        fake_provider.environments["order-processor"] = {"NOTIFIER_ARN": OTHER_FN_ARN}
        ctx = make_context(resources)

        edges = extract_function(resources[0], ctx)

        assert _edges(edges) == [(FN_ARN, OTHER_FN_ARN, "depends_on")]
        assert ctx.errors.errors[0].operation == "get_policy"
        assert ctx.errors.errors[0].service == "lambda"

    def test_policy_triggers_parsing(self):
        """Statement 단일 객체 / 다중 Service / 다중 SourceArn"""
        policy = {
            "Statement": {
                "Principal": {"Service": ["s3.amazonaws.com", "sqs.amazonaws.com"]},
                "Condition": {"ArnLike": {"AWS:SourceArn": ["arn:a", "arn:b"]}},
            }
        }
        assert policy_triggers(policy) == [
            ("arn:a", "s3.amazonaws.com,sqs.amazonaws.com"),
            ("arn:b", "s3.amazonaws.com,sqs.amazonaws.com"),
        ]

    def test_policy_triggers_malformed(self):
        assert policy_triggers({}) == []
        assert policy_triggers({"Statement": ["not-a-dict", {"Principal": "*"}]}) == []


class TestRestApi:
    """API Gateway → Lambda triggers"""

    def test_integration_uri_match(self, make_resource, make_context, fake_provider):
        api = make_resource("a1b2c3d4e5", "apigateway", name="orders-api")
        fn = make_resource(FN_ARN, "lambda")
        uri = f"arn:aws:apigateway:us-east-1:lambda:path/2015-03-31/functions/{FN_ARN}/invocations"
        fake_provider.api_resources["a1b2c3d4e5"] = [
            {"id": "root", "path": "/", "resourceMethods": None},
            {
                "id": "r1",
                "path": "/orders",
                "resourceMethods": {
                    "POST": {"methodIntegration": {"type": "AWS_PROXY", "uri": uri}},
                    "OPTIONS": {"methodIntegration": {"type": "MOCK"}},
                },
            },
        ]

        edges = extract_rest_api(api, make_context([api, fn]))

        assert _edges(edges) == [("a1b2c3d4e5", FN_ARN, "triggers")]
        assert edges[0].metadata == {"method": "POST", "path": "/orders"}

    def test_rest_api_id_from_arn(self, make_resource):
        api = make_resource("arn:aws:apigateway:us-east-1::/restapis/a1b2c3d4e5", "apigateway")
        assert rest_api_id(api) == "a1b2c3d4e5"


class TestEventRule:
    """EventBridge 규칙 → 대상 triggers"""

    def test_target_arn_match(self, make_resource, make_context, fake_provider):
        rule = make_resource(
            RULE_ARN,
            "eventbridge",
            details={"kind": "rule", "ruleName": "nightly", "eventBusName": "default"},
        )
        fn = make_resource(FN_ARN, "lambda")
        fake_provider.rule_targets["nightly"] = [
            {"Id": "invoke-fn", "Arn": FN_ARN},
            {"Id": "queue", "Arn": "arn:aws:sqs:us-east-1:123456789012:jobs"},
        ]

        edges = extract_event_rule(rule, make_context([rule, fn]))

        assert _edges(edges) == [(RULE_ARN, FN_ARN, "triggers")]
        assert edges[0].metadata == {"targetId": "invoke-fn"}

    def test_bus_has_no_targets(self, make_resource, make_context, fake_provider):
        bus = make_resource("arn:aws:events:us-east-1:123456789012:event-bus/default", "eventbridge", details={"kind": "bus"})

        assert extract_event_rule(bus, make_context([bus])) == []
        assert fake_provider.call_count("list_rule_targets") == 0


class TestDatabase:
    """Aurora 클러스터/인스턴스"""

    def test_cluster_short_name(self):
        assert cluster_short_name("arn:aws:rds:us-east-1:123:cluster:database-2") == "database-2"
        assert cluster_short_name("clusters/database-2") == "database-2"
        assert cluster_short_name("database-2") == "database-2"

    def test_resolve_priority(self, make_resource, make_context):
        """ID 일치 → 마지막 구간 → 표시 이름 순"""
        by_short = make_resource("arn:aws:rds:us-east-1:123:cluster:orders", "aurora", name="display-a")
        by_name = make_resource("arn:aws:rds:us-east-1:123:cluster:zzz", "aurora", name="orders")
        ctx = make_context([by_name, by_short])

        assert resolve_cluster("orders", ctx) is by_short
        assert resolve_cluster(by_name.id, ctx) is by_name
        assert resolve_cluster("display-a", ctx) is by_short
        assert resolve_cluster("missing", ctx) is None
        assert resolve_cluster(None, ctx) is None

    def test_instance_edges(self, make_context, demo_provider, demo_resources, db_cluster, db_instance, ecs_service):
        ctx = make_context([*demo_resources, db_cluster], demo_provider)

        edges = extract_db_instance(db_instance, ctx)

        assert _edges(edges) == [
            (db_instance.id, db_cluster.id, "instance_of"),
            (ecs_service.id, db_instance.id, "connects_to"),
        ]

    def test_instance_without_cluster(self, make_resource, make_context):
        instance = make_resource("arn:db:orphan", "aurora-instance", cluster_id="gone")
        assert extract_db_instance(instance, make_context([instance])) == []

    def test_cluster_synthesizes_groups_from_instances(
        self, make_context, demo_provider, demo_resources, db_cluster, db_instance, ecs_service
    ):
        """보안 그룹이 없는 클러스터는 인스턴스 그룹으로 찾고 끝점을 클러스터로 교체"""
        ctx = make_context([*demo_resources, db_cluster], demo_provider)

        edges = extract_db_cluster(db_cluster, ctx)

        assert _edges(edges) == [
            (db_instance.id, db_cluster.id, "instance_of"),
            (ecs_service.id, db_cluster.id, "connects_to"),
        ]
        assert edges[1].metadata["securityGroups"]["rules"][0]["fromPort"] == 3306

    def test_cluster_with_own_groups(self, make_resource, make_context, demo_provider, ecs_service):
        cluster = make_resource(
            "arn:aws:rds:us-east-1:123:cluster:direct",
            "aurora",
            security_groups=["sg-0fedcba9876543210"],
        )
        ctx = make_context([ecs_service, cluster], demo_provider)

        assert _edges(extract_db_cluster(cluster, ctx)) == [(ecs_service.id, cluster.id, "connects_to")]

    def test_cluster_without_instances_or_groups(self, make_resource, make_context, fake_provider):
        cluster = make_resource("arn:aws:rds:us-east-1:123:cluster:empty", "aurora")
        assert extract_db_cluster(cluster, make_context([cluster])) == []
        assert fake_provider.calls == []


class TestNetwork:
    """EC2 / ECS connects_to"""

    def test_ecs_uses_awsvpc_groups(self, make_resource, make_context, fake_provider, ecs_service):
        cache = make_resource("i-cache", "ec2", security_groups=["sg-cache"])
        fake_provider.security_groups["sg-0123456789abcdef0"] = {
            "GroupId": "sg-0123456789abcdef0",
            "IpPermissionsEgress": [{"IpProtocol": "tcp", "FromPort": 6379, "ToPort": 6379, "UserIdGroupPairs": [{"GroupId": "sg-cache"}]}],
        }

        edges = extract_service(ecs_service, make_context([ecs_service, cache]))

        assert _edges(edges) == [(ecs_service.id, "i-cache", "connects_to")]

    def test_instance(self, make_resource, make_context, fake_provider):
        web = make_resource("i-web", "ec2", security_groups=["sg-web"])
        app = make_resource("i-app", "ec2", security_groups=["sg-app"])
        fake_provider.security_groups["sg-app"] = {
            "GroupId": "sg-app",
            "IpPermissions": [{"IpProtocol": "tcp", "FromPort": 8080, "ToPort": 8080, "UserIdGroupPairs": [{"GroupId": "sg-web"}]}],
        }

        assert _edges(extract_instance(app, make_context([web, app]))) == [("i-web", "i-app", "connects_to")]


class TestStateMachine:
    def test_always_empty(self, make_resource, make_context, fake_provider):
        machine = make_resource("arn:aws:states:us-east-1:123:stateMachine:flow", "stepfunctions")

        assert extract_state_machine(machine, make_context([machine])) == []
        assert fake_provider.calls == []


class TestRunExtractor:
    def test_unexpected_exception_contained(self, make_resource, make_context, fake_provider):
        rule = make_resource(RULE_ARN, "eventbridge", details={"kind": "rule", "ruleName": "nightly"})
        fake_provider.errors[("list_rule_targets", "nightly")] = RuntimeError("boom")
        ctx = make_context([rule])

        assert run_extractor(rule, ctx) == []
        error = ctx.errors.errors[0]
        assert error.error_code == "RuntimeError"
        assert error.operation == "extract_event_rule"
