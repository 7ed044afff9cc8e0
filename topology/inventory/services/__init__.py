"""
topology/inventory/services - 서비스별 리소스 수집기

각 ``collect_*`` 함수는 단일 리전에서 해당 리소스를 수집해 Resource 목록을 반환합니다.
``InventoryCollector``가 ``parallel_collect``로 리전 x 서비스 단위로 확장합니다.

시그니처: (session, region, errors: ErrorCollector | None) -> list[Resource]
"""

from collections.abc import Callable

from .compute import collect_ec2_instances, collect_ecs_services, collect_lambda_functions, ecs_service_status
from .database import collect_aurora_clusters, collect_aurora_instances
from .elb import collect_load_balancers
from .integration import collect_event_resources, collect_rest_apis, collect_state_machines

# 서비스 이름 → 수집 함수 (수집 순서 = 인벤토리 내 리소스 순서)
SERVICE_COLLECTORS: dict[str, Callable] = {
    "ecs": collect_ecs_services,
    "lambda": collect_lambda_functions,
    "rds-cluster": collect_aurora_clusters,
    "rds-instance": collect_aurora_instances,
    "ec2": collect_ec2_instances,
    "stepfunctions": collect_state_machines,
    "apigateway": collect_rest_apis,
    "events": collect_event_resources,
    "elbv2": collect_load_balancers,
}

__all__: list[str] = [
    "SERVICE_COLLECTORS",
    "collect_aurora_clusters",
    "collect_aurora_instances",
    "collect_ec2_instances",
    "collect_ecs_services",
    "collect_event_resources",
    "collect_lambda_functions",
    "collect_load_balancers",
    "collect_rest_apis",
    "collect_state_machines",
    "ecs_service_status",
]
