"""
topology/inventory/services/integration.py - Integration 리소스 수집

Step Functions State Machine, API Gateway REST API, EventBridge Bus/Rule 수집.
"""

from __future__ import annotations

import logging
from typing import Any

from core.parallel import ErrorCollector, get_client, try_or_default

from ...types import Resource, ResourceStatus, ResourceType
from ..helpers import application_of, iso, map_status, parse_tags

logger = logging.getLogger(__name__)


def collect_state_machines(session, region: str, errors: ErrorCollector | None = None) -> list[Resource]:
    """Step Functions State Machine을 수집합니다.

    최근 실행 100건의 성공/실패 수를 details에 담습니다.
    """
    sfn = get_client(session, "stepfunctions", region_name=region)
    resources: list[Resource] = []

    paginator = sfn.get_paginator("list_state_machines")
    for page in paginator.paginate():
        for sm in page.get("stateMachines", []):
            arn = sm["stateMachineArn"]

            detail = try_or_default(
                lambda arn=arn: sfn.describe_state_machine(stateMachineArn=arn),
                default={},
                collector=errors,
                region=region,
                operation="describe_state_machine",
                resource_id=arn,
                service="stepfunctions",
            )
            executions = try_or_default(
                lambda arn=arn: sfn.list_executions(stateMachineArn=arn, maxResults=100).get("executions", []),
                default=[],
                collector=errors,
                region=region,
                operation="list_executions",
                resource_id=arn,
                service="stepfunctions",
            )
            tags = try_or_default(
                lambda arn=arn: parse_tags(sfn.list_tags_for_resource(resourceArn=arn).get("tags")),
                default={},
                collector=errors,
                region=region,
                operation="list_tags_for_resource",
                resource_id=arn,
                service="stepfunctions",
            )

            resources.append(
                Resource(
                    id=arn,
                    type=ResourceType.STEPFUNCTIONS,
                    name=sm.get("name", ""),
                    status=map_status(ResourceType.STEPFUNCTIONS, detail.get("status", "ACTIVE")),
                    application=application_of(tags),
                    region=region,
                    tags=tags,
                    details={
                        "executionsStarted": len(executions),
                        "executionsFailed": sum(1 for e in executions if e.get("status") == "FAILED"),
                        "executionsSucceeded": sum(1 for e in executions if e.get("status") == "SUCCEEDED"),
                    },
                    last_updated=iso(sm.get("creationDate")),
                )
            )

    return resources


def collect_rest_apis(session, region: str, errors: ErrorCollector | None = None) -> list[Resource]:
    """API Gateway REST API를 수집합니다.

    리소스 ID는 REST API ID이며, 마지막 스테이지 기준 호출 엔드포인트를 details에 담습니다.
    REST API에는 상태 필드가 없어 조회되면 running으로 봅니다.
    """
    apigw = get_client(session, "apigateway", region_name=region)
    resources: list[Resource] = []

    paginator = apigw.get_paginator("get_rest_apis")
    for page in paginator.paginate():
        for api in page.get("items", []):
            api_id = api["id"]
            stages = try_or_default(
                lambda api_id=api_id: apigw.get_stages(restApiId=api_id).get("item", []),
                default=[],
                collector=errors,
                region=region,
                operation="get_stages",
                resource_id=api_id,
                service="apigateway",
            )
            stage = stages[-1].get("stageName") if stages else None
            tags = dict(api.get("tags") or {})

            resources.append(
                Resource(
                    id=api_id,
                    type=ResourceType.APIGATEWAY,
                    name=api.get("name", api_id),
                    status=ResourceStatus.RUNNING,
                    application=application_of(tags),
                    region=region,
                    tags=tags,
                    details={
                        "endpoint": f"https://{api_id}.execute-api.{region}.amazonaws.com/{stage or ''}",
                        "stage": stage,
                    },
                    last_updated=iso(api.get("createdDate")),
                )
            )

    return resources


def _event_tags(events, arn: str, region: str, errors: ErrorCollector | None) -> dict[str, str]:
    return try_or_default(
        lambda: parse_tags(events.list_tags_for_resource(ResourceARN=arn).get("Tags")),
        default={},
        collector=errors,
        region=region,
        operation="list_tags_for_resource",
        resource_id=arn,
        service="events",
    )


def collect_event_resources(session, region: str, errors: ErrorCollector | None = None) -> list[Resource]:
    """EventBridge Event Bus와 Rule을 수집합니다.

    버스는 details.kind = "bus", 규칙은 details.kind = "rule"과 함께
    ruleName / eventBusName을 담아 관계 탐색에서 list_targets_by_rule에 사용합니다.
    """
    events = get_client(session, "events", region_name=region)
    resources: list[Resource] = []

    buses: list[dict[str, Any]] = events.list_event_buses().get("EventBuses", [])
    for bus in buses:
        arn = bus["Arn"]
        tags = _event_tags(events, arn, region, errors)
        resources.append(
            Resource(
                id=arn,
                type=ResourceType.EVENTBRIDGE,
                name=bus.get("Name", ""),
                status=ResourceStatus.RUNNING,
                application=application_of(tags),
                region=region,
                tags=tags,
                details={"kind": "bus", "eventPattern": "Event Bus"},
            )
        )

    for bus_name in [b.get("Name", "default") for b in buses] or ["default"]:
        paginator = events.get_paginator("list_rules")
        for page in paginator.paginate(EventBusName=bus_name):
            for rule in page.get("Rules", []):
                arn = rule["Arn"]
                tags = _event_tags(events, arn, region, errors)
                resources.append(
                    Resource(
                        id=arn,
                        type=ResourceType.EVENTBRIDGE,
                        name=rule.get("Name", ""),
                        status=map_status(ResourceType.EVENTBRIDGE, rule.get("State")),
                        application=application_of(tags),
                        region=region,
                        tags=tags,
                        details={
                            "kind": "rule",
                            "ruleName": rule.get("Name", ""),
                            "eventBusName": rule.get("EventBusName", bus_name),
                            "eventPattern": rule.get("EventPattern") or rule.get("ScheduleExpression"),
                        },
                    )
                )

    return resources
