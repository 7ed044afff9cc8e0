"""
topology/extractors/function.py - Lambda triggers / depends_on

- 리소스 기반 정책: 서비스 principal + AWS:SourceArn 조건(ArnLike/ArnEquals)이 있는
  statement마다, SourceArn과 ID가 같은 리소스 → 함수 triggers ({eventType})
- 환경 변수: 값에 "arn:aws"가 들어 있으면 함수 → 해당 ID의 리소스 depends_on
  ({accessType: "environment"})

두 조회는 서로 독립적이어서 한쪽이 실패해도 다른 쪽 결과는 유지됩니다.
"""

from __future__ import annotations

import logging
from typing import Any

from ..context import DiscoveryContext
from ..types import Relationship, RelationshipType, Resource

logger = logging.getLogger(__name__)

SOURCE_ARN_KEY = "AWS:SourceArn"
ARN_MARKER = "arn:aws"


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def policy_triggers(policy: dict[str, Any]) -> list[tuple[str, str]]:
    """정책에서 (source_arn, event_type) 목록 추출"""
    triggers: list[tuple[str, str]] = []

    for statement in _as_list(policy.get("Statement")):
        if not isinstance(statement, dict):
            continue
        principal = statement.get("Principal")
        services = _as_list(principal.get("Service")) if isinstance(principal, dict) else []
        if not services:
            continue

        condition = statement.get("Condition") or {}
        source_arn = (condition.get("ArnLike") or {}).get(SOURCE_ARN_KEY) or (condition.get("ArnEquals") or {}).get(
            SOURCE_ARN_KEY
        )
        if not source_arn:
            continue

        event_type = services[0] if len(services) == 1 else ",".join(services)
        for arn in _as_list(source_arn):
            triggers.append((arn, event_type))

    return triggers


def _triggers(resource: Resource, ctx: DiscoveryContext) -> list[Relationship]:
    policy = ctx.provider.get_function_policy(resource.name, resource.region)
    if not policy:
        return []

    relationships = []
    for source_arn, event_type in policy_triggers(policy):
        source = ctx.by_id.get(source_arn)
        if source is None:
            continue
        relationships.append(
            Relationship(
                source_id=source.id,
                target_id=resource.id,
                type=RelationshipType.TRIGGERS,
                metadata={"eventType": event_type},
            )
        )
    return relationships


def _dependencies(resource: Resource, ctx: DiscoveryContext) -> list[Relationship]:
    variables = ctx.provider.get_function_environment(resource.name, resource.region)

    relationships = []
    for value in variables.values():
        if not isinstance(value, str) or ARN_MARKER not in value:
            continue
        dependency = ctx.by_id.get(value)
        if dependency is None:
            continue
        relationships.append(
            Relationship(
                source_id=resource.id,
                target_id=dependency.id,
                type=RelationshipType.DEPENDS_ON,
                metadata={"accessType": "environment"},
            )
        )
    return relationships


def extract_function(resource: Resource, ctx: DiscoveryContext) -> list[Relationship]:
    """Lambda 함수의 트리거/의존 관계"""
    relationships: list[Relationship] = []

    for step, operation in ((_triggers, "get_policy"), (_dependencies, "get_function")):
        try:
            relationships.extend(step(resource, ctx))
        except Exception as e:
            ctx.record_failure(resource, e, operation, service="lambda")

    return relationships
