"""
topology/extractors/load_balancer.py - ALB/NLB → 백엔드 routes_to

대상 그룹(describe_target_groups)과 대상 상태(describe_target_health)를 조회해
대상 ID가 EC2 리소스 ID와 같으면 그 인스턴스로, 그렇지 않으면 그 대상 그룹을
loadBalancers에 선언한 ECS 서비스(details.targetGroupArns)로 routes_to 관계를 만듭니다.
"""

from __future__ import annotations

import logging
from typing import Any

from ..context import DiscoveryContext
from ..types import Relationship, RelationshipType, Resource, ResourceType

logger = logging.getLogger(__name__)


def target_group_arns(resource: Resource) -> list[str]:
    """ECS 서비스가 선언한 대상 그룹 ARN 목록 (형식 오류는 [])"""
    arns = resource.details.get("targetGroupArns")
    if not isinstance(arns, list):
        return []
    return [arn for arn in arns if isinstance(arn, str) and arn]


def _match_backend(target: dict[str, Any], group_arn: str, ctx: DiscoveryContext) -> Resource | None:
    target_id = target.get("Id")
    if target_id:
        for instance in ctx.of_type(ResourceType.EC2):
            if instance.id == target_id:
                return instance

    # ip 대상(awsvpc 태스크)은 ID가 사설 IP라 대상 그룹 소유 서비스로 매칭
    for service in ctx.of_type(ResourceType.ECS):
        if group_arn in target_group_arns(service):
            return service
    return None


def extract_load_balancer(resource: Resource, ctx: DiscoveryContext) -> list[Relationship]:
    """로드밸런서의 대상 그룹 → EC2/ECS routes_to 관계"""
    relationships: list[Relationship] = []

    for group in ctx.provider.describe_target_groups(resource.id, resource.region):
        group_arn = group.get("TargetGroupArn")
        if not group_arn:
            continue

        for description in ctx.provider.describe_target_health(group_arn, resource.region):
            target = description.get("Target") or {}
            backend = _match_backend(target, group_arn, ctx)
            if backend is None:
                continue

            relationships.append(
                Relationship(
                    source_id=resource.id,
                    target_id=backend.id,
                    type=RelationshipType.ROUTES_TO,
                    metadata={"protocol": group.get("Protocol"), "port": target.get("Port")},
                )
            )

    logger.debug(f"{resource.name}: routes_to {len(relationships)}건")
    return relationships
