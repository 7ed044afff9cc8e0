"""
topology/extractors/event_bus.py - EventBridge 규칙 → 대상 triggers

list_targets_by_rule로 대상을 조회하고, 대상 ARN에 ID가 포함된 첫 번째 리소스에
triggers ({targetId}) 관계를 만듭니다. 이벤트 버스 리소스(규칙이 아님)는 대상이 없습니다.
"""

from __future__ import annotations

from ..context import DiscoveryContext
from ..types import Relationship, RelationshipType, Resource


def extract_event_rule(resource: Resource, ctx: DiscoveryContext) -> list[Relationship]:
    if resource.details.get("kind") == "bus":
        return []

    candidates = [r for r in ctx.resources if r.id and r.id != resource.id]
    relationships: list[Relationship] = []

    targets = ctx.provider.list_rule_targets(
        resource.details.get("ruleName") or resource.name,
        resource.region,
        resource.details.get("eventBusName"),
    )
    for target in targets:
        target_arn = target.get("Arn") or ""
        match = next((r for r in candidates if r.id in target_arn), None)
        if match is None:
            continue

        relationships.append(
            Relationship(
                source_id=resource.id,
                target_id=match.id,
                type=RelationshipType.TRIGGERS,
                metadata={"targetId": target.get("Id")},
            )
        )

    return relationships
