"""
topology/extractors/api_gateway.py - REST API → Lambda triggers

REST API ID는 리소스 ID의 마지막 "/" 구간입니다.
메서드 통합 URI에 Lambda 리소스 ID가 포함되면 첫 번째로 일치하는 Lambda에
triggers ({method, path}) 관계를 만듭니다.
"""

from __future__ import annotations

from ..context import DiscoveryContext
from ..types import Relationship, RelationshipType, Resource, ResourceType


def rest_api_id(resource: Resource) -> str:
    return resource.id.rstrip("/").split("/")[-1]


def extract_rest_api(resource: Resource, ctx: DiscoveryContext) -> list[Relationship]:
    functions = [r for r in ctx.of_type(ResourceType.LAMBDA) if r.id]
    relationships: list[Relationship] = []

    for item in ctx.provider.get_rest_api_resources(rest_api_id(resource), resource.region):
        for method, method_resource in (item.get("resourceMethods") or {}).items():
            integration = (method_resource or {}).get("methodIntegration") or {}
            uri = integration.get("uri")
            if not uri:
                continue

            target = next((fn for fn in functions if fn.id in uri), None)
            if target is None:
                continue

            relationships.append(
                Relationship(
                    source_id=resource.id,
                    target_id=target.id,
                    type=RelationshipType.TRIGGERS,
                    metadata={"method": method, "path": item.get("path")},
                )
            )

    return relationships
