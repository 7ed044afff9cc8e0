"""
topology/extractors/network.py - EC2 / ECS 보안 그룹 connects_to

두 타입 모두 GroupIndex와 같은 security_group_ids 목록으로 해석합니다
(ECS는 awsvpc 설정의 그룹 우선, 없으면 태그).
"""

from __future__ import annotations

from ..context import DiscoveryContext
from ..security_groups import SecurityGroupResolver
from ..types import Relationship, Resource


def extract_instance(resource: Resource, ctx: DiscoveryContext) -> list[Relationship]:
    return SecurityGroupResolver(ctx).connections(resource)


def extract_service(resource: Resource, ctx: DiscoveryContext) -> list[Relationship]:
    return SecurityGroupResolver(ctx).connections(resource)
