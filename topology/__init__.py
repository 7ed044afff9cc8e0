"""
topology - AWS 리소스 관계 탐색 엔진

리소스 목록을 받아 타입별 추출기와 보안 그룹 교차 참조로 방향성 관계를 찾고,
(source, target, type) 기준으로 중복을 제거해 반환합니다.

Usage:
    from topology import discover

    relationships = discover(all_resources, focus_resources)
"""

from .assembler import assemble
from .context import DiscoveryContext
from .discovery import DiscoveryResult, RelationshipDiscovery, discover
from .providers import AWSProvider, TopologyProvider
from .security_groups import RuleSetCache, SecurityGroupResolver, security_group_ids
from .types import (
    Relationship,
    RelationshipType,
    Resource,
    ResourceStatus,
    ResourceType,
)

__all__: list[str] = [
    "AWSProvider",
    "DiscoveryContext",
    "DiscoveryResult",
    "Relationship",
    "RelationshipDiscovery",
    "RelationshipType",
    "Resource",
    "ResourceStatus",
    "ResourceType",
    "RuleSetCache",
    "SecurityGroupResolver",
    "TopologyProvider",
    "assemble",
    "discover",
    "security_group_ids",
]
