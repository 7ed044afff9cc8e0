"""
topology/extractors/database.py - Aurora 클러스터/인스턴스

인스턴스의 cluster_id는 클러스터 ARN일 수도, 클러스터 이름일 수도 있습니다.
다음 우선순위로 소속 클러스터를 찾습니다.

    1. 클러스터 ID와 정확히 일치
    2. 클러스터 ID의 마지막 구간 (":cluster:<name>" 뒤, 없으면 마지막 ":" 또는 "/" 뒤)
    3. 클러스터 표시 이름

클러스터 쪽 추출에서도 같은 해석을 사용하므로 양쪽에서 만든 instance_of 관계는
(source, target, type) 키가 같아 중복 제거됩니다.
"""

from __future__ import annotations

import logging
import re

from ..context import DiscoveryContext
from ..security_groups import SecurityGroupResolver, security_group_ids
from ..types import Relationship, RelationshipType, Resource, ResourceType

logger = logging.getLogger(__name__)

_CLUSTER_MARKER = ":cluster:"


def cluster_short_name(cluster_id: str) -> str:
    """클러스터 ID의 마지막 구간"""
    if _CLUSTER_MARKER in cluster_id:
        return cluster_id.split(_CLUSTER_MARKER)[-1]
    return re.split(r"[:/]", cluster_id)[-1]


def resolve_cluster(cluster_ref: str | None, ctx: DiscoveryContext) -> Resource | None:
    """cluster_id 참조를 클러스터 리소스로 해석 (없으면 None)"""
    if not cluster_ref:
        return None

    clusters = ctx.of_type(ResourceType.AURORA)
    strategies = (
        lambda c: c.id == cluster_ref,
        lambda c: cluster_short_name(c.id) == cluster_ref,
        lambda c: c.name == cluster_ref,
    )
    for matches in strategies:
        found = next((c for c in clusters if matches(c)), None)
        if found is not None:
            return found
    return None


def _instance_of(instance: Resource, cluster: Resource) -> Relationship:
    return Relationship(source_id=instance.id, target_id=cluster.id, type=RelationshipType.INSTANCE_OF)


def extract_db_instance(resource: Resource, ctx: DiscoveryContext) -> list[Relationship]:
    """DB 인스턴스 → 클러스터 instance_of + 보안 그룹 connects_to"""
    relationships: list[Relationship] = []

    cluster = resolve_cluster(resource.cluster_id, ctx)
    if cluster is not None:
        relationships.append(_instance_of(resource, cluster))
    elif resource.cluster_id:
        logger.debug(f"소속 클러스터를 찾을 수 없음: {resource.name} (clusterId={resource.cluster_id})")

    relationships.extend(SecurityGroupResolver(ctx).connections(resource))
    return relationships


def _retarget(relationship: Relationship, instance_id: str, cluster_id: str) -> Relationship | None:
    source_id = cluster_id if relationship.source_id == instance_id else relationship.source_id
    target_id = cluster_id if relationship.target_id == instance_id else relationship.target_id
    if source_id == target_id:
        return None
    return Relationship(source_id, target_id, relationship.type, relationship.metadata)


def extract_db_cluster(resource: Resource, ctx: DiscoveryContext) -> list[Relationship]:
    """DB 클러스터 ← 인스턴스 instance_of + 보안 그룹 connects_to

    클러스터에 보안 그룹이 없으면 소속 인스턴스들의 그룹으로 관계를 찾고
    인스턴스 쪽 끝점을 클러스터로 바꿔 붙입니다.
    """
    instances = [
        instance
        for instance in ctx.of_type(ResourceType.AURORA_INSTANCE)
        if (owner := resolve_cluster(instance.cluster_id, ctx)) is not None and owner.id == resource.id
    ]
    relationships = [_instance_of(instance, resource) for instance in instances]

    resolver = SecurityGroupResolver(ctx)
    if security_group_ids(resource):
        relationships.extend(resolver.connections(resource))
        return relationships

    for instance in instances:
        if not security_group_ids(instance):
            continue
        for relationship in resolver.connections(instance):
            retargeted = _retarget(relationship, instance.id, resource.id)
            if retargeted is not None:
                relationships.append(retargeted)

    return relationships
