"""
topology/security_groups.py - 보안 그룹 교차 참조 해석

EC2, Aurora, ECS 추출기가 공유하는 connects_to 관계 탐색기입니다.

동작:
    1. 리소스의 보안 그룹 ID 목록을 구합니다 (security_group_ids).
    2. 각 그룹의 규칙(inbound/outbound)을 RuleSetCache를 통해 조회합니다.
       같은 그룹은 한 번의 탐색 실행 동안 최대 1회만 원격 조회합니다.
    3. 규칙의 UserIdGroupPairs가 참조하는 그룹을 쓰는 "다른" 리소스를
       전체 리소스 집합에서 찾아(GroupIndex) connects_to 관계를 만듭니다.
       - inbound: 참조 그룹 소유자 → 규칙 소유자
       - outbound: 규칙 소유자 → 참조 그룹 소유자

IP 대역만 있는 규칙은 관계를 만들지 않습니다.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import Future
from typing import TYPE_CHECKING, Any

from core.config import settings

from .types import Relationship, RelationshipType, Resource, ResourceType, connects_to_metadata, security_group_rule

if TYPE_CHECKING:
    from .context import DiscoveryContext

logger = logging.getLogger(__name__)

INBOUND = "inbound"
OUTBOUND = "outbound"


# =============================================================================
# 보안 그룹 ID 추출
# =============================================================================


def _string_list(value: Any) -> list[str] | None:
    """문자열 리스트면 그대로, 아니면 None (잘못된 데이터)"""
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return [v for v in value if v]
    return None


def _tag_groups(resource: Resource) -> list[str] | None:
    raw = resource.tags.get(settings.SECURITY_GROUP_TAG_KEY) if isinstance(resource.tags, dict) else None
    if not isinstance(raw, str) or not raw.strip():
        return None
    return [part.strip() for part in raw.split(",") if part.strip()]


def _awsvpc_groups(resource: Resource) -> list[str] | None:
    details = resource.details if isinstance(resource.details, dict) else {}
    network = details.get("networkConfiguration")
    if not isinstance(network, dict):
        return None
    awsvpc = network.get("awsvpcConfiguration")
    if not isinstance(awsvpc, dict) or "securityGroups" not in awsvpc:
        return None
    return _string_list(awsvpc.get("securityGroups"))


def security_group_ids(resource: Resource) -> list[str]:
    """리소스의 보안 그룹 ID 목록

    우선순위: security_groups 필드 → SecurityGroups 태그(쉼표 구분) → ECS awsvpc 설정.
    ECS 서비스는 필드 다음에 awsvpc 설정을 태그보다 먼저 봅니다.
    형식이 잘못된 데이터는 그룹 없음([])으로 처리합니다.
    """
    if resource.security_groups is not None:
        return _string_list(resource.security_groups) or []

    sources = (_awsvpc_groups, _tag_groups) if resource.type == ResourceType.ECS else (_tag_groups, _awsvpc_groups)
    for source in sources:
        groups = source(resource)
        if groups:
            return groups
    return []


# =============================================================================
# 그룹 인덱스 / 규칙 캐시
# =============================================================================


class GroupIndex:
    """보안 그룹 ID → 해당 그룹을 쓰는 리소스 목록 (입력 순서 유지)

    탐색 실행마다 한 번 만들고 읽기 전용으로 공유합니다.
    """

    def __init__(self, resources: Iterable[Resource]):
        self._members: dict[str, list[Resource]] = {}
        for resource in resources:
            for group_id in dict.fromkeys(security_group_ids(resource)):
                self._members.setdefault(group_id, []).append(resource)

    def members(self, group_id: str) -> list[Resource]:
        return list(self._members.get(group_id, ()))

    def __contains__(self, group_id: object) -> bool:
        return group_id in self._members

    def __len__(self) -> int:
        return len(self._members)


class RuleSetCache:
    """보안 그룹 규칙 캐시 (탐색 1회 범위, 스레드 세이프)

    그룹 ID별로 진행 중인 조회를 Future로 공유하므로, 여러 워커가 동시에 같은 그룹을
    요청해도 원격 조회는 1회만 일어납니다. 조회 실패도 그 실행 동안 그대로 캐시됩니다.

    Example:
        cache = RuleSetCache(provider.describe_security_group)
        rules = cache.get("sg-0abc", "us-east-1")
    """

    def __init__(self, fetch: Callable[[str, str], dict[str, Any] | None]):
        self._fetch = fetch
        self._entries: dict[str, Future[dict[str, Any] | None]] = {}
        self._lock = threading.Lock()
        self.fetch_count = 0

    def get(self, group_id: str, region: str) -> dict[str, Any] | None:
        """그룹 규칙 조회 (없는 그룹이면 None, 조회 실패는 예외)"""
        with self._lock:
            future = self._entries.get(group_id)
            owner = future is None
            if owner:
                future = Future()
                self._entries[group_id] = future
                self.fetch_count += 1

        if owner:
            try:
                future.set_result(self._fetch(group_id, region))  # type: ignore[union-attr]
            except Exception as e:
                future.set_exception(e)  # type: ignore[union-attr]

        return future.result()  # type: ignore[union-attr]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# =============================================================================
# 해석기
# =============================================================================


class SecurityGroupResolver:
    """보안 그룹 규칙 기반 connects_to 관계 탐색기

    Example:
        resolver = SecurityGroupResolver(ctx)
        edges = resolver.connections(db_instance)
    """

    def __init__(self, ctx: DiscoveryContext):
        self.ctx = ctx

    def connections(self, resource: Resource, group_ids: list[str] | None = None) -> list[Relationship]:
        """리소스의 보안 그룹 규칙에서 connects_to 관계 도출

        Args:
            resource: 규칙 소유 리소스
            group_ids: 사용할 그룹 ID (None이면 security_group_ids(resource))

        Returns:
            connects_to 관계 목록 (그룹이 없으면 빈 리스트)
        """
        own_groups = security_group_ids(resource) if group_ids is None else list(group_ids)
        if not own_groups:
            logger.debug(f"보안 그룹 없음: {resource.name}")
            return []

        relationships: list[Relationship] = []
        for group_id in dict.fromkeys(own_groups):
            try:
                rule_set = self.ctx.rule_cache.get(group_id, resource.region)
            except Exception as e:
                # 그룹 하나의 조회 실패는 나머지 그룹 처리를 막지 않음
                self.ctx.record_failure(resource, e, "describe_security_groups", service="ec2")
                continue
            if not rule_set:
                continue

            owner_group = rule_set.get("GroupId") or group_id
            for rule in rule_set.get("IpPermissions") or []:
                relationships.extend(self._from_rule(rule, resource, owner_group, INBOUND))
            for rule in rule_set.get("IpPermissionsEgress") or []:
                relationships.extend(self._from_rule(rule, resource, owner_group, OUTBOUND))

        return relationships

    def _from_rule(
        self,
        rule: dict[str, Any],
        owner: Resource,
        owner_group: str,
        direction: str,
    ) -> list[Relationship]:
        relationships: list[Relationship] = []

        for pair in rule.get("UserIdGroupPairs") or []:
            referenced = pair.get("GroupId")
            if not referenced:
                continue

            for peer in self.ctx.group_index.members(referenced):
                if peer.id == owner.id:
                    continue

                if direction == INBOUND:
                    source_id, target_id = peer.id, owner.id
                    source_groups, target_groups = [referenced], [owner_group]
                else:
                    source_id, target_id = owner.id, peer.id
                    source_groups, target_groups = [owner_group], [referenced]

                relationships.append(
                    Relationship(
                        source_id=source_id,
                        target_id=target_id,
                        type=RelationshipType.CONNECTS_TO,
                        metadata=connects_to_metadata(
                            source_groups,
                            target_groups,
                            [
                                security_group_rule(
                                    rule.get("IpProtocol"),
                                    rule.get("FromPort"),
                                    rule.get("ToPort"),
                                    referenced,
                                    direction,
                                )
                            ],
                        ),
                    )
                )

        return relationships
