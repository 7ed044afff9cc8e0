"""
topology/context.py - 탐색 실행 컨텍스트

탐색 1회 동안 모든 추출기가 공유하는 읽기 전용 상태 + 실행 범위 캐시.
프로세스 전역 상태는 두지 않으며, 실행마다 새로 만듭니다.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from botocore.exceptions import ClientError

from core.exceptions import APICallError
from core.parallel import ErrorCollector

from .providers import TopologyProvider
from .security_groups import GroupIndex, RuleSetCache
from .types import Resource, ResourceType

logger = logging.getLogger(__name__)


@dataclass
class DiscoveryContext:
    """탐색 실행 컨텍스트

    Attributes:
        resources: 전체 리소스 (교차 참조 검색 범위)
        provider: AWS 조회 Provider
        by_id: 리소스 ID 인덱스
        group_index: 보안 그룹 ID → 리소스 인덱스
        rule_cache: 보안 그룹 규칙 캐시
        errors: 리소스 단위 실패 수집기
    """

    resources: Sequence[Resource]
    provider: TopologyProvider
    by_id: dict[str, Resource] = field(init=False)
    group_index: GroupIndex = field(init=False)
    rule_cache: RuleSetCache = field(init=False)
    errors: ErrorCollector = field(default_factory=lambda: ErrorCollector("discovery"))

    def __post_init__(self) -> None:
        self.by_id = {}
        for resource in self.resources:
            # 같은 ID가 중복되면 먼저 나온 리소스 사용
            self.by_id.setdefault(resource.id, resource)
        self.group_index = GroupIndex(self.resources)
        self.rule_cache = RuleSetCache(self.provider.describe_security_group)

    def of_type(self, *types: ResourceType) -> list[Resource]:
        """지정 타입의 리소스 (입력 순서)"""
        return [r for r in self.resources if r.type in types]

    def record_failure(
        self,
        resource: Resource,
        error: Exception,
        operation: str,
        service: str | None = None,
    ) -> None:
        """리소스 단위 실패 기록 (관계 0개로 처리됨)"""
        if isinstance(error, APICallError):
            if isinstance(error.cause, ClientError):
                self.errors.collect(
                    error.cause,
                    resource.region,
                    error.operation,
                    resource_id=resource.id,
                    service=error.service,
                )
                return
            operation, service = error.operation, error.service

        self.errors.collect_exception(error, resource.region, operation, resource_id=resource.id, service=service)
