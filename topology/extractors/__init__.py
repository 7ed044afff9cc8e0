"""
topology/extractors - 리소스 타입별 관계 추출기

모든 ResourceType은 EXTRACTORS 테이블에 정확히 하나의 추출기를 가집니다.
테이블에 빠진 타입이 있으면 import 시점에 실패합니다.

추출기 시그니처: (resource, ctx) -> list[Relationship]
run_extractor는 추출기 경계에서 모든 예외를 ErrorCollector에 기록하고 빈 리스트를 반환합니다.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..context import DiscoveryContext
from ..types import Relationship, Resource, ResourceType
from .api_gateway import extract_rest_api
from .database import extract_db_cluster, extract_db_instance
from .event_bus import extract_event_rule
from .function import extract_function
from .load_balancer import extract_load_balancer
from .network import extract_instance, extract_service
from .workflow import extract_state_machine

logger = logging.getLogger(__name__)

Extractor = Callable[[Resource, DiscoveryContext], list[Relationship]]

EXTRACTORS: dict[ResourceType, Extractor] = {
    ResourceType.ALB: extract_load_balancer,
    ResourceType.NLB: extract_load_balancer,
    ResourceType.LAMBDA: extract_function,
    ResourceType.APIGATEWAY: extract_rest_api,
    ResourceType.EVENTBRIDGE: extract_event_rule,
    ResourceType.EC2: extract_instance,
    ResourceType.AURORA_INSTANCE: extract_db_instance,
    ResourceType.AURORA: extract_db_cluster,
    ResourceType.ECS: extract_service,
    ResourceType.STEPFUNCTIONS: extract_state_machine,
}

_missing = set(ResourceType) - set(EXTRACTORS)
if _missing:
    raise RuntimeError(f"추출기가 없는 리소스 타입: {sorted(t.value for t in _missing)}")


def run_extractor(resource: Resource, ctx: DiscoveryContext) -> list[Relationship]:
    """리소스 1개의 관계 추출 (실패 시 관계 0개)"""
    extractor = EXTRACTORS[resource.type]
    try:
        relationships = extractor(resource, ctx)
    except Exception as e:
        ctx.record_failure(resource, e, extractor.__name__)
        return []

    logger.debug(f"{resource.type.value} {resource.name}: 후보 관계 {len(relationships)}건")
    return relationships


__all__: list[str] = [
    "EXTRACTORS",
    "Extractor",
    "run_extractor",
]
