"""
topology/discovery.py - 관계 탐색 엔진

리소스마다 하나의 작업으로 추출기를 병렬 실행하고, 모든 작업이 끝나면(또는 전체 타임아웃이
지나면) 호출 스레드에서 입력 순서대로 결과를 병합합니다.

- 추출기는 항상 전체 리소스에 대해 실행되고, focus는 반환할 관계만 거름
  (focus 밖 리소스의 규칙에서만 발견되는 focus → 외부 관계도 포함)
- 타임아웃된 리소스는 관계 0개로 처리되고 DiscoveryResult.timed_out에 기록
- 인벤토리 자체가 없으면(None) DiscoveryError

Usage:
    from topology import discover

    relationships = discover(all_resources, focus_resources)

    # 상세 결과
    result = RelationshipDiscovery(all_resources, provider=provider).run()
    print(result.relationships, result.errors, result.timed_out)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from core.config import DiscoveryConfig
from core.exceptions import DiscoveryError
from core.parallel import NO_RETRY, CollectedError, ErrorSeverity, ParallelConfig, ParallelTaskExecutor, ProgressTracker

from .assembler import assemble
from .context import DiscoveryContext
from .extractors import run_extractor
from .providers import AWSProvider, TopologyProvider
from .types import Relationship, Resource

logger = logging.getLogger(__name__)


@dataclass
class DiscoveryResult:
    """탐색 결과

    Attributes:
        relationships: 최종 관계 목록
        errors: 리소스 단위 실패 (관계 0개로 처리된 원인)
        timed_out: 전체 타임아웃 내에 끝나지 못한 리소스 ID
        duration_ms: 소요 시간
    """

    relationships: list[Relationship] = field(default_factory=list)
    errors: list[CollectedError] = field(default_factory=list)
    timed_out: list[str] = field(default_factory=list)
    duration_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "relationships": [r.to_dict() for r in self.relationships],
            "errors": [e.to_dict() for e in self.errors],
            "timedOut": list(self.timed_out),
            "durationMs": round(self.duration_ms, 1),
        }


class RelationshipDiscovery:
    """탐색 1회 실행기

    Args:
        all_resources: 전체 인벤토리 (None이면 인벤토리 사용 불가로 간주)
        focus_resources: 탐색 대상 (None이면 전체)
        provider: AWS 조회 Provider (None이면 기본 boto3 Session의 AWSProvider)
        config: 워커 수 / 타임아웃
        progress_tracker: 진행 상황 추적기 (CLI)
    """

    def __init__(
        self,
        all_resources: Sequence[Resource] | None,
        focus_resources: Sequence[Resource] | None = None,
        *,
        provider: TopologyProvider | None = None,
        config: DiscoveryConfig | None = None,
        progress_tracker: ProgressTracker | None = None,
    ):
        self.all_resources = all_resources
        self.focus_resources = focus_resources
        self.provider = provider
        self.config = config or DiscoveryConfig()
        self.progress_tracker = progress_tracker

    def run(self) -> DiscoveryResult:
        if self.all_resources is None:
            raise DiscoveryError("인벤토리를 사용할 수 없습니다")

        start_time = time.monotonic()
        all_resources = list(self.all_resources)
        focus = all_resources if self.focus_resources is None else list(self.focus_resources)

        if not focus:
            logger.info("탐색 대상 리소스가 없습니다")
            return DiscoveryResult(duration_ms=(time.monotonic() - start_time) * 1000)

        ctx = DiscoveryContext(resources=all_resources, provider=self.provider or AWSProvider())
        logger.info(
            f"관계 탐색 시작: 전체 {len(all_resources)}개 (focus {len(focus)}개), "
            f"보안 그룹 {len(ctx.group_index)}개"
        )

        executor = ParallelTaskExecutor(
            ParallelConfig(
                max_workers=self.config.max_workers,
                retry_config=NO_RETRY,
                timeout=self.config.timeout,
            )
        )
        result = executor.execute(
            all_resources,
            lambda resource: run_extractor(resource, ctx),
            service="discovery",
            identify=lambda r: (r.id, r.region),
            progress_tracker=self.progress_tracker,
        )

        for failed in result.failed:
            if failed.error is None:
                continue
            ctx.errors.collect_generic(
                failed.error.error_code,
                failed.error.message,
                failed.region,
                "extract",
                severity=ErrorSeverity.WARNING,
                resource_id=failed.identifier,
            )

        relationships = assemble(
            result.get_flat_data(),
            focus_ids=None if self.focus_resources is None else [r.id for r in focus],
            known_ids=ctx.by_id.keys(),
        )

        duration_ms = (time.monotonic() - start_time) * 1000
        logger.info(
            f"관계 탐색 완료: {len(relationships)}건, 보안 그룹 조회 {ctx.rule_cache.fetch_count}회, "
            f"{ctx.errors.get_summary()}, {duration_ms:.0f}ms"
        )

        return DiscoveryResult(
            relationships=relationships,
            errors=ctx.errors.errors,
            timed_out=result.timed_out,
            duration_ms=duration_ms,
        )


def discover(
    all_resources: Sequence[Resource] | None,
    focus_resources: Sequence[Resource] | None = None,
    *,
    provider: TopologyProvider | None = None,
    config: DiscoveryConfig | None = None,
) -> list[Relationship]:
    """관계 탐색 (관계 목록만 반환)

    Raises:
        DiscoveryError: 인벤토리를 사용할 수 없는 경우
    """
    return RelationshipDiscovery(all_resources, focus_resources, provider=provider, config=config).run().relationships
