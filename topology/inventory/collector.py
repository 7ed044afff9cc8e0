"""
topology/inventory/collector.py - 인벤토리 수집기

``InventoryCollector``는 ``parallel_collect``로 리전 x 서비스 단위 작업을 병렬 실행해
10종의 리소스를 하나의 Resource 목록으로 모읍니다.

- 실패한 서비스/리전은 리소스 0개로 처리하고 ErrorCollector와 로그에 남김
- 모든 리전이 실패한 경우에만 InventoryError
- 결과 순서는 (리전 순서, 서비스 순서, API 응답 순서)로 고정

Example:
    collector = InventoryCollector(regions=["us-east-1"])
    resources = collector.list_resources()
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

import boto3

from core.config import DiscoveryConfig
from core.exceptions import InventoryError
from core.parallel import ErrorCollector, ErrorSeverity, ProgressTracker, RetryConfig, parallel_collect

from ..types import Resource
from .services import SERVICE_COLLECTORS

logger = logging.getLogger(__name__)


class InventoryCollector:
    """AWS 리소스 인벤토리 수집기

    Args:
        session_factory: boto3 Session 생성 함수 (작업마다 새 Session 사용)
        regions: 수집 리전 (None이면 config.regions)
        config: 워커 수 등 실행 설정
        services: 수집할 서비스 이름 (None이면 전체, SERVICE_COLLECTORS 키)
    """

    def __init__(
        self,
        session_factory: Callable[[], boto3.Session] | None = None,
        regions: Sequence[str] | None = None,
        config: DiscoveryConfig | None = None,
        services: Sequence[str] | None = None,
    ):
        self.config = config or DiscoveryConfig()
        self.session_factory = session_factory or boto3.Session
        self.regions = list(regions) if regions else list(self.config.regions)
        self.services = list(services) if services else list(SERVICE_COLLECTORS)
        self.errors = ErrorCollector("inventory")

        unknown = [s for s in self.services if s not in SERVICE_COLLECTORS]
        if unknown:
            raise ValueError(f"지원하지 않는 서비스: {', '.join(unknown)}")

    def _collect(self, task: tuple[str, str]) -> list[Resource]:
        region, service = task
        return SERVICE_COLLECTORS[service](self.session_factory(), region, self.errors)

    def list_resources(self, progress_tracker: ProgressTracker | None = None) -> list[Resource]:
        """모든 리전/서비스의 리소스 수집

        Raises:
            InventoryError: 모든 리전에서 수집이 실패한 경우
        """
        tasks = [(region, service) for region in self.regions for service in self.services]
        if not tasks:
            return []

        result = parallel_collect(
            tasks,
            self._collect,
            max_workers=self.config.max_workers,
            service="inventory",
            identify=lambda t: (t[1], t[0]),
            retry_config=RetryConfig(),
            progress_tracker=progress_tracker,
        )

        failed_regions: dict[str, int] = {}
        for failed in result.failed:
            failed_regions[failed.region] = failed_regions.get(failed.region, 0) + 1
            if failed.error is not None:
                self.errors.collect_generic(
                    failed.error.error_code,
                    failed.error.message,
                    failed.region,
                    f"collect_{failed.identifier}",
                    severity=ErrorSeverity.WARNING,
                    service=failed.identifier,
                )

        dead_regions = [r for r in self.regions if failed_regions.get(r, 0) == len(self.services)]
        if len(dead_regions) == len(self.regions):
            raise InventoryError(result.get_error_summary(), regions=dead_regions)
        for region in dead_regions:
            logger.warning(f"[{region}] 모든 서비스 수집 실패, 리소스 0개로 처리")

        resources: list[Resource] = []
        seen: set[str] = set()
        for resource in result.get_flat_data():
            if resource.id in seen:
                continue
            seen.add(resource.id)
            resources.append(resource)

        logger.info(
            f"인벤토리 수집 완료: {len(resources)}개 리소스, {len(self.regions)}개 리전, "
            f"{result.get_error_summary()}"
        )
        return resources
