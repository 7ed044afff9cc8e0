"""
core/parallel/errors.py - 리소스 단위 에러 수집

관계 탐색/인벤토리 수집 중 리소스 하나의 실패는 전체 실행을 멈추지 않습니다.
실패는 ErrorCollector에 쌓였다가 결과(DiscoveryResult.errors, CLI 요약, Excel Errors 시트)로 보고됩니다.

Example:
    collector = ErrorCollector("discovery")

    try:
        groups = client.describe_target_groups(LoadBalancerArn=arn)
    except ClientError as e:
        collector.collect(e, region, "describe_target_groups", resource_id=arn, service="elbv2")

    tags = try_or_default(lambda: client.list_tags(Resource=arn)["Tags"], {}, collector, region, "list_tags")
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TypeVar

from botocore.exceptions import ClientError

from .retry import categorize_error_code
from .types import ErrorCategory

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ErrorSeverity(Enum):
    """에러 심각도 (로그 레벨과 1:1 대응)"""

    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"
    DEBUG = "debug"


_LOG_LEVELS = {
    ErrorSeverity.CRITICAL: logging.ERROR,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.DEBUG: logging.DEBUG,
}

# 권한 없음/리소스 없음은 조회 범위 문제라 정보성으로 기록
_QUIET_CATEGORIES = (ErrorCategory.ACCESS_DENIED, ErrorCategory.NOT_FOUND)


@dataclass
class CollectedError:
    """수집된 에러

    resource_id가 빈 문자열이면 리전 단위 작업(인벤토리 수집 등)의 실패입니다.
    """

    resource_id: str
    region: str
    service: str
    operation: str
    error_code: str
    error_message: str
    severity: ErrorSeverity
    category: ErrorCategory
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        where = f"{self.resource_id or '-'}@{self.region or '-'}"
        return f"[{self.severity.value.upper()}] {where} - {self.service}.{self.operation}: {self.error_code}"

    def to_dict(self) -> dict[str, str]:
        return {
            "resourceId": self.resource_id,
            "region": self.region,
            "service": self.service,
            "operation": self.operation,
            "errorCode": self.error_code,
            "errorMessage": self.error_message,
            "severity": self.severity.value,
            "category": self.category.value,
            "timestamp": self.timestamp.isoformat(),
        }


class ErrorCollector:
    """스레드 세이프 에러 수집기

    Args:
        service: collect 호출에 service가 없을 때 사용할 서비스 이름
    """

    def __init__(self, service: str):
        self.service = service
        self._errors: list[CollectedError] = []
        self._lock = threading.Lock()

    def collect(
        self,
        error: ClientError,
        region: str,
        operation: str,
        severity: ErrorSeverity = ErrorSeverity.WARNING,
        resource_id: str = "",
        service: str | None = None,
    ) -> None:
        """botocore ClientError 수집 (권한 없음/리소스 없음은 INFO로 낮춤)"""
        info = error.response.get("Error", {})
        self._record(
            info.get("Code", "Unknown"),
            info.get("Message", str(error)),
            region,
            operation,
            severity,
            resource_id,
            service,
            downgrade=True,
        )

    def collect_generic(
        self,
        error_code: str,
        error_message: str,
        region: str,
        operation: str,
        severity: ErrorSeverity = ErrorSeverity.WARNING,
        resource_id: str = "",
        service: str | None = None,
    ) -> None:
        """코드/메시지로 직접 수집 (타임아웃, 실행기 실패 등)"""
        self._record(error_code, error_message, region, operation, severity, resource_id, service)

    def collect_exception(
        self,
        error: Exception,
        region: str,
        operation: str,
        severity: ErrorSeverity = ErrorSeverity.WARNING,
        resource_id: str = "",
        service: str | None = None,
    ) -> None:
        """임의 예외 수집 (ClientError가 아니면 예외 클래스명을 에러 코드로 사용)"""
        if isinstance(error, ClientError):
            self.collect(error, region, operation, severity, resource_id, service)
            return
        self._record(error.__class__.__name__, str(error), region, operation, severity, resource_id, service)

    def _record(
        self,
        error_code: str,
        error_message: str,
        region: str,
        operation: str,
        severity: ErrorSeverity,
        resource_id: str,
        service: str | None,
        downgrade: bool = False,
    ) -> None:
        category = categorize_error_code(error_code)
        if downgrade and category in _QUIET_CATEGORIES:
            severity = ErrorSeverity.INFO

        collected = CollectedError(
            resource_id=resource_id,
            region=region,
            service=service or self.service,
            operation=operation,
            error_code=error_code,
            error_message=error_message,
            severity=severity,
            category=category,
        )
        with self._lock:
            self._errors.append(collected)
        logger.log(_LOG_LEVELS[severity], str(collected))

    @property
    def errors(self) -> list[CollectedError]:
        """수집 순서대로 복사본 반환"""
        with self._lock:
            return list(self._errors)

    @property
    def has_errors(self) -> bool:
        with self._lock:
            return bool(self._errors)

    def get_summary(self) -> str:
        """심각도별 건수 (예: "에러 3건 (critical: 1건, warning: 2건)")"""
        with self._lock:
            if not self._errors:
                return "에러 없음"
            counts = Counter(e.severity.value for e in self._errors)
            total = len(self._errors)
        parts = ", ".join(f"{severity}: {count}건" for severity, count in sorted(counts.items()))
        return f"에러 {total}건 ({parts})"

    def clear(self) -> None:
        with self._lock:
            self._errors.clear()


def try_or_default(
    func: Callable[[], T],
    default: T,
    collector: ErrorCollector | None = None,
    region: str = "",
    operation: str = "",
    severity: ErrorSeverity = ErrorSeverity.DEBUG,
    resource_id: str = "",
    service: str | None = None,
) -> T:
    """부수 API 호출(태그 조회 등) 실행, 실패하면 default 반환

    collector가 있으면 실패를 기록하고, 없으면 WARNING 이상일 때만 로그를 남깁니다.
    """
    try:
        return func()
    except Exception as e:
        if collector is not None:
            collector.collect_exception(e, region, operation, severity, resource_id, service)
        elif severity in (ErrorSeverity.CRITICAL, ErrorSeverity.WARNING):
            logger.warning(f"[{resource_id or '-'}/{region}] {operation}: {e}")
        return default
