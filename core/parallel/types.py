"""
core/parallel/types.py - 병렬 실행 결과 타입

작업 단위(리소스 또는 리전)별 실행 결과와 전체 집계 결과를 정의합니다.

주요 구성 요소:
- ErrorCategory: 에러 분류
- TaskError: 작업 실패 정보
- TaskResult: 작업 1건의 결과
- ParallelExecutionResult: 전체 실행 결과 (입력 순서 보존)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorCategory(Enum):
    """에러 분류"""

    THROTTLING = "throttling"
    ACCESS_DENIED = "access_denied"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    NETWORK = "network"
    EXPIRED_TOKEN = "expired_token"
    INVALID_REQUEST = "invalid_request"
    SERVICE_ERROR = "service_error"
    UNKNOWN = "unknown"


@dataclass
class TaskError:
    """작업 실패 정보

    Attributes:
        identifier: 작업 식별자 (리소스 ID 또는 서비스명)
        region: AWS 리전
        category: 에러 분류
        error_code: 에러 코드 (예: "AccessDenied", "Timeout")
        message: 에러 메시지
        retries: 실패 전까지 수행한 재시도 횟수
        original_exception: 원본 예외 (traceback 정리됨)
    """

    identifier: str
    region: str
    category: ErrorCategory
    error_code: str
    message: str
    retries: int = 0
    original_exception: Exception | None = None

    def __str__(self) -> str:
        return f"[{self.identifier}/{self.region}] {self.error_code}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환"""
        return {
            "identifier": self.identifier,
            "region": self.region,
            "category": self.category.value,
            "error_code": self.error_code,
            "message": self.message,
            "retries": self.retries,
        }


@dataclass
class TaskResult(Generic[T]):
    """작업 1건의 실행 결과

    Attributes:
        identifier: 작업 식별자
        region: AWS 리전
        success: 성공 여부
        data: 성공 시 반환값
        error: 실패 시 에러 정보
        duration_ms: 소요 시간 (ms)
        timed_out: 전체 타임아웃 내에 끝나지 못한 작업 여부
    """

    identifier: str
    region: str
    success: bool
    data: T | None = None
    error: TaskError | None = None
    duration_ms: float = 0.0
    timed_out: bool = False


@dataclass
class ParallelExecutionResult(Generic[T]):
    """전체 병렬 실행 결과

    results는 작업 제출(입력) 순서를 유지합니다. 워커 완료 순서와 무관하게
    같은 입력에 대해 같은 순서의 결과를 돌려줍니다.
    """

    results: tuple[TaskResult[T], ...] = field(default_factory=tuple)

    @property
    def successful(self) -> list[TaskResult[T]]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[TaskResult[T]]:
        return [r for r in self.results if not r.success]

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def error_count(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def timed_out(self) -> list[str]:
        """타임아웃된 작업 식별자 목록"""
        return [r.identifier for r in self.results if r.timed_out]

    def get_data(self) -> list[T]:
        """성공한 작업의 반환값 목록 (None 제외)"""
        return [r.data for r in self.results if r.success and r.data is not None]

    def get_flat_data(self) -> list[Any]:
        """성공한 작업의 반환 리스트를 하나로 평탄화"""
        flat: list[Any] = []
        for data in self.get_data():
            if isinstance(data, Iterable) and not isinstance(data, (str, bytes, dict)):
                flat.extend(data)
            else:
                flat.append(data)
        return flat

    def get_errors(self) -> list[TaskError]:
        return [r.error for r in self.results if r.error is not None]

    def get_error_summary(self) -> str:
        """에러 코드별 건수 요약"""
        errors = self.get_errors()
        if not errors:
            return "에러 없음"

        by_code: dict[str, int] = {}
        for e in errors:
            by_code[e.error_code] = by_code.get(e.error_code, 0) + 1

        parts = [f"{code}: {count}건" for code, count in sorted(by_code.items())]
        return f"실패 {len(errors)}건 ({', '.join(parts)})"
