"""
core/parallel/retry.py - 에러 분류와 재시도 정책

에러 코드 → ErrorCategory 분류를 한 곳에서 정의하고,
재시도 여부는 카테고리로 판단합니다 (스로틀링, 일시적 서비스 오류, 타임아웃, 네트워크).

관계 탐색은 botocore adaptive retry에 맡기고 NO_RETRY로 실행하며,
인벤토리 수집은 리전 x 서비스 작업 단위로 RetryConfig() 기본값(2회)을 사용합니다.
"""

from __future__ import annotations

import random
from dataclasses import dataclass

from .types import ErrorCategory

# 에러 코드(소문자) 부분 문자열 → 카테고리, 위에서부터 먼저 일치하는 항목 사용
_CODE_KEYWORDS: tuple[tuple[ErrorCategory, tuple[str, ...]], ...] = (
    (ErrorCategory.EXPIRED_TOKEN, ("expiredtoken",)),
    (ErrorCategory.ACCESS_DENIED, ("accessdenied", "unauthorized", "forbidden")),
    (ErrorCategory.NOT_FOUND, ("notfound", "nosuch", "doesnotexist")),
    (ErrorCategory.THROTTLING, ("throttl", "ratelimit", "limitexceeded", "toomanyrequests", "rateexceeded")),
    (ErrorCategory.TIMEOUT, ("timeout", "timedout")),
    (ErrorCategory.INVALID_REQUEST, ("invalid", "validation", "malformed")),
    (ErrorCategory.SERVICE_ERROR, ("internal", "serviceunavailable", "serviceerror")),
)

RETRYABLE_CATEGORIES: frozenset[ErrorCategory] = frozenset(
    {
        ErrorCategory.THROTTLING,
        ErrorCategory.SERVICE_ERROR,
        ErrorCategory.TIMEOUT,
        ErrorCategory.NETWORK,
    }
)


@dataclass
class RetryConfig:
    """작업 단위 재시도 설정

    Attributes:
        max_retries: 최대 재시도 횟수 (0이면 재시도 안함)
        base_delay: 첫 재시도 전 대기 시간 (초)
        max_delay: 대기 시간 상한 (초)
        jitter: True면 [0, delay] 범위에서 무작위 대기
    """

    max_retries: int = 2
    base_delay: float = 0.5
    max_delay: float = 5.0
    jitter: bool = True

    def get_delay(self, attempt: int) -> float:
        """attempt번째 재시도 전 대기 시간 (base_delay x 2^attempt, 상한 max_delay)"""
        delay = min(self.base_delay * 2**attempt, self.max_delay)
        return random.uniform(0, delay) if self.jitter else delay


NO_RETRY = RetryConfig(max_retries=0)


def categorize_error_code(error_code: str) -> ErrorCategory:
    """AWS 에러 코드 문자열 분류 (일치하는 키워드가 없으면 UNKNOWN)

    >>> categorize_error_code("InvalidGroup.NotFound")
    <ErrorCategory.NOT_FOUND: 'not_found'>
    """
    code = error_code.lower()
    for category, keywords in _CODE_KEYWORDS:
        if any(keyword in code for keyword in keywords):
            return category
    return ErrorCategory.UNKNOWN


def get_error_code(error: Exception) -> str:
    """ClientError면 응답의 Code, 그 외에는 예외 클래스명"""
    response = getattr(error, "response", None)
    if response is not None:
        code: str = response.get("Error", {}).get("Code", "Unknown")
        return code
    return error.__class__.__name__


def categorize_error(error: Exception) -> ErrorCategory:
    """예외 분류 (ClientError는 에러 코드, 그 외에는 예외 타입 기준)"""
    if getattr(error, "response", None) is not None:
        return categorize_error_code(get_error_code(error))
    if isinstance(error, TimeoutError):
        return ErrorCategory.TIMEOUT
    if isinstance(error, OSError):
        return ErrorCategory.NETWORK
    return ErrorCategory.UNKNOWN


def is_retryable(error: Exception) -> bool:
    return categorize_error(error) in RETRYABLE_CATEGORIES
