"""
core/exceptions.py - 토폴로지 예외

리소스 하나의 실패는 ErrorCollector로 수집하고, 여기 예외들은
호출자가 결과 자체를 받을 수 없을 때(전체 실패, 잘못된 입력)만 raise 합니다.

    TopologyError
    ├── InventoryError    모든 리전에서 인벤토리 수집 실패 / 인벤토리 파일 손상
    ├── DiscoveryError    관계 탐색 자체를 시작할 수 없음
    ├── APICallError      AWS API 호출 실패 (ClientError 래핑)
    ├── ConfigError       잘못된 설정 값
    └── ValidationError   잘못된 입력 데이터

Usage:
    try:
        response = client.get_policy(FunctionName=name)
    except ClientError as e:
        if is_not_found(e):
            return None
        raise APICallError.from_client_error("lambda", "get_policy", e) from e
"""

from __future__ import annotations

from typing import Any


class TopologyError(Exception):
    """모든 토폴로지 예외의 베이스

    Attributes:
        message: 사람이 읽는 메시지 (접두어 포함)
        cause: 원인 예외
        details: API 응답/로그에 실을 추가 정보
    """

    def __init__(self, message: str, cause: Exception | None = None, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details: dict[str, Any] = dict(details or {})

    def __str__(self) -> str:
        return f"{self.message}: {self.cause}" if self.cause else self.message

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "cause": None if self.cause is None else str(self.cause),
            "details": self.details,
        }


class InventoryError(TopologyError):
    """인벤토리를 만들 수 없음 (일부 리전 실패는 부분 결과로 처리)"""

    def __init__(self, message: str, regions: list[str] | None = None, cause: Exception | None = None):
        super().__init__(f"인벤토리 수집 실패: {message}", cause)
        self.regions = list(regions or [])
        if self.regions:
            self.details["regions"] = self.regions


class DiscoveryError(TopologyError):
    """관계 탐색 실패

    관계가 0개인 정상 결과와 구분됩니다.
    """

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(f"관계 탐색 실패: {message}", cause)


class APICallError(TopologyError):
    """AWS API 호출 실패"""

    def __init__(
        self,
        service: str,
        operation: str,
        error_code: str | None = None,
        error_message: str | None = None,
        cause: Exception | None = None,
    ):
        text = f"{service}.{operation}"
        if error_code:
            text += f" 실패 ({error_code})"
        if error_message:
            text += f": {error_message}"
        super().__init__(text, cause, {"service": service, "operation": operation, "error_code": error_code})
        self.service = service
        self.operation = operation
        self.error_code = error_code
        self.error_message = error_message

    @classmethod
    def from_client_error(cls, service: str, operation: str, client_error: Exception) -> APICallError:
        """ClientError 응답의 Code/Message를 옮겨 담음 (응답이 없으면 코드 없이 생성)"""
        info = getattr(client_error, "response", None) or {}
        error = info.get("Error", {})
        return cls(service, operation, error.get("Code"), error.get("Message"), cause=client_error)


class ConfigError(TopologyError):
    """설정 값 오류"""

    def __init__(self, key: str, message: str, cause: Exception | None = None):
        super().__init__(f"설정 오류 [{key}]: {message}", cause, {"config_key": key})
        self.config_key = key


class ValidationError(TopologyError):
    """입력 데이터 검증 오류"""

    def __init__(self, field: str, value: Any, expected: str, cause: Exception | None = None):
        super().__init__(
            f"검증 오류 [{field}]: 예상값 '{expected}', 실제값 '{value}'",
            cause,
            {"field": field, "value": str(value), "expected": expected},
        )
        self.field = field
        self.value = value
        self.expected = expected


# =============================================================================
# 에러 코드 판별
# =============================================================================


def _category(error: Exception):
    from core.parallel.retry import categorize_error_code

    if isinstance(error, APICallError):
        code = error.error_code or ""
    else:
        code = (getattr(error, "response", None) or {}).get("Error", {}).get("Code", "")
    return categorize_error_code(code) if code else None


def is_access_denied(error: Exception) -> bool:
    from core.parallel.types import ErrorCategory

    return _category(error) == ErrorCategory.ACCESS_DENIED


def is_throttling(error: Exception) -> bool:
    from core.parallel.types import ErrorCategory

    return _category(error) == ErrorCategory.THROTTLING


def is_not_found(error: Exception) -> bool:
    """리소스 없음 (Lambda 정책 없음, 삭제된 보안 그룹 등)"""
    from core.parallel.types import ErrorCategory

    return _category(error) == ErrorCategory.NOT_FOUND


_FRIENDLY_MESSAGES = {
    "AccessDenied": "권한이 없습니다. IAM 정책을 확인하세요.",
    "ExpiredToken": "인증 토큰이 만료되었습니다. 다시 로그인하세요.",
    "InvalidClientTokenId": "잘못된 자격 증명입니다.",
    "Throttling": "요청이 너무 많습니다. 잠시 후 다시 시도하세요.",
}


def format_error_for_user(error: Exception) -> str:
    """CLI 출력/API 에러 응답용 메시지"""
    response = getattr(error, "response", None)
    if isinstance(error, TopologyError) or response is None:
        return str(error)
    info = response.get("Error", {})
    code = info.get("Code", "UnknownError")
    return _FRIENDLY_MESSAGES.get(code, f"{code}: {info.get('Message', str(error))}")
