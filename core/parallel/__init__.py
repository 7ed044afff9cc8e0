"""
core/parallel - 리소스/리전 단위 AWS 작업 병렬 실행

관계 탐색(리소스당 추출기 1회)과 인벤토리 수집(리전 x 서비스)이 같은 실행기를 공유합니다.
작업 하나의 실패는 TaskError로 남고 나머지 작업은 계속 진행됩니다.

    result = parallel_collect(resources, extract, max_workers=20, timeout=30.0, retry_config=NO_RETRY)
    relationships = result.get_flat_data()
    timed_out = result.timed_out  # 제한 시간 안에 끝나지 않은 리소스 ID
"""

from .client import get_client
from .errors import CollectedError, ErrorCollector, ErrorSeverity, try_or_default
from .executor import ParallelConfig, ParallelTaskExecutor, ProgressTracker, parallel_collect
from .quiet import is_quiet, quiet_mode, set_quiet
from .retry import NO_RETRY, RetryConfig
from .types import ErrorCategory, ParallelExecutionResult, TaskError, TaskResult

__all__: list[str] = [
    "CollectedError",
    "ErrorCategory",
    "ErrorCollector",
    "ErrorSeverity",
    "NO_RETRY",
    "ParallelConfig",
    "ParallelExecutionResult",
    "ParallelTaskExecutor",
    "ProgressTracker",
    "RetryConfig",
    "TaskError",
    "TaskResult",
    "get_client",
    "is_quiet",
    "parallel_collect",
    "quiet_mode",
    "set_quiet",
    "try_or_default",
]
