"""
core/parallel/executor.py - 병렬 작업 실행기

Map-Reduce 패턴으로 작업 단위(리소스, 리전 x 서비스)를 병렬 처리합니다.
ThreadPoolExecutor 기반이며, 지수 백오프 재시도와 전체 타임아웃 예산을 지원합니다.

각 작업은 자신의 결과만 반환하고, 결과 병합은 호출 스레드가 모든 작업이
끝난 뒤(또는 타임아웃 시점에) 입력 순서대로 수행합니다.

주요 구성 요소:
- ParallelConfig: 병렬 실행 설정 (워커 수, 재시도, 타임아웃)
- ParallelTaskExecutor: 작업 목록 병렬 실행기
- parallel_collect: 간편한 병렬 수집 래퍼 함수

Example:
    from core.parallel import parallel_collect

    def extract(resource):
        return find_relationships(resource)

    result = parallel_collect(resources, extract, max_workers=20, timeout=30.0)
    edges = result.get_flat_data()
    print(result.timed_out)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar

from .quiet import is_quiet, set_quiet
from .retry import RetryConfig, categorize_error, get_error_code, is_retryable
from .types import ErrorCategory, ParallelExecutionResult, TaskError, TaskResult

logger = logging.getLogger(__name__)

T = TypeVar("T")
I = TypeVar("I")  # noqa: E741


class ProgressTracker(Protocol):
    """진행 상황 추적기 인터페이스 (CLI의 rich Progress 어댑터 등)"""

    def set_total(self, total: int) -> None: ...

    def on_complete(self, success: bool) -> None: ...


def _clear_exception_chain(e: BaseException) -> None:
    """traceback + chained exception 메모리 누수 방지"""
    e.__traceback__ = None
    if e.__context__ is not None:
        e.__context__.__traceback__ = None
    if e.__cause__ is not None:
        e.__cause__.__traceback__ = None


def _default_identify(item: Any) -> tuple[str, str]:
    return str(getattr(item, "id", item)), str(getattr(item, "region", ""))


@dataclass
class ParallelConfig:
    """병렬 실행 설정

    Attributes:
        max_workers: 최대 동시 스레드 수 (1~100)
        retry_config: 재시도 설정 (None이면 기본값)
        timeout: 전체 타임아웃 예산 (초, None이면 무제한)
    """

    max_workers: int = 20
    retry_config: RetryConfig | None = None
    timeout: float | None = None

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.max_workers > 100:
            self.max_workers = 100
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {self.timeout}")


@dataclass
class _TaskSpec(Generic[I]):
    """내부 작업 명세

    Attributes:
        identifier: 작업 식별자 (리소스 ID 등)
        region: 대상 AWS 리전
        item: 작업 함수에 전달할 입력
    """

    identifier: str
    region: str
    item: I


class ParallelTaskExecutor:
    """병렬 작업 실행기

    특징:
    - ThreadPoolExecutor 기반 병렬 처리
    - 지수 백오프 재시도 (재시도 가능한 에러만)
    - 전체 타임아웃: 예산 내에 끝나지 않은 작업은 timed_out 결과로 기록되고
      나머지 작업의 결과 수집을 막지 않음
    - 입력 순서를 보존한 결과 수집

    Example:
        executor = ParallelTaskExecutor(ParallelConfig(max_workers=20, timeout=30.0))
        result = executor.execute(resources, extract, service="discovery")
        edges = result.get_flat_data()
    """

    def __init__(self, config: ParallelConfig | None = None):
        self.config = config or ParallelConfig()
        self._retry_config = self.config.retry_config or RetryConfig()

    def execute(
        self,
        items: Sequence[I],
        func: Callable[[I], T],
        service: str = "default",
        identify: Callable[[I], tuple[str, str]] | None = None,
        progress_tracker: ProgressTracker | None = None,
    ) -> ParallelExecutionResult[T]:
        """작업 함수를 모든 입력에 병렬 실행

        Args:
            items: 작업 입력 목록
            func: item -> T 함수
            service: 로깅용 이름
            identify: item -> (identifier, region). None이면 item.id / item.region 사용
            progress_tracker: 진행 상황 추적기 (선택사항)

        Returns:
            ParallelExecutionResult[T]: 입력 순서대로 정렬된 전체 실행 결과
        """
        identify = identify or _default_identify
        tasks = [_TaskSpec(*identify(item), item=item) for item in items]

        if not tasks:
            logger.debug(f"[{service}] 실행할 작업이 없습니다")
            return ParallelExecutionResult()

        timeout = self.config.timeout
        logger.info(
            f"병렬 실행 시작: {len(tasks)}개 작업, max_workers={self.config.max_workers}, "
            f"timeout={timeout}, service={service}"
        )

        if progress_tracker:
            progress_tracker.set_total(len(tasks))

        results: list[TaskResult[T] | None] = [None] * len(tasks)
        start_time = time.monotonic()

        # 부모 스레드의 quiet 상태를 워커 스레드에 전파
        parent_quiet = is_quiet()

        executor = ThreadPoolExecutor(max_workers=self.config.max_workers, thread_name_prefix=service)
        try:
            futures: dict[Future[TaskResult[T]], int] = {}
            for index, task in enumerate(tasks):
                future = executor.submit(self._execute_single, func, task, parent_quiet)
                futures[future] = index

            try:
                for future in as_completed(futures, timeout=timeout):
                    index = futures[future]
                    results[index] = self._resolve(future, tasks[index])
                    if progress_tracker:
                        progress_tracker.on_complete(results[index].success)  # type: ignore[union-attr]
            except FuturesTimeoutError:
                pending = sum(1 for r in results if r is None)
                logger.warning(f"[{service}] 전체 타임아웃 {timeout}초 초과: 미완료 작업 {pending}개 결과 제외")

            for future, index in futures.items():
                if results[index] is not None:
                    continue
                future.cancel()
                results[index] = self._timed_out(tasks[index], timeout, start_time)
                if progress_tracker:
                    progress_tracker.on_complete(False)
        finally:
            # 타임아웃된 작업을 기다리지 않음 (실행 중인 스레드는 결과가 버려진 채 종료)
            executor.shutdown(wait=False, cancel_futures=True)

        total_time = (time.monotonic() - start_time) * 1000
        exec_result = ParallelExecutionResult(results=tuple(r for r in results if r is not None))

        logger.info(
            f"병렬 실행 완료: 성공 {exec_result.success_count}, 실패 {exec_result.error_count}, "
            f"타임아웃 {len(exec_result.timed_out)}, 총 {total_time:.0f}ms"
        )

        return exec_result

    def _resolve(self, future: Future[TaskResult[T]], task: _TaskSpec[I]) -> TaskResult[T]:
        try:
            return future.result()
        except Exception as e:
            # _execute_single이 예외를 결과로 바꾸므로 executor 자체 오류만 여기에 도달
            logger.error(f"작업 실행 중 예외 [{task.identifier}/{task.region}]: {e}")
            _clear_exception_chain(e)
            return TaskResult(
                identifier=task.identifier,
                region=task.region,
                success=False,
                error=TaskError(
                    identifier=task.identifier,
                    region=task.region,
                    category=ErrorCategory.UNKNOWN,
                    error_code="ExecutorError",
                    message=str(e),
                    original_exception=e,
                ),
            )

    @staticmethod
    def _timed_out(task: _TaskSpec[I], timeout: float | None, start_time: float) -> TaskResult[T]:
        return TaskResult(
            identifier=task.identifier,
            region=task.region,
            success=False,
            timed_out=True,
            error=TaskError(
                identifier=task.identifier,
                region=task.region,
                category=ErrorCategory.TIMEOUT,
                error_code="Timeout",
                message=f"전체 타임아웃 {timeout}초 내에 완료되지 않음",
            ),
            duration_ms=(time.monotonic() - start_time) * 1000,
        )

    def _execute_single(self, func: Callable[[I], T], task: _TaskSpec[I], quiet: bool = False) -> TaskResult[T]:
        """단일 작업 실행 (워커 스레드 내에서 호출)"""
        set_quiet(quiet)
        start_time = time.monotonic()
        last_error: Exception | None = None

        for attempt in range(self._retry_config.max_retries + 1):
            try:
                data = func(task.item)
                return TaskResult(
                    identifier=task.identifier,
                    region=task.region,
                    success=True,
                    data=data,
                    duration_ms=(time.monotonic() - start_time) * 1000,
                )

            except Exception as e:
                last_error = e

                if not is_retryable(e) or attempt >= self._retry_config.max_retries:
                    _clear_exception_chain(e)
                    return TaskResult(
                        identifier=task.identifier,
                        region=task.region,
                        success=False,
                        error=TaskError(
                            identifier=task.identifier,
                            region=task.region,
                            category=categorize_error(e),
                            error_code=get_error_code(e),
                            message=str(e),
                            retries=attempt,
                            original_exception=e,
                        ),
                        duration_ms=(time.monotonic() - start_time) * 1000,
                    )

                delay = self._retry_config.get_delay(attempt)
                logger.debug(f"[{task.identifier}/{task.region}] 시도 {attempt + 1} 실패, {delay:.2f}초 후 재시도...")
                time.sleep(delay)

        # 재시도 소진 (도달하면 안 됨)
        if last_error is not None:
            _clear_exception_chain(last_error)
        return TaskResult(
            identifier=task.identifier,
            region=task.region,
            success=False,
            error=TaskError(
                identifier=task.identifier,
                region=task.region,
                category=categorize_error(last_error) if last_error else ErrorCategory.UNKNOWN,
                error_code=get_error_code(last_error) if last_error else "Unknown",
                message="최대 재시도 횟수 초과",
                retries=self._retry_config.max_retries,
                original_exception=last_error,
            ),
            duration_ms=(time.monotonic() - start_time) * 1000,
        )


def parallel_collect(
    items: Sequence[I],
    collector_func: Callable[[I], T],
    max_workers: int = 20,
    timeout: float | None = None,
    service: str = "default",
    identify: Callable[[I], tuple[str, str]] | None = None,
    retry_config: RetryConfig | None = None,
    progress_tracker: ProgressTracker | None = None,
) -> ParallelExecutionResult[T]:
    """병렬 수집 편의 함수

    ParallelTaskExecutor를 간단하게 사용할 수 있는 래퍼입니다.

    Example:
        def collect_region(region):
            ec2 = get_client(session, "ec2", region_name=region)
            return ec2.describe_instances()["Reservations"]

        result = parallel_collect(["us-east-1", "us-east-2"], collect_region,
                                  identify=lambda r: (r, r))
        if result.error_count > 0:
            print(result.get_error_summary())
    """
    config = ParallelConfig(max_workers=max_workers, retry_config=retry_config, timeout=timeout)
    executor = ParallelTaskExecutor(config)
    return executor.execute(items, collector_func, service, identify=identify, progress_tracker=progress_tracker)
