"""
core/parallel/quiet.py - 병렬 실행 시 로그 출력 억제

탐색 워커 여러 개가 동시에 WARNING 로그를 내보내면 CLI의 rich 진행 표시와 섞입니다.
quiet 모드가 켜진 스레드에서는 ERROR 미만의 로그를 숨깁니다.
ParallelTaskExecutor는 호출 스레드의 quiet 상태를 워커 스레드에 그대로 전파합니다.

Example:
    from core.parallel.quiet import quiet_mode

    with quiet_mode():
        result = discover(resources)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

_quiet_state = threading.local()

# 중첩/동시 quiet_mode 진입 시 filter가 먼저 제거되지 않도록 참조 카운트
_filter_refcount = 0
_filter_lock = threading.Lock()


class _QuietFilter(logging.Filter):
    """quiet 스레드의 ERROR 미만 레코드 차단"""

    def filter(self, record: logging.LogRecord) -> bool:
        return not (is_quiet() and record.levelno < logging.ERROR)


_quiet_filter = _QuietFilter()


def is_quiet() -> bool:
    """현재 스레드가 quiet 모드인지 확인"""
    return getattr(_quiet_state, "quiet", False)


def set_quiet(value: bool) -> None:
    """현재 스레드의 quiet 모드 설정 (워커 스레드 전파용)"""
    _quiet_state.quiet = value


def _attach(handler_owner: logging.Logger) -> None:
    global _filter_refcount
    with _filter_lock:
        _filter_refcount += 1
        if _filter_refcount == 1:
            for handler in handler_owner.handlers:
                handler.addFilter(_quiet_filter)
            handler_owner.addFilter(_quiet_filter)


def _detach(handler_owner: logging.Logger) -> None:
    global _filter_refcount
    with _filter_lock:
        _filter_refcount -= 1
        if _filter_refcount == 0:
            for handler in handler_owner.handlers:
                handler.removeFilter(_quiet_filter)
            handler_owner.removeFilter(_quiet_filter)


@contextmanager
def quiet_mode() -> Iterator[None]:
    """현재 스레드(및 이 스레드가 시작하는 병렬 작업)의 로그 출력을 억제

    logger 필터는 자식 logger에서 전파된 레코드에 적용되지 않으므로
    루트 logger의 handler에도 같은 필터를 붙입니다.
    """
    old_value = is_quiet()
    set_quiet(True)
    root_logger = logging.getLogger()
    _attach(root_logger)
    try:
        yield
    finally:
        set_quiet(old_value)
        _detach(root_logger)
