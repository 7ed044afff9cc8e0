"""
tests/core/parallel/test_parallel_quiet.py - quiet 모드 테스트
"""

import logging
import threading

from core.parallel.quiet import is_quiet, quiet_mode, set_quiet


class TestIsQuiet:
    """is_quiet / set_quiet 테스트"""

    def test_default_is_not_quiet(self):
        set_quiet(False)
        assert is_quiet() is False

    def test_set_quiet(self):
        set_quiet(True)
        assert is_quiet() is True
        set_quiet(False)

    def test_thread_local_isolation(self):
        """스레드 간 quiet 상태 격리"""
        results = {}

        def thread_func():
            set_quiet(True)
            results["thread"] = is_quiet()

        set_quiet(False)
        t = threading.Thread(target=thread_func)
        t.start()
        t.join()

        assert results["thread"] is True
        assert is_quiet() is False


class TestQuietMode:
    """quiet_mode 컨텍스트 매니저 테스트"""

    def test_restores_state(self):
        set_quiet(False)
        with quiet_mode():
            assert is_quiet() is True
        assert is_quiet() is False

    def test_nested(self):
        with quiet_mode():
            with quiet_mode():
                assert is_quiet() is True
            assert is_quiet() is True
        assert is_quiet() is False

    def test_restores_on_exception(self):
        try:
            with quiet_mode():
                raise ValueError("x")
        except ValueError:
            pass
        assert is_quiet() is False

    def test_suppresses_warnings_only(self):
        """quiet 중에는 ERROR 미만 로그 차단"""
        records: list[logging.LogRecord] = []

        class ListHandler(logging.Handler):
            def emit(self, record):
                records.append(record)

        root = logging.getLogger()
        handler = ListHandler(level=logging.DEBUG)
        root.addHandler(handler)
        logger = logging.getLogger("tests.quiet")
        logger.setLevel(logging.DEBUG)
        try:
            with quiet_mode():
                logger.warning("숨김")
                logger.error("표시")
            logger.warning("quiet 해제 후 표시")
        finally:
            root.removeHandler(handler)

        messages = [r.getMessage() for r in records]
        assert "숨김" not in messages
        assert "표시" in messages
        assert "quiet 해제 후 표시" in messages
