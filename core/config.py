"""
core/config.py - 중앙 설정 관리

기본값은 불변 Settings 데이터클래스에 모여 있고, 환경 변수로 덮어쓸 수 있습니다.
탐색 실행 단위 설정은 DiscoveryConfig로 호출마다 전달합니다.

환경 변수:
    TOPOLOGY_REGIONS              쉼표 구분 리전 목록 (기본: us-east-1,us-east-2)
    TOPOLOGY_MAX_WORKERS          병렬 워커 수 (기본: 20)
    TOPOLOGY_DISCOVERY_TIMEOUT    탐색 전체 타임아웃 초 (기본: 30)
    TOPOLOGY_HOST / TOPOLOGY_PORT API 서버 바인딩 주소
    TOPOLOGY_LOG_LEVEL            로그 레벨 (기본: WARNING)

Usage:
    from core.config import settings, DiscoveryConfig

    regions = settings.DEFAULT_REGIONS
    config = DiscoveryConfig(max_workers=10, timeout=15.0)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from core.exceptions import ConfigError

logger = logging.getLogger(__name__)

__version__ = "0.3.0"


# =============================================================================
# 환경 변수 헬퍼
# =============================================================================


def get_env_int(name: str, default: int) -> int:
    """정수 환경 변수 조회 (파싱 실패 시 기본값 + 경고 로그)"""
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"환경 변수 {name}={value!r} 정수 변환 실패, 기본값 {default} 사용")
        return default


def get_env_float(name: str, default: float) -> float:
    """실수 환경 변수 조회"""
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"환경 변수 {name}={value!r} 실수 변환 실패, 기본값 {default} 사용")
        return default


def get_env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """쉼표 구분 목록 환경 변수 조회"""
    value = os.environ.get(name)
    if value is None:
        return default
    items = tuple(v.strip() for v in value.split(",") if v.strip())
    return items or default


# =============================================================================
# 전역 설정
# =============================================================================


@dataclass(frozen=True)
class Settings:
    """애플리케이션 기본 설정 (불변)"""

    # 인벤토리
    DEFAULT_REGIONS: tuple[str, ...] = ("us-east-1", "us-east-2")
    APPLICATION_TAG_KEY: str = "app"
    UNKNOWN_APPLICATION: str = "Unknown"
    SECURITY_GROUP_TAG_KEY: str = "SecurityGroups"

    # 병렬 처리
    MAX_WORKERS: int = 20
    DISCOVERY_TIMEOUT_SECONDS: float = 30.0

    # AWS API
    API_CONNECT_TIMEOUT: int = 10
    API_READ_TIMEOUT: int = 30
    API_MAX_ATTEMPTS: int = 5

    # HTTP 서버
    HTTP_HOST: str = "0.0.0.0"
    HTTP_PORT: int = 5173

    LOG_LEVEL: str = "WARNING"


def _load_settings() -> Settings:
    return Settings(
        DEFAULT_REGIONS=get_env_list("TOPOLOGY_REGIONS", Settings.DEFAULT_REGIONS),
        MAX_WORKERS=get_env_int("TOPOLOGY_MAX_WORKERS", Settings.MAX_WORKERS),
        DISCOVERY_TIMEOUT_SECONDS=get_env_float("TOPOLOGY_DISCOVERY_TIMEOUT", Settings.DISCOVERY_TIMEOUT_SECONDS),
        HTTP_HOST=os.environ.get("TOPOLOGY_HOST", Settings.HTTP_HOST),
        HTTP_PORT=get_env_int("TOPOLOGY_PORT", Settings.HTTP_PORT),
        LOG_LEVEL=os.environ.get("TOPOLOGY_LOG_LEVEL", Settings.LOG_LEVEL).upper(),
    )


settings = _load_settings()


# =============================================================================
# 실행 단위 설정
# =============================================================================


@dataclass
class DiscoveryConfig:
    """관계 탐색 1회 실행 설정

    Attributes:
        max_workers: 리소스별 추출 작업의 최대 동시 스레드 수 (1~100)
        timeout: 탐색 전체 타임아웃 (초). 초과한 추출 작업은 관계 0개로 처리
        regions: 인벤토리 수집 대상 리전
    """

    max_workers: int = field(default_factory=lambda: settings.MAX_WORKERS)
    timeout: float = field(default_factory=lambda: settings.DISCOVERY_TIMEOUT_SECONDS)
    regions: tuple[str, ...] = field(default_factory=lambda: settings.DEFAULT_REGIONS)

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ConfigError("max_workers", f"1 이상이어야 합니다 (입력값: {self.max_workers})")
        if self.max_workers > 100:
            self.max_workers = 100
        if self.timeout <= 0:
            raise ConfigError("timeout", f"0보다 커야 합니다 (입력값: {self.timeout})")
        self.regions = tuple(self.regions)


@dataclass
class LogConfig:
    """로깅 설정"""

    level: str = field(default_factory=lambda: settings.LOG_LEVEL)
    format: str = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
    datefmt: str = "%Y-%m-%d %H:%M:%S"

    def apply(self) -> None:
        """루트 로거에 설정 적용"""
        logging.basicConfig(level=self.level, format=self.format, datefmt=self.datefmt, force=True)


def get_version() -> str:
    """버전 문자열 반환"""
    return __version__

