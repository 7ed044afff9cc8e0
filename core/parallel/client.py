"""
core/parallel/client.py - boto3 client 팩토리

인벤토리 수집과 관계 탐색의 모든 AWS 호출은 여기서 만든 client를 사용합니다.
스로틀링 재시도는 botocore adaptive 모드가 담당하고,
연결 풀은 병렬 워커 수(기본 20)보다 크게 잡습니다.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal, cast

from botocore.config import Config

from core.config import settings

if TYPE_CHECKING:
    import boto3

RetryMode = Literal["legacy", "standard", "adaptive"]

POOL_CONNECTIONS = 25


def client_config(max_attempts: int | None = None, retry_mode: RetryMode = "adaptive") -> Config:
    """settings 기반 botocore Config (재시도, 타임아웃, 연결 풀)"""
    return Config(
        retries={"max_attempts": max_attempts or settings.API_MAX_ATTEMPTS, "mode": retry_mode},  # pyright: ignore[reportArgumentType]
        connect_timeout=settings.API_CONNECT_TIMEOUT,
        read_timeout=settings.API_READ_TIMEOUT,
        max_pool_connections=POOL_CONNECTIONS,
    )


def get_client(
    session: boto3.Session,
    service_name: str,
    region_name: str | None = None,
    max_attempts: int | None = None,
    retry_mode: RetryMode = "adaptive",
) -> Any:
    """재시도 설정이 적용된 boto3 client

    Example:
        elbv2 = get_client(session, "elbv2", region_name="us-east-1")
    """
    # boto3-stubs의 Literal 서비스명 오버로드 회피
    return session.client(  # pyright: ignore[reportCallIssue]
        cast(Any, service_name),
        region_name=region_name,
        config=client_config(max_attempts, retry_mode),
    )
