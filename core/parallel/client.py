"""
core/parallel/client.py - boto3 client 생성 헬퍼

타임아웃과 연결 풀이 명시적으로 설정된 boto3 client를 생성합니다.

원격 상태는 호출 시점의 스냅샷만 사용하므로 botocore 자동 재시도는 끕니다
(max_attempts=1). 실패는 그대로 호출자에게 전달됩니다.

Example:
    from core.parallel.client import get_client

    cfn = get_client(session, "cloudformation", region_name="ap-northeast-2")

    # 타임아웃 조정
    s3 = get_client(session, "s3", connect_timeout=5, read_timeout=10)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal, cast

if TYPE_CHECKING:
    import boto3

# Retry mode 타입 (botocore TypedDict와 호환)
RetryMode = Literal["legacy", "standard", "adaptive"]

DEFAULT_MAX_ATTEMPTS = 1  # 최초 호출 1회, 재시도 없음
DEFAULT_RETRY_MODE: RetryMode = "standard"
DEFAULT_CONNECT_TIMEOUT = 10  # 초
DEFAULT_READ_TIMEOUT = 30  # 초
DEFAULT_MAX_POOL_CONNECTIONS = 10  # 버킷 검사 max_workers 이상 권장


def get_client(
    session: boto3.Session,
    service_name: str,
    region_name: str | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    retry_mode: RetryMode = DEFAULT_RETRY_MODE,
    connect_timeout: int = DEFAULT_CONNECT_TIMEOUT,
    read_timeout: int = DEFAULT_READ_TIMEOUT,
    max_pool_connections: int = DEFAULT_MAX_POOL_CONNECTIONS,
    **kwargs: Any,
) -> Any:
    """타임아웃이 적용된 boto3 client 생성

    Args:
        session: boto3 Session
        service_name: AWS 서비스 이름 (cloudformation, s3 등)
        region_name: 리전 (None이면 세션 기본값)
        max_attempts: 최대 시도 횟수 (기본: 1, 재시도 없음)
        retry_mode: 재시도 모드
        connect_timeout: 연결 타임아웃 (초)
        read_timeout: 읽기 타임아웃 (초)
        max_pool_connections: HTTP 연결 풀 크기
        **kwargs: session.client()에 전달할 추가 인자

    Returns:
        boto3 client
    """
    from botocore.config import Config

    config = Config(
        retries={"max_attempts": max_attempts, "mode": retry_mode},  # pyright: ignore[reportArgumentType]
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
        max_pool_connections=max_pool_connections,
    )

    # 기존 config가 있으면 병합
    if "config" in kwargs:
        existing = kwargs.pop("config")
        config = config.merge(existing)

    # cast to Any to bypass boto3-stubs Literal type requirements
    return session.client(  # pyright: ignore[reportCallIssue]
        cast(Any, service_name),
        region_name=region_name,
        config=config,
        **kwargs,
    )
