"""
core/parallel - 원격 호출 헬퍼

주요 구성 요소:
- get_client: 타임아웃이 설정된 (재시도 없는) boto3 client 생성
- ParallelExecutor / run_parallel: 독립 원격 호출을 병렬 실행하고 순서대로 수집

Example:
    from core.parallel import get_client, run_parallel

    s3 = get_client(session, "s3", read_timeout=10)
    counts = run_parallel(
        [lambda b=b: s3.list_objects_v2(Bucket=b, MaxKeys=1)["KeyCount"] for b in buckets],
        operation="check_buckets",
        timeout=60,
    )
"""

from .client import get_client
from .executor import ParallelConfig, ParallelExecutor, run_parallel

__all__: list[str] = [
    # Client
    "get_client",
    # Executor
    "ParallelConfig",
    "ParallelExecutor",
    "run_parallel",
]
