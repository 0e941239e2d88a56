"""
core/parallel/executor.py - 독립 원격 호출 병렬 실행기

서로 독립적인 원격 호출(예: 스택 내 여러 S3 버킷 검사)을
ThreadPoolExecutor로 동시에 실행하고, 결과를 제출 순서대로 모읍니다.

규칙:
- 결과는 항상 제출 순서대로 반환 (완료 순서와 무관)
- 하나라도 실패하면 대기 중인 작업을 취소하고 그 예외를 그대로 올림
- 전체 작업은 timeout(초) 안에 끝나야 하며, 넘으면 RemoteTimeoutError

타임아웃 시 execute()는 바로 반환하지만 이미 실행 중인 스레드는 중단되지 않습니다.
concurrent.futures가 인터프리터 종료 시 작업 스레드를 join하므로, 멈춘 원격
호출이 있으면 프로세스 종료가 botocore read_timeout(timeouts.read)만큼 늦어질 수
있습니다. StackConfig는 timeouts.read를 timeouts.operation 이하로 맞춥니다.

Example:
    from core.parallel import run_parallel

    results = run_parallel(
        [lambda b=b: storage.has_objects(b) for b in buckets],
        operation="check_buckets",
        max_workers=8,
        timeout=120,
    )
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Generic, TypeVar

from core.exceptions import RemoteTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ParallelConfig:
    """병렬 실행 설정

    Attributes:
        max_workers: 최대 동시 스레드 수 (1~100)
        timeout: 전체 작업 제한 시간 (초, None이면 무제한)
    """

    max_workers: int = 8
    timeout: float | None = None

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.max_workers > 100:
            self.max_workers = 100
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {self.timeout}")


@dataclass
class _TaskSpec(Generic[T]):
    """내부 작업 명세"""

    index: int
    func: Callable[[], T]


class ParallelExecutor:
    """독립 작업 병렬 실행기

    Example:
        executor = ParallelExecutor(ParallelConfig(max_workers=4, timeout=30))
        sizes = executor.execute([lambda: 1, lambda: 2], operation="demo")
        assert sizes == [1, 2]
    """

    def __init__(self, config: ParallelConfig | None = None):
        self.config = config or ParallelConfig()

    def execute(self, funcs: Sequence[Callable[[], T]], operation: str = "parallel") -> list[T]:
        """작업 함수들을 병렬 실행

        Args:
            funcs: 인자 없는 작업 함수 목록
            operation: 로깅/타임아웃 메시지에 사용할 작업 이름

        Returns:
            제출 순서대로 정렬된 결과 리스트

        Raises:
            RemoteTimeoutError: timeout 안에 모든 작업이 끝나지 않음
            Exception: 작업 중 처음 발생한 예외 (나머지 대기 작업은 취소)

        Note:
            타임아웃 후에도 실행 중인 작업 스레드는 계속 돌며, 인터프리터 종료 시
            join됩니다. 종료 지연의 상한은 각 작업의 소켓 read 타임아웃입니다.
        """
        tasks = [_TaskSpec(index=i, func=f) for i, f in enumerate(funcs)]
        if not tasks:
            return []

        workers = min(self.config.max_workers, len(tasks))
        logger.debug(f"병렬 실행 시작: {operation}, {len(tasks)}개 작업, max_workers={workers}")
        start_time = time.monotonic()

        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix=operation)
        try:
            futures: dict[Future[T], _TaskSpec[T]] = {executor.submit(task.func): task for task in tasks}
            done, not_done = wait(futures, timeout=self.config.timeout, return_when=FIRST_EXCEPTION)

            # 실패한 작업이 있으면 제출 순서상 가장 앞선 것을 올림
            failed = sorted(
                (f for f in done if f.exception() is not None),
                key=lambda f: futures[f].index,
            )
            if failed:
                for f in not_done:
                    f.cancel()
                error = failed[0].exception()
                logger.debug(f"병렬 실행 실패: {operation} (작업 #{futures[failed[0]].index}): {error}")
                raise error  # type: ignore[misc]

            if not_done:
                for f in not_done:
                    f.cancel()
                raise RemoteTimeoutError(operation, float(self.config.timeout or 0))

            results: list[T | None] = [None] * len(tasks)
            for f, task in futures.items():
                results[task.index] = f.result()
        finally:
            # 실행 중인 스레드는 기다리지 않음 (타임아웃 시 명령이 멈추지 않도록)
            executor.shutdown(wait=False, cancel_futures=True)

        elapsed = (time.monotonic() - start_time) * 1000
        logger.debug(f"병렬 실행 완료: {operation}, 총 {elapsed:.0f}ms")
        return results  # type: ignore[return-value]


def run_parallel(
    funcs: Sequence[Callable[[], T]],
    operation: str = "parallel",
    max_workers: int = 8,
    timeout: float | None = None,
) -> list[T]:
    """병렬 실행 편의 함수

    ParallelExecutor를 간단하게 사용할 수 있는 래퍼입니다.
    """
    return ParallelExecutor(ParallelConfig(max_workers=max_workers, timeout=timeout)).execute(funcs, operation)
