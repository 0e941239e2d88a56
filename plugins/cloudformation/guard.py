"""
plugins/cloudformation/guard.py - 스택 삭제 전 안전 검사

스택 리소스 중 S3 버킷(AWS::S3::Bucket)에 객체가 남아 있으면 삭제를 차단합니다.

- 버킷마다 list_objects_v2(MaxKeys=1)로 비어 있는지만 확인 (전체 열거 아님)
- 이미 삭제된 버킷(NoSuchBucket)은 비어 있는 것으로 취급
- 버킷 검사는 병렬로 실행하고 모두 끝난 뒤 판단
- 차단 사유는 리소스 목록 순서상 첫 번째 비어 있지 않은 버킷 (실행마다 동일)

검사 자체는 원격 상태를 바꾸지 않으며, 허용된 경우에만 delete_stack()이
확인 프롬프트를 거쳐 delete_stack을 한 번 호출합니다.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from core.exceptions import GuardDeniedError, StackNotFoundError, UserCancelError
from core.parallel import run_parallel

from .gateway import CloudFormationGateway, StorageGateway
from .models import S3_BUCKET_TYPE, StackResource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeleteDecision:
    """삭제 가능 여부

    Attributes:
        allowed: 삭제 허용 여부
        bucket: 차단 사유가 된 버킷 이름 (허용 시 None)
        checked: 검사한 버킷 수
    """

    allowed: bool
    bucket: str | None = None
    checked: int = 0


def storage_buckets(resources: list[StackResource]) -> list[str]:
    """검사 대상 버킷 이름 (Physical ID가 있는 S3 버킷만, 목록 순서 유지)"""
    return [r.physical_id for r in resources if r.resource_type == S3_BUCKET_TYPE and r.physical_id]


def check_delete(
    cfn: CloudFormationGateway,
    storage: StorageGateway,
    stack_name: str,
    max_workers: int = 8,
    timeout: float | None = None,
) -> DeleteDecision:
    """스택 삭제 가능 여부 검사

    Args:
        cfn: CloudFormationGateway
        storage: StorageGateway
        stack_name: 스택 이름
        max_workers: 버킷 병렬 검사 스레드 수
        timeout: 버킷 검사 전체 제한 시간 (초)

    Returns:
        DeleteDecision

    Raises:
        RemoteError: 리소스 조회 또는 버킷 검사 실패
        RemoteTimeoutError: 버킷 검사가 timeout 안에 끝나지 않음
    """
    buckets = storage_buckets(cfn.list_stack_resources(stack_name))
    if not buckets:
        return DeleteDecision(allowed=True)

    results = run_parallel(
        [lambda b=b: storage.has_objects(b) for b in buckets],
        operation="check_buckets",
        max_workers=max_workers,
        timeout=timeout,
    )

    for bucket, non_empty in zip(buckets, results):
        if non_empty:
            logger.info(f"객체가 남아 있는 버킷: {bucket}")
            return DeleteDecision(allowed=False, bucket=bucket, checked=len(buckets))

    return DeleteDecision(allowed=True, checked=len(buckets))


def delete_stack(
    cfn: CloudFormationGateway,
    storage: StorageGateway,
    stack_name: str,
    confirm: Callable[[str], bool],
    max_workers: int = 8,
    timeout: float | None = None,
) -> None:
    """안전 검사 후 스택 삭제 (원격 호출 1회)

    Args:
        cfn: CloudFormationGateway
        storage: StorageGateway
        stack_name: 스택 이름
        confirm: 확인 프롬프트 (메시지 → 동의 여부)
        max_workers: 버킷 병렬 검사 스레드 수
        timeout: 버킷 검사 전체 제한 시간 (초)

    Raises:
        StackNotFoundError: 스택이 없거나 이미 삭제됨
        GuardDeniedError: 객체가 남은 버킷이 있음
        UserCancelError: 사용자가 확인을 거부
        RemoteError: 원격 호출 실패
    """
    stack = cfn.find_stack(stack_name)
    if stack is None or stack.is_deleted:
        raise StackNotFoundError(stack_name)

    decision = check_delete(cfn, storage, stack_name, max_workers=max_workers, timeout=timeout)
    if not decision.allowed:
        raise GuardDeniedError(stack_name, decision.bucket or "")

    if not confirm(f'스택 "{stack_name}"을(를) 삭제하시겠습니까?'):
        raise UserCancelError("delete")

    cfn.delete_stack(stack_name)
