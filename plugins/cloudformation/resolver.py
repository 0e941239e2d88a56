"""
plugins/cloudformation/resolver.py - 배포 작업 결정 (create / update / 차단)

현재 스택 상태에서 허용되는 배포 작업을 결정합니다.

정책:
    스택 없음 또는 DELETE_COMPLETE      → CREATE
    classify()가 변경을 막는 상태       → 차단 (진행 중, 실패, 롤백, 미지)
    CREATE_COMPLETE / UPDATE_COMPLETE    → UPDATE
    그 외 *_COMPLETE                     → 차단 (예: UPDATE_ROLLBACK_COMPLETE)

차단 시 현재 상태 문자열을 사유로 반환합니다.

진행 중이거나 실패한 스택에 변경 호출을 보내지 않는 보수적 정책입니다.
resolve_action()은 원격 상태를 바꾸지 않으며, deploy_stack()이 결정에 따라
create_stack 또는 update_stack을 정확히 한 번 호출합니다.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from core.exceptions import StackBlockedError

from .gateway import CloudFormationGateway
from .models import Stack
from .status import classify

logger = logging.getLogger(__name__)

UPDATABLE_STATUSES = frozenset({"CREATE_COMPLETE", "UPDATE_COMPLETE"})


class DeployAction(Enum):
    """배포 작업"""

    CREATE = "create"
    UPDATE = "update"


@dataclass(frozen=True)
class Resolution:
    """배포 작업 결정 결과

    action이 None이면 차단된 것이며 reason에 현재 상태 문자열이 담깁니다.
    """

    action: DeployAction | None
    reason: str = ""

    @property
    def blocked(self) -> bool:
        return self.action is None


def resolve_action(stack: Stack | None) -> Resolution:
    """스택 상태로부터 배포 작업 결정

    Args:
        stack: find_stack() 결과 (None이면 스택 없음)

    Returns:
        Resolution
    """
    if stack is None or stack.is_deleted:
        return Resolution(DeployAction.CREATE)
    if classify(stack.status).blocks_mutation or stack.status not in UPDATABLE_STATUSES:
        return Resolution(None, reason=stack.status)
    return Resolution(DeployAction.UPDATE)


def resolve_deployment(gateway: CloudFormationGateway, stack_name: str) -> DeployAction:
    """원격 스택을 조회하여 배포 작업 결정

    Raises:
        StackBlockedError: 현재 상태에서 배포 불가
        RemoteError: list_stacks 호출 실패
    """
    resolution = resolve_action(gateway.find_stack(stack_name))
    if resolution.action is None:
        logger.info(f"배포 차단: {stack_name} ({classify(resolution.reason).category.value})")
        raise StackBlockedError(stack_name, resolution.reason)

    logger.info(f"배포 작업 결정: {stack_name} → {resolution.action.value}")
    return resolution.action


def apply_deployment(
    gateway: CloudFormationGateway,
    action: DeployAction,
    stack_name: str,
    template_body: str,
    capabilities: Sequence[str] = ("CAPABILITY_IAM",),
) -> str:
    """결정된 작업에 따라 create_stack 또는 update_stack을 한 번 호출

    Returns:
        StackId
    """
    if action is DeployAction.CREATE:
        return gateway.create_stack(stack_name, template_body, capabilities)
    return gateway.update_stack(stack_name, template_body, capabilities)


def deploy_stack(
    gateway: CloudFormationGateway,
    stack_name: str,
    template_body: str,
    capabilities: Sequence[str] = ("CAPABILITY_IAM",),
) -> DeployAction:
    """스택 생성 또는 업데이트 (원격 변경 호출 1회)

    Args:
        gateway: CloudFormationGateway
        stack_name: 스택 이름
        template_body: 빌드된 템플릿 본문 (JSON 문자열)
        capabilities: 허용할 Capabilities

    Returns:
        수행한 DeployAction

    Raises:
        StackBlockedError: 현재 상태에서 배포 불가 (원격 변경 호출 없음)
        RemoteError: 조회 또는 create/update 호출 실패 (재시도 없음)
    """
    action = resolve_deployment(gateway, stack_name)
    apply_deployment(gateway, action, stack_name, template_body, capabilities)
    return action
