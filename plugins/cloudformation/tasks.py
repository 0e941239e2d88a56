"""
plugins/cloudformation/tasks.py - cfn 명령 구현

CLI 명령(build/validate/deploy/status/log/resources/delete/reconcile) 하나당
함수 하나입니다. 설정, 원격 게이트웨이, 출력 담당(reporter)을 모두 인자로 받으며
전역 상태를 쓰지 않습니다.

실패는 core.exceptions 예외로 올리고, 출력은 CLI 계층에서 한 번만 합니다.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from core.config import StackConfig
from core.exceptions import StackNotFoundError, UserCancelError

from . import guard
from .formatter import EventLine, ResourceRow, format_events, format_resources
from .gateway import CloudFormationGateway, StorageGateway
from .models import Stack
from .reconciler import ReconcileResult, reconcile_targets
from .resolver import DeployAction, apply_deployment, resolve_deployment
from .status import classify
from .template import build_template, read_built_template, summarize_resource_types

if TYPE_CHECKING:
    from cli.ui.console import ConsoleReporter

logger = logging.getLogger(__name__)


def _require_stack(cfn: CloudFormationGateway, stack_name: str) -> Stack:
    stack = cfn.find_stack(stack_name)
    if stack is None:
        raise StackNotFoundError(stack_name)
    return stack


def _stack_ref(stack: Stack) -> str:
    """이벤트/리소스 조회에 쓸 스택 식별자

    삭제된 스택은 이름으로 조회할 수 없으므로 StackId(ARN)를 사용합니다.
    """
    if stack.is_deleted and stack.stack_id:
        return stack.stack_id
    return stack.name


def build(config: StackConfig, reporter: ConsoleReporter) -> Path:
    """템플릿 렌더링 + 병합"""
    output = build_template(config)
    reporter.ok(f"템플릿 빌드 완료: {output}")
    return output


def validate(config: StackConfig, cfn: CloudFormationGateway, reporter: ConsoleReporter) -> str:
    """빌드 후 원격 검증

    Returns:
        검증된 템플릿 본문

    Raises:
        TemplateValidationError: 템플릿이 유효하지 않음
    """
    build(config, reporter)
    body = read_built_template(config)
    cfn.validate_template(body)
    reporter.ok("템플릿 검증 통과")
    return body


def deploy(config: StackConfig, cfn: CloudFormationGateway, reporter: ConsoleReporter) -> DeployAction:
    """스택 생성 또는 업데이트

    순서: 스택 조회 → 작업 결정 → 빌드/검증 → create_stack 또는 update_stack (1회)

    Raises:
        StackBlockedError: 스택이 배포 불가 상태 (빌드/변경 호출 없음)
        TemplateValidationError: 템플릿 검증 실패 (변경 호출 없음)
        RemoteError: 원격 호출 실패
    """
    action = resolve_deployment(cfn, config.stack_name)
    body = validate(config, cfn, reporter)

    resource_types = summarize_resource_types(body)
    logger.info(f"리소스 타입 {len(resource_types)}종: {', '.join(resource_types)}")

    apply_deployment(cfn, action, config.stack_name, body, config.capabilities)

    label = "생성" if action is DeployAction.CREATE else "업데이트"
    reporter.ok(f"스택 {label} 진행 중입니다. 현재 상태는 cfn status로 확인하세요.")
    return action


def status(config: StackConfig, cfn: CloudFormationGateway, reporter: ConsoleReporter) -> Stack:
    """스택 상태 출력"""
    stack = _require_stack(cfn, config.stack_name)
    reporter.print_status(classify(stack.status))
    if stack.status_reason:
        reporter.info(stack.status_reason)
    reporter.info("전체 이벤트 로그는 cfn log로 확인하세요")
    return stack


def log(config: StackConfig, cfn: CloudFormationGateway, reporter: ConsoleReporter) -> list[EventLine]:
    """스택 이벤트 로그 출력 (시각 오름차순)"""
    stack = _require_stack(cfn, config.stack_name)
    events = cfn.describe_stack_events(_stack_ref(stack))
    if not events:
        reporter.info(f"{config.stack_name}의 이벤트 로그가 없습니다")
        return []

    lines = format_events(events)
    reporter.print_events(lines)
    return lines


def resources(config: StackConfig, cfn: CloudFormationGateway, reporter: ConsoleReporter) -> list[ResourceRow]:
    """스택 리소스 표 출력 (타입순)"""
    stack = _require_stack(cfn, config.stack_name)
    summaries = cfn.list_stack_resources(_stack_ref(stack))
    if not summaries:
        reporter.info(f"{config.stack_name}의 리소스가 없습니다")
        return []

    rows = format_resources(summaries)
    reporter.print_resources(rows, title=config.stack_name)
    return rows


def delete(
    config: StackConfig,
    cfn: CloudFormationGateway,
    storage: StorageGateway,
    reporter: ConsoleReporter,
) -> bool:
    """안전 검사 + 확인 후 스택 삭제

    Returns:
        삭제 요청 여부 (사용자가 취소하면 False)

    Raises:
        StackNotFoundError: 스택 없음
        GuardDeniedError: 객체가 남은 버킷이 있음
        RemoteError: 원격 호출 실패
    """
    try:
        guard.delete_stack(
            cfn,
            storage,
            config.stack_name,
            confirm=reporter.confirm,
            timeout=config.timeouts.operation,
        )
    except UserCancelError:
        reporter.info("삭제를 취소했습니다")
        return False

    reporter.notice("스택 삭제 진행 중입니다.")
    return True


def reconcile(config: StackConfig, cfn: CloudFormationGateway, reporter: ConsoleReporter) -> list[ReconcileResult]:
    """Physical ID를 설정된 JSON 파일에 기록"""
    if not config.reconcile:
        reporter.warn("cfn.yaml에 reconcile 대상이 없습니다")
        return []

    stack = _require_stack(cfn, config.stack_name)
    summaries = cfn.list_stack_resources(_stack_ref(stack))
    results = reconcile_targets(config.reconcile, summaries, indent=config.indent)

    for result in results:
        if result.error:
            # 상세 사유는 reconciler에서 로그로 남김
            reporter.warn(f"{result.file}: 건너뜀")
        elif result.written:
            reporter.ok(f"{result.file}: {len(result.updated)}개 키 갱신")
        else:
            reporter.info(f"{result.file}: 일치하는 키 없음")
    return results
