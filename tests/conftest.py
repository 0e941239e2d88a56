"""
tests/conftest.py - pytest 공통 픽스처

AWS API 모킹과 테스트 헬퍼를 제공합니다.

Usage:
    def test_something(mock_cfn_client, reporter):
        # mock_cfn_client: paginator가 설정된 CloudFormation 클라이언트 MagicMock
        # reporter: 출력을 문자열로 기록하는 ConsoleReporter
        pass
"""

import io
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

# 프로젝트 루트를 sys.path에 추가
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


# =============================================================================
# 환경 설정
# =============================================================================


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """테스트 환경 설정 (실제 AWS 계정 접근 방지)"""
    monkeypatch.setenv("AWS_DEFAULT_REGION", "ap-northeast-2")
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.delenv("AWS_PROFILE", raising=False)
    monkeypatch.delenv("CFN_STACK_NAME", raising=False)
    monkeypatch.delenv("CFN_TIMEOUT", raising=False)

    yield


# =============================================================================
# 응답 데이터 팩토리
# =============================================================================


def make_client_error(code: str, message: str = "error", operation: str = "Operation") -> ClientError:
    """botocore ClientError 생성"""
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


def make_stack_summary(name: str = "demo", status: str = "CREATE_COMPLETE", **extra: Any) -> Dict[str, Any]:
    """list_stacks StackSummaries 항목"""
    summary = {
        "StackId": f"arn:aws:cloudformation:ap-northeast-2:123456789012:stack/{name}/abc",
        "StackName": name,
        "StackStatus": status,
        "CreationTime": datetime(2024, 1, 1, tzinfo=timezone.utc),
    }
    summary.update(extra)
    return summary


def make_event(
    minute: int,
    status: str = "CREATE_COMPLETE",
    resource_type: str = "AWS::S3::Bucket",
    logical_id: str = "Bucket",
    reason: str = "",
) -> Dict[str, Any]:
    """describe_stack_events StackEvents 항목"""
    event = {
        "EventId": f"event-{minute}",
        "StackName": "demo",
        "Timestamp": datetime(2024, 1, 1, 0, minute, tzinfo=timezone.utc),
        "LogicalResourceId": logical_id,
        "ResourceType": resource_type,
        "ResourceStatus": status,
    }
    if reason:
        event["ResourceStatusReason"] = reason
    return event


def make_resource(
    logical_id: Optional[str] = "Bucket",
    physical_id: str = "demo-bucket-1",
    resource_type: str = "AWS::S3::Bucket",
    status: str = "CREATE_COMPLETE",
) -> Dict[str, Any]:
    """list_stack_resources StackResourceSummaries 항목"""
    resource = {
        "PhysicalResourceId": physical_id,
        "ResourceType": resource_type,
        "ResourceStatus": status,
        "LastUpdatedTimestamp": datetime(2024, 1, 1, tzinfo=timezone.utc),
    }
    if logical_id is not None:
        resource["LogicalResourceId"] = logical_id
    return resource


# =============================================================================
# AWS 모킹 픽스처
# =============================================================================


def set_pages(client: MagicMock, pages: Dict[str, List[Dict[str, Any]]]) -> Dict[str, MagicMock]:
    """클라이언트의 paginator 응답 설정

    Args:
        client: 클라이언트 MagicMock
        pages: {operation_name: [page, ...]}

    Returns:
        {operation_name: 마지막으로 생성된 paginator} (paginate 인자 검증용)
    """
    paginators: Dict[str, MagicMock] = {}

    def get_paginator(name: str) -> MagicMock:
        paginator = MagicMock()
        paginator.paginate.return_value = pages.get(name, [{}])
        paginators[name] = paginator
        return paginator

    client.get_paginator.side_effect = get_paginator
    return paginators


@pytest.fixture
def mock_cfn_client():
    """CloudFormation 클라이언트 모킹 (기본: 스택 없음)"""
    mock_client = MagicMock()
    set_pages(
        mock_client,
        {
            "list_stacks": [{"StackSummaries": []}],
            "describe_stack_events": [{"StackEvents": []}],
            "list_stack_resources": [{"StackResourceSummaries": []}],
        },
    )
    mock_client.create_stack.return_value = {"StackId": "stack-id-create"}
    mock_client.update_stack.return_value = {"StackId": "stack-id-update"}
    mock_client.validate_template.return_value = {"Parameters": []}

    yield mock_client


@pytest.fixture
def mock_s3_client():
    """S3 클라이언트 모킹 (기본: 빈 버킷)"""
    mock_client = MagicMock()
    mock_client.list_objects_v2.return_value = {"KeyCount": 0}

    yield mock_client


@pytest.fixture
def cfn_gateway(mock_cfn_client):
    from plugins.cloudformation.gateway import CloudFormationGateway

    return CloudFormationGateway(mock_cfn_client)


@pytest.fixture
def storage_gateway(mock_s3_client):
    from plugins.cloudformation.gateway import StorageGateway

    return StorageGateway(mock_s3_client)


# =============================================================================
# 출력 픽스처
# =============================================================================


@pytest.fixture
def console_buffer():
    """색상 없이 출력을 기록하는 rich Console"""
    from rich.console import Console

    buffer = io.StringIO()
    console = Console(file=buffer, width=200, color_system=None, force_terminal=False)
    console.buffer = buffer  # type: ignore[attr-defined]
    return console


@pytest.fixture
def reporter(console_buffer):
    """출력을 문자열로 확인할 수 있는 ConsoleReporter (확인 프롬프트는 자동 동의)"""
    from cli.ui.console import ConsoleReporter

    rep = ConsoleReporter(console_buffer, assume_yes=True)
    rep.output = lambda: console_buffer.buffer.getvalue()  # type: ignore[attr-defined]
    return rep


# =============================================================================
# 프로젝트 픽스처
# =============================================================================


@pytest.fixture
def stack_project(tmp_path):
    """cfn.yaml + 템플릿 조각 2개가 있는 프로젝트 디렉토리"""
    template_dir = tmp_path / "cfn"
    template_dir.mkdir()
    (template_dir / "01-base.json").write_text(
        '{"AWSTemplateFormatVersion": "2010-09-09", "Description": "{{ env }} stack"}',
        encoding="utf-8",
    )
    (template_dir / "02-bucket.json").write_text(
        '{"Resources": {"Bucket": {"Type": "AWS::S3::Bucket"}, '
        '"Role": {"Type": "AWS::IAM::Role"}, "Logs": {"Type": "AWS::S3::Bucket"}}}',
        encoding="utf-8",
    )
    (tmp_path / "cfn.yaml").write_text(
        "stack_name: demo\ncontext:\n  env: prod\n",
        encoding="utf-8",
    )
    return tmp_path


@pytest.fixture
def stack_config(stack_project):
    from core.config import load_stack_config

    return load_stack_config(stack_project / "cfn.yaml")
