"""
tests/plugins/cloudformation/test_cfn_resolver.py - 배포 작업 결정 테스트
"""

import logging

import pytest

from conftest import make_client_error, make_stack_summary, set_pages
from core.exceptions import RemoteError, StackBlockedError
from plugins.cloudformation.models import STACK_STATUSES, Stack
from plugins.cloudformation.resolver import (
    DeployAction,
    Resolution,
    apply_deployment,
    deploy_stack,
    resolve_action,
)
from plugins.cloudformation.status import classify


def _with_stack(client, status):
    set_pages(client, {"list_stacks": [{"StackSummaries": [make_stack_summary("demo", status)]}]})


class TestResolveAction:
    """resolve_action 정책 테스트"""

    def test_absent_stack_creates(self):
        assert resolve_action(None) == Resolution(DeployAction.CREATE)

    @pytest.mark.parametrize("status", STACK_STATUSES)
    def test_every_status(self, status):
        """모든 상태에 대해 create / update / 차단 중 정확히 하나"""
        resolution = resolve_action(Stack(name="demo", status=status))

        if status == "DELETE_COMPLETE":
            assert resolution.action is DeployAction.CREATE
        elif status in ("CREATE_COMPLETE", "UPDATE_COMPLETE"):
            assert resolution.action is DeployAction.UPDATE
        else:
            assert resolution.blocked
            assert resolution.reason == status

    @pytest.mark.parametrize(
        "status",
        ["UPDATE_COMPLETE_CLEANUP_IN_PROGRESS", "UPDATE_ROLLBACK_COMPLETE", "IMPORT_COMPLETE", "SOMETHING_NEW", ""],
    )
    def test_suffix_lookalikes_blocked(self, status):
        """정확히 일치하는 상태만 업데이트 허용"""
        assert resolve_action(Stack(name="demo", status=status)).blocked

    @pytest.mark.parametrize("status", STACK_STATUSES)
    def test_classifier_blocks_update(self, status):
        """변경을 막는 상태로 분류되면 UPDATE가 나오지 않음"""
        resolution = resolve_action(Stack(name="demo", status=status))
        if classify(status).blocks_mutation and status != "DELETE_COMPLETE":
            assert resolution.blocked


class TestDeployStack:
    """deploy_stack 원격 호출 테스트"""

    def test_create_when_absent(self, mock_cfn_client, cfn_gateway):
        action = deploy_stack(cfn_gateway, "demo", "{}")

        assert action is DeployAction.CREATE
        mock_cfn_client.create_stack.assert_called_once_with(
            StackName="demo", TemplateBody="{}", Capabilities=["CAPABILITY_IAM"]
        )
        mock_cfn_client.update_stack.assert_not_called()

    def test_create_after_delete(self, mock_cfn_client, cfn_gateway):
        _with_stack(mock_cfn_client, "DELETE_COMPLETE")

        assert deploy_stack(cfn_gateway, "demo", "{}") is DeployAction.CREATE
        mock_cfn_client.create_stack.assert_called_once()

    def test_update_when_complete(self, mock_cfn_client, cfn_gateway):
        _with_stack(mock_cfn_client, "UPDATE_COMPLETE")

        action = deploy_stack(cfn_gateway, "demo", "{}", capabilities=("CAPABILITY_NAMED_IAM",))

        assert action is DeployAction.UPDATE
        mock_cfn_client.update_stack.assert_called_once_with(
            StackName="demo", TemplateBody="{}", Capabilities=["CAPABILITY_NAMED_IAM"]
        )
        mock_cfn_client.create_stack.assert_not_called()

    def test_blocked_makes_no_mutation(self, mock_cfn_client, cfn_gateway):
        _with_stack(mock_cfn_client, "UPDATE_ROLLBACK_FAILED")

        with pytest.raises(StackBlockedError) as exc_info:
            deploy_stack(cfn_gateway, "demo", "{}")

        assert exc_info.value.status == "UPDATE_ROLLBACK_FAILED"
        mock_cfn_client.create_stack.assert_not_called()
        mock_cfn_client.update_stack.assert_not_called()

    def test_blocked_logs_category(self, mock_cfn_client, cfn_gateway, caplog):
        _with_stack(mock_cfn_client, "UPDATE_ROLLBACK_COMPLETE")

        with caplog.at_level(logging.INFO, logger="plugins.cloudformation.resolver"):
            with pytest.raises(StackBlockedError):
                deploy_stack(cfn_gateway, "demo", "{}")

        assert "배포 차단: demo (complete)" in caplog.text

    def test_lookup_failure_propagates(self, mock_cfn_client, cfn_gateway):
        mock_cfn_client.get_paginator.side_effect = make_client_error("ExpiredToken")

        with pytest.raises(RemoteError):
            deploy_stack(cfn_gateway, "demo", "{}")
        mock_cfn_client.create_stack.assert_not_called()

    def test_create_failure_not_retried(self, mock_cfn_client, cfn_gateway):
        mock_cfn_client.create_stack.side_effect = make_client_error("AlreadyExistsException")

        with pytest.raises(RemoteError):
            deploy_stack(cfn_gateway, "demo", "{}")
        assert mock_cfn_client.create_stack.call_count == 1


class TestApplyDeployment:
    def test_returns_stack_id(self, cfn_gateway):
        assert apply_deployment(cfn_gateway, DeployAction.CREATE, "demo", "{}") == "stack-id-create"
        assert apply_deployment(cfn_gateway, DeployAction.UPDATE, "demo", "{}") == "stack-id-update"
