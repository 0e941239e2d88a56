"""
tests/plugins/cloudformation/test_cfn_tasks.py - cfn 명령 구현 테스트

게이트웨이는 MagicMock 클라이언트로, 출력은 문자열 버퍼 콘솔로 확인합니다.
"""

import json
from dataclasses import replace

import pytest

from conftest import make_client_error, make_event, make_resource, make_stack_summary, set_pages
from core.config import ReconcileTarget
from core.exceptions import GuardDeniedError, StackBlockedError, StackNotFoundError, TemplateValidationError
from plugins.cloudformation import tasks
from plugins.cloudformation.resolver import DeployAction


DELETED_STACK_ID = make_stack_summary("demo")["StackId"]


def _stack(client, status="CREATE_COMPLETE", reason="", events=(), resources=()):
    summary = make_stack_summary("demo", status)
    if reason:
        summary["StackStatusReason"] = reason
    return set_pages(
        client,
        {
            "list_stacks": [{"StackSummaries": [summary]}],
            "describe_stack_events": [{"StackEvents": list(events)}],
            "list_stack_resources": [{"StackResourceSummaries": list(resources)}],
        },
    )


class TestBuildValidate:
    def test_build(self, stack_config, reporter):
        output = tasks.build(stack_config, reporter)

        assert output.exists()
        assert "[ok]" in reporter.output()

    def test_validate(self, stack_config, cfn_gateway, mock_cfn_client, reporter):
        body = tasks.validate(stack_config, cfn_gateway, reporter)

        mock_cfn_client.validate_template.assert_called_once_with(TemplateBody=body)
        assert json.loads(body)["Description"] == "prod stack"


class TestDeploy:
    """deploy 순서 테스트"""

    def test_create(self, stack_config, cfn_gateway, mock_cfn_client, reporter):
        action = tasks.deploy(stack_config, cfn_gateway, reporter)

        assert action is DeployAction.CREATE
        body = stack_config.output_path.read_text(encoding="utf-8")
        mock_cfn_client.create_stack.assert_called_once_with(
            StackName="demo", TemplateBody=body, Capabilities=["CAPABILITY_IAM"]
        )
        assert "생성 진행 중" in reporter.output()

    def test_update(self, stack_config, cfn_gateway, mock_cfn_client, reporter):
        _stack(mock_cfn_client, "UPDATE_COMPLETE")

        assert tasks.deploy(stack_config, cfn_gateway, reporter) is DeployAction.UPDATE
        mock_cfn_client.update_stack.assert_called_once()

    def test_blocked_before_build(self, stack_config, cfn_gateway, mock_cfn_client, reporter):
        """차단 상태면 빌드/검증/변경 호출 없음"""
        _stack(mock_cfn_client, "UPDATE_IN_PROGRESS")

        with pytest.raises(StackBlockedError):
            tasks.deploy(stack_config, cfn_gateway, reporter)

        assert not stack_config.output_path.exists()
        mock_cfn_client.validate_template.assert_not_called()
        mock_cfn_client.create_stack.assert_not_called()
        mock_cfn_client.update_stack.assert_not_called()

    def test_invalid_template_no_mutation(self, stack_config, cfn_gateway, mock_cfn_client, reporter):
        mock_cfn_client.validate_template.side_effect = make_client_error("ValidationError", "Unresolved resource")

        with pytest.raises(TemplateValidationError):
            tasks.deploy(stack_config, cfn_gateway, reporter)
        mock_cfn_client.create_stack.assert_not_called()


class TestStatus:
    def test_status(self, stack_config, cfn_gateway, mock_cfn_client, reporter):
        _stack(mock_cfn_client, "UPDATE_ROLLBACK_COMPLETE", reason="User Initiated")

        stack = tasks.status(stack_config, cfn_gateway, reporter)

        output = reporter.output()
        assert stack.status == "UPDATE_ROLLBACK_COMPLETE"
        assert "UPDATE_ROLLBACK_COMPLETE" in output
        assert "User Initiated" in output
        assert "cfn log" in output

    def test_not_found(self, stack_config, cfn_gateway, reporter):
        with pytest.raises(StackNotFoundError):
            tasks.status(stack_config, cfn_gateway, reporter)


class TestLog:
    def test_events_in_time_order(self, stack_config, cfn_gateway, mock_cfn_client, reporter):
        _stack(
            mock_cfn_client,
            events=[
                make_event(3, logical_id="Third", resource_type="AWS::Three"),
                make_event(1, status="CREATE_IN_PROGRESS", resource_type="AWS::One"),
                make_event(2, status="CREATE_FAILED", resource_type="AWS::Two", reason="Access denied"),
            ],
        )

        lines = tasks.log(stack_config, cfn_gateway, reporter)

        assert [line.resource_type for line in lines] == ["AWS::One", "AWS::Two", "AWS::Three"]
        output = reporter.output()
        assert output.index("[AWS::One]") < output.index("[AWS::Two]") < output.index("[AWS::Three]")
        assert "Access denied" in output

    def test_no_events(self, stack_config, cfn_gateway, mock_cfn_client, reporter):
        _stack(mock_cfn_client)
        assert tasks.log(stack_config, cfn_gateway, reporter) == []
        assert "[info]" in reporter.output()

    def test_deleted_stack_uses_stack_id(self, stack_config, cfn_gateway, mock_cfn_client, reporter):
        """삭제된 스택은 이름 대신 StackId로 이벤트 조회"""
        paginators = _stack(mock_cfn_client, status="DELETE_COMPLETE", events=[make_event(1)])

        lines = tasks.log(stack_config, cfn_gateway, reporter)

        assert len(lines) == 1
        paginators["describe_stack_events"].paginate.assert_called_once_with(StackName=DELETED_STACK_ID)


class TestResources:
    def test_table(self, stack_config, cfn_gateway, mock_cfn_client, reporter):
        _stack(
            mock_cfn_client,
            resources=[
                make_resource("Topic", "arn:topic", "AWS::SNS::Topic"),
                make_resource(None, "demo-bucket-1", "AWS::S3::Bucket"),
            ],
        )

        rows = tasks.resources(stack_config, cfn_gateway, reporter)

        assert [row.resource_type for row in rows] == ["AWS::S3::Bucket", "AWS::SNS::Topic"]
        output = reporter.output()
        assert "(unknown)" in output
        assert "demo-bucket-1" in output
        assert "Logical ID" in output

    def test_deleted_stack_uses_stack_id(self, stack_config, cfn_gateway, mock_cfn_client, reporter):
        paginators = _stack(mock_cfn_client, status="DELETE_COMPLETE")

        tasks.resources(stack_config, cfn_gateway, reporter)

        paginators["list_stack_resources"].paginate.assert_called_once_with(StackName=DELETED_STACK_ID)

    def test_live_stack_uses_name(self, stack_config, cfn_gateway, mock_cfn_client, reporter):
        paginators = _stack(mock_cfn_client)

        tasks.resources(stack_config, cfn_gateway, reporter)

        paginators["list_stack_resources"].paginate.assert_called_once_with(StackName="demo")


class TestDelete:
    def test_delete(self, stack_config, cfn_gateway, storage_gateway, mock_cfn_client, reporter):
        _stack(mock_cfn_client, resources=[make_resource("Bucket", "b-1")])

        assert tasks.delete(stack_config, cfn_gateway, storage_gateway, reporter) is True
        mock_cfn_client.delete_stack.assert_called_once_with(StackName="demo")
        assert "[notice]" in reporter.output()

    def test_cancelled(self, stack_config, cfn_gateway, storage_gateway, mock_cfn_client, reporter):
        _stack(mock_cfn_client)
        reporter.assume_yes = False
        reporter.confirm = lambda message: False

        assert tasks.delete(stack_config, cfn_gateway, storage_gateway, reporter) is False
        mock_cfn_client.delete_stack.assert_not_called()

    def test_guard_denied(self, stack_config, cfn_gateway, storage_gateway, mock_cfn_client, mock_s3_client, reporter):
        _stack(mock_cfn_client, resources=[make_resource("Bucket", "b-1")])
        mock_s3_client.list_objects_v2.return_value = {"KeyCount": 1}

        with pytest.raises(GuardDeniedError):
            tasks.delete(stack_config, cfn_gateway, storage_gateway, reporter)
        mock_cfn_client.delete_stack.assert_not_called()


class TestReconcile:
    def test_no_targets(self, stack_config, cfn_gateway, reporter):
        assert tasks.reconcile(stack_config, cfn_gateway, reporter) == []
        assert "[warn]" in reporter.output()

    def test_reconcile(self, stack_project, stack_config, cfn_gateway, mock_cfn_client, reporter):
        good = stack_project / "app.json"
        good.write_text('{"resources": {"Bucket": ""}}', encoding="utf-8")
        bad = stack_project / "bad.json"
        bad.write_text("{}", encoding="utf-8")
        config = replace(
            stack_config,
            reconcile=(ReconcileTarget(file=bad, path="/nope"), ReconcileTarget(file=good, path="/resources")),
        )
        _stack(mock_cfn_client, resources=[make_resource("Bucket", "demo-bucket-1")])

        results = tasks.reconcile(config, cfn_gateway, reporter)

        assert [r.ok for r in results] == [False, True]
        assert json.loads(good.read_text(encoding="utf-8")) == {"resources": {"Bucket": "demo-bucket-1"}}
        output = reporter.output()
        assert "건너뜀" in output
        assert "1개 키 갱신" in output
