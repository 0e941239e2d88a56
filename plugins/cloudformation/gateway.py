"""
plugins/cloudformation/gateway.py - CloudFormation / S3 원격 호출 래퍼

boto3 client 호출을 감싸서 응답을 모델 데이터클래스로 변환하고,
ClientError를 core.exceptions 예외 계층으로 변환합니다.

- 재시도 없음: 실패는 RemoteError로 즉시 전달
- 목록 조회는 paginator로 전체 페이지 수집
- 스택 조회는 서버측 이름 필터 없이 list_stacks 전체 열거 후 정확히 일치하는 이름 선택

Example:
    import boto3

    session = boto3.Session(profile_name="dev")
    cfn = CloudFormationGateway.from_session(session, region="ap-northeast-2")
    stack = cfn.find_stack("demo")  # 없으면 None
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from botocore.exceptions import BotoCoreError, ClientError

from core.exceptions import RemoteError, TemplateValidationError, is_not_found
from core.parallel import get_client

from .models import Stack, StackEvent, StackResource

if TYPE_CHECKING:
    import boto3

    from core.config import Timeouts

logger = logging.getLogger(__name__)


@contextmanager
def remote_call(service: str, operation: str) -> Iterator[None]:
    """botocore 예외를 RemoteError로 변환하는 컨텍스트 매니저"""
    try:
        yield
    except (ClientError, BotoCoreError) as e:
        logger.debug(f"{service}.{operation} 실패: {e}")
        raise RemoteError.from_client_error(service, operation, e) from e


def _client_kwargs(timeouts: Timeouts | None) -> dict[str, Any]:
    if timeouts is None:
        return {}
    return {"connect_timeout": timeouts.connect, "read_timeout": timeouts.read}


class CloudFormationGateway:
    """CloudFormation API 래퍼"""

    SERVICE = "cloudformation"

    def __init__(self, client: Any):
        self.client = client

    @classmethod
    def from_session(
        cls,
        session: boto3.Session,
        region: str | None = None,
        timeouts: Timeouts | None = None,
    ) -> CloudFormationGateway:
        return cls(get_client(session, cls.SERVICE, region_name=region, **_client_kwargs(timeouts)))

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    def list_stacks(self) -> list[Stack]:
        """계정/리전의 전체 스택 요약 (삭제된 스택 포함)"""
        stacks: list[Stack] = []
        with remote_call(self.SERVICE, "list_stacks"):
            paginator = self.client.get_paginator("list_stacks")
            for page in paginator.paginate():
                stacks.extend(Stack.from_api(s) for s in page.get("StackSummaries", []))
        return stacks

    def find_stack(self, name: str) -> Stack | None:
        """이름이 정확히 일치하는 스택 조회

        삭제 이력으로 같은 이름이 여러 개 있으면 살아있는(DELETE_COMPLETE가 아닌) 스택을 우선합니다.

        Returns:
            Stack 또는 None (스택 없음은 에러가 아님)

        Raises:
            RemoteError: list_stacks 호출 실패
        """
        matches = [s for s in self.list_stacks() if s.name == name]
        if not matches:
            logger.debug(f"스택 없음: {name}")
            return None

        for stack in matches:
            if not stack.is_deleted:
                return stack
        return matches[0]

    def describe_stack_events(self, name: str) -> list[StackEvent]:
        """스택 이벤트 목록 (API 반환 순서 그대로)"""
        events: list[StackEvent] = []
        with remote_call(self.SERVICE, "describe_stack_events"):
            paginator = self.client.get_paginator("describe_stack_events")
            for page in paginator.paginate(StackName=name):
                events.extend(StackEvent.from_api(e) for e in page.get("StackEvents", []))
        return events

    def list_stack_resources(self, name: str) -> list[StackResource]:
        """스택 리소스 요약 목록 (API 반환 순서 그대로)"""
        resources: list[StackResource] = []
        with remote_call(self.SERVICE, "list_stack_resources"):
            paginator = self.client.get_paginator("list_stack_resources")
            for page in paginator.paginate(StackName=name):
                resources.extend(StackResource.from_api(r) for r in page.get("StackResourceSummaries", []))
        return resources

    def validate_template(self, body: str) -> dict[str, Any]:
        """템플릿 검증

        Raises:
            TemplateValidationError: 서비스가 ValidationError로 응답
            RemoteError: 그 외 호출 실패
        """
        try:
            response: dict[str, Any] = self.client.validate_template(TemplateBody=body)
        except ClientError as e:
            error = e.response.get("Error", {})
            if error.get("Code") == "ValidationError":
                raise TemplateValidationError(error.get("Message", str(e)), cause=e) from e
            raise RemoteError.from_client_error(self.SERVICE, "validate_template", e) from e
        except BotoCoreError as e:
            raise RemoteError.from_client_error(self.SERVICE, "validate_template", e) from e
        return response

    # -------------------------------------------------------------------------
    # 변경 (비동기 - 완료 여부는 status로 확인)
    # -------------------------------------------------------------------------

    def create_stack(self, name: str, body: str, capabilities: Sequence[str]) -> str:
        with remote_call(self.SERVICE, "create_stack"):
            response = self.client.create_stack(
                StackName=name,
                TemplateBody=body,
                Capabilities=list(capabilities),
            )
        return str(response.get("StackId", ""))

    def update_stack(self, name: str, body: str, capabilities: Sequence[str]) -> str:
        with remote_call(self.SERVICE, "update_stack"):
            response = self.client.update_stack(
                StackName=name,
                TemplateBody=body,
                Capabilities=list(capabilities),
            )
        return str(response.get("StackId", ""))

    def delete_stack(self, name: str) -> None:
        with remote_call(self.SERVICE, "delete_stack"):
            self.client.delete_stack(StackName=name)


class StorageGateway:
    """S3 API 래퍼 (삭제 전 버킷 검사용)"""

    SERVICE = "s3"

    def __init__(self, client: Any):
        self.client = client

    @classmethod
    def from_session(
        cls,
        session: boto3.Session,
        region: str | None = None,
        timeouts: Timeouts | None = None,
    ) -> StorageGateway:
        return cls(get_client(session, cls.SERVICE, region_name=region, **_client_kwargs(timeouts)))

    def has_objects(self, bucket: str) -> bool:
        """버킷에 객체가 1개 이상 있는지 확인 (MaxKeys=1)

        버킷이 이미 없으면(NoSuchBucket) 비어 있는 것으로 취급합니다.

        Raises:
            RemoteError: NoSuchBucket 외의 호출 실패
        """
        try:
            response = self.client.list_objects_v2(Bucket=bucket, MaxKeys=1)
        except ClientError as e:
            if is_not_found(e):
                logger.debug(f"버킷이 이미 삭제됨: {bucket}")
                return False
            raise RemoteError.from_client_error(self.SERVICE, "list_objects_v2", e) from e
        except BotoCoreError as e:
            raise RemoteError.from_client_error(self.SERVICE, "list_objects_v2", e) from e

        return bool(response.get("KeyCount") or response.get("Contents"))
