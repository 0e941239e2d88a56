"""
plugins/cloudformation/models.py - CloudFormation 원격 데이터 모델

API 응답을 읽기 전용 데이터클래스로 변환합니다.
모든 모델은 frozen이며 캐시/영속화 없이 명령 실행마다 새로 조회합니다.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

DELETE_COMPLETE = "DELETE_COMPLETE"
S3_BUCKET_TYPE = "AWS::S3::Bucket"

# CloudFormation StackStatus 전체 목록
STACK_STATUSES: tuple[str, ...] = (
    "CREATE_IN_PROGRESS",
    "CREATE_FAILED",
    "CREATE_COMPLETE",
    "ROLLBACK_IN_PROGRESS",
    "ROLLBACK_FAILED",
    "ROLLBACK_COMPLETE",
    "DELETE_IN_PROGRESS",
    "DELETE_FAILED",
    "DELETE_COMPLETE",
    "UPDATE_IN_PROGRESS",
    "UPDATE_COMPLETE_CLEANUP_IN_PROGRESS",
    "UPDATE_COMPLETE",
    "UPDATE_FAILED",
    "UPDATE_ROLLBACK_IN_PROGRESS",
    "UPDATE_ROLLBACK_FAILED",
    "UPDATE_ROLLBACK_COMPLETE_CLEANUP_IN_PROGRESS",
    "UPDATE_ROLLBACK_COMPLETE",
    "REVIEW_IN_PROGRESS",
    "IMPORT_IN_PROGRESS",
    "IMPORT_COMPLETE",
    "IMPORT_ROLLBACK_IN_PROGRESS",
    "IMPORT_ROLLBACK_FAILED",
    "IMPORT_ROLLBACK_COMPLETE",
)


@dataclass(frozen=True)
class Stack:
    """스택 요약 정보 (list_stacks StackSummaries)"""

    name: str
    status: str
    stack_id: str = ""
    status_reason: str = ""
    description: str = ""
    creation_time: datetime | None = None
    last_updated_time: datetime | None = None

    @property
    def is_deleted(self) -> bool:
        return self.status == DELETE_COMPLETE

    @classmethod
    def from_api(cls, summary: dict[str, Any]) -> Stack:
        return cls(
            name=summary.get("StackName", ""),
            status=summary.get("StackStatus", ""),
            stack_id=summary.get("StackId", ""),
            status_reason=summary.get("StackStatusReason", ""),
            description=summary.get("TemplateDescription", ""),
            creation_time=summary.get("CreationTime"),
            last_updated_time=summary.get("LastUpdatedTime"),
        )


@dataclass(frozen=True)
class StackEvent:
    """스택 이벤트 (describe_stack_events StackEvents)"""

    timestamp: datetime
    logical_id: str
    resource_type: str
    status: str
    status_reason: str = ""
    physical_id: str = ""
    event_id: str = ""

    @classmethod
    def from_api(cls, event: dict[str, Any]) -> StackEvent:
        return cls(
            timestamp=event["Timestamp"],
            logical_id=event.get("LogicalResourceId", ""),
            resource_type=event.get("ResourceType", ""),
            status=event.get("ResourceStatus", ""),
            status_reason=event.get("ResourceStatusReason", ""),
            physical_id=event.get("PhysicalResourceId", ""),
            event_id=event.get("EventId", ""),
        )


@dataclass(frozen=True)
class StackResource:
    """스택 리소스 요약 (list_stack_resources StackResourceSummaries)"""

    logical_id: str
    physical_id: str
    resource_type: str
    status: str
    status_reason: str = ""
    last_updated: datetime | None = None

    @classmethod
    def from_api(cls, summary: dict[str, Any]) -> StackResource:
        return cls(
            logical_id=summary.get("LogicalResourceId", ""),
            physical_id=summary.get("PhysicalResourceId", ""),
            resource_type=summary.get("ResourceType", ""),
            status=summary.get("ResourceStatus", ""),
            status_reason=summary.get("ResourceStatusReason", ""),
            last_updated=summary.get("LastUpdatedTimestamp"),
        )
