"""
plugins/cloudformation/formatter.py - 스택 이벤트/리소스 표시용 변환

원격 레코드(StackEvent, StackResource)를 정렬하고 상태를 분류한
별도의 표시 레코드(EventLine, ResourceRow)로 변환합니다.
원본 레코드는 수정하지 않습니다.

- 이벤트: 시각 오름차순 (안정 정렬)
- 리소스: ResourceType 사전순 (안정 정렬), Logical ID 누락 시 "(unknown)"
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from .models import StackEvent, StackResource
from .status import StatusClass, classify

UNKNOWN_LOGICAL_ID = "(unknown)"


@dataclass(frozen=True)
class EventLine:
    """이벤트 한 줄 표시 레코드"""

    timestamp: str
    status: StatusClass
    resource_type: str
    status_reason: str
    logical_id: str

    @property
    def text(self) -> str:
        """색상 없는 한 줄 텍스트"""
        return f"{self.timestamp} {self.status.status} [{self.resource_type}] {self.status_reason}".rstrip()


@dataclass(frozen=True)
class ResourceRow:
    """리소스 표 한 행 표시 레코드"""

    resource_type: str
    logical_id: str
    physical_id: str
    status: StatusClass


def format_timestamp(value: datetime) -> str:
    """로컬 시간대/로케일 형식의 시각 문자열 (쉼표 없음)"""
    if value.tzinfo is not None:
        value = value.astimezone()
    return value.strftime("%x %X").replace(",", "")


def format_events(events: Iterable[StackEvent]) -> list[EventLine]:
    """이벤트를 시각 오름차순으로 정렬하여 표시 레코드로 변환"""
    ordered = sorted(events, key=lambda e: e.timestamp)
    return [
        EventLine(
            timestamp=format_timestamp(event.timestamp),
            status=classify(event.status),
            resource_type=event.resource_type,
            status_reason=event.status_reason or "",
            logical_id=event.logical_id,
        )
        for event in ordered
    ]


def format_resources(resources: Iterable[StackResource]) -> list[ResourceRow]:
    """리소스를 타입순으로 정렬하여 표시 레코드로 변환"""
    ordered = sorted(resources, key=lambda r: r.resource_type)
    return [
        ResourceRow(
            resource_type=resource.resource_type,
            logical_id=resource.logical_id or UNKNOWN_LOGICAL_ID,
            physical_id=resource.physical_id or "",
            status=classify(resource.status),
        )
        for resource in ordered
    ]
