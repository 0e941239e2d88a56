"""
plugins/cloudformation/status.py - CloudFormation 상태 문자열 분류

스택/리소스 상태 문자열(예: UPDATE_ROLLBACK_IN_PROGRESS)을 두 가지 측면으로 분류합니다.

- category (제어용): 배포/삭제 가능 여부 판단에 사용
- display (표시용): 콘솔 색상 선택에 사용

규칙 (위에서부터 처음 일치하는 규칙 적용):

    | 패턴                 | category    | display |
    |----------------------|-------------|---------|
    | *FAILED              | FAILURE     | ERROR   |
    | ROLLBACK*            | ROLLBACK    | WARN    |
    | *IN_PROGRESS*        | IN_PROGRESS | NOTICE  |
    | *COMPLETE            | COMPLETE    | OK      |
    | 그 외 (미지의 상태)   | OTHER       | INFO    |

ROLLBACK*은 경고 색상으로 표시되지만 제어 측면에서는 실패로 취급합니다.
알 수 없는 상태도 예외 없이 OTHER로 분류되며, 변경 작업은 차단됩니다.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum


class StatusCategory(Enum):
    """상태 카테고리 (제어 흐름용)"""

    FAILURE = "failure"
    ROLLBACK = "rollback"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    OTHER = "other"


class DisplayLevel(Enum):
    """표시 레벨 (색상 선택용)"""

    ERROR = "error"
    WARN = "warn"
    NOTICE = "notice"
    OK = "ok"
    INFO = "info"


@dataclass(frozen=True)
class StatusClass:
    """상태 문자열 분류 결과"""

    status: str
    category: StatusCategory
    display: DisplayLevel

    @property
    def is_idle(self) -> bool:
        """작업이 끝나 다음 작업을 받을 수 있는 상태"""
        return self.category is StatusCategory.COMPLETE

    @property
    def blocks_mutation(self) -> bool:
        """변경 작업(create/update/delete)을 보수적으로 막아야 하는 상태"""
        return not self.is_idle


@dataclass(frozen=True)
class _Rule:
    matches: Callable[[str], bool]
    category: StatusCategory
    display: DisplayLevel


# 순서가 의미를 가짐 (first match wins)
STATUS_RULES: tuple[_Rule, ...] = (
    _Rule(lambda s: s.endswith("FAILED"), StatusCategory.FAILURE, DisplayLevel.ERROR),
    _Rule(lambda s: s.startswith("ROLLBACK"), StatusCategory.ROLLBACK, DisplayLevel.WARN),
    _Rule(lambda s: "IN_PROGRESS" in s, StatusCategory.IN_PROGRESS, DisplayLevel.NOTICE),
    _Rule(lambda s: s.endswith("COMPLETE"), StatusCategory.COMPLETE, DisplayLevel.OK),
)

_FALLBACK = (StatusCategory.OTHER, DisplayLevel.INFO)


def classify(status: str | None) -> StatusClass:
    """상태 문자열 분류

    Args:
        status: CloudFormation 상태 문자열 (None/빈 문자열 허용)

    Returns:
        StatusClass (항상 반환, 예외 없음)
    """
    value = status or ""
    for rule in STATUS_RULES:
        if rule.matches(value):
            return StatusClass(status=value, category=rule.category, display=rule.display)

    category, display = _FALLBACK
    return StatusClass(status=value, category=category, display=display)
