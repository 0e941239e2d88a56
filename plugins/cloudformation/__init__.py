"""
plugins/cloudformation - CloudFormation 스택 관리

단일 스택의 빌드/검증/배포/상태/로그/리소스/삭제, 그리고
Physical ID를 외부 설정 파일에 기록하는 reconcile 기능을 제공합니다.

## 구성
- status: 상태 문자열 분류 (제어용 category + 표시용 display)
- gateway: CloudFormation/S3 원격 호출 래퍼, 스택 조회
- resolver: 배포 작업 결정 (create / update / 차단)
- guard: 삭제 전 S3 버킷 검사
- formatter: 이벤트/리소스 표시 레코드 변환
- reconciler: Physical ID → JSON 설정 파일
- template: 템플릿 렌더링/병합
- tasks: CLI 명령 구현
"""

from .gateway import CloudFormationGateway, StorageGateway
from .guard import DeleteDecision, check_delete
from .models import Stack, StackEvent, StackResource
from .resolver import DeployAction, Resolution, deploy_stack, resolve_action
from .status import DisplayLevel, StatusCategory, StatusClass, classify

__all__ = [
    "CloudFormationGateway",
    "StorageGateway",
    "DeleteDecision",
    "check_delete",
    "Stack",
    "StackEvent",
    "StackResource",
    "DeployAction",
    "Resolution",
    "deploy_stack",
    "resolve_action",
    "DisplayLevel",
    "StatusCategory",
    "StatusClass",
    "classify",
]
