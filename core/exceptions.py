"""
core/exceptions.py - 통합 예외 계층 구조

cfn 도구 전체에서 사용되는 예외 클래스들을 정의합니다.
명령(build/deploy/delete 등)은 예외를 그대로 올리고, CLI 계층에서
한 번만 잡아서 색상이 적용된 메시지로 출력합니다.

예외 계층 구조:
    CfnError (베이스)
    ├── RemoteError (AWS API 호출 실패, 재시도 없음)
    │   ├── TemplateValidationError
    │   └── RemoteTimeoutError
    ├── StackNotFoundError (스택 없음 - 명령에 따라 정상 상태일 수 있음)
    ├── StackBlockedError (현재 상태에서 요청한 작업 불가)
    ├── GuardDeniedError (데이터가 남은 S3 버킷으로 삭제 차단)
    ├── ConfigError (cfn.yaml 설정 오류)
    │   └── ConfigPathError (JSON Pointer 해석 실패)
    ├── BuildError (템플릿 렌더링/병합 실패)
    └── UserCancelError (사용자가 확인 프롬프트에서 취소)

Usage:
    from core.exceptions import RemoteError

    try:
        cfn.list_stacks()
    except ClientError as e:
        raise RemoteError.from_client_error("cloudformation", "list_stacks", e) from e
"""

from typing import Any, Dict, Optional

# =============================================================================
# 베이스 예외
# =============================================================================


class CfnError(Exception):
    """cfn 기본 예외 클래스

    모든 커스텀 예외의 베이스 클래스입니다.

    Attributes:
        message: 에러 메시지
        cause: 원인 예외 (체이닝용)
        details: 추가 상세 정보
    """

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details = details or {}

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """예외 정보를 딕셔너리로 반환"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "cause": str(self.cause) if self.cause else None,
            "details": self.details,
        }


# =============================================================================
# 원격 호출 관련 예외
# =============================================================================


class RemoteError(CfnError):
    """AWS API 호출 관련 예외

    boto3/botocore의 ClientError를 래핑합니다. 재시도하지 않고 즉시 호출자에게 전달됩니다.
    """

    def __init__(
        self,
        service: str,
        operation: str,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        message = f"{service}.{operation}"
        if error_code:
            message = f"{message} 실패 ({error_code})"
        else:
            message = f"{message} 실패"
        if error_message:
            message = f"{message}: {error_message}"

        super().__init__(message, cause)
        self.service = service
        self.operation = operation
        self.error_code = error_code
        self.error_message = error_message
        self.details.update(
            {
                "service": service,
                "operation": operation,
                "error_code": error_code,
            }
        )

    def __str__(self) -> str:
        # 에러 코드/메시지가 이미 message에 포함됨
        return self.message

    @classmethod
    def from_client_error(
        cls,
        service: str,
        operation: str,
        client_error: Exception,
    ) -> "RemoteError":
        """botocore.exceptions.ClientError로부터 생성

        Args:
            service: AWS 서비스 이름
            operation: API 작업 이름
            client_error: ClientError (또는 BotoCoreError) 예외

        Returns:
            RemoteError 인스턴스
        """
        error_code = None
        error_message = None

        if hasattr(client_error, "response"):
            error_info = client_error.response.get("Error", {})
            error_code = error_info.get("Code")
            error_message = error_info.get("Message")
        else:
            error_message = str(client_error)

        return cls(
            service=service,
            operation=operation,
            error_code=error_code,
            error_message=error_message,
            cause=client_error,
        )


class TemplateValidationError(RemoteError):
    """CloudFormation이 템플릿을 유효하지 않다고 판단한 경우

    일반 원격 오류와 구분되어 배포 파이프라인을 중단시킵니다.
    """

    def __init__(self, error_message: str, cause: Optional[Exception] = None):
        super().__init__(
            service="cloudformation",
            operation="validate_template",
            error_code="ValidationError",
            error_message=error_message,
            cause=cause,
        )


class RemoteTimeoutError(RemoteError):
    """병렬 원격 호출 묶음이 제한 시간 안에 끝나지 않은 경우"""

    def __init__(self, operation: str, timeout: float):
        super().__init__(
            service="parallel",
            operation=operation,
            error_code="Timeout",
            error_message=f"{timeout:g}초 안에 완료되지 않았습니다",
        )
        self.timeout = timeout
        self.details["timeout"] = timeout


# =============================================================================
# 스택 상태 관련 예외
# =============================================================================


class StackNotFoundError(CfnError):
    """스택이 존재하지 않음"""

    def __init__(self, stack_name: str):
        super().__init__(f"스택이 존재하지 않습니다: {stack_name}")
        self.stack_name = stack_name
        self.details["stack_name"] = stack_name


class StackBlockedError(CfnError):
    """스택이 요청한 작업을 허용하지 않는 상태"""

    def __init__(self, stack_name: str, status: str, action: str = "deploy"):
        super().__init__(f'스택 "{stack_name}"은(는) 현재 {status} 상태이므로 {action}할 수 없습니다')
        self.stack_name = stack_name
        self.status = status
        self.action = action
        self.details.update({"stack_name": stack_name, "status": status, "action": action})


class GuardDeniedError(CfnError):
    """데이터가 남아 있는 S3 버킷 때문에 스택 삭제가 차단됨"""

    def __init__(self, stack_name: str, bucket: str):
        super().__init__(f'스택 "{stack_name}" 삭제 불가: 버킷 {bucket}에 객체가 남아 있습니다. 먼저 버킷을 비우세요')
        self.stack_name = stack_name
        self.bucket = bucket
        self.details.update({"stack_name": stack_name, "bucket": bucket})


# =============================================================================
# 설정/빌드 관련 예외
# =============================================================================


class ConfigError(CfnError):
    """설정 관련 예외"""

    def __init__(
        self,
        key: str,
        message: str,
        cause: Optional[Exception] = None,
    ):
        full_message = f"설정 오류 [{key}]: {message}"
        super().__init__(full_message, cause)
        self.config_key = key
        self.details["config_key"] = key


class ConfigPathError(ConfigError):
    """JSON Pointer가 대상 문서에서 해석되지 않음"""

    def __init__(self, file: str, path: str, reason: str, cause: Optional[Exception] = None):
        super().__init__(key=f"{file}#{path}", message=reason, cause=cause)
        self.file = file
        self.path = path
        self.details.update({"file": file, "path": path})


class BuildError(CfnError):
    """템플릿 빌드(렌더링/병합) 실패"""

    def __init__(self, source: str, message: str, cause: Optional[Exception] = None):
        super().__init__(f"빌드 오류 [{source}]: {message}", cause)
        self.source = source
        self.details["source"] = source


class UserCancelError(CfnError):
    """사용자가 작업을 취소한 경우"""

    def __init__(self, action: str = "unknown"):
        super().__init__(f"사용자가 취소했습니다 [{action}]")
        self.action = action


# =============================================================================
# 예외 유틸리티 함수
# =============================================================================


def get_error_code(error: Exception) -> str:
    """예외 객체에서 에러 코드 문자열 추출

    ClientError의 경우 response에서 Code를 추출하고,
    그 외에는 예외 클래스명을 반환합니다.
    """
    if isinstance(error, RemoteError) and error.error_code:
        return error.error_code

    response = getattr(error, "response", None)
    if response is not None:
        code: str = response.get("Error", {}).get("Code", "Unknown")
        return code
    return error.__class__.__name__


def is_not_found(error: Exception) -> bool:
    """리소스를 찾을 수 없는 오류인지 확인

    S3 버킷이 이미 삭제된 경우(NoSuchBucket)도 포함합니다.
    """
    return get_error_code(error) in {
        "ResourceNotFoundException",
        "NotFoundException",
        "NoSuchEntity",
        "NoSuchBucket",
    }


def format_error_for_user(error: Exception) -> str:
    """사용자에게 표시할 에러 메시지 포맷팅

    Args:
        error: 예외

    Returns:
        사용자 친화적인 에러 메시지
    """
    friendly_messages = {
        "AccessDenied": "권한이 없습니다. IAM 정책을 확인하세요.",
        "ExpiredToken": "인증 토큰이 만료되었습니다. 다시 로그인하세요.",
        "InvalidClientTokenId": "잘못된 자격 증명입니다.",
        "Throttling": "요청이 너무 많습니다. 잠시 후 다시 시도하세요.",
    }

    if isinstance(error, RemoteError):
        if error.error_code in friendly_messages:
            return f"{error.message} ({friendly_messages[error.error_code]})"
        return str(error)

    if isinstance(error, CfnError):
        # 커스텀 예외는 이미 포맷팅됨
        return str(error)

    # boto3 ClientError
    if hasattr(error, "response"):
        error_info = error.response.get("Error", {})
        code = error_info.get("Code", "UnknownError")
        message = error_info.get("Message", str(error))
        return friendly_messages.get(code, f"{code}: {message}")

    return str(error)
