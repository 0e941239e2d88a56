"""
core/config.py - 중앙 설정 관리

기본값(Settings), 환경변수 헬퍼, 로그 설정, 그리고 프로젝트별
cfn.yaml 설정(StackConfig)을 관리합니다.

우선순위:
    CLI 옵션 > 환경변수(CFN_*) > cfn.yaml > Settings 기본값

Usage:
    from core.config import load_stack_config, settings

    config = load_stack_config("cfn.yaml", stack_name="demo")
    print(config.output_path)  # build/cfn/demo.json

cfn.yaml 예시:
    stack_name: demo
    template_dir: cfn
    build_dir: build/cfn
    capabilities: [CAPABILITY_IAM]
    context:
      env: prod
    merge:
      indent: 2
    timeouts:
      connect: 10
      read: 30
      operation: 120
    reconcile:
      - file: config/app.json
        path: /resources
        key_transform: identity
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from importlib import metadata
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from core.exceptions import ConfigError

logger = logging.getLogger(__name__)

PACKAGE_NAME = "cfn-stack"


@dataclass(frozen=True)
class Settings:
    """애플리케이션 기본 설정 (불변)"""

    DEFAULT_REGION: str = "ap-northeast-2"
    CONFIG_FILE: str = "cfn.yaml"
    TEMPLATE_DIR: str = "cfn"
    BUILD_DIR: str = "build/cfn"
    CAPABILITIES: tuple[str, ...] = ("CAPABILITY_IAM",)
    JSON_INDENT: int = 2

    # 원격 호출 타임아웃 (초). 재시도는 하지 않음
    API_CONNECT_TIMEOUT: int = 10
    API_READ_TIMEOUT: int = 30
    OPERATION_TIMEOUT: int = 120

    MAX_WORKERS: int = 8


settings = Settings()


# =============================================================================
# 프로젝트 경로 / 버전
# =============================================================================


def get_project_root() -> Path:
    """프로젝트 루트 경로 (core/ 상위 디렉토리)"""
    return Path(__file__).resolve().parent.parent


def get_version() -> str:
    """버전 문자열 반환

    version.txt를 우선 사용하고, 설치된 패키지 메타데이터로 폴백합니다.
    """
    version_file = get_project_root() / "version.txt"
    if version_file.exists():
        return version_file.read_text(encoding="utf-8").strip()

    try:
        return metadata.version(PACKAGE_NAME)
    except metadata.PackageNotFoundError:
        return "0.0.0"


# =============================================================================
# 환경변수 헬퍼
# =============================================================================


def get_default_region() -> str:
    """AWS_REGION → AWS_DEFAULT_REGION → 기본 리전"""
    return os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION") or settings.DEFAULT_REGION


# =============================================================================
# 로그 설정
# =============================================================================


@dataclass
class LogConfig:
    """로그 설정"""

    level: str = "WARNING"
    date_format: str = "[%X]"

    @classmethod
    def from_env(cls) -> LogConfig:
        """LOG_LEVEL / LOG_DATE_FORMAT 환경변수에서 로드"""
        default = cls()
        return cls(
            level=os.environ.get("LOG_LEVEL", default.level).upper(),
            date_format=os.environ.get("LOG_DATE_FORMAT", default.date_format),
        )


# =============================================================================
# 스택 설정 (cfn.yaml)
# =============================================================================


@dataclass(frozen=True)
class Timeouts:
    """원격 호출 타임아웃 (초)"""

    connect: int = settings.API_CONNECT_TIMEOUT
    read: int = settings.API_READ_TIMEOUT
    operation: int = settings.OPERATION_TIMEOUT


@dataclass(frozen=True)
class ReconcileTarget:
    """Physical ID를 기록할 외부 JSON 설정 파일

    Attributes:
        file: JSON 파일 경로
        path: 대상 객체를 가리키는 JSON Pointer (RFC 6901, 예: "/resources")
        key_transform: Logical ID → 키 변환 이름 (identity, lower, upper, ...)
    """

    file: Path
    path: str = ""
    key_transform: str = "identity"


@dataclass(frozen=True)
class StackConfig:
    """단일 스택 프로젝트 설정"""

    stack_name: str
    base_dir: Path = field(default_factory=Path.cwd)
    template_dir: Path = Path(settings.TEMPLATE_DIR)
    build_dir: Path = Path(settings.BUILD_DIR)
    context: dict[str, Any] = field(default_factory=dict)
    indent: int = settings.JSON_INDENT
    capabilities: tuple[str, ...] = settings.CAPABILITIES
    region: str | None = None
    profile: str | None = None
    timeouts: Timeouts = field(default_factory=Timeouts)
    reconcile: tuple[ReconcileTarget, ...] = ()

    @property
    def output_path(self) -> Path:
        """빌드 결과 템플릿 경로 (<build_dir>/<stack_name>.json)"""
        return self.build_dir / f"{self.stack_name}.json"

    @classmethod
    def from_dict(cls, data: dict[str, Any], base_dir: Path | None = None) -> StackConfig:
        """딕셔너리(cfn.yaml 내용)에서 생성

        상대 경로는 base_dir 기준으로 해석합니다.

        Raises:
            ConfigError: 필수 값 누락 또는 타입 오류
        """
        base = (base_dir or Path.cwd()).resolve()

        stack_name = data.get("stack_name")
        if not stack_name or not isinstance(stack_name, str):
            raise ConfigError("stack_name", "stack_name이 설정되지 않았습니다")

        context = _as_mapping(data.get("context"), "context")

        merge_opts = _as_mapping(data.get("merge"), "merge")
        indent = _as_int(merge_opts.get("indent", settings.JSON_INDENT), "merge.indent")

        capabilities = data.get("capabilities", list(settings.CAPABILITIES))
        if isinstance(capabilities, str):
            capabilities = [capabilities]
        if not isinstance(capabilities, list):
            raise ConfigError("capabilities", "capabilities는 리스트여야 합니다")

        raw_timeouts = _as_mapping(data.get("timeouts"), "timeouts")
        operation = _as_positive_int(raw_timeouts.get("operation", settings.OPERATION_TIMEOUT), "timeouts.operation")
        read = _as_positive_int(raw_timeouts.get("read", settings.API_READ_TIMEOUT), "timeouts.read")
        if read > operation:
            # 멈춘 호출이 프로세스 종료를 operation보다 오래 붙잡지 않도록
            logger.debug(f"timeouts.read {read}s → {operation}s (timeouts.operation 이하)")
            read = operation
        timeouts = Timeouts(
            connect=_as_positive_int(raw_timeouts.get("connect", settings.API_CONNECT_TIMEOUT), "timeouts.connect"),
            read=read,
            operation=operation,
        )

        targets = []
        for i, item in enumerate(data.get("reconcile") or []):
            if not isinstance(item, dict) or not item.get("file"):
                raise ConfigError(f"reconcile[{i}]", "file 항목이 필요합니다")
            targets.append(
                ReconcileTarget(
                    file=base / item["file"],
                    path=str(item.get("path", "")),
                    key_transform=str(item.get("key_transform", "identity")),
                )
            )

        return cls(
            stack_name=stack_name,
            base_dir=base,
            template_dir=base / data.get("template_dir", settings.TEMPLATE_DIR),
            build_dir=base / data.get("build_dir", settings.BUILD_DIR),
            context=context,
            indent=indent,
            capabilities=tuple(str(c) for c in capabilities),
            region=data.get("region"),
            profile=data.get("profile"),
            timeouts=timeouts,
            reconcile=tuple(targets),
        )


def _as_int(value: Any, key: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(key, f"정수가 아닙니다: {value!r}", cause=e) from e


def _as_positive_int(value: Any, key: str) -> int:
    number = _as_int(value, key)
    if number <= 0:
        raise ConfigError(key, f"0보다 커야 합니다: {number}")
    return number


def _as_mapping(value: Any, key: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(key, f"{key}는 매핑이어야 합니다")
    return value


def _env_timeout() -> int | None:
    """CFN_TIMEOUT 환경변수 (미설정이면 None)

    Raises:
        ConfigError: 정수가 아니거나 0 이하
    """
    value = os.environ.get("CFN_TIMEOUT", "").strip()
    if not value:
        return None
    return _as_positive_int(value, "CFN_TIMEOUT")


def load_stack_config(
    path: str | Path | None = None,
    stack_name: str | None = None,
    region: str | None = None,
    profile: str | None = None,
    timeout: int | None = None,
) -> StackConfig:
    """cfn.yaml을 읽어 StackConfig 생성

    설정 파일이 없으면 빈 설정으로 시작하므로 --stack-name 또는
    CFN_STACK_NAME만으로도 동작합니다.

    Args:
        path: 설정 파일 경로 (None이면 ./cfn.yaml)
        stack_name: 스택 이름 오버라이드
        region: 리전 오버라이드
        profile: 프로파일 오버라이드
        timeout: 전체 작업 타임아웃 오버라이드 (초)

    Raises:
        ConfigError: YAML 파싱 실패, 필수 값 누락, 잘못된 타임아웃
    """
    config_path = Path(path or settings.CONFIG_FILE)
    data: dict[str, Any] = {}

    if config_path.exists():
        try:
            with config_path.open(encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(str(config_path), "YAML 파싱 실패", cause=e) from e
        if loaded is not None and not isinstance(loaded, dict):
            raise ConfigError(str(config_path), "최상위 값은 매핑이어야 합니다")
        data = loaded or {}
        logger.debug(f"설정 파일 로드: {config_path}")
    elif path is not None:
        raise ConfigError(str(config_path), "설정 파일이 존재하지 않습니다")

    env_stack = os.environ.get("CFN_STACK_NAME")
    if stack_name or env_stack:
        data["stack_name"] = stack_name or env_stack
    if region:
        data["region"] = region
    if profile:
        data["profile"] = profile

    operation_timeout = timeout if timeout is not None else _env_timeout()
    if operation_timeout is not None:
        data["timeouts"] = {**_as_mapping(data.get("timeouts"), "timeouts"), "operation": operation_timeout}

    return StackConfig.from_dict(data, base_dir=config_path.resolve().parent)
