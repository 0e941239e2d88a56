"""
plugins/cloudformation/reconciler.py - Physical ID를 외부 JSON 설정 파일에 기록

프로비저닝된 리소스의 Physical ID(버킷 이름, 테이블 이름 등)를
Logical ID를 키로 쓰는 외부 JSON 설정 파일에 덮어씁니다.

대상 파일마다:
    1. JSON 문서 전체 로드
    2. JSON Pointer(RFC 6901)로 대상 객체 해석 (실패 시 ConfigPathError → 로그 후 건너뜀)
    3. 리소스마다 key = key_transform(LogicalId), 대상 객체에 key가 이미 있으면 PhysicalId로 덮어씀
    4. 일치한 키가 하나라도 있으면 문서 전체를 다시 기록 (indent=2)

원격 상태가 같으면 몇 번을 실행해도 같은 바이트의 파일이 나옵니다.
한 파일의 실패는 다른 파일 처리에 영향을 주지 않습니다.

Example:
    targets = [ReconcileTarget(file=Path("config/app.json"), path="/resources")]
    results = reconcile_targets(targets, cfn.list_stack_resources("demo"))
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jsonpointer import JsonPointerException, resolve_pointer

from core.config import ReconcileTarget
from core.exceptions import ConfigError, ConfigPathError

from .models import StackResource

logger = logging.getLogger(__name__)

KeyTransform = Callable[[str], str]


def _lower_first(value: str) -> str:
    return value[:1].lower() + value[1:]


def _snake(value: str) -> str:
    return re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", value).lower()


KEY_TRANSFORMS: dict[str, KeyTransform] = {
    "identity": lambda value: value,
    "lower": str.lower,
    "upper": str.upper,
    "lower_first": _lower_first,
    "snake": _snake,
}


def get_key_transform(name: str | KeyTransform | None) -> KeyTransform:
    """이름 또는 함수로 키 변환 함수 조회 (None이면 identity)

    Raises:
        ConfigError: 등록되지 않은 이름
    """
    if name is None:
        return KEY_TRANSFORMS["identity"]
    if callable(name):
        return name
    try:
        return KEY_TRANSFORMS[name]
    except KeyError as e:
        raise ConfigError(
            "key_transform",
            f"지원하지 않는 변환입니다: {name} (사용 가능: {', '.join(KEY_TRANSFORMS)})",
        ) from e


@dataclass(frozen=True)
class ReconcileResult:
    """파일별 처리 결과"""

    file: Path
    updated: tuple[str, ...] = ()
    written: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _load_document(file: Path) -> Any:
    try:
        with file.open(encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(str(file), "파일이 존재하지 않습니다", cause=e) from e
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(str(file), "JSON 파일을 읽을 수 없습니다", cause=e) from e


def _resolve_target(document: Any, file: Path, path: str) -> dict[str, Any]:
    try:
        target = resolve_pointer(document, path)
    except JsonPointerException as e:
        raise ConfigPathError(str(file), path, "경로를 찾을 수 없습니다", cause=e) from e
    if not isinstance(target, dict):
        raise ConfigPathError(str(file), path, f"대상이 객체가 아닙니다 ({type(target).__name__})")
    return target


def reconcile_file(
    file: Path,
    path: str,
    resources: Sequence[StackResource],
    key_transform: str | KeyTransform | None = None,
    indent: int = 2,
) -> tuple[str, ...]:
    """단일 JSON 파일에 Physical ID 기록

    Args:
        file: JSON 파일 경로
        path: 대상 객체 JSON Pointer ("" 이면 문서 전체)
        resources: 스택 리소스 요약 목록
        key_transform: Logical ID → 키 변환 (이름 또는 함수)
        indent: 출력 들여쓰기

    Returns:
        덮어쓴 키 목록 (비어 있으면 파일을 기록하지 않음)

    Raises:
        ConfigPathError: path 해석 실패
        ConfigError: 파일 읽기/쓰기 실패, 잘못된 key_transform
    """
    transform = get_key_transform(key_transform)
    document = _load_document(file)
    target = _resolve_target(document, file, path)

    updated: list[str] = []
    for resource in resources:
        if not resource.logical_id:
            continue
        key = transform(resource.logical_id)
        if key in target:
            target[key] = resource.physical_id
            updated.append(key)

    if not updated:
        logger.debug(f"일치하는 키 없음: {file}#{path}")
        return ()

    try:
        file.write_text(json.dumps(document, indent=indent, ensure_ascii=False) + "\n", encoding="utf-8")
    except OSError as e:
        raise ConfigError(str(file), "파일을 기록할 수 없습니다", cause=e) from e

    logger.info(f"Physical ID 기록: {file} ({len(updated)}개)")
    return tuple(updated)


def reconcile_targets(
    targets: Iterable[ReconcileTarget],
    resources: Sequence[StackResource],
    indent: int = 2,
) -> list[ReconcileResult]:
    """설정된 모든 대상 파일 처리

    파일별로 독립 처리하며, 실패한 파일은 로그를 남기고 건너뜁니다.
    """
    results: list[ReconcileResult] = []
    for target in targets:
        try:
            updated = reconcile_file(
                target.file,
                target.path,
                resources,
                key_transform=target.key_transform,
                indent=indent,
            )
        except ConfigError as e:
            logger.error(str(e))
            results.append(ReconcileResult(file=target.file, error=str(e)))
            continue
        results.append(ReconcileResult(file=target.file, updated=updated, written=bool(updated)))
    return results
