"""
plugins/cloudformation/template.py - 템플릿 빌드 (렌더링 + 병합)

template_dir 아래의 **/*.json 조각을 변수 치환 후 하나의 JSON 문서로 병합하여
<build_dir>/<stack_name>.json으로 기록합니다.

- 치환: Jinja2 ({{ env }} 형식, 정의되지 않은 변수는 빈 문자열)
- 병합: 파일 경로 사전순, 객체는 재귀 병합, 그 외 값은 뒤 파일이 덮어씀
- 빌드 결과는 이후 validate/deploy에서 불투명한 텍스트로 취급
"""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import jinja2

from core.config import StackConfig
from core.exceptions import BuildError

logger = logging.getLogger(__name__)

_ENV = jinja2.Environment(
    autoescape=False,
    keep_trailing_newline=True,
    undefined=jinja2.Undefined,
)


def discover_templates(template_dir: Path) -> list[Path]:
    """템플릿 조각 파일 목록 (경로 사전순)"""
    if not template_dir.is_dir():
        raise BuildError(str(template_dir), "템플릿 디렉토리가 존재하지 않습니다")
    return sorted(p for p in template_dir.rglob("*.json") if p.is_file())


def render_template(text: str, context: dict[str, Any], source: str = "<string>") -> str:
    """변수 치환

    Raises:
        BuildError: 템플릿 문법 오류 등
    """
    try:
        return _ENV.from_string(text).render(**context)
    except jinja2.TemplateError as e:
        raise BuildError(source, f"템플릿 렌더링 실패 ({type(e).__name__})", cause=e) from e


def merge_documents(documents: Iterable[Any]) -> dict[str, Any]:
    """JSON 문서 병합 (뒤 문서 우선)"""
    merged: dict[str, Any] = {}
    for document in documents:
        merged = _deep_merge(merged, document)
    return merged


def _deep_merge(base: Any, override: Any) -> Any:
    if isinstance(base, dict) and isinstance(override, dict):
        result = copy.deepcopy(base)
        for key, value in override.items():
            if key in result:
                result[key] = _deep_merge(result[key], value)
            else:
                result[key] = copy.deepcopy(value)
        return result
    return copy.deepcopy(override)


def build_template(config: StackConfig) -> Path:
    """템플릿 빌드

    Args:
        config: StackConfig

    Returns:
        빌드 결과 파일 경로

    Raises:
        BuildError: 템플릿 없음, 렌더링/JSON 파싱 실패, 기록 실패
    """
    sources = discover_templates(config.template_dir)
    if not sources:
        raise BuildError(str(config.template_dir), "*.json 템플릿이 없습니다")

    documents = []
    for source in sources:
        rendered = render_template(source.read_text(encoding="utf-8"), config.context, source=str(source))
        try:
            document = json.loads(rendered)
        except json.JSONDecodeError as e:
            raise BuildError(str(source), f"렌더링 결과가 올바른 JSON이 아닙니다 (line {e.lineno})", cause=e) from e
        if not isinstance(document, dict):
            raise BuildError(str(source), "최상위 값은 JSON 객체여야 합니다")
        documents.append(document)

    merged = merge_documents(documents)
    output = config.output_path
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(merged, indent=config.indent, ensure_ascii=False) + "\n", encoding="utf-8")
    except OSError as e:
        raise BuildError(str(output), "빌드 결과를 기록할 수 없습니다", cause=e) from e

    logger.info(f"템플릿 빌드 완료: {output} ({len(sources)}개 파일)")
    return output


def read_built_template(config: StackConfig) -> str:
    """빌드 결과 템플릿 본문 (UTF-8)"""
    try:
        return config.output_path.read_text(encoding="utf-8")
    except OSError as e:
        raise BuildError(str(config.output_path), "빌드 결과가 없습니다. 먼저 build를 실행하세요", cause=e) from e


def summarize_resource_types(body: str) -> list[str]:
    """템플릿의 Resources.*.Type 목록 (중복 제거, 처음 나온 순서)"""
    try:
        document = json.loads(body)
    except json.JSONDecodeError:
        return []

    resources = document.get("Resources") if isinstance(document, dict) else None
    if not isinstance(resources, dict):
        return []

    types: list[str] = []
    for resource in resources.values():
        resource_type = resource.get("Type") if isinstance(resource, dict) else None
        if resource_type and resource_type not in types:
            types.append(resource_type)
    return types
