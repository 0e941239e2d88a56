# core/__init__.py
"""
core - cfn 공용 인프라

아키텍처:
    core/
    ├── parallel/       # boto3 client 생성, 독립 원격 호출 병렬 실행
    ├── config.py       # 기본값, 환경변수, cfn.yaml 설정
    └── exceptions.py   # 통합 예외 계층

Usage:
    # 설정 사용
    from core.config import load_stack_config, settings
    config = load_stack_config("cfn.yaml")

    # 예외 처리
    from core.exceptions import RemoteError, is_not_found
"""

from core import config, exceptions, parallel

__all__: list[str] = [
    # 서브패키지
    "parallel",
    # 모듈
    "config",
    "exceptions",
]
