# cli/ui - 콘솔 출력 컴포넌트 (rich, questionary)
"""
콘솔 출력 모듈

CLI 전용 출력/확인 프롬프트 컴포넌트
"""

from .console import THEME, ConsoleReporter, configure_logging, get_console

__all__: list[str] = [
    "THEME",
    "ConsoleReporter",
    "configure_logging",
    "get_console",
]
