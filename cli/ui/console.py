"""
cli/ui/console.py - Rich 콘솔 출력

명령 출력은 모두 ConsoleReporter를 통해 나갑니다. 전역 콘솔 대신
CLI 진입점에서 만든 인스턴스를 각 명령 함수에 명시적으로 전달합니다.

테마 (DisplayLevel → 색상):
    error=red, warn=yellow, notice=cyan, ok=green, info=blue
"""

from __future__ import annotations

import logging
import platform
from collections.abc import Sequence

import questionary
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from plugins.cloudformation.formatter import EventLine, ResourceRow
from plugins.cloudformation.status import DisplayLevel, StatusClass

# botocore 노이즈 로그 제한
NOISY_LOGGERS = (
    "botocore",
    "boto3",
    "urllib3",
)

THEME: dict[DisplayLevel, str] = {
    DisplayLevel.ERROR: "red",
    DisplayLevel.WARN: "yellow",
    DisplayLevel.NOTICE: "cyan",
    DisplayLevel.OK: "green",
    DisplayLevel.INFO: "blue",
}


def get_console(stderr: bool = False) -> Console:
    """Rich Console 인스턴스를 생성하고 반환합니다."""
    is_windows = platform.system().lower() == "windows"

    return Console(
        color_system="auto",
        highlight=False,
        soft_wrap=True,
        emoji=not is_windows,
        stderr=stderr,
    )


def configure_logging(console: Console, level: str | int = logging.WARNING, date_format: str = "[%X]") -> None:
    """루트 logger에 RichHandler 설정

    Args:
        console: 로그를 출력할 콘솔 (보통 stderr 콘솔)
        level: 로그 레벨
        date_format: 로그 시각 형식 (strftime)
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)

    handler = RichHandler(console=console, rich_tracebacks=True, show_path=False, log_time_format=date_format)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class ConsoleReporter:
    """명령 출력 담당

    Example:
        reporter = ConsoleReporter(get_console())
        reporter.ok("Stack creation in progress.")
        reporter.print_resources(format_resources(resources))
    """

    def __init__(self, console: Console | None = None, assume_yes: bool = False):
        self.console = console or get_console()
        self.assume_yes = assume_yes

    # -------------------------------------------------------------------------
    # 레벨별 메시지
    # -------------------------------------------------------------------------

    def log(self, level: DisplayLevel, message: str) -> None:
        """[level] 태그를 붙여 출력 (태그만 굵은 색상)"""
        style = THEME[level]
        self.console.print(Text.assemble((f"[{level.value}]", f"bold {style}"), " ", message))

    def error(self, message: str) -> None:
        self.log(DisplayLevel.ERROR, message)

    def warn(self, message: str) -> None:
        self.log(DisplayLevel.WARN, message)

    def notice(self, message: str) -> None:
        self.log(DisplayLevel.NOTICE, message)

    def ok(self, message: str) -> None:
        self.log(DisplayLevel.OK, message)

    def info(self, message: str) -> None:
        self.log(DisplayLevel.INFO, message)

    # -------------------------------------------------------------------------
    # 상태 / 이벤트 / 리소스
    # -------------------------------------------------------------------------

    def status_text(self, status: StatusClass, bold: bool = False) -> Text:
        style = THEME[status.display]
        return Text(status.status, style=f"bold {style}" if bold else style)

    def print_status(self, status: StatusClass) -> None:
        self.console.print(self.status_text(status, bold=True))

    def print_events(self, lines: Sequence[EventLine]) -> None:
        """이벤트를 한 줄씩 출력: 시각, 상태, [타입], 사유"""
        for line in lines:
            text = Text.assemble(
                line.timestamp,
                " ",
                self.status_text(line.status),
                f" [{line.resource_type}]",
            )
            if line.status_reason:
                text.append(f" {line.status_reason}")
            self.console.print(text)

    def print_resources(self, rows: Sequence[ResourceRow], title: str | None = None) -> None:
        """리소스 표 출력"""
        table = Table(title=title, show_header=True, header_style="bold grey50")
        table.add_column("Type")
        table.add_column("Logical ID")
        table.add_column("Physical ID", overflow="fold")
        table.add_column("Status")

        for row in rows:
            table.add_row(row.resource_type, row.logical_id, row.physical_id, self.status_text(row.status))

        self.console.print(table)

    # -------------------------------------------------------------------------
    # 확인 프롬프트
    # -------------------------------------------------------------------------

    def confirm(self, message: str) -> bool:
        """예/아니오 확인 (기본값: 아니오)

        --yes 옵션이면 묻지 않고 True. Ctrl+C 등으로 취소하면 False.
        """
        if self.assume_yes:
            return True
        answer = questionary.confirm(message, default=False).ask()
        return bool(answer)
