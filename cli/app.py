"""
cli/app.py - 메인 CLI 엔트리포인트

Click 기반의 cfn CLI 진입점입니다. 단일 스택에 대해 템플릿 빌드부터
배포/상태 확인/삭제까지 수행합니다.

명령어 구조:
    cfn build               # 템플릿 렌더링 + 병합 → build/cfn/<stack>.json
    cfn validate            # build + 원격 템플릿 검증
    cfn deploy              # validate + 스택 생성/업데이트
    cfn status              # 스택 상태
    cfn log                 # 스택 이벤트 로그 (시각순)
    cfn resources           # 스택 리소스 표 (타입순)
    cfn delete [-y]         # 버킷 검사 + 확인 후 스택 삭제
    cfn reconcile           # Physical ID를 JSON 설정 파일에 기록

공통 옵션:
    -c/--config PATH        # 설정 파일 (기본: ./cfn.yaml)
    -s/--stack-name NAME    # 스택 이름 (cfn.yaml stack_name 오버라이드)
    -p/--profile NAME       # AWS 프로파일
    -r/--region NAME        # AWS 리전
    --timeout SEC           # 병렬 원격 호출 전체 제한 시간
    -v/--verbose            # 디버그 로그

Usage:
    $ cfn deploy
    $ cfn -s demo -r us-east-1 status
    $ python -m cli.app log
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

import boto3
import click
from botocore.exceptions import BotoCoreError
from click import Context

from cli.ui.console import ConsoleReporter, configure_logging, get_console
from core.config import LogConfig, StackConfig, get_default_region, get_version, load_stack_config
from core.exceptions import CfnError, ConfigError, format_error_for_user
from plugins.cloudformation import tasks
from plugins.cloudformation.gateway import CloudFormationGateway, StorageGateway

logger = logging.getLogger(__name__)

VERSION = get_version()

T = TypeVar("T")


@dataclass
class CliState:
    """명령 간 공유 상태 (click ctx.obj)

    설정과 세션은 실제로 필요한 명령에서만 지연 생성합니다.
    """

    config_path: str | None = None
    stack_name: str | None = None
    profile: str | None = None
    region: str | None = None
    timeout: int | None = None
    reporter: ConsoleReporter = field(default_factory=ConsoleReporter)
    _config: StackConfig | None = None
    _session: Any = None

    @property
    def config(self) -> StackConfig:
        if self._config is None:
            self._config = load_stack_config(
                self.config_path,
                stack_name=self.stack_name,
                region=self.region,
                profile=self.profile,
                timeout=self.timeout,
            )
        return self._config

    @property
    def session(self) -> boto3.Session:
        if self._session is None:
            self._session = create_session(self.config)
        return self._session

    def cloudformation(self) -> CloudFormationGateway:
        session = self.session
        return CloudFormationGateway.from_session(session, region=session.region_name, timeouts=self.config.timeouts)

    def storage(self) -> StorageGateway:
        session = self.session
        return StorageGateway.from_session(session, region=session.region_name, timeouts=self.config.timeouts)


def create_session(config: StackConfig) -> boto3.Session:
    """설정의 프로파일/리전으로 boto3 Session 생성

    Raises:
        ConfigError: 프로파일을 찾을 수 없는 경우 등
    """
    try:
        return boto3.Session(profile_name=config.profile, region_name=config.region or get_default_region())
    except BotoCoreError as e:
        raise ConfigError("profile", str(e), cause=e) from e


def _run(ctx: Context, func: Callable[[CliState], T]) -> T:
    """명령 실행 + 예외를 색상 메시지로 변환 (exit code 1)"""
    state: CliState = ctx.obj
    try:
        return func(state)
    except CfnError as e:
        logger.debug("명령 실패", exc_info=True)
        state.reporter.error(format_error_for_user(e))
        raise SystemExit(1) from e


@click.group()
@click.version_option(VERSION, prog_name="cfn")
@click.option("-c", "--config", "config_path", default=None, help="설정 파일 경로 (기본: ./cfn.yaml)")
@click.option("-s", "--stack-name", "stack_name", default=None, help="스택 이름")
@click.option("-p", "--profile", "profile", default=None, help="AWS 프로파일")
@click.option("-r", "--region", "region", default=None, help="AWS 리전")
@click.option("--timeout", type=click.IntRange(min=1), default=None, help="병렬 원격 호출 제한 시간 (초)")
@click.option("-v", "--verbose", is_flag=True, help="디버그 로그 출력")
@click.pass_context
def cli(
    ctx: Context,
    config_path: str | None,
    stack_name: str | None,
    profile: str | None,
    region: str | None,
    timeout: int | None,
    verbose: bool,
) -> None:
    """cfn - CloudFormation 단일 스택 빌드/배포 도구"""
    log_config = LogConfig.from_env()
    configure_logging(
        get_console(stderr=True),
        logging.DEBUG if verbose else log_config.level,
        date_format=log_config.date_format,
    )

    ctx.obj = CliState(
        config_path=config_path,
        stack_name=stack_name,
        profile=profile,
        region=region,
        timeout=timeout,
        reporter=ConsoleReporter(get_console()),
    )


@cli.command("build")
@click.pass_context
def build_cmd(ctx: Context) -> None:
    """템플릿 렌더링 + 병합"""
    _run(ctx, lambda s: tasks.build(s.config, s.reporter))


@cli.command("validate")
@click.pass_context
def validate_cmd(ctx: Context) -> None:
    """빌드 후 템플릿 검증"""
    _run(ctx, lambda s: tasks.validate(s.config, s.cloudformation(), s.reporter))


@cli.command("deploy")
@click.pass_context
def deploy_cmd(ctx: Context) -> None:
    """스택 생성 또는 업데이트"""
    _run(ctx, lambda s: tasks.deploy(s.config, s.cloudformation(), s.reporter))


@cli.command("status")
@click.pass_context
def status_cmd(ctx: Context) -> None:
    """스택 상태"""
    _run(ctx, lambda s: tasks.status(s.config, s.cloudformation(), s.reporter))


@cli.command("log")
@click.pass_context
def log_cmd(ctx: Context) -> None:
    """스택 이벤트 로그"""
    _run(ctx, lambda s: tasks.log(s.config, s.cloudformation(), s.reporter))


@cli.command("resources")
@click.pass_context
def resources_cmd(ctx: Context) -> None:
    """스택 리소스 목록"""
    _run(ctx, lambda s: tasks.resources(s.config, s.cloudformation(), s.reporter))


@cli.command("delete")
@click.option("-y", "--yes", is_flag=True, help="확인 없이 삭제")
@click.pass_context
def delete_cmd(ctx: Context, yes: bool) -> None:
    """버킷 검사 + 확인 후 스택 삭제

    \b
    객체가 남아 있는 S3 버킷이 있으면 삭제하지 않습니다.
    """
    state: CliState = ctx.obj
    state.reporter.assume_yes = yes
    _run(ctx, lambda s: tasks.delete(s.config, s.cloudformation(), s.storage(), s.reporter))


@cli.command("reconcile")
@click.pass_context
def reconcile_cmd(ctx: Context) -> None:
    """Physical ID를 JSON 설정 파일에 기록"""
    _run(ctx, lambda s: tasks.reconcile(s.config, s.cloudformation(), s.reporter))


if __name__ == "__main__":
    cli()
