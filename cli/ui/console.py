"""
cli/ui/console.py - Rich 콘솔 유틸리티

일관된 콘솔 출력과 로깅 설정을 위한 함수들
"""

from __future__ import annotations

import logging
import os
import platform

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from core.config import LogConfig
from core.shared.aws.emr.types import MarketType
from core.shared.aws.spot.calculator import ClusterCost

# botocore 노이즈 로그 제한
logging.getLogger("botocore.httpchecksum").setLevel(logging.WARNING)
logging.getLogger("botocore.credentials").setLevel(logging.WARNING)
logging.getLogger("botocore.loaders").setLevel(logging.WARNING)
logging.getLogger("botocore.session").setLevel(logging.WARNING)


def get_console(stderr: bool = False) -> Console:
    """Rich Console 인스턴스를 생성하고 반환합니다."""
    is_windows = platform.system().lower() == "windows"

    return Console(
        stderr=stderr,
        color_system="auto",
        highlight=False,
        soft_wrap=True,
        markup=True,
        emoji=not is_windows,
    )


# 전역 콘솔 인스턴스 (결과는 stdout, 로그는 stderr)
console = get_console()
err_console = get_console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Rich 핸들러로 루트 로거를 설정합니다.

    도구 출력과 섞이지 않도록 기본 레벨은 WARNING 이며,
    LOG_LEVEL 환경변수가 있으면 그 값을, verbose 이면 DEBUG 를 사용합니다.

    Args:
        verbose: True면 DEBUG 레벨
    """
    log_config = LogConfig.from_env()
    if verbose:
        level = logging.DEBUG
    elif "LOG_LEVEL" in os.environ:
        configured = logging.getLevelName(log_config.level)
        level = configured if isinstance(configured, int) else logging.INFO
    else:
        level = logging.WARNING

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if isinstance(handler, RichHandler):
            root_logger.removeHandler(handler)

    handler = RichHandler(console=err_console, rich_tracebacks=True, show_path=verbose)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt=log_config.date_format))
    root_logger.addHandler(handler)
    root_logger.setLevel(level)


# =============================================================================
# 표준 출력 스타일
# =============================================================================

SYMBOL_SUCCESS = "✓"
SYMBOL_ERROR = "✗"
SYMBOL_WARNING = "!"


def print_success(message: str) -> None:
    """성공 메시지 출력 (초록색 체크마크)"""
    console.print(f"[green]{SYMBOL_SUCCESS} {escape(message)}[/green]")


def print_error(message: str) -> None:
    """에러 메시지 출력 (빨간색 X, stderr)"""
    err_console.print(f"[red]{SYMBOL_ERROR} {escape(message)}[/red]")


def print_warning(message: str) -> None:
    """경고 메시지 출력 (노란색 경고, stderr)"""
    err_console.print(f"[yellow]{SYMBOL_WARNING} {escape(message)}[/yellow]")


def print_cluster_cost(result: ClusterCost) -> None:
    """클러스터 비용을 그룹별 테이블로 출력합니다.

    Args:
        result: ClusterCostCalculator.compute_cluster_cost() 결과
    """
    table = Table(title=escape(f"{result.cluster_id} ({result.availability_zone})"), show_footer=True)
    table.add_column("Group", footer="Total")
    table.add_column("Instances", justify="right")
    table.add_column("Spot", justify="right")
    table.add_column("Errors", justify="right")
    table.add_column("Cost ($)", justify="right", footer=f"{result.total:.2f}")

    for group in result.groups:
        spot_count = sum(1 for i in group.instances if i.market is MarketType.SPOT)
        table.add_row(
            escape(group.name),
            str(len(group.instances)),
            str(spot_count),
            str(group.error_count),
            f"{group.total:.2f}",
        )

    console.print(table)

    if result.complete:
        print_success(f"총 비용: {result.total:.2f}$ (기준 시각 {result.as_of.isoformat()})")
        return

    print_warning(f"부분 합계: {result.error_count}개 인스턴스 계산 실패")
    for group in result.groups:
        for instance in group.instances:
            if instance.error is not None:
                print_warning(f"{group.name}/{instance.instance_id}: {instance.error}")
