"""
cli/app.py - 메인 CLI 엔트리포인트

Click 기반의 CLI 애플리케이션 진입점입니다.

명령어 구조:
    emr-cost --version                      # 버전 표시
    emr-cost cost <CLUSTER_ID>              # 클러스터 Spot 비용 계산

    예시:
    emr-cost cost j-2AXXXXXXGAPLF -p my-profile -r ap-northeast-2
    emr-cost cost j-2AXXXXXXGAPLF -f json --best-effort

종료 코드:
    0: 성공
    1: 계산 실패 (클러스터 없음, API 실패, 설정 오류 등)
    130: 사용자 취소 (Ctrl-C)

Usage:
    $ emr-cost cost j-2AXXXXXXGAPLF
    $ python -m cli.app cost j-2AXXXXXXGAPLF
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

# 프로젝트 루트를 sys.path에 추가 (python -m cli.app 실행 지원)
_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import boto3  # noqa: E402
import click  # noqa: E402
from botocore.exceptions import BotoCoreError  # noqa: E402

from cli.ui import print_cluster_cost, print_error, print_warning, setup_logging  # noqa: E402
from core.config import (  # noqa: E402
    get_default_profile,
    get_default_region,
    get_env_bool,
    get_max_pages,
    get_max_workers,
    get_product_description,
    get_version,
)
from core.exceptions import ConfigError, EmrCostError, format_error_for_user  # noqa: E402
from core.parallel import get_client  # noqa: E402
from core.shared.aws.spot import ClusterCostCalculator, CoveragePolicy, FailurePolicy  # noqa: E402

logger = logging.getLogger(__name__)

VERSION = get_version()


def create_calculator(
    profile: str | None,
    region: str,
    max_workers: int,
    failure_policy: FailurePolicy,
    coverage_policy: CoveragePolicy,
) -> ClusterCostCalculator:
    """boto3 세션과 EMR/EC2 클라이언트를 만들고 계산기를 생성

    Raises:
        ConfigError: 프로파일/자격 증명 설정 오류
    """
    try:
        session = boto3.Session(profile_name=profile, region_name=region)
    except BotoCoreError as e:
        raise ConfigError("profile", f"세션 생성 실패 ({profile or 'default'})", cause=e) from e

    # 병렬 스레드 수 이상으로 연결 풀 확보
    pool_size = max(25, max_workers)
    emr_client = get_client(session, "emr", region_name=region, max_pool_connections=pool_size)
    ec2_client = get_client(session, "ec2", region_name=region, max_pool_connections=pool_size)

    return ClusterCostCalculator(
        emr_client,
        ec2_client,
        max_workers=max_workers,
        failure_policy=failure_policy,
        coverage_policy=coverage_policy,
        product_description=get_product_description(),
        max_pages=get_max_pages(),
    )


@click.group()
@click.version_option(VERSION, "-V", "--version", prog_name="emr-cost")
def cli() -> None:
    """EMR 클러스터 Spot 인스턴스 비용 계산기"""


@cli.command("cost")
@click.argument("cluster_id")
@click.option("-p", "--profile", "profile", default=None, help="AWS 프로파일 (기본: AWS_PROFILE)")
@click.option("-r", "--region", "region", default=None, help="클러스터 리전 (기본: AWS_REGION)")
@click.option(
    "-f", "--format", "output_format", type=click.Choice(["console", "json"]), default="console", help="출력 형식"
)
@click.option(
    "-w", "--workers", type=click.IntRange(1, 100), default=None, help="그룹 내 병렬 계산 스레드 수"
)
@click.option(
    "--best-effort", is_flag=True, default=False, help="실패한 인스턴스를 제외한 부분 합계 보고"
)
@click.option("--clamp-start", is_flag=True, default=False, help="첫 가격 이전 구간을 첫 가격으로 계산")
@click.option("-v", "--verbose", is_flag=True, default=False, help="DEBUG 로그 출력")
def cost_cmd(
    cluster_id: str,
    profile: str | None,
    region: str | None,
    output_format: str,
    workers: int | None,
    best_effort: bool,
    clamp_start: bool,
    verbose: bool,
) -> None:
    """클러스터의 Spot 비용 계산"""
    setup_logging(verbose)

    best_effort = best_effort or get_env_bool("EMR_COST_BEST_EFFORT")
    failure_policy = FailurePolicy.BEST_EFFORT if best_effort else FailurePolicy.FAIL_FAST
    coverage_policy = CoveragePolicy.CLAMP if clamp_start else CoveragePolicy.STRICT

    try:
        calculator = create_calculator(
            profile=profile or get_default_profile(),
            region=region or get_default_region(),
            max_workers=workers or get_max_workers(),
            failure_policy=failure_policy,
            coverage_policy=coverage_policy,
        )
    except EmrCostError as e:
        print_error(format_error_for_user(e))
        raise SystemExit(1) from e

    try:
        result = calculator.compute_cluster_cost(cluster_id)
    except KeyboardInterrupt:
        calculator.cancel()
        print_warning("사용자가 취소했습니다")
        raise SystemExit(130) from None
    except EmrCostError as e:
        logger.debug("비용 계산 실패", exc_info=True)
        print_error(format_error_for_user(e))
        raise SystemExit(1) from e

    if output_format == "json":
        click.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    else:
        print_cluster_cost(result)


if __name__ == "__main__":
    cli()
