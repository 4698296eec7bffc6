"""
core/shared/aws/spot/calculator.py - EMR 클러스터 Spot 비용 계산 (ClusterCostCalculator)

클러스터 조회 -> 그룹(플릿) 목록 -> 그룹별 인스턴스 목록 -> 인스턴스별 시장 구분 ->
Spot 이면 캐시/조회기로 가격 시리즈를 얻어 적분 -> 그룹/클러스터 합계 순서로 계산한다.

병렬 처리:
    그룹 안의 인스턴스 비용은 ParallelExecutor로 병렬 계산(fan-out) 후 합산(fan-in)한다.
    그룹은 순차 처리하며, 그룹 간 공유 상태는 SpotPriceCache 뿐이다.

실패 정책:
    - FAIL_FAST (기본): 첫 인스턴스 실패 시 취소 신호를 보내고 예외를 전파
    - BEST_EFFORT: 실패한 인스턴스는 에러를 기록하고 0으로 합산 (``complete == False``)

    클러스터/그룹/인스턴스 목록 조회 실패는 정책과 무관하게 전파된다.

고정 요금(On-Demand 등) 인스턴스는 항상 0 으로 계산한다.

사용법:
    from core.shared.aws.spot.calculator import ClusterCostCalculator

    calculator = ClusterCostCalculator(emr_client, ec2_client)
    result = calculator.compute_cluster_cost("j-2AXXXXXXGAPLF")
    print(f"{result.total:.2f}$")
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from core.config import settings
from core.parallel.executor import ParallelConfig, ParallelExecutor, TaskResult

from ..emr.metadata import EmrClusterMetadata
from ..emr.types import ClusterInfo, InstanceGroupInfo, InstanceRuntime, MarketType
from .cache import SpotPriceCache
from .fetcher import SpotPriceFetcher
from .integrator import CoveragePolicy, integrate

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FailurePolicy(str, Enum):
    """인스턴스별 계산 실패 처리 정책"""

    FAIL_FAST = "fail_fast"
    BEST_EFFORT = "best_effort"


# =============================================================================
# 결과 타입
# =============================================================================


@dataclass
class InstanceCost:
    """인스턴스 하나의 비용

    Attributes:
        instance_id: 인스턴스 ID
        instance_type: 인스턴스 타입
        market: SPOT / FIXED_RATE
        cost: 비용 (실패 시 0)
        start: 과금 구간 시작
        end: 과금 구간 끝
        error: BEST_EFFORT 모드에서 기록된 에러 메시지
    """

    instance_id: str
    instance_type: str
    market: MarketType
    cost: float = 0.0
    start: datetime | None = None
    end: datetime | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "instance_id": self.instance_id,
            "instance_type": self.instance_type,
            "market": self.market.value,
            "cost": self.cost,
            "start": self.start.isoformat() if self.start else None,
            "end": self.end.isoformat() if self.end else None,
            "error": self.error,
        }


@dataclass
class GroupCost:
    """인스턴스 그룹(플릿) 하나의 비용"""

    group_id: str
    name: str
    instances: list[InstanceCost] = field(default_factory=list)

    @property
    def total(self) -> float:
        return sum((i.cost for i in self.instances), 0.0)

    @property
    def error_count(self) -> int:
        return sum(1 for i in self.instances if i.error is not None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "group_id": self.group_id,
            "name": self.name,
            "total": self.total,
            "error_count": self.error_count,
            "instances": [i.to_dict() for i in self.instances],
        }


@dataclass
class ClusterCost:
    """클러스터 전체 비용"""

    cluster_id: str
    name: str
    availability_zone: str
    as_of: datetime
    groups: list[GroupCost] = field(default_factory=list)
    cache_metrics: dict[str, float | int] = field(default_factory=dict)

    @property
    def total(self) -> float:
        return sum((g.total for g in self.groups), 0.0)

    @property
    def error_count(self) -> int:
        return sum(g.error_count for g in self.groups)

    @property
    def complete(self) -> bool:
        """실패한 인스턴스 없이 모두 계산되었는지 여부"""
        return self.error_count == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "cluster_id": self.cluster_id,
            "name": self.name,
            "availability_zone": self.availability_zone,
            "as_of": self.as_of.isoformat(),
            "total": self.total,
            "complete": self.complete,
            "groups": [g.to_dict() for g in self.groups],
            "cache_metrics": self.cache_metrics,
        }


# =============================================================================
# 계산기
# =============================================================================


class ClusterCostCalculator:
    """EMR 클러스터 Spot 비용 계산기

    가격 캐시의 수명은 계산기 인스턴스와 같다.
    ``cancel()`` 을 호출하면 진행 중인 가격 이력 조회가 다음 페이지 요청 전에 중단된다.
    """

    def __init__(
        self,
        emr_client: Any,
        ec2_client: Any,
        max_workers: int = settings.DEFAULT_MAX_WORKERS,
        failure_policy: FailurePolicy = FailurePolicy.FAIL_FAST,
        coverage_policy: CoveragePolicy = CoveragePolicy.STRICT,
        product_description: str = settings.SPOT_PRODUCT_DESCRIPTION,
        max_pages: int = settings.SPOT_MAX_PAGES,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.cancel_event = threading.Event()
        self.failure_policy = failure_policy
        self.coverage_policy = coverage_policy
        self._clock = clock
        self._metadata = EmrClusterMetadata(emr_client)
        self._fetcher = SpotPriceFetcher(
            ec2_client,
            product_description=product_description,
            max_pages=max_pages,
            cancel_event=self.cancel_event,
        )
        self.cache = SpotPriceCache(self._fetcher)
        self._config = ParallelConfig(
            max_workers=max_workers,
            fail_fast=failure_policy is FailurePolicy.FAIL_FAST,
        )

    def cancel(self) -> None:
        """진행 중인 계산에 취소 신호를 보낸다."""
        self.cancel_event.set()

    def compute_cluster_cost(self, cluster_id: str) -> ClusterCost:
        """클러스터의 그룹별/전체 비용을 계산한다.

        Raises:
            ClusterNotFoundError: 클러스터 없음
            RetrievalFailedError: 메타데이터 또는 (FAIL_FAST) 가격 이력 조회 실패
            OperationCancelledError: 취소됨
        """
        self.cancel_event.clear()

        logger.info(f"{cluster_id} 정보 조회")
        cluster = self._metadata.describe_cluster(cluster_id)
        logger.info(f"클러스터 가용 영역: {cluster.availability_zone}")
        logger.info(f"클러스터 구성 방식: {cluster.collection_type.value}")

        # 실행 중인 인스턴스는 모두 같은 기준 시각으로 계산
        as_of = self._clock()
        result = ClusterCost(
            cluster_id=cluster.cluster_id,
            name=cluster.name,
            availability_zone=cluster.availability_zone,
            as_of=as_of,
        )

        for group in self._metadata.list_groups(cluster):
            logger.info(f"그룹 {group.name} 정보 조회")
            group_cost = self.compute_group_cost(cluster, group, as_of)
            logger.info(f"{group.name}: {group_cost.total:.2f}$")
            result.groups.append(group_cost)

        result.cache_metrics = self.cache.get_metrics()
        logger.info(f"{cluster_id} 총 비용: {result.total:.2f}$")
        return result

    def compute_group_cost(self, cluster: ClusterInfo, group: InstanceGroupInfo, as_of: datetime) -> GroupCost:
        """그룹 안의 인스턴스 비용을 병렬 계산하여 합산한다."""
        instances = self._metadata.list_instances(cluster, group)
        group_cost = GroupCost(group_id=group.group_id, name=group.name)
        if not instances:
            return group_cost

        executor = ParallelExecutor(self._config, cancel_event=self.cancel_event)
        results = executor.execute(
            lambda instance: self.compute_instance_cost(instance, as_of),
            instances,
            key=lambda instance: instance.instance_id,
        )

        # 완료 순서와 무관하게 조회 순서대로 정리 (ID 중복에 대비해 위치로 매칭)
        by_index: dict[int, TaskResult[InstanceCost]] = {r.index: r for r in results}
        for position, instance in enumerate(instances):
            task = by_index.get(position)
            if task is not None and task.success and task.data is not None:
                group_cost.instances.append(task.data)
                continue

            error = task.error if task is not None else None
            logger.warning(f"인스턴스 비용 계산 실패 [{instance.instance_id}]: {error}")
            group_cost.instances.append(
                InstanceCost(
                    instance_id=instance.instance_id,
                    instance_type=instance.instance_type,
                    market=instance.market,
                    error=str(error) if error is not None else "결과 없음",
                )
            )

        return group_cost

    def compute_instance_cost(self, instance: InstanceRuntime, as_of: datetime) -> InstanceCost:
        """인스턴스 하나의 비용 계산 (고정 요금은 0)"""
        interval = instance.running_interval(as_of)
        cost = InstanceCost(
            instance_id=instance.instance_id,
            instance_type=instance.instance_type,
            market=instance.market,
            start=interval[0] if interval else None,
            end=interval[1] if interval else None,
        )

        if instance.market is not MarketType.SPOT or interval is None:
            return cost

        logger.debug(f"Spot 시장 가격 확인: {instance.instance_id} ({instance.instance_type})")
        start, end = interval
        series = self.cache.get_or_fetch(instance.instance_type, instance.availability_zone, start, end)
        cost.cost = integrate(series, start, end, self.coverage_policy)
        return cost
