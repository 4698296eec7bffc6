"""
core/shared/aws/spot - EMR 클러스터 Spot 비용 계산 패키지

EC2 Spot 가격 이력을 조회/캐싱하고, 인스턴스 실행 구간에 대해
구간별 상수 단가 적분으로 비용을 계산합니다.

모듈 구성:
    - types: PricePoint, PriceSeries, parse_price
    - fetcher: SpotPriceFetcher (describe_spot_price_history 페이지네이션)
    - cache: SpotPriceCache (키별 single-flight 메모리 캐시)
    - integrator: integrate, iter_segments, CoveragePolicy
    - calculator: ClusterCostCalculator (클러스터 -> 그룹 -> 인스턴스 합산)

사용법:
    from core.shared.aws.spot import ClusterCostCalculator

    calculator = ClusterCostCalculator(emr_client, ec2_client)
    result = calculator.compute_cluster_cost("j-2AXXXXXXGAPLF")
"""

from .cache import SpotCacheMetrics, SpotPriceCache
from .calculator import ClusterCost, ClusterCostCalculator, FailurePolicy, GroupCost, InstanceCost
from .fetcher import SpotPriceFetcher
from .integrator import CoveragePolicy, Segment, integrate, iter_segments
from .types import PricePoint, PriceSeries, parse_price

__all__: list[str] = [
    # Calculator
    "ClusterCostCalculator",
    "ClusterCost",
    "GroupCost",
    "InstanceCost",
    "FailurePolicy",
    # Cache & Fetcher
    "SpotPriceCache",
    "SpotCacheMetrics",
    "SpotPriceFetcher",
    # Integrator
    "CoveragePolicy",
    "Segment",
    "integrate",
    "iter_segments",
    # Types
    "PricePoint",
    "PriceSeries",
    "parse_price",
]
