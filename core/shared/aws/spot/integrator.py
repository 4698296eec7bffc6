"""
core/shared/aws/spot/integrator.py - 구간별 상수 단가 적분 (Spot 비용 계산)

가격 시리즈를 계단 함수로 보고, 인스턴스가 실행된 구간 [start, end) 에 대해
``sum(구간 길이(시간) * 그 구간의 단가)`` 를 계산한다.

구간 경계:
    start, end, 그리고 start < t < end 인 모든 가격 시각 t

커버리지 정책 (첫 가격 시각보다 start 가 이른 경우):
    - STRICT: InsufficientCoverageError
    - CLAMP: 첫 가격으로 앞부분을 계산

마지막 가격 시각 이후는 마지막 단가가 계속 유효하다 (다음 변경이 없으므로).
빈 시리즈는 정책과 무관하게 InsufficientCoverageError.

사용법:
    from core.shared.aws.spot.integrator import integrate

    cost = integrate(series, instance.creation_time, instance.end_time)
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from core.exceptions import InsufficientCoverageError

from .types import PriceSeries

SECONDS_PER_HOUR = 3600.0


class CoveragePolicy(str, Enum):
    """첫 가격 시각 이전 구간 처리 정책"""

    STRICT = "strict"
    CLAMP = "clamp"


@dataclass(frozen=True)
class Segment:
    """단가가 일정한 최대 부분 구간"""

    start: datetime
    end: datetime
    price: float

    @property
    def hours(self) -> float:
        # timedelta.total_seconds() 는 마이크로초 단위까지 보존
        return (self.end - self.start).total_seconds() / SECONDS_PER_HOUR

    @property
    def cost(self) -> float:
        return self.hours * self.price


def iter_segments(
    series: PriceSeries,
    window_start: datetime,
    window_end: datetime,
    policy: CoveragePolicy = CoveragePolicy.STRICT,
) -> Iterator[Segment]:
    """구간 [window_start, window_end) 를 단가가 일정한 Segment로 나눈다.

    Raises:
        ValueError: window_end < window_start
        InsufficientCoverageError: 빈 시리즈, 또는 STRICT 정책에서 start 가 첫 시각보다 이른 경우
    """
    if window_end < window_start:
        raise ValueError(f"window_end precedes window_start: {window_end} < {window_start}")
    if series.is_empty:
        raise InsufficientCoverageError(window_start, window_end)

    assert series.earliest is not None
    if window_start < series.earliest and policy is CoveragePolicy.STRICT:
        raise InsufficientCoverageError(window_start, window_end, series.earliest)

    if window_start == window_end:
        return

    boundaries = [window_start, *series.timestamps_between(window_start, window_end), window_end]
    first_price = series.points[0].price

    for seg_start, seg_end in zip(boundaries, boundaries[1:]):
        price = series.price_at(seg_start)
        yield Segment(seg_start, seg_end, first_price if price is None else price)


def integrate(
    series: PriceSeries,
    window_start: datetime,
    window_end: datetime,
    policy: CoveragePolicy = CoveragePolicy.STRICT,
) -> float:
    """실행 구간의 Spot 비용을 계산한다 (반올림하지 않음).

    Args:
        series: 가격 시리즈
        window_start: 인스턴스 생성 시각
        window_end: 인스턴스 종료 시각 (실행 중이면 계산 기준 시각)
        policy: 첫 가격 시각 이전 구간 처리 정책

    Returns:
        비용 (시리즈 단가 단위, 보통 USD)
    """
    return sum((segment.cost for segment in iter_segments(series, window_start, window_end, policy)), 0.0)
