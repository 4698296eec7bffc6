"""
core/shared/aws/spot/types.py - Spot 가격 이력 타입 정의

Spot 가격 이력은 계단 함수(step function)로 해석한다.
각 ``PricePoint`` 의 단가는 해당 시각부터 같은 시리즈의 다음 시각 직전까지 유효하다.

Attributes:
    PricePoint: (시각, 시간당 단가) 쌍
    PriceSeries: 시각 오름차순으로 정렬된 PricePoint 모음 (중복 시각 없음)
"""

from __future__ import annotations

import bisect
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from core.exceptions import MalformedPriceError


def parse_price(raw: Any) -> float:
    """AWS가 반환한 가격 문자열을 시간당 단가로 변환한다.

    ``Decimal`` 로 파싱하므로 로케일과 무관하다 (소수점은 항상 ``.``).

    Args:
        raw: 가격 문자열 (예: ``"0.031200"``)

    Returns:
        시간당 단가 (float)

    Raises:
        MalformedPriceError: 숫자가 아니거나, 유한하지 않거나, 음수인 경우
    """
    if isinstance(raw, bool) or raw is None:
        raise MalformedPriceError(raw)

    try:
        value = Decimal(str(raw).strip())
    except InvalidOperation as e:
        raise MalformedPriceError(raw, cause=e) from e

    if not value.is_finite() or value < 0:
        raise MalformedPriceError(raw)
    return float(value)


@dataclass(frozen=True, order=True)
class PricePoint:
    """이 시각부터 유효한 시간당 단가"""

    timestamp: datetime
    price: float


@dataclass(frozen=True)
class PriceSeries:
    """(instance_type, availability_zone) 하나의 Spot 가격 시리즈

    생성 시 시각 기준 정렬되며 중복 시각은 나중 값이 우선한다 (last-write-wins).

    Attributes:
        instance_type: 인스턴스 타입 (예: ``"m5.xlarge"``)
        availability_zone: 가용 영역 (예: ``"ap-northeast-2a"``)
        points: 시각 오름차순 PricePoint 튜플
    """

    instance_type: str
    availability_zone: str
    points: tuple[PricePoint, ...] = ()
    _timestamps: tuple[datetime, ...] = field(default=(), init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        deduped: dict[datetime, float] = {}
        for point in self.points:
            deduped[point.timestamp] = point.price
        ordered = tuple(PricePoint(ts, deduped[ts]) for ts in sorted(deduped))
        object.__setattr__(self, "points", ordered)
        object.__setattr__(self, "_timestamps", tuple(p.timestamp for p in ordered))

    @classmethod
    def from_points(
        cls,
        instance_type: str,
        availability_zone: str,
        points: Iterable[PricePoint],
    ) -> PriceSeries:
        return cls(instance_type, availability_zone, tuple(points))

    @property
    def key(self) -> tuple[str, str]:
        return (self.instance_type, self.availability_zone)

    @property
    def is_empty(self) -> bool:
        return not self.points

    @property
    def earliest(self) -> datetime | None:
        return self._timestamps[0] if self._timestamps else None

    @property
    def latest(self) -> datetime | None:
        return self._timestamps[-1] if self._timestamps else None

    def __len__(self) -> int:
        return len(self.points)

    def covers(self, window_start: datetime, window_end: datetime) -> bool:
        """시리즈가 구간을 덮는지 확인 (earliest <= start 그리고 latest >= end)"""
        if self.is_empty:
            return False
        assert self.earliest is not None and self.latest is not None
        return self.earliest <= window_start and self.latest >= window_end

    def price_at(self, instant: datetime) -> float | None:
        """해당 시각에 유효한 단가 (instant 이하 중 가장 늦은 시각의 단가)

        Returns:
            단가. 첫 시각보다 이전이면 ``None``
        """
        idx = bisect.bisect_right(self._timestamps, instant) - 1
        if idx < 0:
            return None
        return self.points[idx].price

    def timestamps_between(self, window_start: datetime, window_end: datetime) -> list[datetime]:
        """start < t < end 를 만족하는 시각 목록 (오름차순)"""
        lo = bisect.bisect_right(self._timestamps, window_start)
        hi = bisect.bisect_left(self._timestamps, window_end)
        return list(self._timestamps[lo:hi])
