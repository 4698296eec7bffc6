"""
tests/shared/aws/spot/test_integrator.py - 구간별 상수 단가 적분 테스트
"""

from datetime import datetime, timedelta, timezone

import pytest

from core.exceptions import InsufficientCoverageError
from core.shared.aws.spot.integrator import CoveragePolicy, integrate, iter_segments
from core.shared.aws.spot.types import PricePoint, PriceSeries

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _at(**kwargs):
    return T0 + timedelta(**kwargs)


def _series(*points):
    return PriceSeries.from_points("m5.xlarge", "ap-northeast-2a", [PricePoint(ts, price) for ts, price in points])


class TestIntegrate:
    """integrate 테스트"""

    def test_three_prices(self):
        """$0.10 1시간 + $0.20 2시간 + $0.30 0.5시간 = $0.65"""
        series = _series((T0, 0.10), (_at(hours=1), 0.20), (_at(hours=3), 0.30))

        assert integrate(series, T0, _at(hours=3, minutes=30)) == pytest.approx(0.65)

    def test_price_change_mid_window(self):
        """$1/h 에서 30분 후 $2/h 로 변경, 2시간 실행 = $3.50"""
        series = _series((T0, 1.0), (_at(minutes=30), 2.0))

        assert integrate(series, T0, _at(hours=2)) == pytest.approx(3.5)

    def test_window_inside_first_segment(self):
        """가격 변경 없이 마지막 가격이 계속 유효"""
        series = _series((T0, 0.5))

        assert integrate(series, _at(hours=10), _at(hours=12)) == pytest.approx(1.0)

    def test_window_starts_between_points(self):
        """시작 시각 직전의 가격부터 적용"""
        series = _series((T0, 1.0), (_at(hours=1), 3.0), (_at(hours=2), 5.0))

        # 0:30 ~ 1:30 = 0.5*1 + 0.5*3
        assert integrate(series, _at(minutes=30), _at(hours=1, minutes=30)) == pytest.approx(2.0)

    def test_sub_second_precision(self):
        """초 미만 단위도 반영"""
        series = _series((T0, 3600.0))

        assert integrate(series, T0, _at(milliseconds=500)) == pytest.approx(0.5)

    def test_empty_window_is_zero(self):
        series = _series((T0, 1.0))

        assert integrate(series, _at(hours=1), _at(hours=1)) == 0.0

    def test_returns_float(self):
        assert isinstance(integrate(_series((T0, 1.0)), T0, T0), float)

    def test_end_before_start(self):
        with pytest.raises(ValueError):
            integrate(_series((T0, 1.0)), _at(hours=2), _at(hours=1))


class TestCoveragePolicy:
    """첫 가격 시각 이전 구간 처리"""

    def test_empty_series_raises(self):
        for policy in CoveragePolicy:
            with pytest.raises(InsufficientCoverageError):
                integrate(_series(), T0, _at(hours=1), policy)

    def test_strict_raises_before_earliest(self):
        series = _series((_at(hours=1), 1.0))

        with pytest.raises(InsufficientCoverageError) as exc_info:
            integrate(series, T0, _at(hours=2))

        assert exc_info.value.earliest == _at(hours=1)

    def test_clamp_uses_first_price(self):
        """CLAMP: 앞부분은 첫 가격으로 계산"""
        series = _series((_at(hours=1), 1.0), (_at(hours=2), 4.0))

        # 0:00 ~ 2:00 = 2 * 1
        assert integrate(series, T0, _at(hours=2), CoveragePolicy.CLAMP) == pytest.approx(2.0)

    def test_start_equal_to_earliest_is_covered(self):
        series = _series((T0, 2.0))

        assert integrate(series, T0, _at(hours=1), CoveragePolicy.STRICT) == pytest.approx(2.0)


class TestIterSegments:
    def test_segments_are_contiguous(self):
        series = _series((T0, 1.0), (_at(hours=1), 2.0), (_at(hours=2), 3.0))

        segments = list(iter_segments(series, _at(minutes=30), _at(hours=2, minutes=30)))

        assert [s.price for s in segments] == [1.0, 2.0, 3.0]
        assert segments[0].start == _at(minutes=30)
        assert segments[-1].end == _at(hours=2, minutes=30)
        for left, right in zip(segments, segments[1:]):
            assert left.end == right.start
        assert sum(s.hours for s in segments) == pytest.approx(2.0)

    def test_point_at_window_end_is_not_a_segment(self):
        series = _series((T0, 1.0), (_at(hours=1), 9.0))

        segments = list(iter_segments(series, T0, _at(hours=1)))

        assert len(segments) == 1
        assert segments[0].cost == pytest.approx(1.0)
