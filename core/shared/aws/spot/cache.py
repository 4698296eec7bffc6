"""
core/shared/aws/spot/cache.py - Spot 가격 시리즈 메모리 캐시 (SpotPriceCache)

(instance_type, availability_zone) 키별로 PriceSeries를 보관하여
같은 그룹 안에서 반복되는 가격 이력 API 호출을 줄인다.
수명은 계산기 인스턴스 하나와 같으며 만료(TTL)/축출은 없다.

충분성(sufficiency):
    엔트리가 요청 구간 [start, end] 에 충분하려면 다음 중 하나를 만족해야 한다.
    - 시리즈의 첫 시각 <= start 이고 마지막 시각 >= end
    - 요청 구간이 이미 조회했던 구간 안에 포함됨

    부족하면 기존 조회 구간과 요청 구간의 합집합 전체를 다시 조회하여 덮어쓴다.
    따라서 엔트리의 커버리지는 단조 증가한다.

동시성 보호:
    - Double-checked locking: 키별 락으로 동일 키의 조회를 최대 1건으로 제한 (single-flight)
    - 서로 다른 키는 동시에 조회 가능

사용법:
    from core.shared.aws.spot.cache import SpotPriceCache

    cache = SpotPriceCache(fetcher)
    series = cache.get_or_fetch("m5.xlarge", "ap-northeast-2a", start, end)
    metrics = cache.get_metrics()
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime

from .fetcher import SpotPriceFetcher
from .types import PriceSeries

logger = logging.getLogger(__name__)

CacheKey = tuple[str, str]


@dataclass
class SpotCacheMetrics:
    """캐시 성능 메트릭을 thread-safe하게 수집하는 데이터 클래스.

    Attributes:
        fetches: 가격 이력 조회(페이지 묶음) 횟수
        cache_hits: 캐시 히트 횟수
        cache_misses: 캐시 미스 횟수 (엔트리 없음 + 커버리지 부족)
        widenings: 커버리지 부족으로 인한 재조회 횟수
    """

    fetches: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    widenings: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def hit_rate(self) -> float:
        total = self.cache_hits + self.cache_misses
        return self.cache_hits / total if total > 0 else 0.0

    def increment(self, name: str) -> None:
        with self._lock:
            setattr(self, name, getattr(self, name) + 1)

    def to_dict(self) -> dict[str, float | int]:
        return {
            "fetches": self.fetches,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "widenings": self.widenings,
            "hit_rate": round(self.hit_rate, 2),
        }


@dataclass(frozen=True)
class SpotCacheEntry:
    """캐시 엔트리: 가격 시리즈와 그 시리즈를 얻기 위해 요청했던 구간"""

    series: PriceSeries
    fetched_start: datetime
    fetched_end: datetime

    def is_sufficient(self, window_start: datetime, window_end: datetime) -> bool:
        if self.series.covers(window_start, window_end):
            return True
        return self.fetched_start <= window_start and window_end <= self.fetched_end


class SpotPriceCache:
    """Spot 가격 시리즈 캐시

    캐시 -> (미스 시) SpotPriceFetcher 순서로 조회하며,
    키별 락으로 같은 키의 동시 조회를 직렬화한다.
    """

    def __init__(self, fetcher: SpotPriceFetcher):
        self._fetcher = fetcher
        self._entries: dict[CacheKey, SpotCacheEntry] = {}
        self._metrics = SpotCacheMetrics()

        # Per-key 락 레지스트리
        self._lock_registry: dict[CacheKey, threading.Lock] = {}
        self._registry_mutex = threading.Lock()

    def _get_lock(self, key: CacheKey) -> threading.Lock:
        """키별 락을 반환한다 (double-checked locking)."""
        if key not in self._lock_registry:
            with self._registry_mutex:
                if key not in self._lock_registry:
                    self._lock_registry[key] = threading.Lock()
        return self._lock_registry[key]

    def get_or_fetch(
        self,
        instance_type: str,
        availability_zone: str,
        window_start: datetime,
        window_end: datetime,
    ) -> PriceSeries:
        """구간을 충분히 덮는 가격 시리즈를 반환한다 (캐시 히트 시 API 호출 없음).

        1차(fast path): 락 없이 엔트리 충분성 확인
        2차(slow path): 키 락 획득 후 double-check -> 조회 -> 엔트리 덮어쓰기

        Args:
            instance_type: 인스턴스 타입
            availability_zone: 가용 영역
            window_start: 구간 시작
            window_end: 구간 끝

        Returns:
            PriceSeries (조회 결과가 없으면 빈 시리즈)
        """
        key = (instance_type, availability_zone)

        # 1차: 락 없이 확인 (fast path)
        entry = self._entries.get(key)
        if entry is not None and entry.is_sufficient(window_start, window_end):
            self._metrics.increment("cache_hits")
            logger.debug(f"캐시 히트: {instance_type}/{availability_zone}")
            return entry.series

        # 2차: 키 락 획득 후 조회 (slow path)
        with self._get_lock(key):
            # Double-check: 다른 스레드가 이미 조회했을 수 있음
            entry = self._entries.get(key)
            if entry is not None and entry.is_sufficient(window_start, window_end):
                self._metrics.increment("cache_hits")
                logger.debug(f"캐시 히트 (락 내부): {instance_type}/{availability_zone}")
                return entry.series

            self._metrics.increment("cache_misses")

            fetch_start, fetch_end = window_start, window_end
            if entry is not None:
                # 기존 조회 구간과 합쳐 연속된 상위 구간을 다시 조회
                self._metrics.increment("widenings")
                fetch_start = min(fetch_start, entry.fetched_start)
                fetch_end = max(fetch_end, entry.fetched_end)
                logger.debug(f"캐시 커버리지 부족, 재조회: {instance_type}/{availability_zone}")

            self._metrics.increment("fetches")
            series = self._fetcher.fetch(instance_type, availability_zone, fetch_start, fetch_end)
            self._entries[key] = SpotCacheEntry(series, fetch_start, fetch_end)
            return series

    def peek(self, instance_type: str, availability_zone: str) -> SpotCacheEntry | None:
        """조회 없이 현재 엔트리를 반환한다."""
        return self._entries.get((instance_type, availability_zone))

    def __len__(self) -> int:
        return len(self._entries)

    def get_metrics(self) -> dict[str, float | int]:
        """현재 메트릭 값과 누적 페이지 요청 수를 딕셔너리로 반환한다."""
        metrics = self._metrics.to_dict()
        metrics["pages"] = self._fetcher.pages_fetched
        return metrics
