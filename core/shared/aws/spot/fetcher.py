"""
core/shared/aws/spot/fetcher.py - EC2 Spot 가격 이력 조회 (SpotPriceFetcher)

``describe_spot_price_history`` 를 NextToken 기반으로 페이지 단위 순차 호출하여
(instance_type, availability_zone) 하나의 가격 시리즈를 모은다.

동작:
    - 페이지는 순서대로 조회 (다음 토큰이 이전 응답에 의존)
    - 빈/누락 NextToken 을 받으면 종료
    - 최대 페이지 수 초과 또는 같은 토큰 반복 시 ``PaginationLimitError``
    - 매 페이지 요청 전 취소 신호 확인 (``OperationCancelledError``)
    - API 실패는 ``RetrievalFailedError`` 로 감싸서 전파 (재시도 없음)
    - 기록이 없는 구간은 빈 시리즈를 반환 (에러 아님)

사용법:
    from core.shared.aws.spot.fetcher import SpotPriceFetcher

    fetcher = SpotPriceFetcher(ec2_client)
    series = fetcher.fetch("m5.xlarge", "ap-northeast-2a", start, end)
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from core.config import settings
from core.exceptions import OperationCancelledError, PaginationLimitError, RetrievalFailedError

from .types import PricePoint, PriceSeries, parse_price

logger = logging.getLogger(__name__)

_SERVICE = "ec2"
_OPERATION = "describe_spot_price_history"


class SpotPriceFetcher:
    """Spot 가격 이력 조회기

    공유 상태를 변경하지 않으며, 캐싱은 호출자(SpotPriceCache)의 책임이다.

    Attributes:
        product_description: 조회할 상품 설명 (기본: ``"Linux/UNIX (Amazon VPC)"``)
        max_pages: 한 번의 조회에서 허용하는 최대 페이지 수
        pages_fetched: 누적 페이지 요청 수 (메트릭용)
    """

    def __init__(
        self,
        ec2_client: Any,
        product_description: str = settings.SPOT_PRODUCT_DESCRIPTION,
        max_pages: int = settings.SPOT_MAX_PAGES,
        cancel_event: threading.Event | None = None,
    ):
        if max_pages < 1:
            raise ValueError(f"max_pages must be >= 1, got {max_pages}")

        self._client = ec2_client
        self.product_description = product_description
        self.max_pages = max_pages
        self.cancel_event = cancel_event
        self.pages_fetched = 0
        self._counter_lock = threading.Lock()

    def fetch(
        self,
        instance_type: str,
        availability_zone: str,
        window_start: datetime,
        window_end: datetime,
    ) -> PriceSeries:
        """구간 [window_start, window_end] 의 가격 시리즈 전체를 조회한다.

        Args:
            instance_type: 인스턴스 타입 (예: ``"m5.xlarge"``)
            availability_zone: 가용 영역 (예: ``"ap-northeast-2a"``)
            window_start: 구간 시작 (timezone-aware)
            window_end: 구간 끝 (timezone-aware, 미래 불가)

        Returns:
            모든 페이지의 가격을 합친 PriceSeries (기록이 없으면 빈 시리즈)

        Raises:
            ValueError: window_start >= window_end
            RetrievalFailedError: 페이지 요청 실패
            PaginationLimitError: 페이지네이션이 종료되지 않음
            MalformedPriceError: 가격 문자열 파싱 실패
            OperationCancelledError: 취소 신호 감지
        """
        if window_start >= window_end:
            raise ValueError(f"window_start must precede window_end: {window_start} >= {window_end}")

        points: list[PricePoint] = []
        seen_tokens: set[str] = set()
        next_token = ""
        page = 0

        while True:
            if self.cancel_event is not None and self.cancel_event.is_set():
                raise OperationCancelledError(_OPERATION)
            if page >= self.max_pages:
                raise PaginationLimitError(_SERVICE, _OPERATION, f"최대 페이지 수 초과 ({self.max_pages})")

            page += 1
            logger.debug(f"Spot 가격 요청: {instance_type}/{availability_zone} (페이지 {page})")
            response = self._request_page(instance_type, availability_zone, window_start, window_end, next_token)

            for record in response.get("SpotPriceHistory", []):
                points.append(_to_price_point(record))

            next_token = response.get("NextToken") or ""
            if not next_token:
                break
            if next_token in seen_tokens:
                raise PaginationLimitError(_SERVICE, _OPERATION, f"반복된 NextToken: {next_token}")
            seen_tokens.add(next_token)

        series = PriceSeries.from_points(instance_type, availability_zone, points)
        if series.is_empty:
            logger.info(f"Spot 가격 기록 없음: {instance_type}/{availability_zone}")
        else:
            logger.debug(f"Spot 가격 {len(series)}건 조회: {instance_type}/{availability_zone} ({page}페이지)")
        return series

    def _request_page(
        self,
        instance_type: str,
        availability_zone: str,
        window_start: datetime,
        window_end: datetime,
        next_token: str,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "InstanceTypes": [instance_type],
            "ProductDescriptions": [self.product_description],
            "AvailabilityZone": availability_zone,
            "StartTime": window_start,
            "EndTime": window_end,
        }
        if next_token:
            params["NextToken"] = next_token

        with self._counter_lock:
            self.pages_fetched += 1

        try:
            response: dict[str, Any] = self._client.describe_spot_price_history(**params)
        except (ClientError, BotoCoreError) as e:
            raise RetrievalFailedError.from_client_error(_SERVICE, _OPERATION, e) from e
        return response


def _to_price_point(record: dict[str, Any]) -> PricePoint:
    """응답 레코드 하나를 PricePoint로 변환 (Timestamp 누락은 조회 실패로 처리)"""
    timestamp = record.get("Timestamp")
    if not isinstance(timestamp, datetime):
        raise RetrievalFailedError(
            _SERVICE,
            _OPERATION,
            error_code="MalformedRecord",
            error_message=f"Timestamp 누락 또는 잘못된 값: {timestamp!r}",
        )
    return PricePoint(timestamp, parse_price(record.get("SpotPrice")))
