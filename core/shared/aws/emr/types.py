"""
core/shared/aws/emr/types.py - EMR 클러스터 메타데이터 타입 정의

비용 계산에 필요한 최소한의 클러스터/그룹/인스턴스 정보를 담는다.
모든 타입은 조회 시점에 생성되며 변경되지 않는다.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class MarketType(str, Enum):
    """인스턴스 과금 시장 구분"""

    SPOT = "SPOT"
    FIXED_RATE = "FIXED_RATE"

    @classmethod
    def from_emr(cls, market: str | None) -> MarketType:
        """EMR ``Market`` 값 변환 (``SPOT`` 외에는 모두 고정 요금)"""
        return cls.SPOT if (market or "").upper() == "SPOT" else cls.FIXED_RATE


class CollectionType(str, Enum):
    """EMR 인스턴스 구성 방식"""

    INSTANCE_GROUP = "INSTANCE_GROUP"
    INSTANCE_FLEET = "INSTANCE_FLEET"


@dataclass(frozen=True)
class ClusterInfo:
    """EMR 클러스터 정보

    Attributes:
        cluster_id: 클러스터 ID (예: ``j-2AXXXXXXGAPLF``)
        name: 클러스터 이름
        availability_zone: 클러스터가 실행된 가용 영역
        collection_type: 인스턴스 그룹 / 인스턴스 플릿
    """

    cluster_id: str
    name: str
    availability_zone: str
    collection_type: CollectionType


@dataclass(frozen=True)
class InstanceGroupInfo:
    """인스턴스 그룹(또는 플릿) 정보"""

    group_id: str
    name: str
    collection_type: CollectionType = CollectionType.INSTANCE_GROUP


@dataclass(frozen=True)
class InstanceRuntime:
    """비용 계산 대상 인스턴스

    Attributes:
        instance_id: EC2 인스턴스 ID (없으면 EMR 인스턴스 ID)
        instance_type: 인스턴스 타입 (예: ``m5.xlarge``)
        availability_zone: 가용 영역
        market: SPOT / FIXED_RATE
        creation_time: 생성 시각 (아직 생성되지 않았으면 None)
        end_time: 종료 시각 (실행 중이면 None)
        group_id: 소속 인스턴스 그룹/플릿 ID
    """

    instance_id: str
    instance_type: str
    availability_zone: str
    market: MarketType
    creation_time: datetime | None
    end_time: datetime | None = None
    group_id: str = ""

    @property
    def is_running(self) -> bool:
        return self.creation_time is not None and self.end_time is None

    def running_interval(self, as_of: datetime) -> tuple[datetime, datetime] | None:
        """과금 구간 [creation_time, end_time) 반환

        실행 중인 인스턴스는 as_of 를 끝으로 사용한다.
        생성되지 않았거나 길이가 0 이하인 구간은 None.
        """
        if self.creation_time is None:
            return None
        end = self.end_time if self.end_time is not None else as_of
        if end <= self.creation_time:
            return None
        return self.creation_time, end
