"""
core/shared/aws/emr/metadata.py - EMR 클러스터 메타데이터 조회

클러스터 -> 인스턴스 그룹(또는 플릿) -> 인스턴스 순서로 조회한다.
목록 API는 boto3 paginator로 모든 페이지를 소비한다.

에러 처리:
    - describe_cluster 가 InvalidRequestException/ResourceNotFoundException 이거나
      Cluster 가 비어 있으면 ``ClusterNotFoundError``
    - 그 외 ClientError/BotoCoreError 는 ``RetrievalFailedError``
"""

from __future__ import annotations

import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from core.exceptions import ClusterNotFoundError, RetrievalFailedError, is_not_found

from .types import ClusterInfo, CollectionType, InstanceGroupInfo, InstanceRuntime, MarketType

logger = logging.getLogger(__name__)


class EmrClusterMetadata:
    """EMR 클러스터 메타데이터 조회기

    Example:
        metadata = EmrClusterMetadata(get_client(session, "emr", region_name=region))
        cluster = metadata.describe_cluster("j-2AXXXXXXGAPLF")
        for group in metadata.list_groups(cluster):
            instances = metadata.list_instances(cluster, group)
    """

    def __init__(self, emr_client: Any):
        self._client = emr_client

    def describe_cluster(self, cluster_id: str) -> ClusterInfo:
        """클러스터 정보 조회

        Raises:
            ClusterNotFoundError: 클러스터가 없음
            RetrievalFailedError: API 호출 실패
        """
        try:
            response = self._client.describe_cluster(ClusterId=cluster_id)
        except ClientError as e:
            if is_not_found(e):
                raise ClusterNotFoundError(cluster_id, cause=e) from e
            raise RetrievalFailedError.from_client_error("emr", "describe_cluster", e) from e
        except BotoCoreError as e:
            raise RetrievalFailedError.from_client_error("emr", "describe_cluster", e) from e

        cluster = response.get("Cluster")
        if not cluster:
            raise ClusterNotFoundError(cluster_id)

        collection = cluster.get("InstanceCollectionType") or CollectionType.INSTANCE_GROUP.value
        return ClusterInfo(
            cluster_id=cluster.get("Id", cluster_id),
            name=cluster.get("Name", ""),
            availability_zone=cluster.get("Ec2InstanceAttributes", {}).get("Ec2AvailabilityZone", ""),
            collection_type=CollectionType(collection),
        )

    def list_groups(self, cluster: ClusterInfo) -> list[InstanceGroupInfo]:
        """구성 방식에 따라 인스턴스 그룹 또는 인스턴스 플릿 목록 조회"""
        if cluster.collection_type is CollectionType.INSTANCE_FLEET:
            items = self._paginate("list_instance_fleets", "InstanceFleets", ClusterId=cluster.cluster_id)
        else:
            items = self._paginate("list_instance_groups", "InstanceGroups", ClusterId=cluster.cluster_id)

        return [
            InstanceGroupInfo(
                group_id=item["Id"],
                name=item.get("Name", item["Id"]),
                collection_type=cluster.collection_type,
            )
            for item in items
        ]

    def list_instances(self, cluster: ClusterInfo, group: InstanceGroupInfo) -> list[InstanceRuntime]:
        """그룹(플릿)에 속한 인스턴스 목록 조회 (종료된 인스턴스 포함)"""
        if group.collection_type is CollectionType.INSTANCE_FLEET:
            filters = {"InstanceFleetId": group.group_id}
        else:
            filters = {"InstanceGroupId": group.group_id}

        items = self._paginate("list_instances", "Instances", ClusterId=cluster.cluster_id, **filters)

        instances = []
        for item in items:
            timeline = item.get("Status", {}).get("Timeline", {})
            instances.append(
                InstanceRuntime(
                    instance_id=item.get("Ec2InstanceId") or item.get("Id", ""),
                    instance_type=item.get("InstanceType", ""),
                    availability_zone=cluster.availability_zone,
                    market=MarketType.from_emr(item.get("Market")),
                    creation_time=timeline.get("CreationDateTime"),
                    end_time=timeline.get("EndDateTime"),
                    group_id=group.group_id,
                )
            )
        return instances

    def _paginate(self, operation: str, result_key: str, **kwargs: Any) -> list[dict[str, Any]]:
        """paginator로 모든 페이지의 result_key 항목을 모은다."""
        items: list[dict[str, Any]] = []
        try:
            paginator = self._client.get_paginator(operation)
            for page in paginator.paginate(**kwargs):
                items.extend(page.get(result_key, []))
        except (ClientError, BotoCoreError) as e:
            raise RetrievalFailedError.from_client_error("emr", operation, e) from e
        return items
