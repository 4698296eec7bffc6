"""
core/shared/aws/emr - EMR 클러스터 메타데이터

사용법:
    from core.shared.aws.emr import EmrClusterMetadata

    metadata = EmrClusterMetadata(emr_client)
    cluster = metadata.describe_cluster("j-2AXXXXXXGAPLF")
"""

from .metadata import EmrClusterMetadata
from .types import ClusterInfo, CollectionType, InstanceGroupInfo, InstanceRuntime, MarketType

__all__: list[str] = [
    "EmrClusterMetadata",
    "ClusterInfo",
    "CollectionType",
    "InstanceGroupInfo",
    "InstanceRuntime",
    "MarketType",
]
