"""
tests/shared/aws/emr/test_emr_metadata.py - EmrClusterMetadata 테스트
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from core.exceptions import ClusterNotFoundError, RetrievalFailedError
from core.shared.aws.emr.metadata import EmrClusterMetadata
from core.shared.aws.emr.types import ClusterInfo, CollectionType, InstanceGroupInfo, InstanceRuntime, MarketType

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def group_cluster():
    return ClusterInfo("j-TESTCLUSTER", "test-cluster", "ap-northeast-2a", CollectionType.INSTANCE_GROUP)


class TestDescribeCluster:
    """describe_cluster 테스트"""

    def test_describe_cluster(self, mock_emr_client):
        cluster = EmrClusterMetadata(mock_emr_client).describe_cluster("j-TESTCLUSTER")

        assert cluster.cluster_id == "j-TESTCLUSTER"
        assert cluster.name == "test-cluster"
        assert cluster.availability_zone == "ap-northeast-2a"
        assert cluster.collection_type is CollectionType.INSTANCE_GROUP

    def test_collection_type_defaults_to_group(self):
        client = MagicMock()
        client.describe_cluster.return_value = {"Cluster": {"Id": "j-1", "Name": "c"}}

        cluster = EmrClusterMetadata(client).describe_cluster("j-1")

        assert cluster.collection_type is CollectionType.INSTANCE_GROUP
        assert cluster.availability_zone == ""

    def test_invalid_cluster_id(self, client_error):
        """EMR은 없는 클러스터에 InvalidRequestException을 반환"""
        client = MagicMock()
        client.describe_cluster.side_effect = client_error("InvalidRequestException", "Cluster id 'j-X' is not valid.")

        with pytest.raises(ClusterNotFoundError) as exc_info:
            EmrClusterMetadata(client).describe_cluster("j-X")

        assert exc_info.value.cluster_id == "j-X"

    def test_empty_response(self):
        client = MagicMock()
        client.describe_cluster.return_value = {}

        with pytest.raises(ClusterNotFoundError):
            EmrClusterMetadata(client).describe_cluster("j-X")

    def test_other_errors_are_retrieval_failures(self, client_error):
        client = MagicMock()
        client.describe_cluster.side_effect = client_error("AccessDeniedException")

        with pytest.raises(RetrievalFailedError) as exc_info:
            EmrClusterMetadata(client).describe_cluster("j-1")

        assert exc_info.value.error_code == "AccessDeniedException"


class TestListGroups:
    """list_groups 테스트"""

    def test_instance_groups_all_pages(self, group_cluster, paginator_factory):
        client = MagicMock()
        client.get_paginator.side_effect = paginator_factory(
            {
                "list_instance_groups": [
                    {"InstanceGroups": [{"Id": "ig-MASTER", "Name": "Master"}]},
                    {"InstanceGroups": [{"Id": "ig-CORE", "Name": "Core"}, {"Id": "ig-TASK"}]},
                ]
            }
        )

        groups = EmrClusterMetadata(client).list_groups(group_cluster)

        assert [g.group_id for g in groups] == ["ig-MASTER", "ig-CORE", "ig-TASK"]
        # 이름이 없으면 ID 사용
        assert groups[2].name == "ig-TASK"
        client.get_paginator.assert_called_once_with("list_instance_groups")

    def test_instance_fleets(self, paginator_factory):
        client = MagicMock()
        client.get_paginator.side_effect = paginator_factory(
            {"list_instance_fleets": [{"InstanceFleets": [{"Id": "if-CORE", "Name": "Core"}]}]}
        )
        cluster = ClusterInfo("j-1", "c", "ap-northeast-2a", CollectionType.INSTANCE_FLEET)

        groups = EmrClusterMetadata(client).list_groups(cluster)

        assert groups == [InstanceGroupInfo("if-CORE", "Core", CollectionType.INSTANCE_FLEET)]

    def test_paginator_error(self, group_cluster, client_error):
        client = MagicMock()
        paginator = MagicMock()
        paginator.paginate.side_effect = client_error("ThrottlingException")
        client.get_paginator.return_value = paginator

        with pytest.raises(RetrievalFailedError) as exc_info:
            EmrClusterMetadata(client).list_groups(group_cluster)

        assert exc_info.value.operation == "list_instance_groups"


class TestListInstances:
    """list_instances 테스트"""

    def test_instances_parsed(self, group_cluster, emr_instance):
        client = MagicMock()
        paginator = MagicMock()
        paginator.paginate.return_value = [
            {"Instances": [emr_instance("i-1", created=T0, ended=T0.replace(hour=2))]},
            {"Instances": [emr_instance("i-2", market="ON_DEMAND", created=T0)]},
        ]
        client.get_paginator.return_value = paginator
        group = InstanceGroupInfo("ig-CORE", "Core")

        instances = EmrClusterMetadata(client).list_instances(group_cluster, group)

        paginator.paginate.assert_called_once_with(ClusterId="j-TESTCLUSTER", InstanceGroupId="ig-CORE")
        assert instances[0] == InstanceRuntime(
            instance_id="i-1",
            instance_type="m5.xlarge",
            availability_zone="ap-northeast-2a",
            market=MarketType.SPOT,
            creation_time=T0,
            end_time=T0.replace(hour=2),
            group_id="ig-CORE",
        )
        assert instances[1].market is MarketType.FIXED_RATE
        assert instances[1].is_running

    def test_fleet_filter(self, emr_instance):
        client = MagicMock()
        paginator = MagicMock()
        paginator.paginate.return_value = [{"Instances": []}]
        client.get_paginator.return_value = paginator
        cluster = ClusterInfo("j-1", "c", "ap-northeast-2a", CollectionType.INSTANCE_FLEET)
        fleet = InstanceGroupInfo("if-CORE", "Core", CollectionType.INSTANCE_FLEET)

        assert EmrClusterMetadata(client).list_instances(cluster, fleet) == []
        paginator.paginate.assert_called_once_with(ClusterId="j-1", InstanceFleetId="if-CORE")

    def test_missing_ec2_id_falls_back_to_emr_id(self, group_cluster):
        client = MagicMock()
        paginator = MagicMock()
        paginator.paginate.return_value = [{"Instances": [{"Id": "ci-ABC", "InstanceType": "m5.xlarge", "Status": {}}]}]
        client.get_paginator.return_value = paginator

        instances = EmrClusterMetadata(client).list_instances(group_cluster, InstanceGroupInfo("ig-CORE", "Core"))

        assert instances[0].instance_id == "ci-ABC"
        assert instances[0].creation_time is None


class TestInstanceRuntime:
    def _instance(self, created, ended=None):
        return InstanceRuntime("i-1", "m5.xlarge", "ap-northeast-2a", MarketType.SPOT, created, ended)

    def test_running_interval_uses_as_of(self):
        as_of = T0.replace(hour=5)

        assert self._instance(T0).running_interval(as_of) == (T0, as_of)

    def test_running_interval_terminated(self):
        ended = T0.replace(hour=1)

        assert self._instance(T0, ended).running_interval(T0.replace(hour=5)) == (T0, ended)

    def test_running_interval_none(self):
        assert self._instance(None).running_interval(T0) is None
        assert self._instance(T0, T0).running_interval(T0.replace(hour=5)) is None

    @pytest.mark.parametrize(
        "market,expected",
        [
            ("SPOT", MarketType.SPOT),
            ("spot", MarketType.SPOT),
            ("ON_DEMAND", MarketType.FIXED_RATE),
            (None, MarketType.FIXED_RATE),
        ],
    )
    def test_market_from_emr(self, market, expected):
        assert MarketType.from_emr(market) is expected


class TestMotoIntegration:
    """moto EMR 모킹으로 실제 boto3 응답 형식 확인"""

    def test_describe_cluster_and_groups(self, moto_emr):
        response = moto_emr.run_job_flow(
            Name="test-cluster",
            ReleaseLabel="emr-6.15.0",
            Instances={
                "InstanceGroups": [
                    {"Name": "Master", "InstanceRole": "MASTER", "InstanceType": "m5.xlarge", "InstanceCount": 1},
                    {
                        "Name": "Core",
                        "InstanceRole": "CORE",
                        "InstanceType": "m5.xlarge",
                        "InstanceCount": 2,
                        "Market": "SPOT",
                    },
                ],
                "KeepJobFlowAliveWhenNoSteps": True,
                "Placement": {"AvailabilityZone": "us-east-1a"},
            },
            JobFlowRole="EMR_EC2_DefaultRole",
            ServiceRole="EMR_DefaultRole",
        )
        metadata = EmrClusterMetadata(moto_emr)

        cluster = metadata.describe_cluster(response["JobFlowId"])
        groups = metadata.list_groups(cluster)

        assert cluster.name == "test-cluster"
        assert cluster.collection_type is CollectionType.INSTANCE_GROUP
        assert sorted(g.name for g in groups) == ["Core", "Master"]
