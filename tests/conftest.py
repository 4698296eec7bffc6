"""
tests/conftest.py - pytest 공통 픽스처

AWS API 모킹과 테스트 헬퍼를 제공합니다.

Usage:
    def test_something(mock_emr_client, mock_ec2_client):
        # mock_emr_client: 인스턴스 그룹 클러스터 응답이 설정된 EMR 클라이언트
        # mock_ec2_client: describe_spot_price_history 응답이 설정된 EC2 클라이언트
        pass
"""

import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

# 프로젝트 루트를 sys.path에 추가
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


# =============================================================================
# 환경 설정
# =============================================================================


@pytest.fixture(autouse=True)
def setup_test_environment():
    """테스트 환경 설정"""
    # 테스트용 환경 변수 설정
    os.environ.setdefault("AWS_DEFAULT_REGION", "ap-northeast-2")
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

    yield


# 가격 이력 기준 시각
T0 = datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# 응답 생성 헬퍼
# =============================================================================


def create_mock_response(
    data: Dict[str, Any],
    next_token: Optional[str] = None,
) -> Dict[str, Any]:
    """페이지네이션 응답 생성 헬퍼"""
    response = data.copy()
    if next_token:
        response["NextToken"] = next_token
    return response


def create_spot_page(
    records: List[tuple],
    next_token: Optional[str] = None,
    instance_type: str = "m5.xlarge",
    availability_zone: str = "ap-northeast-2a",
) -> Dict[str, Any]:
    """describe_spot_price_history 응답 한 페이지 생성

    Args:
        records: (시각, 가격 문자열) 튜플 목록
    """
    history = [
        {
            "AvailabilityZone": availability_zone,
            "InstanceType": instance_type,
            "ProductDescription": "Linux/UNIX (Amazon VPC)",
            "SpotPrice": price,
            "Timestamp": ts,
        }
        for ts, price in records
    ]
    return create_mock_response({"SpotPriceHistory": history}, next_token)


def create_emr_instance(
    instance_id: str,
    instance_type: str = "m5.xlarge",
    market: str = "SPOT",
    created: Optional[datetime] = None,
    ended: Optional[datetime] = None,
    group_id: str = "ig-CORE",
) -> Dict[str, Any]:
    """EMR list_instances 응답 항목 생성"""
    timeline: Dict[str, Any] = {}
    if created is not None:
        timeline["CreationDateTime"] = created
    if ended is not None:
        timeline["EndDateTime"] = ended

    return {
        "Id": f"ci-{instance_id[2:]}",
        "Ec2InstanceId": instance_id,
        "InstanceGroupId": group_id,
        "InstanceType": instance_type,
        "Market": market,
        "Status": {"State": "TERMINATED" if ended else "RUNNING", "Timeline": timeline},
    }


def create_mock_client_error(
    error_code: str,
    error_message: str = "Test error",
) -> Exception:
    """ClientError 생성 헬퍼"""
    from botocore.exceptions import ClientError

    return ClientError(
        {
            "Error": {
                "Code": error_code,
                "Message": error_message,
            }
        },
        "TestOperation",
    )


def make_paginator(pages_by_operation: Dict[str, List[Dict[str, Any]]]):
    """operation 이름별 페이지 목록을 돌려주는 get_paginator side_effect 생성"""

    def _get_paginator(operation: str):
        paginator = MagicMock()
        paginator.paginate.return_value = pages_by_operation.get(operation, [])
        return paginator

    return _get_paginator


@pytest.fixture
def spot_page():
    """create_spot_page 헬퍼"""
    return create_spot_page


@pytest.fixture
def emr_instance():
    """create_emr_instance 헬퍼"""
    return create_emr_instance


@pytest.fixture
def client_error():
    """create_mock_client_error 헬퍼"""
    return create_mock_client_error


@pytest.fixture
def paginator_factory():
    """make_paginator 헬퍼"""
    return make_paginator


# =============================================================================
# AWS 모킹 픽스처
# =============================================================================


@pytest.fixture
def mock_emr_client():
    """EMR 클라이언트 모킹 (인스턴스 그룹 클러스터, 빈 그룹 목록)"""
    mock_client = MagicMock()

    mock_client.describe_cluster.return_value = {
        "Cluster": {
            "Id": "j-TESTCLUSTER",
            "Name": "test-cluster",
            "InstanceCollectionType": "INSTANCE_GROUP",
            "Ec2InstanceAttributes": {"Ec2AvailabilityZone": "ap-northeast-2a"},
        }
    }
    mock_client.get_paginator.side_effect = make_paginator({})

    yield mock_client


@pytest.fixture
def mock_ec2_client():
    """EC2 클라이언트 모킹 (T0부터 시간당 $1 단일 가격)"""
    mock_client = MagicMock()

    mock_client.describe_spot_price_history.return_value = create_spot_page([(T0, "1.000000")])

    yield mock_client


# =============================================================================
# moto 통합 (선택적)
# =============================================================================

try:
    import moto

    @pytest.fixture
    def aws_credentials():
        """moto 사용 시 AWS 자격 증명 설정"""
        os.environ["AWS_ACCESS_KEY_ID"] = "testing"
        os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
        os.environ["AWS_SECURITY_TOKEN"] = "testing"
        os.environ["AWS_SESSION_TOKEN"] = "testing"
        os.environ["AWS_DEFAULT_REGION"] = "us-east-1"

    @pytest.fixture
    def moto_emr(aws_credentials):
        """moto를 사용한 EMR 모킹"""
        with moto.mock_aws():
            import boto3

            emr = boto3.client("emr", region_name="us-east-1")
            yield emr

except ImportError:
    # moto가 설치되지 않은 경우 더미 픽스처
    @pytest.fixture
    def moto_emr():
        pytest.skip("moto not installed")
