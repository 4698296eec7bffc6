# core/__init__.py
"""
core - EMR Spot 비용 계산 인프라

비용 계산 코어와 이를 둘러싼 설정, 예외, 병렬 처리를 포함하는 최상위 패키지입니다.

아키텍처:
    core/
    ├── parallel/       # 병렬 처리 (scatter/gather executor, boto3 client)
    ├── shared/aws/
    │   ├── emr/        # EMR 클러스터 메타데이터 조회
    │   └── spot/       # Spot 가격 이력 조회, 캐시, 적분, 클러스터 비용 계산
    ├── config.py       # 중앙 설정 관리
    └── exceptions.py   # 통합 예외 계층

Usage:
    # 설정 사용
    from core.config import settings, get_default_region
    region = get_default_region()  # "ap-northeast-2"

    # 비용 계산
    from core.shared.aws.spot import ClusterCostCalculator
    result = ClusterCostCalculator(emr_client, ec2_client).compute_cluster_cost("j-2AXXXXXXGAPLF")

    # 예외 처리
    from core.exceptions import EmrCostError, ClusterNotFoundError
    try:
        result = calculator.compute_cluster_cost(cluster_id)
    except ClusterNotFoundError:
        print("클러스터가 없습니다")
"""
