"""
core/parallel - 병렬 처리 모듈

인스턴스별 비용 계산을 병렬로 안전하게 처리합니다.

주요 구성 요소:
- ParallelExecutor: Scatter/Gather 병렬 실행기 (fail-fast, 취소 신호 전파)
- get_client: retry/timeout이 설정된 boto3 client 생성

Example:
    from core.parallel import ParallelConfig, ParallelExecutor

    executor = ParallelExecutor(ParallelConfig(max_workers=10, fail_fast=False))
    results = executor.execute(compute_cost, instances, key=lambda i: i.instance_id)

    failed = [r for r in results if not r.success]
"""

from .client import get_client
from .executor import ParallelConfig, ParallelExecutor, TaskResult

__all__: list[str] = [
    # Executor
    "ParallelExecutor",
    "ParallelConfig",
    "TaskResult",
    # Client (retry 적용)
    "get_client",
]
