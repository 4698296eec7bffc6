"""
core/parallel/executor.py - Scatter/Gather 병렬 실행기

항목 목록에 같은 작업 함수를 병렬로 적용(fan-out)하고 결과를 모은다(fan-in).
ThreadPoolExecutor 기반이며, 공유 취소 신호(``threading.Event``)와
fail-fast 모드를 지원합니다.

주요 구성 요소:
- ParallelConfig: 병렬 실행 설정 (워커 수, fail-fast)
- TaskResult: 개별 작업 결과 (성공 데이터 또는 예외)
- ParallelExecutor: 병렬 실행기

Example:
    from core.parallel.executor import ParallelConfig, ParallelExecutor

    executor = ParallelExecutor(ParallelConfig(max_workers=10))
    results = executor.execute(compute_cost, instances, key=lambda i: i.instance_id)
    total = sum(r.data for r in results if r.success)
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Generic, TypeVar

from core.exceptions import get_error_code

logger = logging.getLogger(__name__)

K = TypeVar("K")
T = TypeVar("T")


@dataclass
class ParallelConfig:
    """병렬 실행 설정

    Attributes:
        max_workers: 최대 동시 스레드 수 (1~100)
        fail_fast: True면 첫 실패 시 나머지 작업을 취소하고 예외를 다시 발생시킴
    """

    max_workers: int = 10
    fail_fast: bool = True

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.max_workers > 100:
            self.max_workers = 100


@dataclass
class TaskResult(Generic[T]):
    """개별 작업 결과

    Attributes:
        key: 작업 식별자 (로깅/보고용)
        success: 성공 여부
        data: 성공 시 반환값
        error: 실패 시 예외
        duration_ms: 실행 시간 (밀리초)
        index: 입력 목록에서의 위치
    """

    key: str
    success: bool
    data: T | None = None
    error: Exception | None = None
    duration_ms: float = 0.0
    index: int = -1

    @property
    def error_code(self) -> str | None:
        return get_error_code(self.error) if self.error is not None else None


class ParallelExecutor:
    """Scatter/Gather 병렬 실행기

    특징:
    - ThreadPoolExecutor 기반 fan-out, ``as_completed`` 기반 fan-in
    - 결과 순서는 보장하지 않음 (완료 순서)
    - fail-fast: 첫 실패 시 cancel_event를 set하고 대기 중인 future를 취소
    - 외부 인터럽트(KeyboardInterrupt 등)도 cancel_event로 전파
    """

    def __init__(
        self,
        config: ParallelConfig | None = None,
        cancel_event: threading.Event | None = None,
    ):
        self.config = config or ParallelConfig()
        self.cancel_event = cancel_event or threading.Event()

    def execute(
        self,
        func: Callable[[K], T],
        items: Sequence[K],
        key: Callable[[K], str] = str,
    ) -> list[TaskResult[T]]:
        """작업 함수를 모든 항목에 병렬 실행

        Args:
            func: item -> T 함수
            items: 작업 대상 목록
            key: 항목 식별자 추출 함수

        Returns:
            TaskResult 리스트 (완료 순서, 입력 위치는 ``index``)

        Raises:
            fail_fast 모드에서 처음 실패한 작업의 예외
        """
        if not items:
            return []

        logger.debug(f"병렬 실행 시작: {len(items)}개 작업, max_workers={self.config.max_workers}")

        results: list[TaskResult[T]] = []
        first_failure: TaskResult[T] | None = None
        start_time = time.monotonic()

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            futures: dict[Future[TaskResult[T]], K] = {
                executor.submit(self._execute_single, func, item, key(item), index): item
                for index, item in enumerate(items)
            }
            try:
                for future in as_completed(futures):
                    result = future.result()
                    results.append(result)

                    if not result.success and self.config.fail_fast:
                        first_failure = result
                        self._cancel_pending(futures)
                        break
            except BaseException:
                self._cancel_pending(futures)
                raise

        total_time = (time.monotonic() - start_time) * 1000
        logger.debug(f"병렬 실행 완료: {len(results)}/{len(items)}개 결과, 총 {total_time:.0f}ms")

        if first_failure is not None and first_failure.error is not None:
            raise first_failure.error

        return results

    def _cancel_pending(self, futures: dict[Future[TaskResult[T]], K]) -> None:
        """취소 신호를 set하고 아직 시작하지 않은 future를 취소"""
        self.cancel_event.set()
        cancelled = sum(1 for f in futures if f.cancel())
        if cancelled:
            logger.debug(f"대기 중인 작업 {cancelled}개 취소")

    def _execute_single(self, func: Callable[[K], T], item: K, task_key: str, index: int = -1) -> TaskResult[T]:
        """단일 작업 실행 (워커 스레드 내에서 호출)"""
        start_time = time.monotonic()
        try:
            data = func(item)
            return TaskResult(
                key=task_key,
                success=True,
                data=data,
                duration_ms=(time.monotonic() - start_time) * 1000,
                index=index,
            )
        except Exception as e:
            logger.debug(f"[{task_key}] 작업 실패: {e}")
            return TaskResult(
                key=task_key,
                success=False,
                error=e,
                duration_ms=(time.monotonic() - start_time) * 1000,
                index=index,
            )
