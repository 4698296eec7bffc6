"""
core/config.py - 전역 설정 및 환경변수 헬퍼

불변(frozen) ``Settings`` 데이터클래스로 기본값을 중앙 관리하고,
환경변수로 덮어쓸 수 있는 헬퍼 함수를 제공합니다.

환경변수:
    EMR_COST_MAX_WORKERS: 인스턴스 그룹 내 병렬 계산 스레드 수 (기본: 10)
    EMR_COST_MAX_PAGES: Spot 가격 이력 최대 페이지 수 (기본: 1000)
    EMR_COST_PRODUCT_DESCRIPTION: Spot 가격 상품 설명 (기본: "Linux/UNIX (Amazon VPC)")
    EMR_COST_BEST_EFFORT: 부분 실패 시 부분 합계 보고 여부 (기본: false)
    LOG_LEVEL, LOG_FORMAT: 로깅 설정

Usage:
    from core.config import settings, get_env_int

    max_workers = get_env_int("EMR_COST_MAX_WORKERS", settings.DEFAULT_MAX_WORKERS)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Settings:
    """애플리케이션 기본 설정 (불변)"""

    DEFAULT_REGION: str = "ap-northeast-2"

    # 병렬 처리
    DEFAULT_MAX_WORKERS: int = 10
    MAX_WORKERS_LIMIT: int = 100

    # Spot 가격 이력 조회
    SPOT_PRODUCT_DESCRIPTION: str = "Linux/UNIX (Amazon VPC)"
    SPOT_MAX_PAGES: int = 1000

    # boto3 전송 계층 (retry는 botocore가 담당)
    API_TIMEOUT: int = 30
    API_CONNECT_TIMEOUT: int = 10
    API_MAX_ATTEMPTS: int = 5


settings = Settings()


@dataclass
class LogConfig:
    """로깅 설정"""

    level: str = "INFO"
    format: str = "%(asctime)s - %(levelname)s - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    @classmethod
    def from_env(cls) -> LogConfig:
        """환경변수(LOG_LEVEL, LOG_FORMAT)에서 로드"""
        default = cls()
        return cls(
            level=os.getenv("LOG_LEVEL", default.level).upper(),
            format=os.getenv("LOG_FORMAT", default.format),
            date_format=default.date_format,
        )


# =============================================================================
# 프로젝트 경로
# =============================================================================


def get_project_root() -> Path:
    """프로젝트 루트 경로 반환"""
    return Path(__file__).resolve().parent.parent


def get_version() -> str:
    """version.txt에서 버전 문자열을 읽어 반환 (없으면 0.0.0)"""
    version_file = get_project_root() / "version.txt"
    try:
        return version_file.read_text(encoding="utf-8").strip() or "0.0.0"
    except OSError:
        return "0.0.0"


# =============================================================================
# 환경변수 헬퍼
# =============================================================================


def get_default_profile() -> str | None:
    """AWS_PROFILE -> AWS_DEFAULT_PROFILE 순서로 프로파일 조회"""
    return os.getenv("AWS_PROFILE") or os.getenv("AWS_DEFAULT_PROFILE")


def get_default_region() -> str:
    """AWS_REGION -> AWS_DEFAULT_REGION -> settings.DEFAULT_REGION 순서로 리전 조회"""
    return os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION") or settings.DEFAULT_REGION


def get_env_bool(name: str, default: bool = False) -> bool:
    """환경변수를 bool로 변환 (인식할 수 없는 값이면 기본값)"""
    value = os.getenv(name)
    if value is None:
        return default

    value = value.strip().lower()
    if value in ("true", "1", "yes", "on"):
        return True
    if value in ("false", "0", "no", "off"):
        return False
    return default


def get_env_int(name: str, default: int) -> int:
    """환경변수를 int로 변환 (누락되었거나 숫자가 아니면 기본값)"""
    value = os.getenv(name)
    if value is None:
        return default

    try:
        return int(value)
    except ValueError:
        return default


def get_max_workers() -> int:
    """EMR_COST_MAX_WORKERS 값을 1 ~ MAX_WORKERS_LIMIT 범위로 보정하여 반환"""
    workers = get_env_int("EMR_COST_MAX_WORKERS", settings.DEFAULT_MAX_WORKERS)
    return max(1, min(workers, settings.MAX_WORKERS_LIMIT))


def get_max_pages() -> int:
    """EMR_COST_MAX_PAGES 값 반환 (1 미만이면 기본값)"""
    pages = get_env_int("EMR_COST_MAX_PAGES", settings.SPOT_MAX_PAGES)
    return pages if pages >= 1 else settings.SPOT_MAX_PAGES


def get_product_description() -> str:
    """EMR_COST_PRODUCT_DESCRIPTION 값 반환"""
    return os.getenv("EMR_COST_PRODUCT_DESCRIPTION") or settings.SPOT_PRODUCT_DESCRIPTION
