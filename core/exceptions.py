"""
core/exceptions.py - 통합 예외 계층 구조

클러스터 비용 계산 전체에서 사용되는 예외 클래스들을 정의합니다.
일관된 예외 처리와 에러 메시지를 제공합니다.

예외 계층 구조:
    EmrCostError (베이스)
    ├── ClusterNotFoundError (클러스터 조회 실패)
    ├── RetrievalFailedError (EMR/EC2 API 호출 실패)
    │   └── PaginationLimitError (페이지네이션 한도 초과)
    ├── InsufficientCoverageError (가격 이력이 구간을 덮지 못함)
    ├── MalformedPriceError (가격 문자열 파싱 실패)
    ├── OperationCancelledError (취소 신호 감지)
    └── ConfigError (설정 관련)

Usage:
    from core.exceptions import RetrievalFailedError

    try:
        response = ec2.describe_spot_price_history(...)
    except ClientError as e:
        raise RetrievalFailedError.from_client_error(
            service="ec2",
            operation="describe_spot_price_history",
            client_error=e,
        ) from e
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

# =============================================================================
# 베이스 예외
# =============================================================================


class EmrCostError(Exception):
    """EMR 비용 계산 기본 예외 클래스

    모든 커스텀 예외의 베이스 클래스입니다.

    Attributes:
        message: 에러 메시지
        cause: 원인 예외 (체이닝용)
        details: 추가 상세 정보
    """

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details = details or {}

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """예외 정보를 딕셔너리로 반환"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "cause": str(self.cause) if self.cause else None,
            "details": self.details,
        }


# =============================================================================
# 클러스터 / API 호출 관련 예외
# =============================================================================


class ClusterNotFoundError(EmrCostError):
    """클러스터를 찾을 수 없는 경우 (재시도하지 않음)"""

    def __init__(self, cluster_id: str, cause: Optional[Exception] = None):
        super().__init__(f"클러스터를 찾을 수 없음 [{cluster_id}]", cause)
        self.cluster_id = cluster_id
        self.details["cluster_id"] = cluster_id


class RetrievalFailedError(EmrCostError):
    """AWS API 호출 실패 예외

    boto3/botocore의 ClientError를 래핑합니다.
    코어는 재시도하지 않으며, 재시도는 botocore retry 설정(전송 계층)의 몫입니다.
    """

    def __init__(
        self,
        service: str,
        operation: str,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        message = f"{service}.{operation}"
        if error_code:
            message = f"{message} 실패 ({error_code})"
        if error_message:
            message = f"{message}: {error_message}"

        super().__init__(message, cause)
        self.service = service
        self.operation = operation
        self.error_code = error_code
        self.error_message = error_message
        self.details.update(
            {
                "service": service,
                "operation": operation,
                "error_code": error_code,
            }
        )

    @classmethod
    def from_client_error(
        cls,
        service: str,
        operation: str,
        client_error: Exception,
    ) -> "RetrievalFailedError":
        """botocore.exceptions.ClientError(또는 BotoCoreError)로부터 생성

        Args:
            service: AWS 서비스 이름
            operation: API 작업 이름
            client_error: 원본 예외

        Returns:
            RetrievalFailedError 인스턴스
        """
        error_code = None
        error_message = None

        # ClientError 형식 파싱
        if hasattr(client_error, "response"):
            error_info = client_error.response.get("Error", {})
            error_code = error_info.get("Code")
            error_message = error_info.get("Message")

        return cls(
            service=service,
            operation=operation,
            error_code=error_code,
            error_message=error_message,
            cause=client_error,
        )


class PaginationLimitError(RetrievalFailedError):
    """페이지네이션이 종료되지 않는 경우 (최대 페이지 수 초과, 토큰 반복)"""

    def __init__(self, service: str, operation: str, reason: str):
        super().__init__(service=service, operation=operation, error_code="PaginationLimit", error_message=reason)
        self.reason = reason


# =============================================================================
# 가격 이력 / 적분 관련 예외
# =============================================================================


class InsufficientCoverageError(EmrCostError):
    """가격 이력이 요청 구간을 덮지 못하는 경우

    캐시를 통해 조회했다면 발생하지 않아야 하는 내부 계약 위반입니다.
    """

    def __init__(
        self,
        window_start: datetime,
        window_end: datetime,
        earliest: Optional[datetime] = None,
    ):
        if earliest is None:
            reason = "가격 이력 없음"
        else:
            reason = f"첫 가격 시점 {earliest.isoformat()}"
        message = f"가격 이력 부족 [{window_start.isoformat()} ~ {window_end.isoformat()}]: {reason}"
        super().__init__(message)
        self.window_start = window_start
        self.window_end = window_end
        self.earliest = earliest
        self.details.update(
            {
                "window_start": window_start.isoformat(),
                "window_end": window_end.isoformat(),
                "earliest": earliest.isoformat() if earliest else None,
            }
        )


class MalformedPriceError(EmrCostError):
    """가격 문자열이 10진수로 파싱되지 않는 경우"""

    def __init__(self, raw_price: Any, cause: Optional[Exception] = None):
        super().__init__(f"잘못된 가격 값: {raw_price!r}", cause)
        self.raw_price = raw_price
        self.details["raw_price"] = str(raw_price)


class OperationCancelledError(EmrCostError):
    """취소 신호가 감지되어 작업이 중단된 경우"""

    def __init__(self, operation: str = "unknown"):
        super().__init__(f"작업 취소됨 [{operation}]")
        self.operation = operation


# =============================================================================
# 설정 관련 예외
# =============================================================================


class ConfigError(EmrCostError):
    """설정 관련 예외"""

    def __init__(
        self,
        key: str,
        message: str,
        cause: Optional[Exception] = None,
    ):
        full_message = f"설정 오류 [{key}]: {message}"
        super().__init__(full_message, cause)
        self.config_key = key
        self.details["config_key"] = key


# =============================================================================
# 예외 유틸리티 함수
# =============================================================================


NOT_FOUND_CODES = {
    "ResourceNotFoundException",
    "NotFoundException",
    "InvalidRequestException",
}


def get_error_code(error: Exception) -> str:
    """예외 객체에서 에러 코드 문자열 추출

    ClientError의 경우 response에서 Code를 추출하고,
    그 외에는 예외 클래스명을 반환합니다.
    """
    if isinstance(error, RetrievalFailedError) and error.error_code:
        return error.error_code

    response = getattr(error, "response", None)
    if response is not None:
        code: str = response.get("Error", {}).get("Code", "Unknown")
        return code
    return error.__class__.__name__


def is_not_found(error: Exception) -> bool:
    """리소스를 찾을 수 없는 오류인지 확인

    EMR은 존재하지 않는 클러스터 ID에 대해 InvalidRequestException을 반환합니다.

    Args:
        error: 확인할 예외

    Returns:
        리소스 없음 오류이면 True
    """
    if isinstance(error, ClusterNotFoundError):
        return True
    if isinstance(error, RetrievalFailedError):
        return error.error_code in NOT_FOUND_CODES

    if hasattr(error, "response"):
        error_code = error.response.get("Error", {}).get("Code", "")
        return error_code in NOT_FOUND_CODES

    return False


def format_error_for_user(error: Exception) -> str:
    """사용자에게 표시할 에러 메시지 포맷팅

    Args:
        error: 예외

    Returns:
        사용자 친화적인 에러 메시지
    """
    if isinstance(error, EmrCostError):
        # 커스텀 예외는 이미 포맷팅됨
        return str(error)

    # boto3 ClientError
    if hasattr(error, "response"):
        error_info = error.response.get("Error", {})
        code = error_info.get("Code", "UnknownError")
        message = error_info.get("Message", str(error))

        friendly_messages = {
            "AccessDenied": "권한이 없습니다. IAM 정책을 확인하세요.",
            "AccessDeniedException": "권한이 없습니다. IAM 정책을 확인하세요.",
            "UnauthorizedOperation": "권한이 없습니다. ec2:DescribeSpotPriceHistory 권한을 확인하세요.",
            "ExpiredToken": "인증 토큰이 만료되었습니다. 다시 로그인하세요.",
            "Throttling": "요청이 너무 많습니다. 잠시 후 다시 시도하세요.",
        }

        return friendly_messages.get(code, f"{code}: {message}")

    return str(error)
