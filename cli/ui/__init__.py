# cli/ui - 콘솔 출력 컴포넌트 (rich)
"""
콘솔 출력 모듈

결과 테이블, 상태 메시지, 로깅 설정
"""

from .console import (
    console,
    err_console,
    get_console,
    print_cluster_cost,
    print_error,
    print_success,
    print_warning,
    setup_logging,
)

__all__ = [
    "console",
    "err_console",
    "get_console",
    "print_cluster_cost",
    "print_error",
    "print_success",
    "print_warning",
    "setup_logging",
]
