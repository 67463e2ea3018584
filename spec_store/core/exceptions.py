"""커스텀 예외 정의"""

from typing import Optional


class SpecStoreError(Exception):
    """Base exception for Spec Store"""
    pass


class SpecParsingError(SpecStoreError):
    """OpenAPI 명세서 파싱 오류 (YAML/JSON 모두 실패)"""
    pass


class SpecValidationError(SpecStoreError):
    """명세서 구조 검증 오류 (skip_invalid_files 설정 시에만 치명적)"""
    def __init__(self, message: str, issues: Optional[list] = None):
        self.issues = list(issues or [])
        super().__init__(message)


class SourceLoadError(SpecStoreError):
    """파일/URL/디렉토리 로딩 오류"""

    NOT_FOUND = "not_found"
    PERMISSION = "permission"
    TIMEOUT = "timeout"
    EMPTY = "empty"
    UNSUPPORTED = "unsupported"
    HTTP = "http"
    NETWORK = "network"
    DECODE = "decode"

    def __init__(self, message: str, reason: str, source: Optional[str] = None):
        self.reason = reason
        self.source = source
        super().__init__(message)


class StorageError(SpecStoreError):
    """데이터베이스 저장 오류"""
    pass


class WatchError(SpecStoreError):
    """디렉토리 감시 오류"""
    pass


class OperationFailedError(SpecStoreError):
    """예상하지 못한 오류를 작업명/소스/경과 시간과 함께 감싼 예외"""
    def __init__(self, operation: str, source: str, elapsed: float, cause: BaseException):
        self.operation = operation
        self.source = source
        self.elapsed = elapsed
        self.cause = cause
        super().__init__(
            f"{operation} failed for {source} after {elapsed * 1000:.0f}ms: "
            f"{type(cause).__name__}: {cause}"
        )
