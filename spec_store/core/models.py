"""Pydantic 모델 정의"""

import json
from typing import Any, List, Optional, Literal
from pydantic import BaseModel, ConfigDict, Field


JSON_CONTENT_TYPE = "application/json"

_JSON_KEY_TYPES = (str, int, float, bool)


def _normalize_keys(value: Any) -> Any:
    """json.dumps가 받지 못하는 매핑 키(date 등)를 문자열로 변환"""
    if isinstance(value, dict):
        return {
            (key if key is None or isinstance(key, _JSON_KEY_TYPES) else str(key)):
            _normalize_keys(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_normalize_keys(item) for item in value]
    return value


# ============================================================================
# Opaque Payload
# ============================================================================

class OpaqueDocument(BaseModel):
    """재해석하지 않고 그대로 저장하는 구조화 페이로드 (bytes + content-type)"""
    content: bytes
    content_type: str = JSON_CONTENT_TYPE

    @classmethod
    def from_value(cls, value: Any) -> "OpaqueDocument":
        """임의의 구조화 값을 JSON 바이트로 감싼다

        YAML이 만들어내는 date 등 JSON 비호환 스칼라는 키와 값 모두 문자열로 직렬화된다.
        """
        text = json.dumps(_normalize_keys(value), ensure_ascii=False, default=str)
        return cls(content=text.encode("utf-8"))

    @classmethod
    def from_text(cls, text: str, content_type: str = JSON_CONTENT_TYPE) -> "OpaqueDocument":
        return cls(content=text.encode("utf-8"), content_type=content_type)

    def to_text(self) -> str:
        return self.content.decode("utf-8")

    def to_value(self) -> Any:
        """JSON 페이로드를 파이썬 값으로 복원"""
        return json.loads(self.content)


# ============================================================================
# Extracted Entity Models
# ============================================================================

class SpecSummary(BaseModel):
    """명세서 기본 정보 (descriptor 요약)"""
    name: str
    title: str
    summary: str = ""
    version: str
    dialect: str  # "3.0.0", "2.0", "unknown"


class ServerEntry(BaseModel):
    """서버 정보"""
    url: str
    description: str = ""


class OperationEntry(BaseModel):
    """엔드포인트 (method + path)"""
    method: str  # "GET", "POST", etc.
    path: str
    summary: str = ""
    description: str = ""
    security: Optional[OpaqueDocument] = None
    parameters: Optional[OpaqueDocument] = None
    responses: Optional[OpaqueDocument] = None
    request_body: Optional[OpaqueDocument] = None

    @property
    def key(self) -> str:
        return f"{self.method} {self.path}"


class SchemaEntry(BaseModel):
    """components.schemas 항목"""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str = ""
    schema_: OpaqueDocument = Field(..., alias="schema")


class SecuritySchemeEntry(BaseModel):
    """components.securitySchemes 항목"""
    name: str
    type: str = "unknown"
    scheme: Optional[str] = None
    description: str = ""
    content: OpaqueDocument


class ResponseEntry(BaseModel):
    """components.responses 항목"""
    name: str
    description: str = ""
    content: OpaqueDocument


class ExtractedSpec(BaseModel):
    """추출기 출력 (descriptor + 5개 하위 컬렉션)"""
    basic: SpecSummary
    document: OpaqueDocument
    servers: List[ServerEntry] = Field(default_factory=list)
    operations: List[OperationEntry] = Field(default_factory=list)
    schemas: List[SchemaEntry] = Field(default_factory=list)
    security_schemes: List[SecuritySchemeEntry] = Field(default_factory=list)
    responses: List[ResponseEntry] = Field(default_factory=list)
    content_hash: Optional[str] = None
    short_hash: Optional[str] = None


class ExtractionStats(BaseModel):
    """추출 통계"""
    server_count: int = 0
    path_count: int = 0
    schema_count: int = 0
    security_scheme_count: int = 0
    response_count: int = 0


# ============================================================================
# Stored Models
# ============================================================================

class SpecDescriptor(BaseModel):
    """저장된 최상위 명세서 레코드"""
    id: int
    name: str
    title: str = ""
    summary: str = ""
    version: str = ""
    dialect: str = ""
    content: OpaqueDocument
    content_hash: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


# ============================================================================
# Validation Models
# ============================================================================

class ValidationIssue(BaseModel):
    """검증 오류/경고"""
    field: str
    message: str
    severity: Literal["error", "warning"]

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class ValidationResult(BaseModel):
    """검증 결과"""
    valid: bool
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationIssue] = Field(default_factory=list)
    dialect_version: Optional[str] = None

    @property
    def has_errors(self) -> bool:
        """에러가 있는지 확인"""
        return len(self.errors) > 0

    @property
    def has_warnings(self) -> bool:
        """경고가 있는지 확인"""
        return len(self.warnings) > 0


# ============================================================================
# Loading Models
# ============================================================================

class LoadResult(BaseModel):
    """파일/URL 로딩 결과"""
    success: bool
    source: str
    message: str
    content: Optional[str] = None
    raw: Optional[bytes] = None  # 해시 대상 원본 바이트
    name: Optional[str] = None


class DirectoryScanResult(BaseModel):
    """디렉토리 스캔 결과"""
    success: bool
    files: List[str] = Field(default_factory=list)  # 절대 경로
    message: str


# ============================================================================
# Storage Models
# ============================================================================

class StorageDetails(BaseModel):
    """저장된 하위 항목 개수"""
    servers_stored: int = 0
    paths_stored: int = 0
    schemas_stored: int = 0
    security_schemes_stored: int = 0
    responses_stored: int = 0


class ChildInsertResult(BaseModel):
    """하위 항목 1건의 저장 결과"""
    kind: Literal["server", "path", "schema", "security_scheme", "response"]
    key: str
    success: bool
    error: Optional[str] = None


class StorageResult(BaseModel):
    """저장 결과"""
    success: bool
    message: str
    spec_id: Optional[int] = None
    details: StorageDetails = Field(default_factory=StorageDetails)
    skipped: bool = False
    child_results: List[ChildInsertResult] = Field(default_factory=list)

    @property
    def failed_children(self) -> List[ChildInsertResult]:
        return [r for r in self.child_results if not r.success]


# ============================================================================
# Pipeline Models
# ============================================================================

class ProcessorConfig(BaseModel):
    """인제스트 파이프라인 설정"""
    enable_validation: bool = True
    skip_invalid_files: bool = False
    enable_logging: bool = True


class ProcessingResult(BaseModel):
    """소스 1건의 인제스트 결과"""
    success: bool
    source: str
    message: str
    name: Optional[str] = None
    validation: Optional[ValidationResult] = None
    storage: Optional[StorageResult] = None


class ProcessingStats(BaseModel):
    """여러 인제스트 결과의 통계"""
    total: int
    successful: int
    failed: int
    skipped: int
    validation_errors: int
    storage_errors: int
