"""Core module - 공통 모델, 설정, 예외"""

from .models import (
    # Payload
    OpaqueDocument,
    # Extracted Models
    SpecSummary,
    ServerEntry,
    OperationEntry,
    SchemaEntry,
    SecuritySchemeEntry,
    ResponseEntry,
    ExtractedSpec,
    ExtractionStats,
    # Stored Models
    SpecDescriptor,
    # Validation Models
    ValidationIssue,
    ValidationResult,
    # Loading Models
    LoadResult,
    DirectoryScanResult,
    # Storage Models
    StorageDetails,
    ChildInsertResult,
    StorageResult,
    # Pipeline Models
    ProcessorConfig,
    ProcessingResult,
    ProcessingStats,
)
from .config import settings, Settings, configure_logging
from .exceptions import (
    SpecStoreError,
    SpecParsingError,
    SpecValidationError,
    SourceLoadError,
    StorageError,
    WatchError,
    OperationFailedError,
)

__all__ = [
    # Models
    "OpaqueDocument",
    "SpecSummary",
    "ServerEntry",
    "OperationEntry",
    "SchemaEntry",
    "SecuritySchemeEntry",
    "ResponseEntry",
    "ExtractedSpec",
    "ExtractionStats",
    "SpecDescriptor",
    "ValidationIssue",
    "ValidationResult",
    "LoadResult",
    "DirectoryScanResult",
    "StorageDetails",
    "ChildInsertResult",
    "StorageResult",
    "ProcessorConfig",
    "ProcessingResult",
    "ProcessingStats",
    # Config
    "settings",
    "Settings",
    "configure_logging",
    # Exceptions
    "SpecStoreError",
    "SpecParsingError",
    "SpecValidationError",
    "SourceLoadError",
    "StorageError",
    "WatchError",
    "OperationFailedError",
]
