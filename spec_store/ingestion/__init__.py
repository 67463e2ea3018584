"""Ingestion 모듈 - OpenAPI 명세서 인제스트 파이프라인"""

from .parser import ContentParser
from .validator import StructuralValidator
from .extractor import EntityExtractor
from .loader import SourceLoader
from .processor import IngestionProcessor

__all__ = [
    "ContentParser",
    "StructuralValidator",
    "EntityExtractor",
    "SourceLoader",
    "IngestionProcessor",
]
