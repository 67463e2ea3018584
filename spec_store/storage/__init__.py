"""Storage 모듈 - SQLite 저장소"""

from .database import Database, ConnectionRegistry
from .repositories import RepositorySet
from .service import StorageService

__all__ = [
    "Database",
    "ConnectionRegistry",
    "RepositorySet",
    "StorageService",
]
