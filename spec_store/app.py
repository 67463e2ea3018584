"""Composition root - 연결/저장소/파이프라인/감시자 조립"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from spec_store.core.config import Settings, settings as default_settings
from spec_store.core.models import ProcessingResult, ProcessorConfig
from spec_store.ingestion.loader import SourceLoader
from spec_store.ingestion.processor import IngestionProcessor
from spec_store.storage.database import ConnectionRegistry
from spec_store.storage.service import StorageService
from spec_store.watch.watcher import DirectoryWatcher

logger = logging.getLogger(__name__)


class SpecStoreApp:
    """프로세스 전체에서 하나의 DB 연결을 공유하는 애플리케이션 객체"""

    def __init__(self, config: Settings = None, registry: ConnectionRegistry = None):
        self.settings = config or default_settings
        self.registry = registry or ConnectionRegistry()
        self.processor: Optional[IngestionProcessor] = None
        self.watcher: Optional[DirectoryWatcher] = None

    @property
    def storage(self) -> StorageService:
        return self._require_processor().storage

    def open(self) -> IngestionProcessor:
        """DB를 열고 파이프라인 구성 (이미 열려 있으면 재사용)"""
        if self.processor is not None:
            return self.processor

        self.settings.ensure_directories()
        database = self.registry.open(self.settings.DB_PATH)

        config = ProcessorConfig(
            enable_validation=self.settings.ENABLE_VALIDATION,
            skip_invalid_files=self.settings.SKIP_INVALID_FILES,
            enable_logging=self.settings.ENABLE_LOGGING,
        )
        loader = SourceLoader(
            supported_extensions=self.settings.SUPPORTED_EXTENSIONS,
            timeout=self.settings.URL_TIMEOUT,
            enable_logging=config.enable_logging,
        )
        storage = StorageService(database, enable_logging=config.enable_logging)
        self.processor = IngestionProcessor(loader, storage, config)
        return self.processor

    async def startup(self, directory: Union[str, Path] = None) -> List[ProcessingResult]:
        """디렉토리 전체를 한 번 인제스트 (기본값: SPECS_DIR)

        지정한 디렉토리는 만들지 않으므로 없으면 실패 결과 1건이 반환된다.
        """
        processor = self.open()
        return await processor.ingest_directory(directory or self.settings.SPECS_DIR)

    async def watch(self, directory: Union[str, Path] = None) -> DirectoryWatcher:
        """디렉토리 감시 시작 (변경된 파일은 ingest_file로 재인제스트)"""
        processor = self.open()
        if self.watcher is None:
            self.watcher = DirectoryWatcher(
                directory or self.settings.SPECS_DIR,
                on_change=processor.ingest_file,
                debounce_seconds=self.settings.watch_debounce_seconds,
                supported_extensions=self.settings.SUPPORTED_EXTENSIONS,
                enable_logging=self.settings.ENABLE_LOGGING,
            )
        await self.watcher.start()
        return self.watcher

    async def shutdown(self) -> None:
        if self.watcher is not None:
            await self.watcher.stop()
            await self.watcher.debouncer.drain()
            self.watcher = None
        self.registry.close()
        self.processor = None

    def _require_processor(self) -> IngestionProcessor:
        if self.processor is None:
            raise RuntimeError("SpecStoreApp is not open; call open() or startup() first")
        return self.processor
