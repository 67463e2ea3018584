"""OpenAPI 인제스트 파이프라인"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Union

from spec_store.core.exceptions import (
    OperationFailedError,
    SpecParsingError,
    SpecValidationError,
)
from spec_store.core.hashing import digest, short_digest
from spec_store.core.models import (
    LoadResult,
    ProcessingResult,
    ProcessingStats,
    ProcessorConfig,
    ValidationResult,
)
from spec_store.ingestion.extractor import EntityExtractor
from spec_store.ingestion.loader import SourceLoader
from spec_store.ingestion.parser import ContentParser
from spec_store.ingestion.validator import StructuralValidator
from spec_store.storage.service import StorageService

logger = logging.getLogger(__name__)


class IngestionProcessor:
    """파서/검증기/추출기/저장 서비스를 묶은 인제스트 진입점

    모든 진입점은 예상 가능한 실패를 ProcessingResult로 반환하고,
    예상하지 못한 오류는 OperationFailedError 메시지로 감싸 반환한다.
    """

    def __init__(
        self,
        loader: SourceLoader,
        storage: StorageService,
        config: ProcessorConfig = None,
        parser: ContentParser = None,
        validator: StructuralValidator = None,
        extractor: EntityExtractor = None,
    ):
        self.config = config or ProcessorConfig()
        self.loader = loader
        self.storage = storage
        self.parser = parser or ContentParser()
        self.validator = validator or StructuralValidator()
        self.extractor = extractor or EntityExtractor()
        self._apply_logging_flag()

    async def ingest_file(self, file_path: Union[str, Path], name: str = None) -> ProcessingResult:
        """파일 1개 인제스트

        Args:
            file_path: 명세서 파일 경로
            name: 명세서 이름 (기본값: 파일명)

        Returns:
            ProcessingResult: 처리 결과
        """
        self._log(f"📥 Ingesting file: {file_path}")
        return await self._guarded(
            "ingest_file",
            str(file_path),
            name or self.loader.name_from_filename(Path(file_path).name),
            lambda: self._ingest_loaded(self.loader.load_file(file_path, name)),
        )

    async def ingest_url(self, url: str, name: str = None) -> ProcessingResult:
        """URL 1개 인제스트

        Args:
            url: 명세서 URL
            name: 명세서 이름 (기본값: URL에서 생성)

        Returns:
            ProcessingResult: 처리 결과
        """
        self._log(f"🌐 Ingesting URL: {url}")
        return await self._guarded(
            "ingest_url",
            url,
            name or self.loader.name_from_url(url),
            lambda: self._ingest_loaded(self.loader.load_url(url, name)),
        )

    async def ingest_directory(self, directory: Union[str, Path]) -> List[ProcessingResult]:
        """디렉토리 내 모든 명세서 인제스트

        파일마다 독립적으로 처리되며 한 파일의 실패가 나머지를 중단시키지 않는다.
        파일 간 처리 순서는 보장하지 않는다.

        Returns:
            List[ProcessingResult]: 파일별 결과. 디렉토리 오류 시 결과 1건.
        """
        self._log(f"📁 Ingesting directory: {directory}")
        scan = await self.loader.scan_directory(directory)
        if not scan.success:
            return [ProcessingResult(
                success=False,
                source=str(Path(directory).expanduser().resolve()),
                message=scan.message,
            )]

        results = list(await asyncio.gather(*(self.ingest_file(path) for path in scan.files)))

        stats = self.get_processing_stats(results)
        self._log(
            f"✅ Directory done: {stats.successful}/{stats.total} succeeded "
            f"({stats.skipped} unchanged, {stats.failed} failed)"
        )
        return results

    async def ingest_content(self, content: str, name: str, source: str) -> ProcessingResult:
        """이미 읽어 온 문자열 인제스트

        Args:
            content: 명세서 원문
            name: 명세서 이름
            source: 파일 경로 또는 URL (형식 힌트 및 결과 표시용)

        Returns:
            ProcessingResult: 처리 결과
        """
        return await self._guarded(
            "ingest_content", source, name, lambda: self._process_content(content, name, source)
        )

    async def _ingest_loaded(self, loading: Awaitable[LoadResult]) -> ProcessingResult:
        loaded = await loading
        if not loaded.success:
            return ProcessingResult(
                success=False,
                source=loaded.source,
                name=loaded.name,
                message=loaded.message,
            )
        return await self._process_content(
            loaded.content, loaded.name, loaded.source, loaded.raw
        )

    async def _process_content(
        self, content: str, name: str, source: str, raw: Optional[bytes] = None
    ) -> ProcessingResult:
        # 1. 파싱
        try:
            document = self.parser.parse(content, source)
        except SpecParsingError as e:
            self._log(f"❌ Parse failed for {name}: {e}", error=True)
            return ProcessingResult(success=False, name=name, source=source, message=str(e))

        # 2. 검증 (옵션)
        validation = None
        if self.config.enable_validation:
            validation = self.validator.validate(document)
            self._log_validation(name, validation)

            if self.config.skip_invalid_files:
                try:
                    self.validator.raise_for_errors(validation)
                except SpecValidationError as e:
                    return ProcessingResult(
                        success=False,
                        name=name,
                        source=source,
                        message=f"Validation failed (skipped): {e}",
                        validation=validation,
                    )

        # 3. 추출
        extracted = self.extractor.extract_all(document, name)
        # 디코딩 전 원본 바이트가 있으면 그것을 해시
        hashed = raw if raw is not None else content
        extracted.content_hash = digest(hashed)
        extracted.short_hash = short_digest(hashed)
        self._log(
            f"🧩 Extracted {name}: {len(extracted.operations)} paths, "
            f"{len(extracted.schemas)} schemas, {len(extracted.servers)} servers "
            f"(hash {extracted.short_hash})"
        )

        # 4. 저장
        storage = await self.storage.store(extracted)
        if not storage.success:
            return ProcessingResult(
                success=False,
                name=name,
                source=source,
                message=storage.message,
                validation=validation,
                storage=storage,
            )

        message = (
            f"Spec '{name}' unchanged; skipped" if storage.skipped
            else f"Spec '{name}' ingested"
        )
        self._log(f"🎉 {message}")
        return ProcessingResult(
            success=True,
            name=name,
            source=source,
            message=message,
            validation=validation,
            storage=storage,
        )

    async def _guarded(
        self,
        operation: str,
        source: str,
        name: str,
        run: Callable[[], Awaitable[ProcessingResult]],
    ) -> ProcessingResult:
        start = time.monotonic()
        try:
            result = await run()
        except Exception as e:
            error = OperationFailedError(operation, source, time.monotonic() - start, e)
            logger.exception(str(error))
            return ProcessingResult(success=False, source=source, name=name, message=str(error))

        # 로딩 단계에서 실패하면 이름이 비어 있다
        if result.name is None:
            result.name = name
        return result

    def _log_validation(self, name: str, validation: ValidationResult) -> None:
        if validation.valid:
            self._log(f"✅ Validation passed for {name} ({validation.dialect_version})")
        else:
            self._log(
                f"⚠️  Validation errors for {name}: "
                + "; ".join(str(issue) for issue in validation.errors),
                error=True,
            )
        if validation.has_warnings:
            self._log(
                f"⚠️  Warnings for {name}: "
                + "; ".join(str(issue) for issue in validation.warnings)
            )

    @staticmethod
    def get_processing_stats(results: List[ProcessingResult]) -> ProcessingStats:
        """처리 결과 통계"""
        return ProcessingStats(
            total=len(results),
            successful=sum(1 for r in results if r.success),
            failed=sum(1 for r in results if not r.success),
            skipped=sum(1 for r in results if r.storage and r.storage.skipped),
            validation_errors=sum(
                1 for r in results if r.validation and not r.validation.valid
            ),
            storage_errors=sum(1 for r in results if r.storage and not r.storage.success),
        )

    def update_config(self, **changes) -> None:
        """설정 갱신 (하위 컴포넌트의 로깅 설정도 함께 반영)"""
        self.config = self.config.model_copy(update=changes)
        self._apply_logging_flag()

    def _apply_logging_flag(self) -> None:
        self.loader.enable_logging = self.config.enable_logging
        self.storage.enable_logging = self.config.enable_logging

    def _log(self, message: str, error: bool = False) -> None:
        if error:
            logger.error(message)
        elif self.config.enable_logging:
            logger.info(message)
