"""명세서 저장 서비스"""

import logging
import sqlite3
from typing import Callable, List, Optional, Sequence, Tuple

from spec_store.core.exceptions import StorageError
from spec_store.core.models import (
    ChildInsertResult,
    ExtractedSpec,
    OperationEntry,
    ResponseEntry,
    SchemaEntry,
    SecuritySchemeEntry,
    ServerEntry,
    SpecDescriptor,
    StorageDetails,
    StorageResult,
)
from spec_store.core.hashing import digests_equal
from spec_store.storage.database import Database
from spec_store.storage.repositories import ChildRepository, RepositorySet

logger = logging.getLogger(__name__)


class StorageService:
    """추출 결과를 트랜잭션으로 저장 (해시가 같으면 건너뜀)

    이름 하나에 대한 조회-비교-교체는 하나의 트랜잭션 안에서 일어난다.
    하위 항목은 각자 SAVEPOINT 안에서 저장되어 한 항목의 실패는 그 항목만 제외한다.
    같은 이름을 동시에 저장하면 마지막에 커밋한 쪽이 남는다.
    """

    def __init__(self, database: Database, enable_logging: bool = True):
        """
        Args:
            database: 공유 Database (composition root 소유)
            enable_logging: 진행 로그 출력 여부
        """
        self.database = database
        self.repositories = RepositorySet(database)
        self.enable_logging = enable_logging

    async def store(self, extracted: ExtractedSpec) -> StorageResult:
        """추출된 명세서 저장

        Args:
            extracted: EntityExtractor 출력 (content_hash 포함)

        Returns:
            StorageResult: 저장 결과. 트랜잭션 실패 시 success=False.
        """
        name = extracted.basic.name
        try:
            return await self.database.run(self._store, extracted)
        except (sqlite3.Error, StorageError) as e:
            message = f"Failed to store spec '{name}': {e}"
            logger.error(message)
            return StorageResult(success=False, message=message)

    def _store(self, extracted: ExtractedSpec) -> StorageResult:
        name = extracted.basic.name
        repos = self.repositories

        with self.database.transaction():
            existing = repos.specs.get_by_name(name)

            if existing is not None and digests_equal(
                existing.content_hash, extracted.content_hash
            ):
                self._log(f"⏭️  Unchanged, skipping {name} ({existing.content_hash[:16]})")
                return StorageResult(
                    success=True,
                    spec_id=existing.id,
                    message=f"Spec '{name}' is unchanged; skipped",
                    skipped=True,
                )

            if existing is not None:
                self._log(
                    f"🔄 Content changed for {name}: "
                    f"{(existing.content_hash or 'none')[:16]} -> "
                    f"{(extracted.content_hash or 'none')[:16]}"
                )
                self._delete_spec(existing)

            spec_id = repos.specs.insert(
                extracted.basic, extracted.document, extracted.content_hash
            )
            self._log(f"✅ Stored descriptor {name} (id={spec_id})")

            child_results = []
            details = StorageDetails(
                servers_stored=self._insert_children(
                    spec_id, "server", repos.servers, extracted.servers,
                    lambda s: s.url, child_results,
                ),
                paths_stored=self._insert_children(
                    spec_id, "path", repos.operations, extracted.operations,
                    lambda o: o.key, child_results,
                ),
                schemas_stored=self._insert_children(
                    spec_id, "schema", repos.schemas, extracted.schemas,
                    lambda s: s.name, child_results,
                ),
                security_schemes_stored=self._insert_children(
                    spec_id, "security_scheme", repos.security_schemes,
                    extracted.security_schemes, lambda s: s.name, child_results,
                ),
                responses_stored=self._insert_children(
                    spec_id, "response", repos.responses, extracted.responses,
                    lambda r: r.name, child_results,
                ),
            )

        failed = [r for r in child_results if not r.success]
        message = f"Stored spec '{name}'"
        if failed:
            message += f" ({len(failed)} child insert(s) failed)"
        self._log(f"🎉 {message}")

        return StorageResult(
            success=True,
            spec_id=spec_id,
            message=message,
            details=details,
            child_results=child_results,
        )

    def _delete_spec(self, existing: SpecDescriptor) -> None:
        """하위 항목을 먼저 지우고 descriptor 삭제"""
        for repository in self.repositories.children:
            repository.delete_by_spec(existing.id)
        self.repositories.specs.delete(existing.id)
        self._log(f"🗑️  Removed previous generation of {existing.name} (id={existing.id})")

    def _insert_children(
        self,
        spec_id: int,
        kind: str,
        repository: ChildRepository,
        entries: Sequence,
        key_of: Callable,
        results: List[ChildInsertResult],
    ) -> int:
        stored = 0
        for entry in entries:
            key = key_of(entry)
            try:
                with self.database.savepoint("child_insert"):
                    repository.insert(spec_id, entry)
            except sqlite3.Error as e:
                logger.error("Failed to store %s '%s': %s", kind, key, e)
                results.append(ChildInsertResult(
                    kind=kind, key=key, success=False, error=str(e)
                ))
                continue

            stored += 1
            results.append(ChildInsertResult(kind=kind, key=key, success=True))
        return stored

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    async def get_spec(self, name: str) -> Optional[SpecDescriptor]:
        return await self.database.run(self.repositories.specs.get_by_name, name)

    async def list_specs(self) -> List[SpecDescriptor]:
        return await self.database.run(self.repositories.specs.list_all)

    async def list_servers(self, name: str) -> List[ServerEntry]:
        return await self._list_children(name, self.repositories.servers)

    async def list_operations(self, name: str) -> List[OperationEntry]:
        return await self._list_children(name, self.repositories.operations)

    async def list_schemas(self, name: str) -> List[SchemaEntry]:
        return await self._list_children(name, self.repositories.schemas)

    async def list_security_schemes(self, name: str) -> List[SecuritySchemeEntry]:
        return await self._list_children(name, self.repositories.security_schemes)

    async def list_responses(self, name: str) -> List[ResponseEntry]:
        return await self._list_children(name, self.repositories.responses)

    async def count_children(self, name: str) -> Tuple[int, ...]:
        """(servers, paths, schemas, security_schemes, responses) 개수"""
        def count():
            spec = self.repositories.specs.get_by_name(name)
            if spec is None:
                return (0,) * len(self.repositories.children)
            return tuple(r.count_by_spec(spec.id) for r in self.repositories.children)

        return await self.database.run(count)

    async def _list_children(self, name: str, repository) -> list:
        def fetch():
            spec = self.repositories.specs.get_by_name(name)
            return repository.list_by_spec(spec.id) if spec else []

        return await self.database.run(fetch)

    def _log(self, message: str) -> None:
        if self.enable_logging:
            logger.info(message)
