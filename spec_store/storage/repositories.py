"""테이블별 저장소 (동기 API, Database 트랜잭션 안에서 호출)"""

from datetime import datetime, timezone
from typing import List, Optional

import sqlite3

from spec_store.core.models import (
    OpaqueDocument,
    OperationEntry,
    ResponseEntry,
    SchemaEntry,
    SecuritySchemeEntry,
    ServerEntry,
    SpecDescriptor,
    SpecSummary,
)
from spec_store.storage.database import Database


def _opaque(value: Optional[str]) -> Optional[OpaqueDocument]:
    return OpaqueDocument.from_text(value) if value is not None else None


def _text(document: Optional[OpaqueDocument]) -> Optional[str]:
    return document.to_text() if document is not None else None


class SpecRepository:
    """openapi 테이블 (descriptor)"""

    def __init__(self, database: Database):
        self.database = database

    def get_by_name(self, name: str) -> Optional[SpecDescriptor]:
        row = self.database.execute(
            "SELECT * FROM openapi WHERE name = ?", (name,)
        ).fetchone()
        return self._to_descriptor(row) if row else None

    def list_all(self) -> List[SpecDescriptor]:
        rows = self.database.execute("SELECT * FROM openapi ORDER BY name").fetchall()
        return [self._to_descriptor(row) for row in rows]

    def insert(
        self,
        basic: SpecSummary,
        document: OpaqueDocument,
        content_hash: Optional[str]
    ) -> int:
        now = datetime.now(timezone.utc).isoformat()
        cursor = self.database.execute(
            """
            INSERT INTO openapi (
                name, title, summary, version, openapi_version, content,
                file_hash, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                basic.name, basic.title, basic.summary, basic.version,
                basic.dialect, document.to_text(), content_hash, now, now,
            ),
        )
        return cursor.lastrowid

    def delete(self, spec_id: int) -> None:
        self.database.execute("DELETE FROM openapi WHERE id = ?", (spec_id,))

    def _to_descriptor(self, row: sqlite3.Row) -> SpecDescriptor:
        return SpecDescriptor(
            id=row["id"],
            name=row["name"],
            title=row["title"] or "",
            summary=row["summary"] or "",
            version=row["version"] or "",
            dialect=row["openapi_version"] or "",
            content=OpaqueDocument.from_text(row["content"]),
            content_hash=row["file_hash"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


class ChildRepository:
    """descriptor 하위 테이블 공통 동작"""

    table: str = ""
    order_by: str = "id"

    def __init__(self, database: Database):
        self.database = database

    def delete_by_spec(self, spec_id: int) -> int:
        cursor = self.database.execute(
            f"DELETE FROM {self.table} WHERE openapi_id = ?", (spec_id,)
        )
        return cursor.rowcount

    def count_by_spec(self, spec_id: int) -> int:
        row = self.database.execute(
            f"SELECT COUNT(*) FROM {self.table} WHERE openapi_id = ?", (spec_id,)
        ).fetchone()
        return row[0]

    def _rows(self, spec_id: int) -> List[sqlite3.Row]:
        return self.database.execute(
            f"SELECT * FROM {self.table} WHERE openapi_id = ? ORDER BY {self.order_by}",
            (spec_id,),
        ).fetchall()


class ServerRepository(ChildRepository):
    table = "servers"

    def insert(self, spec_id: int, server: ServerEntry) -> int:
        return self.database.execute(
            "INSERT INTO servers (openapi_id, description, url) VALUES (?, ?, ?)",
            (spec_id, server.description, server.url),
        ).lastrowid

    def list_by_spec(self, spec_id: int) -> List[ServerEntry]:
        return [
            ServerEntry(url=row["url"], description=row["description"] or "")
            for row in self._rows(spec_id)
        ]


class OperationRepository(ChildRepository):
    table = "paths"

    def insert(self, spec_id: int, operation: OperationEntry) -> int:
        return self.database.execute(
            """
            INSERT INTO paths (
                openapi_id, method, path, summary, description,
                security, parameters, responses, request_body
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                spec_id, operation.method, operation.path,
                operation.summary, operation.description,
                _text(operation.security), _text(operation.parameters),
                _text(operation.responses), _text(operation.request_body),
            ),
        ).lastrowid

    def list_by_spec(self, spec_id: int) -> List[OperationEntry]:
        return [
            OperationEntry(
                method=row["method"],
                path=row["path"],
                summary=row["summary"] or "",
                description=row["description"] or "",
                security=_opaque(row["security"]),
                parameters=_opaque(row["parameters"]),
                responses=_opaque(row["responses"]),
                request_body=_opaque(row["request_body"]),
            )
            for row in self._rows(spec_id)
        ]


class SchemaRepository(ChildRepository):
    table = "schemas"

    def insert(self, spec_id: int, schema: SchemaEntry) -> int:
        return self.database.execute(
            "INSERT INTO schemas (openapi_id, name, description, schema) VALUES (?, ?, ?, ?)",
            (spec_id, schema.name, schema.description, schema.schema_.to_text()),
        ).lastrowid

    def list_by_spec(self, spec_id: int) -> List[SchemaEntry]:
        return [
            SchemaEntry(
                name=row["name"],
                description=row["description"] or "",
                schema_=OpaqueDocument.from_text(row["schema"]),
            )
            for row in self._rows(spec_id)
        ]


class SecuritySchemeRepository(ChildRepository):
    table = "security_schemes"

    def insert(self, spec_id: int, scheme: SecuritySchemeEntry) -> int:
        return self.database.execute(
            """
            INSERT INTO security_schemes (
                openapi_id, name, type, scheme, description, content
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                spec_id, scheme.name, scheme.type, scheme.scheme,
                scheme.description, scheme.content.to_text(),
            ),
        ).lastrowid

    def list_by_spec(self, spec_id: int) -> List[SecuritySchemeEntry]:
        return [
            SecuritySchemeEntry(
                name=row["name"],
                type=row["type"],
                scheme=row["scheme"],
                description=row["description"] or "",
                content=OpaqueDocument.from_text(row["content"]),
            )
            for row in self._rows(spec_id)
        ]


class ResponseRepository(ChildRepository):
    table = "responses"

    def insert(self, spec_id: int, response: ResponseEntry) -> int:
        return self.database.execute(
            "INSERT INTO responses (openapi_id, name, description, content) VALUES (?, ?, ?, ?)",
            (spec_id, response.name, response.description, response.content.to_text()),
        ).lastrowid

    def list_by_spec(self, spec_id: int) -> List[ResponseEntry]:
        return [
            ResponseEntry(
                name=row["name"],
                description=row["description"] or "",
                content=OpaqueDocument.from_text(row["content"]),
            )
            for row in self._rows(spec_id)
        ]


class RepositorySet:
    """같은 Database를 공유하는 저장소 묶음"""

    def __init__(self, database: Database):
        self.database = database
        self.specs = SpecRepository(database)
        self.servers = ServerRepository(database)
        self.operations = OperationRepository(database)
        self.schemas = SchemaRepository(database)
        self.security_schemes = SecuritySchemeRepository(database)
        self.responses = ResponseRepository(database)

    @property
    def children(self) -> List[ChildRepository]:
        return [
            self.servers,
            self.operations,
            self.schemas,
            self.security_schemes,
            self.responses,
        ]
