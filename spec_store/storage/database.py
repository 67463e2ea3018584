"""SQLite 연결 관리"""

import asyncio
import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional, Union

from spec_store.core.exceptions import StorageError

logger = logging.getLogger(__name__)


TABLES = (
    """
    CREATE TABLE IF NOT EXISTS openapi (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE,
        title TEXT,
        summary TEXT,
        version TEXT,
        content TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS servers (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        openapi_id INTEGER NOT NULL,
        description TEXT,
        url TEXT NOT NULL,
        FOREIGN KEY (openapi_id) REFERENCES openapi(id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS paths (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        openapi_id INTEGER NOT NULL,
        method TEXT NOT NULL,
        path TEXT NOT NULL,
        summary TEXT,
        description TEXT,
        security TEXT,
        parameters TEXT,
        responses TEXT,
        request_body TEXT,
        FOREIGN KEY (openapi_id) REFERENCES openapi(id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS schemas (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        openapi_id INTEGER NOT NULL,
        name TEXT NOT NULL,
        description TEXT,
        schema TEXT NOT NULL,
        FOREIGN KEY (openapi_id) REFERENCES openapi(id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS security_schemes (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        openapi_id INTEGER NOT NULL,
        name TEXT NOT NULL,
        type TEXT NOT NULL,
        scheme TEXT,
        description TEXT,
        content TEXT NOT NULL,
        FOREIGN KEY (openapi_id) REFERENCES openapi(id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS responses (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        openapi_id INTEGER NOT NULL,
        name TEXT NOT NULL,
        description TEXT,
        content TEXT NOT NULL,
        FOREIGN KEY (openapi_id) REFERENCES openapi(id) ON DELETE CASCADE
    )
    """,
)

# 이전 버전 DB에 없을 수 있는 컬럼 (table, column, definition)
# ALTER TABLE ADD COLUMN은 상수가 아닌 DEFAULT를 허용하지 않는다
EVOLVED_COLUMNS = (
    ("openapi", "openapi_version", "TEXT"),
    ("openapi", "file_hash", "TEXT"),
    ("openapi", "created_at", "TEXT"),
    ("openapi", "updated_at", "TEXT"),
)

INDEXES = (
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_openapi_name ON openapi(name)",
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_servers_key ON servers(openapi_id, url)",
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_paths_key ON paths(openapi_id, method, path)",
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_schemas_key ON schemas(openapi_id, name)",
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_security_schemes_key "
    "ON security_schemes(openapi_id, name)",
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_responses_key ON responses(openapi_id, name)",
)


class Database:
    """공유 SQLite 연결 1개 (WAL 모드)

    블로킹 호출은 run()을 통해 워커 스레드에서 직렬화되어 실행된다.
    """

    def __init__(self, db_path: Union[str, Path]):
        """
        Args:
            db_path: 데이터베이스 파일 경로 (":memory:" 허용)

        Raises:
            StorageError: 연결 또는 스키마 초기화 실패 시
        """
        if str(db_path) == ":memory:":
            self.path = ":memory:"
        else:
            resolved = Path(db_path).expanduser().resolve()
            resolved.parent.mkdir(parents=True, exist_ok=True)
            self.path = str(resolved)

        self._lock = threading.RLock()

        try:
            # isolation_level=None: 트랜잭션은 transaction()에서 명시적으로 연다
            self.connection = sqlite3.connect(
                self.path, check_same_thread=False, isolation_level=None
            )
            self.connection.row_factory = sqlite3.Row
            self.connection.execute("PRAGMA journal_mode=WAL")
            self.connection.execute("PRAGMA synchronous=NORMAL")
            self.connection.execute("PRAGMA foreign_keys=ON")
            self.initialize_schema()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to open database {self.path}: {e}") from e

        logger.debug("Opened database %s", self.path)

    @property
    def closed(self) -> bool:
        return self.connection is None

    def initialize_schema(self) -> None:
        """테이블/컬럼/인덱스를 멱등하게 생성"""
        with self._lock:
            for ddl in TABLES:
                self.connection.execute(ddl)

            for table, column, definition in EVOLVED_COLUMNS:
                if column not in self._columns(table):
                    self.connection.execute(
                        f"ALTER TABLE {table} ADD COLUMN {column} {definition}"
                    )
                    logger.info("Added missing column %s.%s", table, column)

            for ddl in INDEXES:
                self.connection.execute(ddl)

    def _columns(self, table: str) -> set:
        rows = self.connection.execute(f"PRAGMA table_info({table})").fetchall()
        return {row["name"] for row in rows}

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """BEGIN IMMEDIATE ... COMMIT, 예외 시 ROLLBACK"""
        with self._lock:
            conn = self._require_connection()
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
            else:
                conn.execute("COMMIT")

    @contextmanager
    def savepoint(self, name: str) -> Iterator[sqlite3.Connection]:
        """트랜잭션 안의 부분 롤백 구간"""
        with self._lock:
            conn = self._require_connection()
            conn.execute(f"SAVEPOINT {name}")
            try:
                yield conn
            except BaseException:
                if conn.in_transaction:
                    conn.execute(f"ROLLBACK TO SAVEPOINT {name}")
                    conn.execute(f"RELEASE SAVEPOINT {name}")
                raise
            else:
                conn.execute(f"RELEASE SAVEPOINT {name}")

    def execute(self, sql: str, params: Any = ()) -> sqlite3.Cursor:
        with self._lock:
            return self._require_connection().execute(sql, params)

    async def run(self, fn: Callable[..., Any], *args: Any) -> Any:
        """블로킹 DB 작업을 워커 스레드에서 실행"""
        return await asyncio.to_thread(self._call, fn, *args)

    def _call(self, fn: Callable[..., Any], *args: Any) -> Any:
        with self._lock:
            return fn(*args)

    def _require_connection(self) -> sqlite3.Connection:
        if self.connection is None:
            raise StorageError(f"Database is closed: {self.path}")
        return self.connection

    def close(self) -> None:
        with self._lock:
            if self.connection is not None:
                self.connection.close()
                self.connection = None
                logger.debug("Closed database %s", self.path)


class ConnectionRegistry:
    """해석된 절대 경로 기준의 Database 캐시

    같은 경로는 같은 Database를 돌려주고, 다른 경로를 열면 이전 연결을 닫고 교체한다.
    """

    def __init__(self):
        self._databases: Dict[str, Database] = {}
        self._current: Optional[str] = None

    def open(self, db_path: Union[str, Path]) -> Database:
        key = self._key(db_path)

        if self._current is not None and self._current != key:
            previous = self._databases.pop(self._current)
            logger.info("Replacing database %s with %s", previous.path, key)
            previous.close()
            self._current = None

        database = self._databases.get(key)
        if database is None or database.closed:
            database = Database(db_path)
            self._databases[key] = database
        self._current = key
        return database

    @property
    def current(self) -> Optional[Database]:
        if self._current is None:
            return None
        return self._databases.get(self._current)

    def close(self) -> None:
        for database in self._databases.values():
            database.close()
        self._databases.clear()
        self._current = None

    def _key(self, db_path: Union[str, Path]) -> str:
        if str(db_path) == ":memory:":
            return ":memory:"
        return str(Path(db_path).expanduser().resolve())
