"""공통 테스트 fixture"""

import textwrap
from pathlib import Path

import pytest

from spec_store.core.config import Settings
from spec_store.core.models import ProcessorConfig
from spec_store.ingestion.loader import SourceLoader
from spec_store.ingestion.processor import IngestionProcessor
from spec_store.storage.database import Database
from spec_store.storage.service import StorageService


SAMPLE_SPEC = textwrap.dedent(
    """\
    openapi: 3.0.0
    info:
      title: Sample API
      version: 1.0.0
      description: Sample service
    servers:
      - url: https://api.example.com
        description: Production
    paths:
      /users:
        get:
          summary: List users
          responses:
            '200':
              description: OK
        post:
          summary: Create user
          requestBody:
            content:
              application/json:
                schema:
                  $ref: '#/components/schemas/User'
          responses:
            '201':
              description: Created
    components:
      schemas:
        User:
          type: object
          description: A user
          properties:
            id:
              type: integer
      securitySchemes:
        bearerAuth:
          type: http
          scheme: bearer
      responses:
        NotFound:
          description: Not found
    """
)

SWAGGER_SPEC = textwrap.dedent(
    """\
    {
      "swagger": "2.0",
      "info": {"title": "Legacy API", "version": "2.1"},
      "paths": {"/ping": {"get": {"summary": "Ping"}}}
    }
    """
)


@pytest.fixture
def sample_spec() -> str:
    return SAMPLE_SPEC


@pytest.fixture
def swagger_spec() -> str:
    return SWAGGER_SPEC


@pytest.fixture
def database():
    db = Database(":memory:")
    yield db
    db.close()


@pytest.fixture
def storage(database) -> StorageService:
    return StorageService(database, enable_logging=False)


@pytest.fixture
def loader() -> SourceLoader:
    return SourceLoader(enable_logging=False)


@pytest.fixture
def processor(loader, storage) -> IngestionProcessor:
    return IngestionProcessor(loader, storage, ProcessorConfig(enable_logging=False))


@pytest.fixture
def specs_dir(tmp_path) -> Path:
    directory = tmp_path / "specs"
    directory.mkdir()
    return directory.resolve()


@pytest.fixture
def test_settings(tmp_path, specs_dir) -> Settings:
    data_dir = tmp_path / "data"
    return Settings(
        DATA_DIR=data_dir,
        SPECS_DIR=specs_dir,
        DB_PATH=data_dir / "openapi.db",
        ENABLE_LOGGING=False,
        WATCH_DEBOUNCE_MS=20,
    )
