import json

import httpx
import pytest

from spec_store.core.hashing import digest
from spec_store.core.models import ProcessingResult, ProcessorConfig, StorageResult
from spec_store.ingestion.loader import SourceLoader
from spec_store.ingestion.processor import IngestionProcessor


MINIMAL_SPEC = json.dumps({
    "openapi": "3.0.0",
    "info": {"title": "T", "version": "1"},
    "paths": {"/x": {"get": {}}},
})

INVALID_SPEC = "info:\n  title: No version field\n"


@pytest.mark.asyncio
async def test_ingest_minimal_spec_then_skip_identical(processor, storage, specs_dir):
    path = specs_dir / "minimal.json"
    path.write_text(MINIMAL_SPEC, encoding="utf-8")

    first = await processor.ingest_file(path, name="sample")
    second = await processor.ingest_file(path, name="sample")

    assert first.success
    assert first.name == "sample"
    assert first.message == "Spec 'sample' ingested"
    assert first.storage.details.paths_stored == 1
    assert first.storage.details.servers_stored == 0
    assert first.storage.details.schemas_stored == 0

    spec = await storage.get_spec("sample")
    assert spec.title == "T"
    assert spec.version == "1"
    assert [op.key for op in await storage.list_operations("sample")] == ["GET /x"]

    assert second.success
    assert second.storage.skipped
    assert second.message == "Spec 'sample' unchanged; skipped"


@pytest.mark.asyncio
async def test_ingest_file_uses_filename_as_name(processor, specs_dir, sample_spec):
    path = specs_dir / "payment-api.yaml"
    path.write_text(sample_spec, encoding="utf-8")

    result = await processor.ingest_file(path)

    assert result.success
    assert result.name == "payment-api"
    assert result.validation.valid


@pytest.mark.asyncio
async def test_ingest_changed_file_replaces_generation(processor, storage, specs_dir, sample_spec):
    path = specs_dir / "users.yaml"
    path.write_text(sample_spec, encoding="utf-8")
    await processor.ingest_file(path)

    path.write_text(sample_spec.replace("title: Sample API", "title: Users"), encoding="utf-8")
    result = await processor.ingest_file(path)

    assert result.success
    assert not result.storage.skipped
    assert (await storage.get_spec("users")).title == "Users"
    assert len(await storage.list_specs()) == 1


@pytest.mark.asyncio
async def test_ingest_missing_file(processor, specs_dir):
    result = await processor.ingest_file(specs_dir / "missing.yaml")

    assert not result.success
    assert "not found" in result.message


@pytest.mark.asyncio
async def test_parse_failure_is_reported(processor, specs_dir):
    path = specs_dir / "broken.yaml"
    path.write_text("key: [unclosed\n  other: {", encoding="utf-8")

    result = await processor.ingest_file(path)

    assert not result.success
    assert "Failed to parse" in result.message
    assert result.storage is None


@pytest.mark.asyncio
async def test_invalid_spec_is_stored_by_default(processor, storage):
    result = await processor.ingest_content(INVALID_SPEC, "loose", "loose.yaml")

    assert result.success
    assert not result.validation.valid
    spec = await storage.get_spec("loose")
    assert spec.title == "No version field"
    assert spec.version == "1.0.0"
    assert spec.dialect == "unknown"


@pytest.mark.asyncio
async def test_invalid_spec_is_skipped_when_configured(loader, storage):
    processor = IngestionProcessor(
        loader,
        storage,
        ProcessorConfig(skip_invalid_files=True, enable_logging=False),
    )

    result = await processor.ingest_content(INVALID_SPEC, "strict", "strict.yaml")

    assert not result.success
    assert result.message.startswith("Validation failed (skipped)")
    assert "openapi" in result.message
    assert await storage.get_spec("strict") is None


@pytest.mark.asyncio
async def test_validation_can_be_disabled(processor, storage):
    processor.update_config(enable_validation=False, skip_invalid_files=True)

    result = await processor.ingest_content(INVALID_SPEC, "unchecked", "unchecked.yaml")

    assert result.success
    assert result.validation is None
    assert await storage.get_spec("unchecked") is not None


@pytest.mark.asyncio
async def test_ingest_directory_isolates_failures(processor, storage, specs_dir, sample_spec, swagger_spec):
    (specs_dir / "a.yaml").write_text(sample_spec, encoding="utf-8")
    (specs_dir / "b.json").write_text(swagger_spec, encoding="utf-8")
    (specs_dir / "c.yml").write_text(MINIMAL_SPEC, encoding="utf-8")
    (specs_dir / "d.yaml").write_text("key: [unclosed\n  other: {", encoding="utf-8")
    (specs_dir / "ignored.txt").write_text("not a spec", encoding="utf-8")

    results = await processor.ingest_directory(specs_dir)

    assert len(results) == 4
    stats = IngestionProcessor.get_processing_stats(results)
    assert stats.total == 4
    assert stats.successful == 3
    assert stats.failed == 1
    assert sorted(s.name for s in await storage.list_specs()) == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_ingest_missing_directory(processor, tmp_path):
    results = await processor.ingest_directory(tmp_path / "nope")

    assert len(results) == 1
    assert not results[0].success
    assert "Directory not found" in results[0].message


@pytest.mark.asyncio
async def test_unexpected_error_is_wrapped(processor):
    class ExplodingExtractor:
        def extract_all(self, document, name):
            raise KeyError("boom")

    processor.extractor = ExplodingExtractor()

    result = await processor.ingest_content(MINIMAL_SPEC, "x", "x.json")

    assert not result.success
    assert result.name == "x"
    assert result.message.startswith("ingest_content failed for x.json after")
    assert "KeyError" in result.message


@pytest.mark.asyncio
async def test_failed_file_load_keeps_derived_name(processor, specs_dir):
    result = await processor.ingest_file(specs_dir / "orders.yaml")

    assert not result.success
    assert result.name == "orders"


@pytest.mark.asyncio
async def test_yaml_date_keys_are_ingested(processor, storage):
    content = (
        "openapi: 3.0.0\n"
        "info:\n  title: Dated\n  version: '1'\n"
        "paths:\n  /x:\n    get:\n      x-changelog:\n        2020-01-01: init\n"
    )

    result = await processor.ingest_content(content, "dated", "dated.yaml")

    assert result.success
    spec = await storage.get_spec("dated")
    assert spec.content.to_value()["paths"]["/x"]["get"]["x-changelog"] == {"2020-01-01": "init"}


def test_processing_stats():
    results = [
        ProcessingResult(success=True, source="a", message="ok",
                         storage=StorageResult(success=True, message="ok")),
        ProcessingResult(success=True, source="b", message="ok",
                         storage=StorageResult(success=True, message="ok", skipped=True)),
        ProcessingResult(success=False, source="c", message="db",
                         storage=StorageResult(success=False, message="db")),
        ProcessingResult(success=False, source="d", message="missing"),
    ]

    stats = IngestionProcessor.get_processing_stats(results)

    assert stats.total == 4
    assert stats.successful == 2
    assert stats.failed == 2
    assert stats.skipped == 1
    assert stats.storage_errors == 1
    assert stats.validation_errors == 0


def test_update_config_propagates_logging_flag(processor):
    processor.update_config(enable_logging=True)

    assert processor.loader.enable_logging
    assert processor.storage.enable_logging


@pytest.mark.asyncio
async def test_ingest_url(storage):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text=MINIMAL_SPEC)

    loader = SourceLoader(
        enable_logging=False,
        client_factory=lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    processor = IngestionProcessor(loader, storage, ProcessorConfig(enable_logging=False))

    result = await processor.ingest_url("https://example.com/specs/orders.json")

    assert result.success
    assert result.name == "orders"
    assert (await storage.get_spec("orders")).title == "T"


@pytest.mark.asyncio
async def test_ingest_url_hashes_undecoded_body(storage):
    body = "openapi: 3.0.0\ninfo:\n  title: Café\n  version: '1'\npaths: {}\n".encode("latin-1")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            content=body,
            headers={"content-type": "application/yaml; charset=latin-1"},
        )

    loader = SourceLoader(
        enable_logging=False,
        client_factory=lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    processor = IngestionProcessor(loader, storage, ProcessorConfig(enable_logging=False))

    result = await processor.ingest_url("https://example.com/cafe.yaml")

    assert result.success
    spec = await storage.get_spec("cafe")
    assert spec.title == "Café"
    assert spec.content_hash == digest(body)
