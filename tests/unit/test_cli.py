import pytest
from click.testing import CliRunner

from spec_store import main as cli_module
from spec_store.main import cli


@pytest.fixture
def runner(monkeypatch, test_settings):
    monkeypatch.setattr(cli_module, "settings", test_settings)
    return CliRunner()


def test_ingest_and_list(runner, test_settings, sample_spec):
    path = test_settings.SPECS_DIR / "sample.yaml"
    path.write_text(sample_spec, encoding="utf-8")

    ingested = runner.invoke(cli, ["ingest", str(path)])
    listed = runner.invoke(cli, ["list"])

    assert ingested.exit_code == 0, ingested.output
    assert "✅ sample: stored" in ingested.output
    assert "paths=2" in ingested.output

    assert listed.exit_code == 0, listed.output
    assert "📄 sample: Sample API v1.0.0 (3.0.0)" in listed.output


def test_ingest_twice_reports_unchanged(runner, test_settings, sample_spec):
    path = test_settings.SPECS_DIR / "sample.yaml"
    path.write_text(sample_spec, encoding="utf-8")

    runner.invoke(cli, ["ingest", str(path), "--name", "custom"])
    again = runner.invoke(cli, ["ingest", str(path), "--name", "custom"])

    assert again.exit_code == 0, again.output
    assert "custom: unchanged" in again.output


def test_ingest_invalid_with_skip_aborts(runner, test_settings):
    path = test_settings.SPECS_DIR / "bad.yaml"
    path.write_text("info:\n  title: Missing version\n", encoding="utf-8")

    result = runner.invoke(cli, ["ingest", str(path), "--skip-invalid"])

    assert result.exit_code == 1
    assert "Validation failed (skipped)" in result.output


def test_ingest_dir_prints_summary(runner, test_settings, sample_spec, swagger_spec):
    (test_settings.SPECS_DIR / "a.yaml").write_text(sample_spec, encoding="utf-8")
    (test_settings.SPECS_DIR / "b.json").write_text(swagger_spec, encoding="utf-8")

    result = runner.invoke(cli, ["ingest-dir"])

    assert result.exit_code == 0, result.output
    assert "Total: 2  Success: 2" in result.output


def test_ingest_dir_with_explicit_directory(runner, tmp_path, sample_spec):
    other = tmp_path / "other-specs"
    other.mkdir()
    (other / "a.yaml").write_text(sample_spec, encoding="utf-8")

    result = runner.invoke(cli, ["ingest-dir", str(other)])

    assert result.exit_code == 0, result.output
    assert "✅ a: stored" in result.output
    assert "Total: 1  Success: 1" in result.output


def test_ingest_dir_does_not_create_missing_directory(runner, tmp_path):
    missing = tmp_path / "missing"

    result = runner.invoke(cli, ["ingest-dir", str(missing)])

    assert "Directory not found" in result.output
    assert "Failed: 1" in result.output
    assert not missing.exists()


def test_watch_missing_directory_aborts(runner, tmp_path):
    missing = tmp_path / "missing"

    result = runner.invoke(cli, ["watch", str(missing)])

    assert result.exit_code == 1
    assert "Not an existing directory" in result.output
    assert not missing.exists()


def test_list_empty(runner):
    result = runner.invoke(cli, ["list"])

    assert result.exit_code == 0
    assert "No specs stored" in result.output


def test_info(runner, test_settings):
    result = runner.invoke(cli, ["info"])

    assert result.exit_code == 0
    assert "System Information" in result.output
    assert str(test_settings.DB_PATH) in result.output
