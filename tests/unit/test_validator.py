import pytest

from spec_store.core.exceptions import SpecValidationError
from spec_store.ingestion.validator import StructuralValidator


@pytest.fixture
def validator():
    return StructuralValidator()


def _fields(issues):
    return [issue.field for issue in issues]


def test_valid_openapi_document(validator):
    result = validator.validate({
        "openapi": "3.0.3",
        "info": {"title": "API", "version": "1.0.0", "description": "desc"},
        "paths": {"/a": {}},
    })

    assert result.valid
    assert not result.has_errors
    assert not result.has_warnings
    assert result.dialect_version == "3.0.3"


def test_non_object_root(validator):
    result = validator.validate(["not", "a", "map"])

    assert not result.valid
    assert _fields(result.errors) == ["$root"]


def test_missing_version_field(validator):
    result = validator.validate({"info": {"title": "API", "version": "1"}, "paths": {"/a": {}}})

    assert not result.valid
    assert "openapi" in _fields(result.errors)
    assert result.dialect_version is None


def test_both_version_fields_is_an_error(validator):
    result = validator.validate({
        "openapi": "3.0.0",
        "swagger": "2.0",
        "info": {"title": "API", "version": "1"},
    })

    assert not result.valid
    assert any("Both" in issue.message for issue in result.errors)


def test_swagger_document_warns_about_migration(validator):
    result = validator.validate({
        "swagger": "2.0",
        "info": {"title": "API", "version": "1", "description": "d"},
        "paths": {"/a": {}},
    })

    assert result.valid
    assert result.dialect_version == "2.0"
    assert _fields(result.warnings) == ["swagger"]


def test_non_standard_openapi_version_warns(validator):
    result = validator.validate({
        "openapi": "3.1",
        "info": {"title": "API", "version": "1", "description": "d"},
        "paths": {"/a": {}},
    })

    assert result.valid
    assert _fields(result.warnings) == ["openapi"]


def test_numeric_version_is_an_error(validator):
    result = validator.validate({"openapi": 3.0, "info": {"title": "API", "version": "1"}})

    assert not result.valid
    assert "openapi" in _fields(result.errors)


@pytest.mark.parametrize(
    "info, field",
    [
        (None, "info"),
        ("text", "info"),
        ({"version": "1"}, "info.title"),
        ({"title": "   ", "version": "1"}, "info.title"),
        ({"title": 5, "version": "1"}, "info.title"),
        ({"title": "API"}, "info.version"),
        ({"title": "API", "version": 1}, "info.version"),
    ],
)
def test_info_errors(validator, info, field):
    document = {"openapi": "3.0.0", "paths": {"/a": {}}}
    if info is not None:
        document["info"] = info

    result = validator.validate(document)

    assert not result.valid
    assert field in _fields(result.errors)


def test_paths_issues_are_warnings_only(validator):
    base = {"openapi": "3.0.0", "info": {"title": "API", "version": "1", "description": "d"}}

    missing = validator.validate(base)
    empty = validator.validate({**base, "paths": {}})
    relative = validator.validate({**base, "paths": {"users": {}}})

    assert missing.valid and _fields(missing.warnings) == ["paths"]
    assert empty.valid and _fields(empty.warnings) == ["paths"]
    assert relative.valid and _fields(relative.warnings) == ["paths.users"]


def test_missing_description_warns(validator):
    result = validator.validate({
        "openapi": "3.0.0",
        "info": {"title": "API", "version": "1"},
        "paths": {"/a": {}},
    })

    assert result.valid
    assert _fields(result.warnings) == ["info.description"]


def test_get_spec_type(validator):
    assert validator.get_spec_type({"openapi": "3.0.0"}) == "openapi"
    assert validator.get_spec_type({"swagger": "2.0"}) == "swagger"
    assert validator.get_spec_type({}) == "unknown"
    assert validator.get_spec_type("nope") == "unknown"


def test_raise_for_errors(validator):
    invalid = validator.validate({"info": {"title": "API", "version": "1"}})
    warned = validator.validate({"swagger": "2.0", "info": {"title": "API", "version": "1"}})

    with pytest.raises(SpecValidationError) as exc_info:
        validator.raise_for_errors(invalid)
    assert exc_info.value.issues == invalid.errors
    assert "openapi:" in str(exc_info.value)

    validator.raise_for_errors(warned)
