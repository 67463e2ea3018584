"""OpenAPI 명세서 구조 검증 모듈"""

import re
from typing import Any, List, Literal, Tuple

from spec_store.core.exceptions import SpecValidationError
from spec_store.core.models import ValidationIssue, ValidationResult


class StructuralValidator:
    """문서 트리가 최소한의 OpenAPI/Swagger 구조를 갖추었는지 검증

    오류(errors)는 명세서를 유효하지 않게 만들고, 경고(warnings)는 참고용이다.
    중첩된 schema/parameter/response 본문의 의미는 검증하지 않는다.
    """

    OPENAPI_VERSION_PATTERN = re.compile(r"^3\.\d+\.\d+$")

    def validate(self, document: Any) -> ValidationResult:
        """문서 트리 검증

        Args:
            document: ContentParser 출력

        Returns:
            ValidationResult: 검증 결과 (예외를 던지지 않음)
        """
        if not isinstance(document, dict):
            return ValidationResult(
                valid=False,
                errors=[self._error(
                    "$root",
                    "OpenAPI document must be an object (got "
                    f"{self._type_name(document)})"
                )],
            )

        errors: List[ValidationIssue] = []
        warnings: List[ValidationIssue] = []

        # 1. 버전 필드
        version_errors, version_warnings, dialect_version = self._validate_version(document)
        errors.extend(version_errors)
        warnings.extend(version_warnings)

        # 2. info 섹션
        info_errors, info_warnings = self._validate_info(document.get("info"))
        errors.extend(info_errors)
        warnings.extend(info_warnings)

        # 3. paths 섹션 (경고만)
        warnings.extend(self._validate_paths(document.get("paths")))

        return ValidationResult(
            valid=len(errors) == 0,
            errors=errors,
            warnings=warnings,
            dialect_version=dialect_version,
        )

    def _validate_version(
        self, document: dict
    ) -> Tuple[List[ValidationIssue], List[ValidationIssue], str]:
        """openapi / swagger 버전 필드 검증"""
        errors = []
        warnings = []

        has_openapi = document.get("openapi") is not None
        has_swagger = document.get("swagger") is not None

        if not has_openapi and not has_swagger:
            errors.append(self._error(
                "openapi", "Neither 'openapi' nor 'swagger' version field is present"
            ))
            return errors, warnings, None

        if has_openapi and has_swagger:
            errors.append(self._error(
                "openapi", "Both 'openapi' and 'swagger' version fields are present"
            ))
            return errors, warnings, None

        field = "openapi" if has_openapi else "swagger"
        version = document[field]

        if not isinstance(version, str):
            errors.append(self._error(
                field, f"Version must be a string (got {self._type_name(version)})"
            ))
            return errors, warnings, None

        if field == "swagger":
            warnings.append(self._warning(
                "swagger",
                f"Swagger {version} document; migrating to OpenAPI 3.x is recommended"
            ))
        elif not self.OPENAPI_VERSION_PATTERN.match(version):
            warnings.append(self._warning(
                "openapi", f"Non-standard OpenAPI version format: {version}"
            ))

        return errors, warnings, version

    def _validate_info(self, info: Any) -> Tuple[List[ValidationIssue], List[ValidationIssue]]:
        """info 섹션 검증"""
        errors = []
        warnings = []

        if not isinstance(info, dict):
            errors.append(self._error("info", "'info' section is missing or not an object"))
            return errors, warnings

        # title (필수)
        title = info.get("title")
        if title is None:
            errors.append(self._error("info.title", "Required field 'info.title' is missing"))
        elif not isinstance(title, str):
            errors.append(self._error(
                "info.title", f"'info.title' must be a string (got {self._type_name(title)})"
            ))
        elif not title.strip():
            errors.append(self._error("info.title", "'info.title' must not be blank"))

        # version (필수)
        version = info.get("version")
        if version is None:
            errors.append(self._error("info.version", "Required field 'info.version' is missing"))
        elif not isinstance(version, str):
            errors.append(self._error(
                "info.version",
                f"'info.version' must be a string (got {self._type_name(version)})"
            ))

        # description (권장)
        description = info.get("description")
        if not description:
            warnings.append(self._warning(
                "info.description", "'info.description' is recommended"
            ))
        elif not isinstance(description, str):
            warnings.append(self._warning(
                "info.description",
                f"'info.description' should be a string (got {self._type_name(description)})"
            ))

        return errors, warnings

    def _validate_paths(self, paths: Any) -> List[ValidationIssue]:
        """paths 섹션 검증 (경고 레벨)"""
        if not isinstance(paths, dict):
            return [self._warning("paths", "'paths' section is missing or not an object")]

        if not paths:
            return [self._warning("paths", "'paths' section is empty")]

        warnings = []
        for path_key in paths:
            if not str(path_key).startswith("/"):
                warnings.append(self._warning(
                    f"paths.{path_key}", f"Path '{path_key}' should start with '/'"
                ))
        return warnings

    def raise_for_errors(self, result: ValidationResult) -> None:
        """검증 결과에 오류가 있으면 예외 발생

        Raises:
            SpecValidationError: 오류가 1건 이상인 경우 (경고는 무시)
        """
        if result.has_errors:
            raise SpecValidationError(
                "; ".join(str(issue) for issue in result.errors), result.errors
            )

    def is_valid(self, document: Any) -> bool:
        """오류 여부만 확인하는 가벼운 검증"""
        return self.validate(document).valid

    def get_spec_type(self, document: Any) -> Literal["openapi", "swagger", "unknown"]:
        """OpenAPI인지 Swagger인지 판별"""
        if isinstance(document, dict):
            if document.get("openapi"):
                return "openapi"
            if document.get("swagger"):
                return "swagger"
        return "unknown"

    def _error(self, field: str, message: str) -> ValidationIssue:
        return ValidationIssue(field=field, message=message, severity="error")

    def _warning(self, field: str, message: str) -> ValidationIssue:
        return ValidationIssue(field=field, message=message, severity="warning")

    def _type_name(self, value: Any) -> str:
        return "null" if value is None else type(value).__name__
