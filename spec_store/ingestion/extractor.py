"""엔티티 추출기"""

from typing import Any, Dict, Iterable, List

from spec_store.core.models import (
    ExtractedSpec,
    ExtractionStats,
    OpaqueDocument,
    OperationEntry,
    ResponseEntry,
    SchemaEntry,
    SecuritySchemeEntry,
    ServerEntry,
    SpecSummary,
)


HTTP_METHODS = ("get", "post", "put", "delete", "patch", "options", "head", "trace")

SECTIONS = ("basic", "servers", "operations", "schemas", "security_schemes", "responses")


class EntityExtractor:
    """문서 트리를 6개 정규화 컬렉션으로 분해 (부작용 없음)"""

    def extract_all(self, document: Any, name: str) -> ExtractedSpec:
        """모든 엔티티 추출

        Args:
            document: 파싱된 문서 트리
            name: 명세서 이름 (호출자가 지정)

        Returns:
            ExtractedSpec: descriptor 요약 + 하위 컬렉션. 없는 섹션은 빈 리스트.
        """
        document = self._as_mapping(document)

        return ExtractedSpec(
            basic=self.extract_basic_info(document, name),
            document=OpaqueDocument.from_value(document),
            servers=self.extract_servers(document),
            operations=self.extract_operations(document),
            schemas=self.extract_schemas(document),
            security_schemes=self.extract_security_schemes(document),
            responses=self.extract_responses(document),
        )

    def extract_basic_info(self, document: Any, name: str) -> SpecSummary:
        """기본 정보 추출

        title이 없으면 명세서 이름, version이 없으면 "1.0.0"을 사용한다.
        """
        document = self._as_mapping(document)
        info = self._as_mapping(document.get("info"))
        dialect = document.get("openapi") or document.get("swagger") or "unknown"

        return SpecSummary(
            name=name,
            title=self._text(info.get("title")) or name,
            summary=self._text(info.get("description")) or self._text(info.get("summary")),
            version=self._text(info.get("version")) or "1.0.0",
            dialect=str(dialect),
        )

    def extract_servers(self, document: Any) -> List[ServerEntry]:
        """서버 정보 추출 (url이 비어 있는 항목은 제외)"""
        servers = self._as_mapping(document).get("servers")
        if not isinstance(servers, list):
            return []

        entries = []
        for server in servers:
            if not isinstance(server, dict):
                continue
            url = self._text(server.get("url"))
            if not url:
                continue
            entries.append(ServerEntry(
                url=url,
                description=self._text(server.get("description")),
            ))
        return entries

    def extract_operations(self, document: Any) -> List[OperationEntry]:
        """경로 x HTTP 메서드 단위로 operation 추출"""
        paths = self._as_mapping(document).get("paths")
        if not isinstance(paths, dict):
            return []

        operations = []
        for path, path_item in paths.items():
            if not isinstance(path_item, dict):
                continue

            for method in HTTP_METHODS:
                operation = path_item.get(method)
                if not isinstance(operation, dict):
                    continue

                operations.append(OperationEntry(
                    method=method.upper(),
                    path=str(path),
                    summary=self._text(operation.get("summary")),
                    description=self._text(operation.get("description")),
                    security=self._opaque(operation.get("security")),
                    parameters=self._opaque(operation.get("parameters")),
                    responses=self._opaque(operation.get("responses")),
                    request_body=self._opaque(operation.get("requestBody")),
                ))

        return operations

    def extract_schemas(self, document: Any) -> List[SchemaEntry]:
        return [
            SchemaEntry(
                name=name,
                description=self._text(definition.get("description")),
                schema_=OpaqueDocument.from_value(definition),
            )
            for name, definition in self._component_items(document, "schemas")
        ]

    def extract_security_schemes(self, document: Any) -> List[SecuritySchemeEntry]:
        entries = []
        for name, definition in self._component_items(document, "securitySchemes"):
            scheme = definition.get("scheme")
            entries.append(SecuritySchemeEntry(
                name=name,
                type=self._text(definition.get("type")) or "unknown",
                scheme=str(scheme) if scheme else None,
                description=self._text(definition.get("description")),
                content=OpaqueDocument.from_value(definition),
            ))
        return entries

    def extract_responses(self, document: Any) -> List[ResponseEntry]:
        return [
            ResponseEntry(
                name=name,
                description=self._text(definition.get("description")),
                content=OpaqueDocument.from_value(definition),
            )
            for name, definition in self._component_items(document, "responses")
        ]

    def extract_sections(
        self,
        document: Any,
        sections: Iterable[str],
        name: str
    ) -> Dict[str, Any]:
        """지정한 섹션만 추출

        Args:
            document: 파싱된 문서 트리
            sections: SECTIONS 중 일부
            name: 명세서 이름

        Returns:
            Dict[str, Any]: 섹션 이름 -> 추출 결과

        Raises:
            ValueError: 알 수 없는 섹션 이름
        """
        extractors = {
            "basic": lambda: self.extract_basic_info(document, name),
            "servers": lambda: self.extract_servers(document),
            "operations": lambda: self.extract_operations(document),
            "schemas": lambda: self.extract_schemas(document),
            "security_schemes": lambda: self.extract_security_schemes(document),
            "responses": lambda: self.extract_responses(document),
        }

        result = {}
        for section in sections:
            if section not in extractors:
                raise ValueError(f"Unknown section: {section}")
            result[section] = extractors[section]()
        return result

    def extract_stats(self, document: Any) -> ExtractionStats:
        """섹션별 항목 개수"""
        return ExtractionStats(
            server_count=len(self.extract_servers(document)),
            path_count=len(self.extract_operations(document)),
            schema_count=len(self.extract_schemas(document)),
            security_scheme_count=len(self.extract_security_schemes(document)),
            response_count=len(self.extract_responses(document)),
        )

    def _component_items(self, document: Any, section: str):
        components = self._as_mapping(self._as_mapping(document).get("components"))
        entries = components.get(section)
        if not isinstance(entries, dict):
            return []
        return [
            (str(name), definition)
            for name, definition in entries.items()
            if isinstance(definition, dict)
        ]

    def _as_mapping(self, value: Any) -> dict:
        return value if isinstance(value, dict) else {}

    def _text(self, value: Any) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    def _opaque(self, value: Any):
        if value is None:
            return None
        return OpaqueDocument.from_value(value)
