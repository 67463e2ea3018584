"""OpenAPI 명세서 파서"""

import json
import logging
from typing import Any, Callable, List, NamedTuple, Optional

import yaml

from spec_store.core.exceptions import SpecParsingError

logger = logging.getLogger(__name__)


class ParseAttempt(NamedTuple):
    """파싱 시도 1건 (형식 이름 + 로더)"""
    format: str
    load: Callable[[str], Any]


YAML_ATTEMPT = ParseAttempt("YAML", yaml.safe_load)
JSON_ATTEMPT = ParseAttempt("JSON", json.loads)


class ContentParser:
    """OpenAPI 명세서 파서 (YAML/JSON 자동 감지 + fallback)"""

    def parse(self, content: str, source: Optional[str] = None) -> Any:
        """문자열에서 문서 트리 파싱

        Args:
            content: 명세서 원문
            source: 파일 경로 또는 URL (형식 힌트 및 오류 메시지용)

        Returns:
            Any: 파싱된 문서 트리 (루트가 객체가 아닐 수도 있음)

        Raises:
            SpecParsingError: 빈 내용이거나 모든 형식에서 실패한 경우
        """
        return self._run_attempts(content, source, self._plan_attempts(content, source))

    def parse_with_fallback(self, content: str) -> Any:
        """형식 힌트 없이 YAML → JSON 순서로 파싱

        Raises:
            SpecParsingError: 빈 내용이거나 두 형식 모두 실패한 경우
        """
        return self._run_attempts(content, None, [YAML_ATTEMPT, JSON_ATTEMPT])

    def _plan_attempts(self, content: str, source: Optional[str]) -> List[ParseAttempt]:
        """시도할 파서 순서 결정

        Args:
            content: 명세서 원문
            source: 형식 힌트

        Returns:
            List[ParseAttempt]: JSON 힌트가 있으면 JSON 우선, 아니면 YAML 우선
        """
        if self._looks_like_json(content, source):
            return [JSON_ATTEMPT, YAML_ATTEMPT]
        return [YAML_ATTEMPT, JSON_ATTEMPT]

    def _looks_like_json(self, content: str, source: Optional[str]) -> bool:
        if source and source.lower().endswith(".json"):
            return True

        stripped = content.lstrip()
        return stripped.startswith("{") or stripped.startswith("[")

    def _run_attempts(
        self,
        content: str,
        source: Optional[str],
        attempts: List[ParseAttempt]
    ) -> Any:
        label = source or "<content>"

        if content is None or not content.strip():
            raise SpecParsingError(f"Empty content: {label}")

        errors = []
        for attempt in attempts:
            try:
                data = attempt.load(content)
            except (yaml.YAMLError, ValueError) as e:
                errors.append(f"{attempt.format} parsing error: {e}")
                continue

            if errors:
                logger.debug(
                    "Parsed %s as %s after fallback (%s)",
                    label, attempt.format, "; ".join(errors)
                )
            return data

        formats = ", ".join(a.format for a in attempts)
        raise SpecParsingError(
            f"Failed to parse {label} (tried: {formats})\n" + "\n".join(errors)
        )
