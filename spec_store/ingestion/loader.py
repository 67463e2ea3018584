"""명세서 소스 로더 (파일 / URL / 디렉토리)"""

import asyncio
import logging
import os
import time
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple, Union

import httpx

from spec_store.core.config import settings
from spec_store.core.exceptions import SourceLoadError
from spec_store.core.models import DirectoryScanResult, LoadResult

logger = logging.getLogger(__name__)

DEFAULT_URL_NAME = "api-from-url"


class SourceLoader:
    """파일/URL/디렉토리를 {content, name, source} 로 정규화

    모든 메서드는 예상 가능한 실패를 예외 대신 실패 결과로 반환한다.
    """

    def __init__(
        self,
        supported_extensions: Iterable[str] = None,
        timeout: float = None,
        enable_logging: bool = True,
        client_factory: Callable[[], httpx.AsyncClient] = None,
    ):
        """
        Args:
            supported_extensions: 허용 확장자 (기본값: settings.SUPPORTED_EXTENSIONS)
            timeout: URL 로딩 전체 제한 시간 초 (기본값: settings.URL_TIMEOUT)
            enable_logging: 진행 로그 출력 여부
            client_factory: httpx.AsyncClient 생성 함수 (테스트에서 MockTransport 주입)
        """
        extensions = supported_extensions or settings.SUPPORTED_EXTENSIONS
        self.supported_extensions = tuple(ext.lower() for ext in extensions)
        self.timeout = timeout if timeout is not None else settings.URL_TIMEOUT
        self.enable_logging = enable_logging
        self.client_factory = client_factory or (
            lambda: httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
        )

    # ------------------------------------------------------------------
    # File
    # ------------------------------------------------------------------

    async def load_file(self, file_path: Union[str, Path], name: str = None) -> LoadResult:
        """파일에서 명세서 로딩

        Args:
            file_path: 명세서 파일 경로 (.yaml, .yml, .json)
            name: 명세서 이름 (기본값: 확장자를 뺀 파일명)

        Returns:
            LoadResult: 로딩 결과
        """
        start = time.monotonic()
        path = Path(file_path).expanduser().resolve()
        source = str(path)

        try:
            raw, content = await asyncio.to_thread(self._read_file, path)
        except SourceLoadError as e:
            self._log(f"❌ {e} ({source})", error=True)
            return LoadResult(success=False, source=source, message=str(e))

        elapsed_ms = (time.monotonic() - start) * 1000
        self._log(f"📂 Loaded {path.name} ({len(content)} chars, {elapsed_ms:.0f}ms)")

        return LoadResult(
            success=True,
            source=source,
            content=content,
            raw=raw,
            name=name or self.name_from_filename(path.name),
            message=f"Loaded file {path.name} ({elapsed_ms:.0f}ms)",
        )

    def _read_file(self, path: Path) -> Tuple[bytes, str]:
        if not self.is_supported_file(path.name):
            raise SourceLoadError(
                f"Unsupported file type: {path.suffix or '(none)'}. "
                f"Supported: {', '.join(self.supported_extensions)}",
                SourceLoadError.UNSUPPORTED,
                str(path),
            )

        try:
            if not path.is_file():
                if path.exists():
                    raise SourceLoadError(
                        f"Not a regular file: {path}", SourceLoadError.NOT_FOUND, str(path)
                    )
                raise FileNotFoundError(str(path))
            raw = path.read_bytes()
        except FileNotFoundError as e:
            raise SourceLoadError(
                f"File not found: {path}", SourceLoadError.NOT_FOUND, str(path)
            ) from e
        except PermissionError as e:
            raise SourceLoadError(
                f"Permission denied: {path}", SourceLoadError.PERMISSION, str(path)
            ) from e
        except OSError as e:
            raise SourceLoadError(
                f"Failed to read file {path}: {e}", SourceLoadError.NOT_FOUND, str(path)
            ) from e

        try:
            content = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SourceLoadError(
                f"File is not valid UTF-8: {path}", SourceLoadError.DECODE, str(path)
            ) from e

        if not content.strip():
            raise SourceLoadError(f"File is empty: {path}", SourceLoadError.EMPTY, str(path))

        return raw, content

    # ------------------------------------------------------------------
    # URL
    # ------------------------------------------------------------------

    async def load_url(self, url: str, name: str = None) -> LoadResult:
        """URL에서 명세서 로딩

        timeout을 넘기면 진행 중인 요청은 취소된다.

        Args:
            url: 명세서 URL
            name: 명세서 이름 (기본값: URL 경로 또는 호스트에서 생성)

        Returns:
            LoadResult: 로딩 결과
        """
        self._log(f"🌐 Fetching {url}")

        try:
            raw, content = await asyncio.wait_for(self._fetch(url), timeout=self.timeout)
        except asyncio.TimeoutError:
            message = f"URL load timed out after {self.timeout:g}s: {url}"
            self._log(f"❌ {message}", error=True)
            return LoadResult(success=False, source=url, message=message)
        except SourceLoadError as e:
            self._log(f"❌ {e}", error=True)
            return LoadResult(success=False, source=url, message=str(e))

        self._log(f"✅ Fetched {url} ({len(content)} chars)")

        return LoadResult(
            success=True,
            source=url,
            content=content,
            raw=raw,
            name=name or self.name_from_url(url),
            message=f"Loaded URL {url}",
        )

    async def _fetch(self, url: str) -> Tuple[bytes, str]:
        async with self.client_factory() as client:
            try:
                response = await client.get(url)
            except httpx.InvalidURL as e:
                raise SourceLoadError(
                    f"Invalid URL: {url} ({e})", SourceLoadError.NETWORK, url
                ) from e
            except httpx.TimeoutException as e:
                raise SourceLoadError(
                    f"URL load timed out: {url}", SourceLoadError.TIMEOUT, url
                ) from e
            except httpx.RequestError as e:
                raise SourceLoadError(
                    f"URL load error: {e}", SourceLoadError.NETWORK, url
                ) from e

        if response.is_error:
            raise SourceLoadError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                SourceLoadError.HTTP,
                url,
            )

        content = response.text
        if not content.strip():
            raise SourceLoadError(
                f"Empty response body from {url}", SourceLoadError.EMPTY, url
            )
        return response.content, content

    # ------------------------------------------------------------------
    # Directory
    # ------------------------------------------------------------------

    async def scan_directory(self, directory: Union[str, Path]) -> DirectoryScanResult:
        """디렉토리 바로 아래의 명세서 파일 목록 (하위 디렉토리는 제외)

        Args:
            directory: 디렉토리 경로

        Returns:
            DirectoryScanResult: 디렉토리 자체를 읽을 수 없을 때만 실패
        """
        path = Path(directory).expanduser().resolve()

        try:
            files = await asyncio.to_thread(self._scan, path)
        except SourceLoadError as e:
            self._log(f"❌ {e}", error=True)
            return DirectoryScanResult(success=False, message=str(e))

        self._log(f"📁 Found {len(files)} spec file(s) in {path}")
        return DirectoryScanResult(
            success=True,
            files=files,
            message=f"Found {len(files)} spec file(s) in {path}",
        )

    def _scan(self, path: Path) -> List[str]:
        try:
            entries = sorted(os.scandir(path), key=lambda entry: entry.name)
        except FileNotFoundError as e:
            raise SourceLoadError(
                f"Directory not found: {path}", SourceLoadError.NOT_FOUND, str(path)
            ) from e
        except NotADirectoryError as e:
            raise SourceLoadError(
                f"Not a directory: {path}", SourceLoadError.NOT_FOUND, str(path)
            ) from e
        except PermissionError as e:
            raise SourceLoadError(
                f"Permission denied: {path}", SourceLoadError.PERMISSION, str(path)
            ) from e
        except OSError as e:
            raise SourceLoadError(
                f"Cannot read directory {path}: {e}", SourceLoadError.NOT_FOUND, str(path)
            ) from e

        files = []
        for entry in entries:
            try:
                if entry.is_dir():
                    continue
                if entry.is_file() and self.is_supported_file(entry.name):
                    files.append(str(path / entry.name))
            except OSError as e:
                # 개별 항목 오류는 스캔을 중단하지 않는다
                logger.warning("Skipping %s: %s", entry.name, e)
        return files

    async def load_directory(self, directory: Union[str, Path]) -> List[LoadResult]:
        """디렉토리 내 모든 명세서 파일을 각각 독립적으로 로딩

        Returns:
            List[LoadResult]: 파일별 결과. 디렉토리 오류 시 디렉토리 결과 1건.
        """
        scan = await self.scan_directory(directory)
        if not scan.success:
            return [LoadResult(
                success=False,
                source=str(Path(directory).expanduser().resolve()),
                message=scan.message,
            )]

        return await self.load_many(scan.files)

    async def load_many(self, file_paths: Iterable[Union[str, Path]]) -> List[LoadResult]:
        """여러 파일 동시 로딩. 한 파일의 실패가 나머지에 영향을 주지 않는다."""
        file_paths = list(file_paths)
        results = await asyncio.gather(
            *(self.load_file(p) for p in file_paths),
            return_exceptions=True,
        )

        loaded = []
        for file_path, result in zip(file_paths, results):
            if isinstance(result, BaseException):
                logger.error("Unexpected error loading %s: %s", file_path, result)
                loaded.append(LoadResult(
                    success=False,
                    source=str(file_path),
                    message=f"Unexpected load error: {result}",
                ))
            else:
                loaded.append(result)
        return loaded

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def is_supported_file(self, file_name: str) -> bool:
        return file_name.lower().endswith(self.supported_extensions)

    def name_from_filename(self, file_name: str) -> str:
        """확장자를 뺀 파일명"""
        lowered = file_name.lower()
        for ext in self.supported_extensions:
            if lowered.endswith(ext):
                return file_name[: -len(ext)]
        return file_name

    def name_from_url(self, url: str) -> str:
        """URL 경로의 마지막 세그먼트, 없으면 호스트명에서 이름 생성"""
        try:
            parsed = httpx.URL(url)
        except (httpx.InvalidURL, TypeError):
            return DEFAULT_URL_NAME

        segment = parsed.path.rstrip("/").rsplit("/", 1)[-1]
        if segment:
            return self.name_from_filename(segment) or DEFAULT_URL_NAME

        if parsed.host:
            return parsed.host.replace(".", "-") + "-api"
        return DEFAULT_URL_NAME

    def _log(self, message: str, error: bool = False) -> None:
        if error:
            logger.error(message)
        elif self.enable_logging:
            logger.info(message)
