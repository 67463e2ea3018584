"""명세서 디렉토리 감시"""

import asyncio
import logging
import os
import stat
from pathlib import Path
from typing import Awaitable, Callable, Iterable, Optional, Union

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from spec_store.core.config import settings
from spec_store.core.exceptions import WatchError
from spec_store.watch.debounce import Debouncer

logger = logging.getLogger(__name__)

CREATED = "created"
MODIFIED = "modified"
DELETED = "deleted"


class _SpecEventHandler(FileSystemEventHandler):
    """watchdog 스레드의 이벤트를 DirectoryWatcher로 전달"""

    def __init__(self, watcher: "DirectoryWatcher"):
        super().__init__()
        self.watcher = watcher

    def on_created(self, event: FileSystemEvent):
        if not event.is_directory:
            self.watcher.notify(event.src_path, CREATED)

    def on_modified(self, event: FileSystemEvent):
        if not event.is_directory:
            self.watcher.notify(event.src_path, MODIFIED)

    def on_deleted(self, event: FileSystemEvent):
        if event.is_directory:
            self.watcher.notify_directory_lost(event.src_path)
        else:
            self.watcher.notify(event.src_path, DELETED)

    def on_moved(self, event: FileSystemEvent):
        if event.is_directory:
            self.watcher.notify_directory_lost(event.src_path)
        else:
            self.watcher.notify(event.src_path, DELETED)
            self.watcher.notify(event.dest_path, CREATED)


class DirectoryWatcher:
    """디렉토리 1개를 비재귀로 감시하고 변경된 명세서 파일마다 재인제스트를 트리거

    상태: stopped --start()--> watching --stop()--> stopped
    감시 중인 디렉토리 자체가 삭제되거나 이동되면 WatchError를 기록하고 stopped로 전이한다.
    """

    def __init__(
        self,
        directory: Union[str, Path],
        on_change: Callable[[str], Awaitable[object]],
        on_delete: Optional[Callable[[str], Awaitable[object]]] = None,
        on_error: Optional[Callable[[WatchError], Awaitable[object]]] = None,
        debounce_seconds: float = None,
        supported_extensions: Iterable[str] = None,
        enable_logging: bool = True,
        observer_factory: Callable[[], Observer] = Observer,
    ):
        """
        Args:
            directory: 감시할 디렉토리
            on_change: 생성/수정된 파일 경로로 호출할 코루틴 함수 (예: ingest_file)
            on_delete: 삭제된 파일 경로로 호출할 코루틴 함수 (알림 전용)
            on_error: 감시를 계속할 수 없을 때 WatchError로 호출할 코루틴 함수
            debounce_seconds: 합치기 창 (기본값: settings.WATCH_DEBOUNCE_MS)
            supported_extensions: 감시 대상 확장자
            enable_logging: 진행 로그 출력 여부
            observer_factory: watchdog Observer 생성 함수
        """
        self.directory = Path(directory).expanduser().resolve()
        self.on_change = on_change
        self.on_delete = on_delete
        self.on_error = on_error
        self.enable_logging = enable_logging
        self.observer_factory = observer_factory

        extensions = supported_extensions or settings.SUPPORTED_EXTENSIONS
        self.supported_extensions = tuple(ext.lower() for ext in extensions)

        delay = debounce_seconds if debounce_seconds is not None else settings.watch_debounce_seconds
        self.debouncer = Debouncer(delay, self._process)

        self._observer = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self.last_error: Optional[WatchError] = None

    @property
    def is_watching(self) -> bool:
        return self._observer is not None

    async def start(self) -> None:
        """감시 시작 (이미 감시 중이면 아무것도 하지 않음)

        Raises:
            WatchError: 대상이 존재하는 디렉토리가 아니거나 감시를 시작할 수 없는 경우
        """
        if self.is_watching:
            self._log(f"⚠️  Already watching {self.directory}")
            return

        is_dir = await asyncio.to_thread(self.directory.is_dir)
        if not is_dir:
            raise WatchError(f"Not an existing directory: {self.directory}")

        self._loop = asyncio.get_running_loop()
        self.last_error = None
        observer = self.observer_factory()
        try:
            observer.schedule(_SpecEventHandler(self), str(self.directory), recursive=False)
            observer.start()
        except Exception as e:
            raise WatchError(f"Failed to start watching {self.directory}: {e}") from e

        self._observer = observer
        self._log(f"👀 Watching {self.directory}")

    async def stop(self) -> None:
        """감시 중지 및 대기 중인 트리거 취소 (이미 중지 상태면 아무것도 하지 않음)"""
        if not self.is_watching:
            self._log(f"⚠️  Watcher already stopped: {self.directory}")
            return

        observer, self._observer = self._observer, None
        self.debouncer.cancel_all()
        try:
            observer.stop()
            await asyncio.to_thread(observer.join, 5.0)
        except Exception as e:
            logger.error("Error while stopping watcher for %s: %s", self.directory, e)

        self._log(f"🛑 Stopped watching {self.directory}")

    def notify(self, path: str, event_type: str) -> None:
        """watchdog 스레드에서 호출. 이벤트 루프로 넘긴다."""
        if not self._is_watched_file(path):
            return

        loop = self._loop
        if loop is None or loop.is_closed():
            logger.error("Dropping %s event for %s: event loop unavailable", event_type, path)
            return

        try:
            loop.call_soon_threadsafe(self.handle_event, path, event_type)
        except RuntimeError as e:
            logger.error("Dropping %s event for %s: %s", event_type, path, e)

    def handle_event(self, path: str, event_type: str) -> None:
        """이벤트 루프에서 호출. 경로별 디바운스 타이머를 (재)시작한다."""
        if not self._is_watched_file(path):
            return
        absolute = str(Path(path).absolute())
        logger.debug("Filesystem event %s: %s", event_type, absolute)
        self.debouncer.schedule(absolute, event_type)

    def notify_directory_lost(self, path: str) -> None:
        """watchdog 스레드에서 호출. 감시 디렉토리 자체가 사라졌으면 감시를 종료한다."""
        if Path(path).absolute() != self.directory:
            return

        loop = self._loop
        if loop is None or loop.is_closed():
            logger.error("Watched directory removed: %s (event loop unavailable)", self.directory)
            return

        error = WatchError(f"Watched directory removed: {self.directory}")
        try:
            asyncio.run_coroutine_threadsafe(self.fail(error), loop)
        except RuntimeError as e:
            logger.error("%s (%s)", error, e)

    async def fail(self, error: WatchError) -> None:
        """감시를 계속할 수 없는 오류를 기록하고 재시작 없이 중지"""
        if not self.is_watching:
            return

        self.last_error = error
        logger.error(f"❌ {error}")
        await self.stop()
        if self.on_error is not None:
            await self.on_error(error)

    async def _process(self, path: str, event_type: str) -> None:
        try:
            st = await asyncio.to_thread(os.stat, path)
        except OSError:
            # 읽기 전에 사라진 파일은 삭제로 취급
            await self._handle_delete(path)
            return

        if not stat.S_ISREG(st.st_mode):
            return

        self._log(f"🔄 {event_type.capitalize()}: {os.path.basename(path)}")
        await self.on_change(path)

    async def _handle_delete(self, path: str) -> None:
        self._log(f"🗑️  Removed: {os.path.basename(path)} (stored data is kept)")
        if self.on_delete is not None:
            await self.on_delete(path)

    def _is_watched_file(self, path: str) -> bool:
        candidate = Path(path)
        if not candidate.name.lower().endswith(self.supported_extensions):
            return False
        return candidate.absolute().parent == self.directory

    def _log(self, message: str) -> None:
        if self.enable_logging:
            logger.info(message)
