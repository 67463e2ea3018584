"""Watch 모듈 - 디렉토리 변경 감시"""

from .debounce import Debouncer
from .watcher import DirectoryWatcher

__all__ = [
    "Debouncer",
    "DirectoryWatcher",
]
