"""키별 디바운스 타이머"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Set

logger = logging.getLogger(__name__)


class Debouncer:
    """같은 키에 대한 연속 이벤트를 하나의 호출로 합친다

    창(delay) 안에서 새 이벤트가 오면 타이머가 다시 시작되고, 마지막 이벤트의
    payload로 callback(key, payload)이 한 번 호출된다. 파일 감시 API와 무관하게
    실행 중인 이벤트 루프만 있으면 동작한다.
    """

    def __init__(self, delay: float, callback: Callable[[str, Any], Awaitable[None]]):
        """
        Args:
            delay: 합치기 창 (초)
            callback: 타이머 만료 시 호출할 코루틴 함수
        """
        self.delay = delay
        self.callback = callback
        self._handles: Dict[str, asyncio.TimerHandle] = {}
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending_keys(self) -> List[str]:
        return list(self._handles)

    def schedule(self, key: str, payload: Any = None) -> None:
        """타이머 예약 (기존 타이머가 있으면 취소 후 재시작)"""
        self.cancel(key)
        loop = asyncio.get_running_loop()
        self._handles[key] = loop.call_later(self.delay, self._fire, key, payload)

    def cancel(self, key: str) -> bool:
        handle = self._handles.pop(key, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def cancel_all(self) -> None:
        for handle in self._handles.values():
            handle.cancel()
        self._handles.clear()

    async def drain(self) -> None:
        """이미 시작된 callback이 모두 끝날 때까지 대기"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _fire(self, key: str, payload: Any) -> None:
        self._handles.pop(key, None)
        task = asyncio.get_running_loop().create_task(self._invoke(key, payload))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _invoke(self, key: str, payload: Any) -> None:
        try:
            await self.callback(key, payload)
        except Exception:
            logger.exception("Debounced callback failed for %s", key)
