"""프로세스 단위 TTL 캐시

짧은 수명의 조회 결과(쿼리 임베딩 등)를 재사용하기 위한 캐시입니다.
캐시를 소유하는 서비스 인스턴스에 주입해서 사용하며,
테스트에서는 clock을 교체하여 만료를 제어할 수 있습니다.

Example::

    cache: TTLCache[list[float]] = TTLCache(ttl_seconds=300)
    cache.set("bedtime", [0.1, 0.2])
    cache.get("bedtime")  # [0.1, 0.2]
"""

import threading
import time
from typing import Callable, Generic, Optional, TypeVar

import cachetools

ValueT = TypeVar("ValueT")


class TTLCache(Generic[ValueT]):
    """만료 시간과 최대 크기를 가진 LRU 캐시

    cachetools.TTLCache를 감싸며, 조회 시점에 만료 항목을 먼저 정리합니다.
    - 크기가 넘치면 만료 항목을 먼저 비우고, 그래도 넘치면 가장 오래 사용하지 않은 항목 제거
    - cachetools 캐시는 스레드 안전하지 않으므로 lock으로 보호
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")

        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._lock = threading.Lock()
        self._store: cachetools.TTLCache = cachetools.TTLCache(
            maxsize=max_entries, ttl=ttl_seconds, timer=clock
        )

    def get(self, key: str) -> Optional[ValueT]:
        with self._lock:
            self._store.expire()
            return self._store.get(key)

    def set(self, key: str, value: ValueT) -> None:
        with self._lock:
            self._store[key] = value

    def purge(self) -> int:
        """만료된 항목 일괄 제거

        Returns:
            제거된 항목 수
        """
        with self._lock:
            before = len(self._store)
            self._store.expire()
            return before - len(self._store)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            self._store.expire()
            return len(self._store)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None
