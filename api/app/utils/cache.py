# api/app/utils/cache.py
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Hashable, Optional


class TTLCache:
    """
    Process-local LRU with per-entry expiry. Size-bounded: the least
    recently used entry is evicted once `maxsize` is reached.
    """

    def __init__(self, maxsize: int, ttl_sec: int, clock: Callable[[], float] = time.time):
        if maxsize <= 0:
            raise ValueError("maxsize must be positive")
        self.maxsize = maxsize
        self.ttl_sec = ttl_sec
        self._clock = clock
        self._rows: "OrderedDict[Hashable, tuple[float, Any]]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            row = self._rows.get(key)
            if row is None:
                return None
            exp, val = row
            if exp < self._clock():
                self._rows.pop(key, None)
                return None
            self._rows.move_to_end(key)
            return val

    def set(self, key: Hashable, val: Any) -> None:
        with self._lock:
            self._rows[key] = (self._clock() + self.ttl_sec, val)
            self._rows.move_to_end(key)
            while len(self._rows) > self.maxsize:
                self._rows.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._rows.clear()

    def get_or_set(self, key: Hashable, fetch_fn: Callable[[], Any]) -> Any:
        val = self.get(key)
        if val is not None:
            return val
        data = fetch_fn()
        self.set(key, data)
        return data
