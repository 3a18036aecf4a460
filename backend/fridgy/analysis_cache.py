import threading
import time
from collections.abc import Callable
from typing import Any

from fridgy.core.config import settings


class AnalysisCache:
    """Short-lived in-process store of analysis results keyed by analysis id."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def set(self, analysis_id: str, data: dict[str, Any]) -> None:
        with self._lock:
            self._purge_locked()
            self._entries[analysis_id] = (self._clock() + self.ttl_seconds, data)

    def get(self, analysis_id: str) -> dict[str, Any] | None:
        with self._lock:
            entry = self._entries.get(analysis_id)
            if entry is None:
                return None
            expires_at, data = entry
            if self._clock() >= expires_at:
                del self._entries[analysis_id]
                return None
            return data

    def delete(self, analysis_id: str) -> None:
        with self._lock:
            self._entries.pop(analysis_id, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _purge_locked(self) -> None:
        now = self._clock()
        for key in [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]:
            del self._entries[key]


analysis_cache = AnalysisCache(ttl_seconds=settings.ANALYSIS_CACHE_TTL_SECONDS)
