import threading
import time
from typing import Callable, Dict, List, Optional, Tuple

from loguru import logger

from app.models import SubmissionResult

class ResolutionCache:
    """
    In-memory magnet -> submission result map with lazy TTL expiry.
    Keys are the exact magnet strings. Entries live until read after expiry
    or until purge_expired() runs; there is no size bound.
    """
    def __init__(self, ttl: float = 30 * 60, clock: Optional[Callable[[], float]] = None):
        self.ttl = ttl
        self._now = clock or time.monotonic
        self._entries: Dict[str, Tuple[SubmissionResult, float]] = {}
        self._lock = threading.Lock()

    def get(self, magnet: str) -> Optional[SubmissionResult]:
        with self._lock:
            entry = self._entries.get(magnet)
            if entry is None:
                return None
            value, inserted_at = entry
            if self._now() - inserted_at >= self.ttl:
                del self._entries[magnet]
                return None
            return value

    def put(self, magnet: str, result: SubmissionResult) -> None:
        with self._lock:
            self._entries[magnet] = (result, self._now())

    def purge_expired(self) -> int:
        with self._lock:
            now = self._now()
            expired = [k for k, (_, inserted_at) in self._entries.items() if now - inserted_at >= self.ttl]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug(f"Purged {len(expired)} expired cache entries")
        return len(expired)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries.keys())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
