"""In-process cache of cover lookups: hits kept a day, misses an hour."""
import threading
import time
from typing import Dict, Optional, Tuple

from vinylvault.config import COVER_HIT_TTL_SEC, COVER_MISS_TTL_SEC


class CoverCache:
    def __init__(
        self,
        hit_ttl_sec: float = COVER_HIT_TTL_SEC,
        miss_ttl_sec: float = COVER_MISS_TTL_SEC,
        clock=time.monotonic,
    ) -> None:
        self.hit_ttl_sec = hit_ttl_sec
        self.miss_ttl_sec = miss_ttl_sec
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[Tuple[str, str], Tuple[float, Optional[str]]] = {}

    @staticmethod
    def _key(artist: str, album: str) -> Tuple[str, str]:
        return (artist.strip().lower(), album.strip().lower())

    def get(self, artist: str, album: str) -> Tuple[bool, Optional[str]]:
        """(True, url_or_None) if a fresh entry exists, else (False, None)."""
        key = self._key(artist, album)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False, None
            expires, url = entry
            if self._clock() >= expires:
                del self._entries[key]
                return False, None
            return True, url

    def put(self, artist: str, album: str, url: Optional[str]) -> None:
        ttl = self.hit_ttl_sec if url else self.miss_ttl_sec
        with self._lock:
            self._entries[self._key(artist, album)] = (self._clock() + ttl, url)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
