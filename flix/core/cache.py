"""
➡️ But : Cache clé/valeur avec TTL devant la base (lectures chaudes du catalogue).

- CacheBackend : stockage brut (str) avec TTL → MemoryCacheBackend (local) ou RedisCacheBackend.
- CacheKey[T] : nom de clé + TTL + TypeAdapter pydantic du type stocké.
- Les clés ne sont jamais écrites à la main : une fonction par entité (video_detail(id), video_list()...).
- TypedCache.get_or_compute(key, compute_fn) -> T : lit, sinon calcule + stocke.

🔹 Avantages :

Pas de collision ni de faute de frappe sur les clés.

Les valeurs relues sont typées (validées par pydantic), pas des dicts anonymes.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, Protocol, Tuple, TypeVar

from pydantic import TypeAdapter, ValidationError

from flix.core.config import settings
from flix.features.videos.schemas import VideoRecord, VideoSummary

logger = logging.getLogger(__name__)

T = TypeVar("T")


# -----------------------------
# Backends
# -----------------------------
class CacheBackend(Protocol):
    def get(self, key: str) -> Optional[str]: ...
    def set(self, key: str, value: str, ttl: int) -> None: ...
    def delete(self, *keys: str) -> None: ...


class MemoryCacheBackend:
    """Cache en mémoire du process, thread-safe (les routes sync tournent dans le threadpool)."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._data: Dict[str, Tuple[float, str]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            item = self._data.get(key)
            if item is None:
                return None
            expires_at, value = item
            if expires_at <= self._clock():
                del self._data[key]
                return None
            return value

    def set(self, key: str, value: str, ttl: int) -> None:
        with self._lock:
            self._data[key] = (self._clock() + ttl, value)

    def delete(self, *keys: str) -> None:
        with self._lock:
            for key in keys:
                self._data.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


class RedisCacheBackend:
    """Backend Redis (partagé entre workers). `client` : redis.Redis(decode_responses=True)."""

    def __init__(self, client: Any, *, prefix: str = "flix:"):
        self.client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str) -> "RedisCacheBackend":
        import redis
        return cls(redis.Redis.from_url(url, decode_responses=True))

    def get(self, key: str) -> Optional[str]:
        value = self.client.get(self.prefix + key)
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    def set(self, key: str, value: str, ttl: int) -> None:
        self.client.setex(self.prefix + key, ttl, value)

    def delete(self, *keys: str) -> None:
        if keys:
            self.client.delete(*(self.prefix + k for k in keys))


def make_cache_backend(url: Optional[str] = None) -> CacheBackend:
    url = url if url is not None else settings.CACHE_URL
    if url:
        logger.info("Cache backend: redis (%s)", url.split("@")[-1])
        return RedisCacheBackend.from_url(url)
    logger.info("Cache backend: memory")
    return MemoryCacheBackend()


# -----------------------------
# Clés typées
# -----------------------------
@dataclass(frozen=True)
class CacheKey(Generic[T]):
    name: str
    ttl: int
    adapter: TypeAdapter


_record_adapter = TypeAdapter(VideoRecord)
_summaries_adapter = TypeAdapter(List[VideoSummary])

VIDEOS_ALL = "videos.all"
VIDEOS_FEATURED = "videos.featured"


def video_list() -> CacheKey[List[VideoSummary]]:
    return CacheKey(VIDEOS_ALL, settings.CACHE_SHORT_TTL, _summaries_adapter)

def featured_list() -> CacheKey[List[VideoSummary]]:
    return CacheKey(VIDEOS_FEATURED, settings.CACHE_LONG_TTL, _summaries_adapter)

def video_detail(video_id: int) -> CacheKey[VideoRecord]:
    return CacheKey(f"video.{int(video_id)}", settings.CACHE_MEDIUM_TTL, _record_adapter)

def video_stream(video_id: int) -> CacheKey[VideoRecord]:
    return CacheKey(f"video_stream.{int(video_id)}", settings.CACHE_MEDIUM_TTL, _record_adapter)

def video_thumbnail(video_id: int) -> CacheKey[VideoRecord]:
    return CacheKey(f"video_thumbnail.{int(video_id)}", settings.CACHE_LONG_TTL, _record_adapter)


# -----------------------------
# Façade
# -----------------------------
class TypedCache:
    def __init__(self, backend: CacheBackend):
        self.backend = backend

    def get(self, key: CacheKey[T]) -> Optional[T]:
        raw = self.backend.get(key.name)
        if raw is None:
            return None
        try:
            return key.adapter.validate_json(raw)
        except ValidationError:
            # payload corrompu ou schéma modifié : traité comme un miss
            logger.warning("Cache entry %s is unreadable, dropping it", key.name)
            self.backend.delete(key.name)
            return None

    def set(self, key: CacheKey[T], value: T) -> None:
        self.backend.set(key.name, key.adapter.dump_json(value).decode("utf-8"), key.ttl)

    def get_or_compute(self, key: CacheKey[T], compute_fn: Callable[[], T]) -> T:
        """
        Lit la clé ; sinon appelle compute_fn et stocke le résultat.
        Une exception de compute_fn est propagée et rien n'est mis en cache.
        """
        cached = self.get(key)
        if cached is not None:
            return cached
        value = compute_fn()
        self.set(key, value)
        return value

    def invalidate_video(self, video_id: Optional[int] = None) -> None:
        keys = [VIDEOS_ALL, VIDEOS_FEATURED]
        if video_id is not None:
            keys += [
                video_detail(video_id).name,
                video_stream(video_id).name,
                video_thumbnail(video_id).name,
            ]
        self.backend.delete(*keys)
