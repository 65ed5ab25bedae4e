"""
➡️ But : Proxy de streaming vidéo / miniature devant le stockage objet.

Pour chaque requête :
1) id -> enregistrement vidéo (via le cache) -> clé normalisée dans le bucket
2) HEAD upstream : taille + type (toujours frais, jamais mis en cache)
3) GET upstream complet (200) ou restreint à la plage demandée (206)

Exactement un GET upstream par requête client, sans retry.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime
from typing import Callable, Dict, Iterable, Optional

from flix.core.cache import CacheKey, TypedCache, video_stream, video_thumbnail
from flix.core.config import settings
from flix.db.repositories.videos import VideoRepository
from flix.features.streaming.errors import (
    InvalidContent,
    MalformedRange,
    RangeNotSatisfiable,
    UpstreamError,
    UpstreamNotFound,
    VideoNotFound,
)
from flix.features.streaming.ranges import parse_range_header
from flix.features.videos.schemas import VideoRecord
from flix.utils.media_files import (
    DEFAULT_IMAGE_MIME,
    DEFAULT_VIDEO_MIME,
    guess_content_type,
    normalize_content_key,
)
from flix.utils.s3 import ObjectInfo, ObjectNotFound, ObjectStore, ObjectStoreError

logger = logging.getLogger(__name__)

THUMBNAIL_CACHE_CONTROL = "public, max-age=86400"


@dataclass
class StreamResult:
    status_code: int
    media_type: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Iterable[bytes] = ()


class StreamService:
    def __init__(
        self,
        *,
        repo: VideoRepository,
        cache: TypedCache,
        store: ObjectStore,
        chunk_size: int = settings.STREAM_CHUNK_BYTES,
        now_fn: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.repo = repo
        self.cache = cache
        self.store = store
        self.chunk_size = chunk_size
        self.now_fn = now_fn

    # ---------- Résolution id -> clé ----------

    def _load_record(self, video_id: int, cache_key: CacheKey[VideoRecord]) -> VideoRecord:
        def compute() -> VideoRecord:
            video = self.repo.get(video_id)
            if not video:
                raise VideoNotFound(video_id)
            return VideoRecord.model_validate(video)

        try:
            return self.cache.get_or_compute(cache_key, compute)
        except VideoNotFound:
            logger.info("Video %s not found", video_id)
            raise

    def resolve_content_key(self, video_id: int, *, kind: str = "video") -> str:
        if kind == "thumbnail":
            record = self._load_record(video_id, video_thumbnail(video_id))
            stored = record.thumbnail_key
        else:
            record = self._load_record(video_id, video_stream(video_id))
            stored = record.video_key

        key = normalize_content_key(stored, self.store.bucket)
        if not key:
            logger.warning("Video %s has an unusable %s key: %r", video_id, kind, stored)
            raise InvalidContent(f"Invalid {kind} path")
        return key

    # ---------- Upstream ----------

    def probe(self, key: str) -> ObjectInfo:
        """HEAD upstream : taille réelle + type déclaré."""
        try:
            return self.store.head(key)
        except ObjectNotFound as e:
            logger.warning("Object %s referenced in DB is missing from bucket %s", key, self.store.bucket)
            raise UpstreamNotFound(str(e)) from e
        except ObjectStoreError as e:
            logger.error("Upstream HEAD failed for %s: %s", key, e)
            raise UpstreamError(str(e)) from e

    def _fetch(self, key: str, byte_range=None):
        try:
            return self.store.get(key, byte_range)
        except ObjectNotFound as e:
            logger.warning("Object %s vanished between HEAD and GET", key)
            raise UpstreamNotFound(str(e)) from e
        except ObjectStoreError as e:
            logger.error("Upstream GET failed for %s: %s", key, e)
            raise UpstreamError(str(e)) from e

    # ---------- Réponse ----------

    def serve(self, key: str, total_length: int, content_type: str, range_header: Optional[str]) -> StreamResult:
        """
        Sans Range : 200 + objet complet.
        Avec Range : validation contre total_length puis 206 sur [start, end].
        MalformedRange / RangeNotSatisfiable remontent avant tout GET upstream.
        """
        headers = {"Accept-Ranges": "bytes", "Cache-Control": "no-cache"}

        if not range_header:
            body = self._fetch(key)
            headers["Content-Length"] = str(total_length)
            return StreamResult(
                status_code=200,
                media_type=content_type,
                headers=headers,
                body=body.iter_chunks(self.chunk_size),
            )

        try:
            byte_range = parse_range_header(range_header, total_length)
        except (MalformedRange, RangeNotSatisfiable) as e:
            logger.info("Rejected Range %r for %s: %s", range_header, key, e)
            raise
        body = self._fetch(key, (byte_range.start, byte_range.end))
        headers["Content-Length"] = str(byte_range.length)
        headers["Content-Range"] = byte_range.content_range(total_length)
        return StreamResult(
            status_code=206,
            media_type=content_type,
            headers=headers,
            body=body.iter_chunks(self.chunk_size),
        )

    def stream_video(self, video_id: int, range_header: Optional[str]) -> StreamResult:
        key = self.resolve_content_key(video_id, kind="video")
        info = self.probe(key)
        content_type = info.content_type or guess_content_type(key, default=DEFAULT_VIDEO_MIME)
        return self.serve(key, info.size, content_type, range_header)

    def thumbnail(self, video_id: int) -> StreamResult:
        """Miniature complète, cacheable côté client pendant 24 h."""
        key = self.resolve_content_key(video_id, kind="thumbnail")
        body = self._fetch(key)
        data = body.read()
        content_type = body.content_type or guess_content_type(key, default=DEFAULT_IMAGE_MIME)
        expires = self.now_fn() + timedelta(days=1)
        return StreamResult(
            status_code=200,
            media_type=content_type,
            headers={
                "Cache-Control": THUMBNAIL_CACHE_CONTROL,
                "Expires": format_datetime(expires, usegmt=True),
            },
            body=[data],
        )
