import logging
from typing import Iterable, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from flix.core.cache import TypedCache, featured_list, video_detail, video_list
from flix.core.config import settings
from flix.db.models.base import utcnow
from flix.db.models.videos import Video
from flix.db.repositories.videos import VideoRepository
from flix.features.videos.schemas import SignedUrlsOut, VideoInfoOut, VideoRecord, VideoSummary
from flix.features.videos.validation import ValidatedFile, VideoSubmission
from flix.utils.media_files import (
    DEFAULT_IMAGE_MIME,
    DEFAULT_VIDEO_MIME,
    build_object_key,
    guess_content_type,
    normalize_content_key,
)
from flix.utils.s3 import ObjectStore, ObjectStoreError

logger = logging.getLogger(__name__)


def format_duration(seconds: int) -> str:
    """3725 -> "1:02:05" ; 125 -> "02:05"."""
    hours, rest = divmod(int(seconds), 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


class VideoService:
    """
    Service Vidéos : orchestre repository + stockage objet + cache.
    Lectures servies par le cache ; chaque écriture invalide les clés concernées.
    Erreurs en HTTPException propres.
    """

    def __init__(self, *, repo: VideoRepository, store: ObjectStore, cache: TypedCache):
        self.repo = repo
        self.store = store
        self.cache = cache

    # ---------- Helpers ----------

    def _get_or_404(self, video_id: int) -> Video:
        video = self.repo.get(video_id)
        if not video:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found")
        return video

    def _upload(self, prefix: str, file: ValidatedFile) -> str:
        key = build_object_key(prefix=prefix, ext_with_dot=file.ext)
        try:
            self.store.put(key, file.data, content_type=file.mime, metadata={"sha256": file.sha256})
        except ObjectStoreError as e:
            logger.error("Upload of %s failed: %s", key, e)
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Erreur upload stockage: {e}")
        logger.info("Uploaded %s (%s bytes, %s)", key, file.size, file.mime)
        return key

    def _cleanup(self, keys: Iterable[Optional[str]]) -> None:
        """
        Suppression best-effort : un échec est loggé mais ne fait jamais échouer
        l'opération principale.
        """
        for stored in keys:
            key = normalize_content_key(stored, self.store.bucket)
            if not key:
                continue
            try:
                self.store.delete(key)
            except ObjectStoreError as e:
                logger.warning("Best-effort delete of %s failed: %s", key, e)

    # ---------- READ ----------

    def list_videos(self, *, featured: Optional[bool] = None) -> List[VideoSummary]:
        if featured:
            return self.list_featured()
        return self.cache.get_or_compute(
            video_list(),
            lambda: [VideoSummary.model_validate(v) for v in self.repo.list_recent()],
        )

    def list_featured(self) -> List[VideoSummary]:
        return self.cache.get_or_compute(
            featured_list(),
            lambda: [VideoSummary.model_validate(v) for v in self.repo.list_featured()],
        )

    def get_video(self, video_id: int) -> VideoRecord:
        return self.cache.get_or_compute(
            video_detail(video_id),
            lambda: VideoRecord.model_validate(self._get_or_404(video_id)),
        )

    def get_video_info(self, video_id: int, *, stream_url: str, thumbnail_url: str) -> VideoInfoOut:
        record = self.get_video(video_id)
        return VideoInfoOut(
            **record.model_dump(),
            duration_minutes=round(record.duration / 60, 1),
            duration_formatted=format_duration(record.duration),
            stream_url=stream_url,
            thumbnail_url=thumbnail_url,
        )

    def signed_urls(self, video_id: int) -> SignedUrlsOut:
        record = self.get_video(video_id)
        video_key = normalize_content_key(record.video_key, self.store.bucket)
        thumb_key = normalize_content_key(record.thumbnail_key, self.store.bucket)
        if not video_key or not thumb_key:
            logger.warning("Video %s has an unusable storage key", video_id)
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid video path")

        ttl = settings.PRESIGN_TTL_SECONDS
        return SignedUrlsOut(
            id=video_id,
            video_url=self.store.presigned_get(
                video_key, content_type=guess_content_type(video_key, default=DEFAULT_VIDEO_MIME), ttl=ttl,
            ),
            thumbnail_url=self.store.presigned_get(
                thumb_key, content_type=guess_content_type(thumb_key, default=DEFAULT_IMAGE_MIME), ttl=ttl,
            ),
            expires_in=ttl,
        )

    # ---------- CREATE ----------

    def create(self, submission: VideoSubmission) -> VideoRecord:
        uploaded: List[str] = []
        try:
            uploaded.append(self._upload("thumbnails", submission.thumbnail))
            uploaded.append(self._upload("videos", submission.video))
        except HTTPException:
            self._cleanup(uploaded)
            raise

        thumbnail_key, video_key = uploaded
        try:
            video = self.repo.create(
                **submission.fields,
                thumbnail_key=thumbnail_key,
                video_key=video_key,
            )
        except SQLAlchemyError:
            self.repo.session.rollback()
            self._cleanup(uploaded)
            raise

        self.cache.invalidate_video(video.id)
        logger.info("Video %s created (%s)", video.id, video.title)
        return VideoRecord.model_validate(video)

    # ---------- UPDATE ----------

    def update(self, video_id: int, submission: VideoSubmission) -> VideoRecord:
        video = self._get_or_404(video_id)
        changes = dict(submission.fields)
        replaced: List[str] = []
        uploaded: List[str] = []

        try:
            if submission.thumbnail is not None:
                changes["thumbnail_key"] = self._upload("thumbnails", submission.thumbnail)
                uploaded.append(changes["thumbnail_key"])
                replaced.append(video.thumbnail_key)
            if submission.video is not None:
                changes["video_key"] = self._upload("videos", submission.video)
                uploaded.append(changes["video_key"])
                replaced.append(video.video_key)
        except HTTPException:
            self._cleanup(uploaded)
            raise

        changes["updated_at"] = utcnow()
        try:
            video = self.repo.update(video, **changes)
        except SQLAlchemyError:
            self.repo.session.rollback()
            self._cleanup(uploaded)
            raise

        # anciens fichiers supprimés seulement une fois la ligne à jour
        self._cleanup(replaced)
        self.cache.invalidate_video(video_id)
        logger.info("Video %s updated (%s)", video_id, ", ".join(sorted(changes)))
        return VideoRecord.model_validate(video)

    # ---------- DELETE ----------

    def delete(self, video_id: int) -> None:
        video = self._get_or_404(video_id)
        self._cleanup([video.video_key, video.thumbnail_key])
        self.repo.delete(video)
        self.cache.invalidate_video(video_id)
        logger.info("Video %s deleted", video_id)
