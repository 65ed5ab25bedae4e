"""
➡️ But : Un seul endroit pour valider les écritures sur le catalogue (création, mise à jour).

Fonctions pures : entrée brute (champs de formulaire + octets des fichiers)
→ enregistrement validé, ou VideoValidationError avec les erreurs par champ.
Aucun accès DB / S3 ici.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from flix.core.config import settings
from flix.features.videos.schemas import VideoFieldsIn, VideoFieldsPatch
from flix.utils.media_files import ALLOWED_THUMBNAIL_MIME, ALLOWED_VIDEO_MIME, validate_bytes

FIELD_NAMES = ("title", "genre", "description", "duration", "year", "is_featured")


class VideoValidationError(ValueError):
    def __init__(self, errors: Dict[str, List[str]]):
        self.errors = errors
        super().__init__("Invalid video data")


@dataclass(frozen=True)
class ValidatedFile:
    data: bytes
    mime: str
    ext: str
    size: int
    sha256: str


@dataclass(frozen=True)
class VideoSubmission:
    fields: Dict[str, Any]           # create : tous les champs ; update : seulement ceux fournis
    thumbnail: Optional[ValidatedFile]
    video: Optional[ValidatedFile]


def _clean(raw: Mapping[str, Any], *, partial: bool) -> Dict[str, Any]:
    cleaned: Dict[str, Any] = {}
    for name in FIELD_NAMES:
        if name not in raw or raw[name] is None:
            continue
        value = raw[name]
        if isinstance(value, str):
            value = value.strip()
            if value == "":
                if name == "description":
                    cleaned[name] = None   # vide = effacer la description
                elif not partial:
                    cleaned[name] = value  # laissé à pydantic -> erreur min_length
                continue
        cleaned[name] = value
    return cleaned


def _collect(exc: ValidationError, errors: Dict[str, List[str]]) -> None:
    for err in exc.errors():
        field = ".".join(str(p) for p in err["loc"]) or "__root__"
        errors.setdefault(field, []).append(err["msg"])


def _check_file(name: str, data: bytes, *, max_mb: int, allowed: set) -> ValidatedFile:
    try:
        mime, ext, size, sha = validate_bytes(data, max_mb=max_mb, allowed_mime=allowed)
    except ValueError as e:
        raise VideoValidationError({name: [str(e)]}) from e
    return ValidatedFile(data=data, mime=mime, ext=ext, size=size, sha256=sha)


def validate_thumbnail(data: bytes) -> ValidatedFile:
    """jpeg / png / webp, au plus MAX_THUMBNAIL_MB."""
    return _check_file("thumbnail", data, max_mb=settings.MAX_THUMBNAIL_MB, allowed=ALLOWED_THUMBNAIL_MIME)


def validate_video_file(data: bytes) -> ValidatedFile:
    """mp4 / mkv / avi / quicktime / webm, au plus MAX_VIDEO_MB."""
    return _check_file("video", data, max_mb=settings.MAX_VIDEO_MB, allowed=ALLOWED_VIDEO_MIME)


def validate_video_submission(
    raw: Mapping[str, Any],
    *,
    thumbnail: Optional[bytes] = None,
    video: Optional[bytes] = None,
    partial: bool = False,
) -> VideoSubmission:
    """
    partial=False (création) : tous les champs obligatoires + les deux fichiers.
    partial=True (mise à jour) : seulement ce qui est fourni ; les fichiers sont optionnels.
    """
    errors: Dict[str, List[str]] = {}
    cleaned = _clean(raw, partial=partial)

    fields: Dict[str, Any] = {}
    try:
        if partial:
            fields = VideoFieldsPatch.model_validate(cleaned).model_dump(exclude_unset=True)
        else:
            fields = VideoFieldsIn.model_validate(cleaned).model_dump()
    except ValidationError as e:
        _collect(e, errors)

    if not partial:
        if thumbnail is None:
            errors.setdefault("thumbnail", []).append("Field required")
        if video is None:
            errors.setdefault("video", []).append("Field required")

    files: Dict[str, Optional[ValidatedFile]] = {"thumbnail": None, "video": None}
    for name, data, check in (("thumbnail", thumbnail, validate_thumbnail), ("video", video, validate_video_file)):
        if data is None:
            continue
        try:
            files[name] = check(data)
        except VideoValidationError as e:
            for field, messages in e.errors.items():
                errors.setdefault(field, []).extend(messages)

    if errors:
        raise VideoValidationError(errors)
    return VideoSubmission(fields=fields, thumbnail=files["thumbnail"], video=files["video"])


# -----------------------------
# Raccourcis
# -----------------------------
def validate_video_create(raw: Mapping[str, Any], *, thumbnail: Optional[bytes], video: Optional[bytes]) -> VideoSubmission:
    return validate_video_submission(raw, thumbnail=thumbnail, video=video)


def validate_video_update(
    raw: Mapping[str, Any],
    *,
    thumbnail: Optional[bytes] = None,
    video: Optional[bytes] = None,
) -> VideoSubmission:
    return validate_video_submission(raw, thumbnail=thumbnail, video=video, partial=True)
