from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field as PydField


# ---------- IN / UPDATE ----------
# Champs texte des formulaires multipart (les fichiers sont validés à part).

class VideoFieldsIn(BaseModel):
    model_config = {"str_strip_whitespace": True, "extra": "ignore"}

    title: str = PydField(..., min_length=1, max_length=255)
    genre: str = PydField(..., min_length=1, max_length=100)
    description: Optional[str] = None
    duration: int = PydField(..., ge=1, description="Durée en secondes")
    year: int = PydField(..., ge=1900, le=2030)
    # accepte true/false et "0"/"1" (formulaires)
    is_featured: bool = False


class VideoFieldsPatch(BaseModel):
    model_config = {"str_strip_whitespace": True, "extra": "ignore"}

    title: Optional[str] = PydField(None, min_length=1, max_length=255)
    genre: Optional[str] = PydField(None, min_length=1, max_length=100)
    description: Optional[str] = None
    duration: Optional[int] = PydField(None, ge=1)
    year: Optional[int] = PydField(None, ge=1900, le=2030)
    is_featured: Optional[bool] = None


# ---------- OUT ----------

class VideoSummary(BaseModel):
    """Ligne de liste (catalogue, mises en avant)."""
    model_config = {"from_attributes": True}

    id: int
    title: str
    genre: str
    thumbnail_key: str
    duration: int
    year: int
    is_featured: bool


class VideoRecord(BaseModel):
    """Vidéo complète : réponse de détail et valeur mise en cache."""
    model_config = {"from_attributes": True}

    id: int
    title: str
    genre: str
    description: Optional[str] = None
    duration: int
    year: int
    is_featured: bool
    video_key: str
    thumbnail_key: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class VideoInfoOut(VideoRecord):
    duration_minutes: float
    duration_formatted: str
    stream_url: str
    thumbnail_url: str


class SignedUrlsOut(BaseModel):
    id: int
    video_url: str
    thumbnail_url: str
    expires_in: int
