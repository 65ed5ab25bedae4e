from typing import Optional
from sqlmodel import Field

from .base import BaseModelDB


class Video(BaseModelDB, table=True):
    """Vidéos du catalogue : métadonnées en DB, binaires (vidéo + miniature) dans le bucket S3."""

    title: str = Field(index=True, max_length=255)
    genre: str = Field(index=True, max_length=100)
    description: Optional[str] = Field(default=None)
    duration: int = Field(description="Durée en secondes (>= 1)")
    year: int = Field(description="Année de sortie (1900-2030)")
    is_featured: bool = Field(default=False, index=True)

    # Clés relatives dans le bucket (jamais de schéma, d'hôte ni de nom de bucket).
    # Les anciennes lignes peuvent encore contenir une URL complète : voir normalize_content_key.
    video_key: str = Field(description="Chemin de la vidéo dans le bucket")
    thumbnail_key: str = Field(description="Chemin de la miniature dans le bucket")
