import hashlib
import datetime
import posixpath
from typing import Optional, Set, Tuple
from urllib.parse import unquote, urlsplit
from uuid import uuid4

import filetype


# Allow-lists
ALLOWED_THUMBNAIL_MIME: Set[str] = {"image/jpeg", "image/png", "image/webp"}

ALLOWED_VIDEO_MIME: Set[str] = {
    "video/mp4",
    "video/x-matroska",  # mkv
    "video/x-msvideo",   # avi
    "video/quicktime",   # mov
    "video/webm",
}

# Devine le type à partir de l'extension quand l'upstream ne le déclare pas
EXTENSION_MIME = {
    ".mp4": "video/mp4",
    ".m4v": "video/mp4",
    ".mkv": "video/x-matroska",
    ".avi": "video/x-msvideo",
    ".mov": "video/quicktime",
    ".webm": "video/webm",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
}

DEFAULT_VIDEO_MIME = "application/octet-stream"
DEFAULT_IMAGE_MIME = "image/jpeg"


def detect_mime_and_ext(file_bytes: bytes) -> Tuple[str, str]:
    """
    Détecte le type réel via 'filetype' (magic bytes, pas l'extension déclarée).
    Retourne (real_mime, ext_with_dot).
    """
    kind = filetype.guess(file_bytes)
    real_mime = kind.mime if kind else "application/octet-stream"
    ext = "." + (kind.extension if kind else "bin")
    return real_mime, ext


def validate_bytes(
    file_bytes: bytes,
    *,
    max_mb: int,
    allowed_mime: Set[str],
) -> Tuple[str, str, int, str]:
    """
    Retourne (real_mime, ext_with_dot, size_bytes, sha256).
    Lève ValueError si invalide.
    """
    size = len(file_bytes)
    if size == 0:
        raise ValueError("Fichier vide")
    if size > max_mb * 1024 * 1024:
        raise ValueError(f"Taille invalide (max {max_mb} MB)")

    real_mime, ext = detect_mime_and_ext(file_bytes)

    if real_mime not in allowed_mime:
        raise ValueError(f"Type non autorisé: {real_mime}")

    sha = hashlib.sha256(file_bytes).hexdigest()
    return real_mime, ext, size, sha


def build_object_key(*, prefix: str, ext_with_dot: str) -> str:
    """
    Construit une clé stable et lisible.
    Exemple:
      prefix="videos"     -> videos/2025-12-18/<uuid>.mp4
      prefix="thumbnails" -> thumbnails/2025-12-18/<uuid>.png
    """
    today = datetime.date.today().isoformat()
    ext = ext_with_dot if ext_with_dot.startswith(".") else f".{ext_with_dot}"
    return f"{prefix}/{today}/{uuid4().hex}{ext}"


def normalize_content_key(stored: Optional[str], bucket: str) -> Optional[str]:
    """
    Ramène une valeur stockée (clé relative, ou URL complète virtual-host / path-style)
    à la clé canonique dans le bucket : ni schéma, ni hôte, ni nom de bucket.

    Idempotent : normalize(normalize(x)) == normalize(x).
    Retourne None si rien d'exploitable.
    """
    if stored is None:
        return None
    value = stored.strip()
    if not value:
        return None

    parts = urlsplit(value)
    if not (parts.scheme and parts.netloc):
        # clé relative : jamais réécrite (seul le / de tête est retiré)
        return value.lstrip("/") or None

    key = unquote(parts.path).lstrip("/")
    virtual_host = bool(bucket) and parts.hostname is not None and parts.hostname.startswith(f"{bucket}.")
    # path-style : https://host/<bucket>/<key> -> le segment bucket est retiré une fois
    if bucket and not virtual_host and key.startswith(f"{bucket}/"):
        key = key[len(bucket) + 1:]

    return key.lstrip("/") or None


def guess_content_type(key: str, *, default: str) -> str:
    ext = posixpath.splitext(key)[1].lower()
    return EXTENSION_MIME.get(ext, default)
