from pathlib import Path
from typing import Any, Dict, List

import yaml
from sqlmodel import Session, select

from flix.db.models.users import User
from flix.db.models.videos import Video
from flix.security.password import hash_password
from flix.utils.media_files import normalize_content_key
from flix.core.config import settings


# -----------------------------
# YAML loader
# -----------------------------
def load_seed_yaml(seed_path: str | Path) -> Dict[str, Any]:
    path = Path(seed_path)
    if not path.exists():
        raise FileNotFoundError(f"Seed YAML introuvable: {path}")

    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Le YAML de seed doit contenir un objet racine (mapping).")
    return data


# ------------------------------------------------------------
# Seed Users
# ------------------------------------------------------------
def seed_users(session: Session, data: Dict[str, Any]) -> int:
    """
    Écrit les utilisateurs de la clé YAML `users:`.
    Un utilisateur déjà présent (même username) est remplacé : mot de passe et rôle
    repris du YAML, même id (les refresh tokens existants restent rattachés).
    """
    users: List[Dict[str, Any]] = data.get("users", [])
    if not users:
        print("⚠️ Aucun utilisateur dans le YAML (clé 'users').")
        return 0

    for u in users:
        user = session.exec(select(User).where(User.username == u["username"])).first()
        if user is None:
            user = User(username=u["username"], hashed_password="")
        user.hashed_password = hash_password(u["password"])
        user.admin = bool(u.get("admin", False))
        session.add(user)
    session.commit()
    print(f"✅ {len(users)} utilisateurs écrits.")
    return len(users)

# ------------------------------------------------------------
# Seed Videos (métadonnées, objets déjà présents dans le bucket)
# ------------------------------------------------------------
def seed_videos(session: Session, data: Dict[str, Any]) -> int:
    if session.exec(select(Video)).first():
        print("ℹ️ Les vidéos existent déjà, aucune insertion effectuée.")
        return 0

    videos: List[Dict[str, Any]] = data.get("videos", [])
    if not videos:
        print("⚠️ Aucune vidéo dans le YAML (clé 'videos').")
        return 0

    session.add_all([
        Video(
            title=v["title"],
            genre=v["genre"],
            description=v.get("description"),
            duration=int(v["duration"]),
            year=int(v["year"]),
            is_featured=bool(v.get("is_featured", False)),
            video_key=normalize_content_key(v["video_key"], settings.S3_BUCKET),
            thumbnail_key=normalize_content_key(v["thumbnail_key"], settings.S3_BUCKET),
        )
        for v in videos
    ])
    session.commit()
    print(f"✅ {len(videos)} vidéos insérées.")
    return len(videos)


def seed_all(session: Session, seed_path: str | Path) -> None:
    data = load_seed_yaml(seed_path)

    seed_users(session, data)
    seed_videos(session, data)
