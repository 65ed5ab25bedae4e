"""
➡️ But : Centraliser les dépendances réutilisables des routes.

Exemples :

get_video_service() : crée un VideoService à partir d’une session DB, du stockage et du cache.

get_admin_user() : exige un access token valide appartenant à un admin.

🔹 Avantages :

Routes plus propres (pas de code dupliqué).

Facile à remplacer en test (app.dependency_overrides).
"""

from typing import Optional
from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException, status, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from flix.core.cache import TypedCache, make_cache_backend
from flix.core.config import jwt_settings
from flix.db.models.users import User
from flix.db.session import get_session

from flix.db.repositories.users import UserRepository
from flix.db.repositories.refresh_tokens import RefreshTokenRepository
from flix.db.repositories.videos import VideoRepository

from flix.features.authentication.services import AuthService
from flix.features.streaming.services import StreamService
from flix.features.videos.services import VideoService
from flix.utils.s3 import ObjectStore


# -----------------------------
# Singletons (process)
# -----------------------------
_object_store: Optional[ObjectStore] = None
_cache: Optional[TypedCache] = None

def get_object_store() -> ObjectStore:
    global _object_store
    if _object_store is None:
        _object_store = ObjectStore()
    return _object_store

def get_cache() -> TypedCache:
    global _cache
    if _cache is None:
        _cache = TypedCache(make_cache_backend())
    return _cache


# -----------------------------
# Auth
# -----------------------------
def get_auth_service(session: Session = Depends(get_session)) -> AuthService:
    return AuthService(
        user_repo=UserRepository(session),
        refresh_repo=RefreshTokenRepository(session),
        jwt_settings=jwt_settings,
    )


# -----------------------------
# Repositories
# -----------------------------
def get_video_repository(session: Session = Depends(get_session)) -> VideoRepository:
    return VideoRepository(session)


# -----------------------------
# Services
# -----------------------------
def get_video_service(
    video_repo: VideoRepository = Depends(get_video_repository),
    store: ObjectStore = Depends(get_object_store),
    cache: TypedCache = Depends(get_cache),
) -> VideoService:
    return VideoService(repo=video_repo, store=store, cache=cache)

def get_stream_service(
    video_repo: VideoRepository = Depends(get_video_repository),
    store: ObjectStore = Depends(get_object_store),
    cache: TypedCache = Depends(get_cache),
) -> StreamService:
    return StreamService(repo=video_repo, cache=cache, store=store)


# -----------------------------
# Authentication data
# -----------------------------
bearer_scheme = HTTPBearer(auto_error=False)

def get_access_token_from_bearer(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> str:
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials

def get_current_user(
    access_token: str = Depends(get_access_token_from_bearer),
    auth_svc: AuthService = Depends(get_auth_service),
) -> User:
    return auth_svc.get_current_user(access_token=access_token)

def get_admin_user(
    access_token: str = Depends(get_access_token_from_bearer),
    auth_svc: AuthService = Depends(get_auth_service),
) -> User:
    return auth_svc.require_admin(access_token=access_token)


@dataclass
class ClientContext:
    ip: Optional[str]
    user_agent: Optional[str]

def get_client_ip_and_ua(
    x_forwarded_for: Optional[str] = Header(default=None, alias="X-Forwarded-For"),
    x_real_ip: Optional[str] = Header(default=None, alias="X-Real-IP"),
    user_agent: Optional[str] = Header(default=None, alias="User-Agent"),
) -> ClientContext:
    """
    Récupère l'IP depuis X-Forwarded-For > X-Real-IP (si derrière un proxy),
    et le User-Agent (utile pour audit des refresh tokens).
    """
    ip = None
    if x_forwarded_for:
        ip = x_forwarded_for.split(",")[0].strip()
    elif x_real_ip:
        ip = x_real_ip
    return ClientContext(ip=ip, user_agent=user_agent)
