import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, TypedDict

from jose import jwt

# ==========================================================
# 🔧 Configuration : paramètres de génération/validation JWT
# ==========================================================

@dataclass(frozen=True)
class JWTSettings:
    """
    Configuration des tokens JWT.

    - `secret` : clé secrète pour signer/valider les tokens
    - `issuer` : émetteur (claim `iss`)
    - `algorithm` : algo de signature (HS256 recommandé)
    - `access_ttl` : durée de vie d’un access token
    - `refresh_ttl` : durée de vie d’un refresh token (révocable côté serveur)
    """
    secret: str
    issuer: str = "flix-api"
    algorithm: str = "HS256"
    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(days=30)


class DecodedToken(TypedDict, total=False):
    iss: str
    sub: str            # identifiant utilisateur
    username: str
    typ: str           # "access" | "refresh"
    jti: str
    sid: str           # access : JTI du refresh token de la session
    iat: int
    exp: int


def _now() -> datetime:
    return datetime.now(timezone.utc)

def new_jti() -> str:
    """Crée un identifiant unique pour un token."""
    return str(uuid.uuid4())


# ==========================================================
# 🎟️ Génération des tokens
# ==========================================================

def _encode(
    *, typ: str, user_id: int, username: str, jti: str, ttl: timedelta, settings: JWTSettings,
    session_id: Optional[str] = None,
) -> str:
    now = _now()
    payload: DecodedToken = {
        "iss": settings.issuer,
        "sub": str(user_id),
        "username": username,
        "typ": typ,
        "jti": jti,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
    }
    if session_id:
        payload["sid"] = session_id
    return jwt.encode(payload, settings.secret, algorithm=settings.algorithm)


def create_access_token(*, user_id: int, username: str, session_id: str, settings: JWTSettings) -> str:
    """
    Access token court, non persisté.
    `session_id` (claim `sid`) est le JTI du refresh token émis avec lui :
    révoquer ce refresh invalide aussi l'access token.
    """
    return _encode(
        typ="access", user_id=user_id, username=username,
        jti=new_jti(), ttl=settings.access_ttl, settings=settings, session_id=session_id,
    )


def create_refresh_token(*, user_id: int, username: str, jti: str, settings: JWTSettings) -> str:
    """
    Refresh token long.
    Le JTI est fourni par l'appelant pour être stocké (et révoqué) côté serveur.
    """
    return _encode(
        typ="refresh", user_id=user_id, username=username,
        jti=jti, ttl=settings.refresh_ttl, settings=settings,
    )


# ==========================================================
# 🔍 Décodage / Validation
# ==========================================================

def decode_token(token: str, settings: JWTSettings) -> DecodedToken:
    """
    Décode et valide un token JWT (signature + expiration + émetteur).
    Lève jose.JWTError si invalide ou expiré.
    """
    decoded = jwt.decode(
        token,
        settings.secret,
        algorithms=[settings.algorithm],
        issuer=settings.issuer,
        options={"verify_aud": False},
    )
    return decoded  # type: ignore[return-value]
