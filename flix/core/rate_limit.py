"""
➡️ But : Limiter le débit des appels à l'API (slowapi).

- `api` : RATE_LIMIT_API (60/minute) partagé par toutes les routes /api/v1,
  par utilisateur si un access token valide est présent, sinon par IP.
- `auth` : RATE_LIMIT_AUTH (5/minute;20/day) sur sign-up / sign-in, par IP.

Stockage en mémoire par défaut ; RATE_LIMIT_STORAGE_URL=redis://... pour
partager les compteurs entre workers.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from jose import JWTError
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from flix.core.config import jwt_settings, settings
from flix.security.tokens import decode_token

logger = logging.getLogger(__name__)


def user_or_ip_key(request: Request) -> str:
    auth = request.headers.get("Authorization", "")
    scheme, _, token = auth.partition(" ")
    if scheme.lower() == "bearer" and token:
        try:
            decoded = decode_token(token, jwt_settings)
        except JWTError:
            decoded = {}
        if decoded.get("typ") == "access" and decoded.get("sub"):
            return f"user:{decoded['sub']}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=user_or_ip_key,
    storage_uri=settings.RATE_LIMIT_STORAGE_URL,
    enabled=settings.RATE_LIMIT_ENABLED,
)

# Décorateurs prêts à l'emploi (compteur partagé par toutes les routes du scope)
api_limit = limiter.shared_limit(settings.RATE_LIMIT_API, scope="api")
auth_limit = limiter.shared_limit(settings.RATE_LIMIT_AUTH, scope="auth", key_func=get_remote_address)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Rate limit exceeded on %s (%s)", request.url.path, exc.detail)
    return JSONResponse(
        status_code=429,
        content={"detail": f"Rate limit exceeded: {exc.detail}"},
    )
