import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from fastapi import HTTPException, status
from jose import JWTError

from flix.db.models.users import User
from flix.db.repositories.users import UserRepository
from flix.db.repositories.refresh_tokens import RefreshTokenRepository
from flix.security.password import verify_password, hash_password
from flix.security.tokens import (
    JWTSettings,
    create_access_token,
    create_refresh_token,
    decode_token,
    new_jti,
)
from flix.features.authentication.schemas import (
    SignUpIn,
    SignInIn,
    TokenPairOut,
    UserOut,
)

logger = logging.getLogger(__name__)


class AuthService:
    """
    Service d'authentification : orchestre les repositories + tokens.
    Ne contient pas d'accès SQL direct et lève des HTTPException propres.
    """

    def __init__(
        self,
        *,
        user_repo: UserRepository,
        refresh_repo: RefreshTokenRepository,
        jwt_settings: JWTSettings,
        now_fn: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.user_repo = user_repo
        self.refresh_repo = refresh_repo
        self.jwt = jwt_settings
        self.now_fn = now_fn

    # ---------- Sign up ----------
    def sign_up(self, payload: SignUpIn) -> User:
        if self.user_repo.get_by_username(payload.username):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Username already exists",
            )
        user = self.user_repo.create(
            username=payload.username,
            hashed_password=hash_password(payload.password),
        )
        logger.info("User %s registered", user.username)
        return user

    # ---------- Sign in ----------
    def sign_in(self, payload: SignInIn, *, ip: Optional[str] = None, user_agent: Optional[str] = None) -> TokenPairOut:
        user = self.user_repo.get_by_username(payload.username)
        if not user or not verify_password(payload.password, user.hashed_password):
            # Ne pas révéler si l'utilisateur existe
            logger.info("Failed sign-in for %r", payload.username)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid credentials",
            )

        # Une seule session active : les anciens refresh tokens sont révoqués
        self.refresh_repo.revoke_all_for_user(user.id)

        jti = new_jti()
        access = create_access_token(user_id=user.id, username=user.username, session_id=jti, settings=self.jwt)
        refresh = create_refresh_token(user_id=user.id, username=user.username, jti=jti, settings=self.jwt)

        # Persist refresh (révocable)
        self.refresh_repo.create(
            jti=jti,
            user_id=user.id,
            expires_at=self.now_fn() + self.jwt.refresh_ttl,
            user_agent=user_agent,
            ip=ip,
        )

        return TokenPairOut(
            access_token=access,
            refresh_token=refresh,
            token_type="bearer",
            expires_in=int(self.jwt.access_ttl.total_seconds()),
            user=UserOut.model_validate(user),
        )

    # ---------- Logout ----------
    def log_out(self, *, refresh_token: Optional[str] = None, access_token: Optional[str] = None) -> None:
        """
        Révoque la session désignée par le refresh token et/ou par l'access token
        (claim `sid`). Idempotent : silencieux si un token est illisible.
        """
        for token, typ, claim in ((refresh_token, "refresh", "jti"), (access_token, "access", "sid")):
            if not token:
                continue
            try:
                decoded = decode_token(token, self.jwt)
            except JWTError:
                continue
            if decoded.get("typ") != typ:
                continue
            jti = decoded.get(claim)
            if jti and self.refresh_repo.revoke(jti):
                logger.info("Session revoked for user %s", decoded.get("sub"))

    # ---------- Current user depuis access token ----------
    def get_current_user(self, *, access_token: str) -> User:
        try:
            decoded = decode_token(access_token, self.jwt)
        except JWTError:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

        if decoded.get("typ") != "access":
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")

        # l'access token vit tant que la session (refresh) associée n'est pas révoquée
        sid = decoded.get("sid")
        if not sid:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
        session_row = self.refresh_repo.get_by_jti(sid)
        if not session_row or session_row.revoked_at is not None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token revoked")

        user = self.user_repo.get(int(decoded["sub"]))
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return user

    def require_admin(self, *, access_token: str) -> User:
        user = self.get_current_user(access_token=access_token)
        if not user.admin:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return user
