from fastapi import APIRouter, Depends, Cookie, Request, Response, Security, status
from fastapi.security import HTTPAuthorizationCredentials
from typing import Optional

from flix.api.v1.dependencies import (
    bearer_scheme,
    get_auth_service,
    get_current_user,
    get_client_ip_and_ua,
)
from flix.db.models.users import User
from flix.features.authentication.services import AuthService
from flix.features.authentication.schemas import (
    SignUpIn,
    SignInIn,
    TokenPairOut,
    LogoutIn,
    UserOut,
)

from flix.core.config import settings
from flix.core.rate_limit import api_limit, auth_limit

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
    responses={404: {"description": "Not Found"}},
)

# -----------------------------
# Sign-up
# -----------------------------
@router.post(
    "/sign-up",
    summary="Créer un compte",
    status_code=status.HTTP_201_CREATED,
    response_model=UserOut,
)
@auth_limit
def sign_up(request: Request, payload: SignUpIn, svc: AuthService = Depends(get_auth_service)):
    return svc.sign_up(payload)

# -----------------------------
# Sign-in
# -----------------------------
@router.post(
    "/sign-in",
    summary="Se connecter",
    description="Retourne un couple access/refresh. Le refresh est aussi posé en cookie httpOnly.",
    response_model=TokenPairOut,
)
@auth_limit
def sign_in(
    request: Request,
    payload: SignInIn,
    response: Response,
    svc: AuthService = Depends(get_auth_service),
    client_ctx=Depends(get_client_ip_and_ua),
):
    pair = svc.sign_in(payload, ip=client_ctx.ip, user_agent=client_ctx.user_agent)
    response.set_cookie(
        key=settings.AUTH_REFRESH_COOKIE_NAME,
        value=pair.refresh_token,
        httponly=True,
        samesite=settings.AUTH_COOKIE_SAMESITE,
        secure=settings.AUTH_COOKIE_SECURE,
        max_age=settings.AUTH_COOKIE_MAX_AGE,
        path=settings.AUTH_COOKIE_PATH,
    )
    return pair

# -----------------------------
# Logout
# -----------------------------
@router.post(
    "/logout",
    summary="Se déconnecter (révocation de la session)",
    description="Révoque la session du refresh token (corps ou cookie) et/ou de l'access token Bearer.",
    status_code=status.HTTP_204_NO_CONTENT,
)
@api_limit
def logout(
    request: Request,
    response: Response,
    payload: Optional[LogoutIn] = None,
    refresh_cookie: Optional[str] = Cookie(default=None, alias=settings.AUTH_REFRESH_COOKIE_NAME),
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    svc: AuthService = Depends(get_auth_service),
):
    refresh_token = (payload.refresh_token if payload else None) or refresh_cookie
    access_token = credentials.credentials if credentials else None
    svc.log_out(refresh_token=refresh_token, access_token=access_token)
    # Supprime le cookie côté client
    response.delete_cookie(key=settings.AUTH_REFRESH_COOKIE_NAME, path=settings.AUTH_COOKIE_PATH)
    return None

# -----------------------------
# Me (profil courant)
# -----------------------------
@router.get(
    "/me",
    summary="Récupérer l'utilisateur courant",
    response_model=UserOut,
    responses={
        200: {"description": "Utilisateur courant"},
        401: {"description": "Token invalide ou expiré"},
        404: {"description": "Utilisateur introuvable"},
    },
)
@api_limit
def me(request: Request, user: User = Depends(get_current_user)):
    return user
