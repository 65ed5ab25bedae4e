"""
➡️ But : assembler toutes les pièces du puzzle.

Crée l’instance FastAPI (app).

Configure :

CORS (autorisations de qui peut appeler ces API)

logs, titre, version, tags

schéma OpenAPI personnalisé

Branche le rate limiting (slowapi).

Inclut les routers (/api/v1/auth, /api/v1/videos).

Initialise la base au démarrage (@app.on_event("startup")).

Point unique d’exécution : uvicorn flix.main:app --reload.
"""

import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from flix.core.config import settings
from flix.core.logging import setup_logging
from flix.core.openapi import custom_openapi
from flix.core.rate_limit import limiter, rate_limit_exceeded_handler
from flix.db.session import init_db

from flix.api.v1.dependencies import get_object_store
from flix.api.v1.routers import authentication, videos
from flix.utils.s3 import ObjectStore
from slowapi.errors import RateLimitExceeded

import uvicorn

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    openapi_tags=[
        {"name": "auth", "description": "Opérations liées à l'authentification"},
        {"name": "videos", "description": "Catalogue vidéo, uploads et streaming"},
    ],
)

# Rate limiting (429 au-delà des quotas, cf. flix.core.rate_limit)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# CORS (ajustez selon vos besoins)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], allow_credentials=True,
    allow_methods=["*"], allow_headers=["*"],
    # nécessaires aux lecteurs vidéo (seek)
    expose_headers=["Content-Range", "Accept-Ranges", "Content-Length"],
)

# Routers
app.include_router(authentication.router, prefix="/api/v1")
app.include_router(videos.router, prefix="/api/v1")

# Génération du schéma OpenAPI custom
app.openapi = lambda: custom_openapi(app)


@app.get("/health", tags=["health"])
def health(store: ObjectStore = Depends(get_object_store)):
    """Liveness + joignabilité du bucket."""
    storage_ok = store.ping()
    return {
        "status": "healthy" if storage_ok else "degraded",
        "dependencies": {"storage": {"status": "ok" if storage_ok else "error", "bucket": store.bucket}},
    }


# Démarrage
@app.on_event("startup")
def on_startup():
    setup_logging()
    init_db()
    logger.info("%s started (env=%s)", settings.APP_NAME, settings.ENV)

if __name__ == "__main__":
    uvicorn.run("flix.main:app", host="127.0.0.1", port=8080, reload=(settings.ENV == "dev")) # http://localhost:8080
