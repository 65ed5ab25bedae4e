"""
➡️ But : Centraliser tous les paramètres configurables (nom d’app, DB, secrets, stockage S3, cache...)

Utilise pydantic-settings pour charger automatiquement les variables d’environnement (.env, variables système…).

Fournit un objet settings unique, que tu importes ailleurs :

from flix.core.config import settings
print(settings.S3_BUCKET)


🔹 Avantages :

Plus propre que des constantes éparpillées dans le code.

Facilite le passage entre environnements (dev / prod / test).
"""

from datetime import timedelta
from typing import Optional

from pydantic_settings import BaseSettings
from flix.security.tokens import JWTSettings


class Settings(BaseSettings):
    # -----------------------------
    # App
    # -----------------------------
    APP_NAME: str = "Flix-API"
    ENV: str = "dev"  # dev | prod | test
    LOG_LEVEL: str = "INFO"

    # -----------------------------
    # DB
    # -----------------------------
    SQLITE_PATH: str = "flix.db"  # fichier SQLite
    # Si tu veux forcer une URL différente (ex: Postgres), définis DATABASE_URL dans l'env.
    DATABASE_URL: Optional[str] = None

    # -----------------------------
    # JWT / Auth
    # -----------------------------
    JWT_SECRET_KEY: str = "CHANGE_ME"     # ⚠️ change en prod
    JWT_ISSUER: str = "flix-api"
    JWT_ALGORITHM: str = "HS256"

    ACCESS_TTL_MINUTES: int = 15          # access token court
    REFRESH_TTL_DAYS: int = 30            # refresh token long
    BCRYPT_ROUNDS: int = 12

    # Cookies (refresh)
    AUTH_REFRESH_COOKIE_NAME: str = "refresh_token"
    AUTH_COOKIE_SAMESITE: str = "lax"     # "lax" | "strict" | "none"
    AUTH_COOKIE_PATH: str = "/api/v1/auth"
    AUTH_COOKIE_SECURE: Optional[bool] = None   # auto selon ENV si None
    AUTH_COOKIE_MAX_AGE: Optional[int] = None   # auto depuis REFRESH_TTL si None

    # -----------------------------
    # Stockage objet (S3 / MinIO / B2)
    # -----------------------------
    S3_ENDPOINT: str = "http://localhost:9000"
    S3_PUBLIC_ENDPOINT: Optional[str] = None    # endpoint vu par les clients (URL signées)
    S3_BUCKET: str = "media"
    S3_REGION: str = "us-east-1"
    S3_KEY: str = "minioadmin"
    S3_SECRET: str = "minioadmin"

    S3_CONNECT_TIMEOUT_SECONDS: int = 10
    S3_HEAD_TIMEOUT_SECONDS: int = 30     # HEAD / métadonnées
    S3_FETCH_TIMEOUT_SECONDS: int = 300   # GET du contenu (objets volumineux)

    PRESIGN_TTL_SECONDS: int = 3600

    # Uploads
    MAX_THUMBNAIL_MB: int = 4
    MAX_VIDEO_MB: int = 200

    # Streaming
    STREAM_CHUNK_BYTES: int = 1024 * 1024

    # -----------------------------
    # Cache
    # -----------------------------
    CACHE_URL: Optional[str] = None   # ex: redis://localhost:6379/0 ; mémoire locale si absent
    CACHE_SHORT_TTL: int = 300        # listes
    CACHE_MEDIUM_TTL: int = 1800      # détail / streaming
    CACHE_LONG_TTL: int = 3600        # vidéos mises en avant / miniatures

    # -----------------------------
    # Rate limiting (slowapi)
    # -----------------------------
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URL: str = "memory://"   # ex: redis://localhost:6379/1
    RATE_LIMIT_API: str = "60/minute"            # par utilisateur (ou IP si anonyme)
    RATE_LIMIT_AUTH: str = "5/minute;20/day"     # sign-up / sign-in, par IP

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }

    # -----------------------------
    # Post-process values
    # -----------------------------
    def model_post_init(self, __context): # appelée automatiquement
        # DATABASE_URL par défaut depuis SQLITE_PATH si non fourni
        if not self.DATABASE_URL:
            object.__setattr__(self, "DATABASE_URL", f"sqlite:///{self.SQLITE_PATH}")

        # Endpoint public par défaut = endpoint interne
        if not self.S3_PUBLIC_ENDPOINT:
            object.__setattr__(self, "S3_PUBLIC_ENDPOINT", self.S3_ENDPOINT)

        # Cookie secure auto: true en prod si non spécifié
        if self.AUTH_COOKIE_SECURE is None:
            object.__setattr__(self, "AUTH_COOKIE_SECURE", self.ENV == "prod")

        # max_age auto depuis REFRESH_TTL
        if self.AUTH_COOKIE_MAX_AGE is None:
            max_age = self.REFRESH_TTL_DAYS * 24 * 60 * 60
            object.__setattr__(self, "AUTH_COOKIE_MAX_AGE", max_age)


# Instance globale importable partout
settings = Settings()

# Objet JWT prêt à l'emploi pour les services
jwt_settings = JWTSettings(
    secret=settings.JWT_SECRET_KEY,
    issuer=settings.JWT_ISSUER,
    algorithm=settings.JWT_ALGORITHM,
    access_ttl=timedelta(minutes=settings.ACCESS_TTL_MINUTES),
    refresh_ttl=timedelta(days=settings.REFRESH_TTL_DAYS),
)
