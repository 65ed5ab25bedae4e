"""
➡️ But : Configurer la base et gérer les sessions de base de données.

engine : connexion à la base (sqlite:///flix.db par défaut).

init_db() : crée les tables à partir des modèles SQLModel.

get_session() : dépendance FastAPI qui ouvre une session, la fournit aux routes, puis la ferme proprement.
"""

from typing import Dict, Any
from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

# Import all models for creating all tables
from flix.db.models.users import User  # noqa: F401
from flix.db.models.refresh_tokens import RefreshToken  # noqa: F401
from flix.db.models.videos import Video  # noqa: F401

from flix.core.config import settings

def build_engine(url: str, *, echo: bool = False) -> Engine:
    assert url, "DATABASE_URL must be set"

    is_sqlite = url.startswith("sqlite:")

    connect_args: Dict[str, Any] = {}
    kwargs: Dict[str, Any] = {}
    if is_sqlite:
        # Requis pour SQLite quand utilisé dans un app serveur (multi-threads)
        connect_args["check_same_thread"] = False
        if url in ("sqlite://", "sqlite:///:memory:"):
            # base mémoire : une seule connexion partagée, sinon chaque session voit une base vide
            kwargs["poolclass"] = StaticPool

    return create_engine(
        url,
        echo=echo,
        connect_args=connect_args,
        pool_pre_ping=not is_sqlite,  # ping utile pour Postgres/MySQL ; inutile pour SQLite
        **kwargs,
    )

engine: Engine = build_engine(settings.DATABASE_URL, echo=(settings.ENV == "dev"))

def init_db(bind: Engine = engine) -> None:
    """
    Crée les tables si elles n'existent pas (usage dev/demo).
    En prod avec Alembic, préfère des migrations.
    """
    SQLModel.metadata.create_all(bind)


def get_session():
    """
    Dépendance FastAPI : fournit une session par requête.
    Utilisation :
        def route(..., session: Session = Depends(get_session)):
            ...
    """
    with Session(engine) as session:
        yield session
