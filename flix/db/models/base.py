"""
➡️ But : Définir la structure des tables de la base (ORM).

Contient les classes héritant de SQLModel (ou Base de SQLAlchemy).

Représente les objets persistés. Ici on représente les propriétés communes de toutes les tables.

Chaque champ = une colonne SQL (avec type, index, clé primaire...).
"""

from sqlmodel import SQLModel, Field
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseModelDB(SQLModel, table=False):
    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
