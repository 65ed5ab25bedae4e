"""
➡️ But : Tables liées aux utilisateurs.

Un seul rôle privilégié : `admin` (écriture sur le catalogue vidéo).
"""

from sqlmodel import Field

from .base import BaseModelDB

class User(BaseModelDB, table=True):
    username: str = Field(index=True, unique=True, max_length=50)
    hashed_password: str
    admin: bool = Field(default=False)
