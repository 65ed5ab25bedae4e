"""
➡️ But : Encapsuler les opérations de base de données sur la table User.

Ne contient aucune logique métier, juste de la persistance.
"""

from typing import Optional
from sqlmodel import select

from flix.db.repositories.base import BaseRepository
from flix.db.models.users import User

class UserRepository(BaseRepository[User]):
    model = User

    def get_by_username(self, username: str) -> Optional[User]:
        """Retourne un utilisateur par son nom d'utilisateur."""
        return self.session.exec(
            select(self.model).where(self.model.username == username)
        ).first()
