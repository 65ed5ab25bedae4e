from typing import Sequence
from sqlmodel import select

from flix.db.repositories.base import BaseRepository
from flix.db.models.videos import Video


class VideoRepository(BaseRepository[Video]):
    """CRUD Vidéos + requêtes du catalogue."""
    model = Video

    def list_recent(self) -> Sequence[Video]:
        """Toutes les vidéos, les plus récentes d'abord."""
        return self.session.exec(
            select(self.model).order_by(self.model.created_at.desc(), self.model.id.desc())
        ).all()

    def list_featured(self) -> Sequence[Video]:
        return self.session.exec(
            select(self.model)
            .where(self.model.is_featured == True)  # noqa: E712
            .order_by(self.model.created_at.desc(), self.model.id.desc())
        ).all()