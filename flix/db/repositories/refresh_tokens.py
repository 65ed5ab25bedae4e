from datetime import datetime, timezone
from typing import Optional, Sequence
from sqlmodel import select

from flix.db.repositories.base import BaseRepository
from flix.db.models.refresh_tokens import RefreshToken

class RefreshTokenRepository(BaseRepository[RefreshToken]):
    model = RefreshToken

    def get_by_jti(self, jti: str) -> Optional[RefreshToken]:
        return self.session.exec(
            select(self.model).where(self.model.jti == jti)
        ).first()

    def list_unrevoked_for_user(self, user_id: int) -> Sequence[RefreshToken]:
        return self.session.exec(
            select(self.model)
            .where(self.model.user_id == user_id)
            .where(self.model.revoked_at.is_(None))
        ).all()

    def revoke(self, jti: str) -> bool:
        token = self.get_by_jti(jti)
        if not token or token.revoked_at:
            return False
        token.revoked_at = datetime.now(timezone.utc)
        self.session.add(token)
        self.session.commit()
        return True

    def revoke_all_for_user(self, user_id: int) -> int:
        tokens = self.list_unrevoked_for_user(user_id)
        if not tokens:
            return 0
        now = datetime.now(timezone.utc)
        for token in tokens:
            token.revoked_at = now
            self.session.add(token)
        self.session.commit()
        return len(tokens)
