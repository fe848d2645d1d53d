from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from storefront.models.revoked_token import RevokedToken


class RevokedTokenRepository:
    def __init__(self, db: Session):
        self.db = db

    def is_revoked(self, jti: Optional[str]) -> bool:
        if not jti:
            return False
        return self.db.get(RevokedToken, jti) is not None

    def revoke(self, jti: str, user_id: Optional[int], expires_at: Optional[datetime]) -> RevokedToken:
        rec = self.db.get(RevokedToken, jti)
        if rec:
            return rec
        rec = RevokedToken(jti=jti, user_id=user_id, expires_at=expires_at)
        self.db.add(rec)
        self.db.flush()
        return rec

    def purge_expired(self, before: datetime) -> int:
        return (
            self.db.query(RevokedToken)
            .filter(RevokedToken.expires_at.isnot(None), RevokedToken.expires_at < before)
            .delete(synchronize_session=False)
        )
