from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from storefront.models.user import User


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.lower()).first()

    def get_by_reset_token(self, reset_token: str, not_before: datetime) -> Optional[User]:
        return (
            self.db.query(User)
            .filter(User.reset_token == reset_token, User.reset_token_expiry >= not_before)
            .first()
        )

    def list(self) -> List[User]:
        return self.db.query(User).order_by(User.id).all()

    def create(self, email: str, password_hash: str, name: str, permissions: List[str]) -> User:
        u = User(email=email, password=password_hash, name=name, permissions=list(permissions))
        self.db.add(u)
        self.db.flush()
        return u

    def clear_expired_reset_tokens(self, before: datetime) -> int:
        return (
            self.db.query(User)
            .filter(User.reset_token.isnot(None), User.reset_token_expiry < before)
            .update(
                {User.reset_token: None, User.reset_token_expiry: None},
                synchronize_session=False,
            )
        )
