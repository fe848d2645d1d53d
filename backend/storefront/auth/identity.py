import logging
from typing import Optional

from sqlalchemy.orm import Session

from storefront.auth.session_codec import SessionCodec
from storefront.errors import InvalidToken
from storefront.repositories.token_repo import RevokedTokenRepository
from storefront.repositories.user_repo import UserRepository
from storefront.schemas.user_schema import Identity

log = logging.getLogger("auth")


class IdentityResolver:
    """
    Turns a request's session token into the acting Identity. Anonymous
    requests are normal, so every "no identity" outcome is None rather than
    an error; callers that need a user use ``require_identity``.
    """

    def __init__(self, db: Session, codec: SessionCodec):
        self.db = db
        self.codec = codec
        self.users = UserRepository(db)
        self.revoked = RevokedTokenRepository(db)

    def resolve(self, user_id: Optional[int]) -> Optional[Identity]:
        if user_id is None:
            return None
        user = self.users.get(user_id)
        if not user:
            return None
        return Identity.model_validate(user)

    def from_token(self, token: Optional[str]) -> Optional[Identity]:
        if not token:
            return None
        try:
            claims = self.codec.decode(token)
        except InvalidToken as e:
            log.warning("Ignoring session cookie: %s", e.detail)
            return None
        if self.revoked.is_revoked(claims.get("jti")):
            log.info("Ignoring revoked session token for user %s", claims["userId"])
            return None
        return self.resolve(claims["userId"])
