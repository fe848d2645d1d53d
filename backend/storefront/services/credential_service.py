import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.adapters.mail_templates import reset_email
from storefront.auth.passwords import hash_password, verify_password
from storefront.auth.permissions import (
    DEFAULT_PERMISSIONS,
    Permission,
    authorize,
    require_identity,
)
from storefront.auth.session_codec import SessionCodec
from storefront.config import Settings, settings as default_settings
from storefront.errors import (
    EmailTaken,
    InvalidCredentials,
    InvalidOrExpiredToken,
    InvalidToken,
    NoSuchUser,
    NotFound,
    PasswordMismatch,
)
from storefront.models.user import User
from storefront.repositories.token_repo import RevokedTokenRepository
from storefront.repositories.user_repo import UserRepository

log = logging.getLogger("auth")

USER_ADMIN_PERMISSIONS = {Permission.ADMIN, Permission.PERMISSIONUPDATE}


class CredentialService:
    """
    Signup, signin, signout and the password-reset cycle. Methods that start a
    session return ``(user, token)``; setting the cookie is the caller's job.
    """

    def __init__(self, db: Session, codec: SessionCodec, mailer, settings: Settings = default_settings):
        self.db = db
        self.codec = codec
        self.mailer = mailer
        self.settings = settings
        self.users = UserRepository(db)
        self.revoked = RevokedTokenRepository(db)

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def signup(self, email: str, password: str, name: str = "") -> Tuple[User, str]:
        email = email.lower()
        if self.users.get_by_email(email):
            raise EmailTaken()
        password_hash = hash_password(password, rounds=self.settings.BCRYPT_ROUNDS)
        user = self.users.create(
            email=email, password_hash=password_hash, name=name, permissions=DEFAULT_PERMISSIONS
        )
        try:
            self.db.commit()
        except IntegrityError:
            # lost a race with a concurrent signup for the same address
            self.db.rollback()
            raise EmailTaken()
        log.info("signup user=%s", user.id)
        return user, self.codec.issue(user.id)

    def signin(self, email: str, password: str) -> Tuple[User, str]:
        # unknown email and wrong password answer alike
        user = self.users.get_by_email(email)
        if not user:
            log.info("signin failed: unknown email")
            raise InvalidCredentials()
        if not verify_password(password, user.password):
            log.info("signin failed: bad password for user=%s", user.id)
            raise InvalidCredentials()
        return user, self.codec.issue(user.id)

    def signout(self, token: Optional[str] = None) -> dict:
        """Revoke the presented token when there is a valid one. Always succeeds."""
        if token:
            try:
                claims = self.codec.decode(token)
            except InvalidToken:
                claims = None
            if claims and claims.get("jti"):
                exp = claims.get("exp")
                expires_at = datetime.fromtimestamp(exp, tz=timezone.utc) if exp else None
                self.revoked.revoke(claims["jti"], claims["userId"], expires_at)
                self.db.commit()
                log.info("signout user=%s", claims["userId"])
        return {"message": "Goodbye!"}

    def request_reset(self, email: str) -> dict:
        user = self.users.get_by_email(email)
        if not user:
            raise NoSuchUser(f"No such user found for email {email}")

        reset_token = secrets.token_hex(self.settings.RESET_TOKEN_BYTES)
        user.reset_token = reset_token
        user.reset_token_expiry = self._now() + timedelta(seconds=self.settings.RESET_TOKEN_TTL_SECONDS)
        self.db.commit()

        try:
            self.mailer.send(
                to=user.email,
                subject="Your Password Reset Token",
                html=reset_email(self.settings.FRONTEND_URL, reset_token),
            )
        except Exception:
            # the token is stored; the user can ask for another mail
            log.exception("reset mail delivery failed for user=%s", user.id)
        return {"message": "Thanks!"}

    def reset_password(self, reset_token: str, password: str, confirm_password: str) -> Tuple[User, str]:
        if password != confirm_password:
            raise PasswordMismatch()

        not_before = self._now() - timedelta(seconds=self.settings.RESET_TOKEN_TTL_SECONDS)
        user = self.users.get_by_reset_token(reset_token, not_before)
        if not user:
            raise InvalidOrExpiredToken()

        user.password = hash_password(password, rounds=self.settings.BCRYPT_ROUNDS)
        user.reset_token = None
        user.reset_token_expiry = None
        self.db.commit()
        log.info("password reset user=%s", user.id)
        return user, self.codec.issue(user.id)

    def update_permissions(self, actor, user_id: int, permissions: Iterable) -> User:
        require_identity(actor)
        authorize(actor, USER_ADMIN_PERMISSIONS)

        user = self.users.get(user_id)
        if not user:
            raise NotFound(f"No user with id {user_id}")

        new = []
        for p in permissions:
            value = Permission(p).value
            if value not in new:
                new.append(value)
        user.permissions = new
        self.db.commit()
        log.info("permissions of user=%s set to %s by user=%s", user.id, new, actor.id)
        return user

    def list_users(self, actor) -> List[User]:
        require_identity(actor)
        authorize(actor, USER_ADMIN_PERMISSIONS)
        return self.users.list()

    def me(self, identity) -> Optional[User]:
        if identity is None:
            return None
        return self.users.get(identity.id)
