from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

import jwt

from storefront.errors import InvalidToken


class SessionCodec:
    """
    Issues and verifies signed session tokens carrying ``{"userId": ...}``.

    Verification is purely cryptographic: no store lookup happens here.
    When ``max_age_seconds`` is set the token also carries ``exp`` so a
    replayed token stops working when the cookie it came in would have expired.
    """

    algorithm = "HS256"

    def __init__(self, secret: str, max_age_seconds: Optional[int] = None):
        if not secret:
            raise ValueError("A signing secret is required")
        self.secret = secret
        self.max_age_seconds = max_age_seconds

    def issue(self, user_id: int) -> str:
        now = datetime.now(timezone.utc)
        payload = {"userId": user_id, "jti": uuid4().hex, "iat": now}
        if self.max_age_seconds:
            payload["exp"] = now + timedelta(seconds=self.max_age_seconds)
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode(self, token: str) -> dict:
        """Return the verified claims of ``token``."""
        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.InvalidTokenError as e:
            raise InvalidToken(f"Invalid session token: {e}")
        user_id = claims.get("userId")
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            raise InvalidToken("Malformed session token")
        return claims

    def verify(self, token: str) -> int:
        return self.decode(token)["userId"]
