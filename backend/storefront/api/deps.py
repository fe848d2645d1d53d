from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from storefront.adapters import build_mail_adapter, build_payment_adapter
from storefront.auth.identity import IdentityResolver
from storefront.auth.session_codec import SessionCodec
from storefront.config import Settings, settings
from storefront.db import get_db
from storefront.schemas.user_schema import Identity


def get_settings() -> Settings:
    return settings


def get_session_codec(settings: Settings = Depends(get_settings)) -> SessionCodec:
    return SessionCodec(settings.SECRET_KEY, max_age_seconds=settings.session_max_age_seconds)


@lru_cache
def _payment_adapter():
    return build_payment_adapter(settings)


@lru_cache
def _mail_adapter():
    return build_mail_adapter(settings)


def get_payment_adapter():
    return _payment_adapter()


def get_mail_adapter():
    return _mail_adapter()


def get_session_token(request: Request, settings: Settings = Depends(get_settings)) -> Optional[str]:
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def get_current_identity(
    token: Optional[str] = Depends(get_session_token),
    db: Session = Depends(get_db),
    codec: SessionCodec = Depends(get_session_codec),
) -> Optional[Identity]:
    return IdentityResolver(db, codec).from_token(token)
