from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from storefront.api.deps import (
    get_current_identity,
    get_mail_adapter,
    get_session_codec,
    get_session_token,
    get_settings,
)
from storefront.auth.cookies import clear_session_cookie, set_session_cookie
from storefront.auth.session_codec import SessionCodec
from storefront.config import Settings
from storefront.db import get_db
from storefront.schemas.user_schema import (
    Identity,
    MessageOut,
    RequestResetIn,
    ResetPasswordIn,
    SigninIn,
    SignupIn,
    UserOut,
)
from storefront.services.credential_service import CredentialService

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _service(
    db: Session = Depends(get_db),
    codec: SessionCodec = Depends(get_session_codec),
    mailer=Depends(get_mail_adapter),
    settings: Settings = Depends(get_settings),
) -> CredentialService:
    return CredentialService(db, codec, mailer, settings=settings)


@router.post("/signup", response_model=UserOut, summary="Create an account and sign in")
def signup(
    payload: SignupIn,
    response: Response,
    svc: CredentialService = Depends(_service),
    settings: Settings = Depends(get_settings),
):
    user, token = svc.signup(payload.email, payload.password, payload.name)
    set_session_cookie(response, token, settings)
    return user


@router.post("/signin", response_model=UserOut, summary="Sign in")
def signin(
    payload: SigninIn,
    response: Response,
    svc: CredentialService = Depends(_service),
    settings: Settings = Depends(get_settings),
):
    user, token = svc.signin(payload.email, payload.password)
    set_session_cookie(response, token, settings)
    return user


@router.post("/signout", response_model=MessageOut, summary="Sign out")
def signout(
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    svc: CredentialService = Depends(_service),
    settings: Settings = Depends(get_settings),
):
    result = svc.signout(token)
    clear_session_cookie(response, settings)
    return result


@router.post("/request-reset", response_model=MessageOut, summary="Email a password reset link")
def request_reset(payload: RequestResetIn, svc: CredentialService = Depends(_service)):
    return svc.request_reset(payload.email)


@router.post("/reset-password", response_model=UserOut, summary="Set a new password with a reset token")
def reset_password(
    payload: ResetPasswordIn,
    response: Response,
    svc: CredentialService = Depends(_service),
    settings: Settings = Depends(get_settings),
):
    user, token = svc.reset_password(payload.reset_token, payload.password, payload.confirm_password)
    set_session_cookie(response, token, settings)
    return user


@router.get("/me", response_model=Optional[UserOut], summary="Current user, or null")
def me(
    identity: Optional[Identity] = Depends(get_current_identity),
    svc: CredentialService = Depends(_service),
):
    return svc.me(identity)
