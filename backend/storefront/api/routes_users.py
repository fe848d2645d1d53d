from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_identity, get_mail_adapter, get_session_codec, get_settings
from storefront.auth.session_codec import SessionCodec
from storefront.config import Settings
from storefront.db import get_db
from storefront.schemas.user_schema import Identity, PermissionsIn, UserOut
from storefront.services.credential_service import CredentialService

router = APIRouter(prefix="/api/users", tags=["users"])


def _service(
    db: Session = Depends(get_db),
    codec: SessionCodec = Depends(get_session_codec),
    mailer=Depends(get_mail_adapter),
    settings: Settings = Depends(get_settings),
) -> CredentialService:
    return CredentialService(db, codec, mailer, settings=settings)


@router.get("", response_model=List[UserOut], summary="List users (admin)")
def list_users(
    identity: Optional[Identity] = Depends(get_current_identity),
    svc: CredentialService = Depends(_service),
):
    return svc.list_users(identity)


@router.put("/{user_id}/permissions", response_model=UserOut, summary="Replace a user's permissions")
def update_permissions(
    user_id: int,
    payload: PermissionsIn,
    identity: Optional[Identity] = Depends(get_current_identity),
    svc: CredentialService = Depends(_service),
):
    return svc.update_permissions(identity, user_id, payload.permissions)
