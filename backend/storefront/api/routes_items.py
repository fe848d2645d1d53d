from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_identity
from storefront.db import get_db
from storefront.schemas.item_schema import ItemIn, ItemOut, ItemUpdate
from storefront.schemas.user_schema import Identity
from storefront.services.item_service import ItemService

router = APIRouter(prefix="/api/items", tags=["items"])


@router.post("", response_model=ItemOut, summary="Create item")
def create_item(
    payload: ItemIn,
    identity: Optional[Identity] = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    return ItemService(db).create_item(identity, **payload.model_dump())


@router.get("/{item_id}", response_model=ItemOut, summary="Get item")
def get_item(item_id: int, db: Session = Depends(get_db)):
    return ItemService(db).get_item(item_id)


@router.patch("/{item_id}", response_model=ItemOut, summary="Update item")
def update_item(
    item_id: int,
    payload: ItemUpdate,
    identity: Optional[Identity] = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    return ItemService(db).update_item(identity, item_id, **payload.model_dump(exclude_unset=True))


@router.delete("/{item_id}", response_model=ItemOut, summary="Delete item")
def delete_item(
    item_id: int,
    identity: Optional[Identity] = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    return ItemService(db).delete_item(identity, item_id)
