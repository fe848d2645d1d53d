from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_identity
from storefront.db import get_db
from storefront.schemas.cart_schema import AddToCartIn, CartLineOut, CartOut
from storefront.schemas.user_schema import Identity
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/api/cart", tags=["cart"])


@router.get("", response_model=CartOut, summary="Get cart")
def get_cart(
    identity: Optional[Identity] = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    return CartService(db).get_cart(identity)


@router.post("/items", response_model=CartLineOut, summary="Add item to cart")
def add_item(
    payload: AddToCartIn,
    identity: Optional[Identity] = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    return CartService(db).add_to_cart(identity, payload.item_id)


@router.delete("/items/{cart_item_id}", response_model=CartLineOut, summary="Remove item")
def remove_item(
    cart_item_id: int,
    identity: Optional[Identity] = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    return CartService(db).remove_from_cart(identity, cart_item_id)
