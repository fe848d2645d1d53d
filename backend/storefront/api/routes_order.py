import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_identity, get_payment_adapter, get_settings
from storefront.config import Settings
from storefront.db import get_db
from storefront.errors import StorefrontError
from storefront.schemas.order_schema import CreateOrderIn, OrderOut
from storefront.schemas.user_schema import Identity
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/api/orders", tags=["orders"])
log = logging.getLogger("checkout")


@router.post("", response_model=OrderOut, summary="Create order (checkout)")
def create_order(
    payload: CreateOrderIn,
    identity: Optional[Identity] = Depends(get_current_identity),
    db: Session = Depends(get_db),
    payment_adapter=Depends(get_payment_adapter),
    settings: Settings = Depends(get_settings),
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
):
    svc = OrderService(db, payment_adapter, settings=settings)
    try:
        return svc.create_order(identity, payload.token, idempotency_key=idempotency_key)
    except StorefrontError:
        raise
    except Exception as e:
        log.exception("CRITICAL ERROR during checkout: %s", type(e).__name__)
        raise HTTPException(status_code=500, detail=f"Internal server error: {type(e).__name__}")


@router.get("", response_model=List[OrderOut], summary="List my orders")
def list_orders(
    identity: Optional[Identity] = Depends(get_current_identity),
    db: Session = Depends(get_db),
    payment_adapter=Depends(get_payment_adapter),
):
    return OrderService(db, payment_adapter).list_orders(identity)


@router.get("/{order_id}", response_model=OrderOut, summary="Get order")
def get_order(
    order_id: int,
    identity: Optional[Identity] = Depends(get_current_identity),
    db: Session = Depends(get_db),
    payment_adapter=Depends(get_payment_adapter),
):
    return OrderService(db, payment_adapter).get_order(identity, order_id)
