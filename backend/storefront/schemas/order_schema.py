from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class CreateOrderIn(BaseModel):
    token: str  # opaque payment-method token from the processor's client library


class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    title: str
    description: str
    image: Optional[str] = None
    large_image: Optional[str] = None
    price: int
    quantity: int


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    user_id: int
    total: int
    charge: str
    created_at: Optional[datetime] = None
    items: List[OrderItemOut]
