from typing import List

from pydantic import BaseModel, ConfigDict

from storefront.schemas.item_schema import ItemOut


class AddToCartIn(BaseModel):
    item_id: int


class CartLineOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    user_id: int
    item_id: int
    quantity: int


class CartLineDetailOut(CartLineOut):
    item: ItemOut


class CartOut(BaseModel):
    items: List[CartLineDetailOut]
    total: int
