from typing import Optional

from sqlalchemy.orm import Session

from storefront.models.cart_item import CartItem
from storefront.models.item import Item


class ItemRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, item_id: int) -> Optional[Item]:
        return self.db.get(Item, item_id)

    def create(self, user_id: Optional[int], **fields) -> Item:
        it = Item(user_id=user_id, **fields)
        self.db.add(it)
        self.db.flush()
        return it

    def update(self, item: Item, **fields) -> Item:
        for name, value in fields.items():
            setattr(item, name, value)
        self.db.flush()
        return item

    def delete(self, item: Item):
        # carts may still point at the item
        self.db.query(CartItem).filter(CartItem.item_id == item.id).delete(synchronize_session=False)
        self.db.delete(item)
        self.db.flush()
