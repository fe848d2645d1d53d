from typing import Iterable, List, Optional

from sqlalchemy.orm import Session, joinedload

from storefront.models.cart_item import CartItem


class CartRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, cart_item_id: int) -> Optional[CartItem]:
        return self.db.get(CartItem, cart_item_id)

    def get_line(self, user_id: int, item_id: int) -> Optional[CartItem]:
        return (
            self.db.query(CartItem)
            .filter(CartItem.user_id == user_id, CartItem.item_id == item_id)
            .first()
        )

    def list_for_user(self, user_id: int) -> List[CartItem]:
        return (
            self.db.query(CartItem)
            .options(joinedload(CartItem.item))
            .filter(CartItem.user_id == user_id)
            .order_by(CartItem.id)
            .all()
        )

    def add_or_increment(self, user_id: int, item_id: int) -> CartItem:
        line = self.get_line(user_id, item_id)
        if line:
            line.quantity = line.quantity + 1
        else:
            line = CartItem(user_id=user_id, item_id=item_id, quantity=1)
            self.db.add(line)
        self.db.flush()
        return line

    def delete(self, line: CartItem):
        self.db.delete(line)
        self.db.flush()

    def delete_many(self, cart_item_ids: Iterable[int]) -> int:
        ids = list(cart_item_ids)
        if not ids:
            return 0
        return (
            self.db.query(CartItem)
            .filter(CartItem.id.in_(ids))
            .delete(synchronize_session=False)
        )
