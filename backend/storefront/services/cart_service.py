import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.auth.permissions import owns, require_identity
from storefront.errors import Forbidden, NotFound
from storefront.models.cart_item import CartItem
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.item_repo import ItemRepository

log = logging.getLogger("cart")


class CartService:
    def __init__(self, db: Session):
        self.db = db
        self.cart_repo = CartRepository(db)
        self.item_repo = ItemRepository(db)

    def get_cart(self, actor) -> dict:
        require_identity(actor)
        lines = self.cart_repo.list_for_user(actor.id)
        total = sum(line.item.price * line.quantity for line in lines)
        return {"items": lines, "total": total}

    def add_to_cart(self, actor, item_id: int) -> CartItem:
        require_identity(actor)
        if not self.item_repo.get(item_id):
            raise NotFound(f"No item with id {item_id}")
        try:
            line = self.cart_repo.add_or_increment(actor.id, item_id)
            self.db.commit()
        except IntegrityError:
            # a concurrent request created the (user, item) row first
            self.db.rollback()
            line = self.cart_repo.add_or_increment(actor.id, item_id)
            self.db.commit()
        log.debug("cart user=%s item=%s quantity=%s", actor.id, item_id, line.quantity)
        return line

    def remove_from_cart(self, actor, cart_item_id: int) -> CartItem:
        require_identity(actor)
        line = self.cart_repo.get(cart_item_id)
        if not line:
            raise NotFound("No Cart Item Found!")
        if not owns(actor, line.user_id):
            raise Forbidden("This is not your cart item!")
        removed = CartItem(id=line.id, user_id=line.user_id, item_id=line.item_id, quantity=line.quantity)
        self.cart_repo.delete(line)
        self.db.commit()
        return removed
