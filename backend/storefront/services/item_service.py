from sqlalchemy.orm import Session

from storefront.auth.permissions import Permission, authorize_owner_or, require_identity
from storefront.errors import NotFound
from storefront.models.item import Item
from storefront.repositories.item_repo import ItemRepository

UPDATE_OVERRIDE = {Permission.ADMIN, Permission.ITEMUPDATE}
DELETE_OVERRIDE = {Permission.ADMIN, Permission.ITEMDELETE}
# columns an update may set to null
CLEARABLE_FIELDS = ("image", "large_image")


class ItemService:
    def __init__(self, db: Session):
        self.db = db
        self.items = ItemRepository(db)

    def get_item(self, item_id: int) -> Item:
        item = self.items.get(item_id)
        if not item:
            raise NotFound(f"No item with id {item_id}")
        return item

    def create_item(self, actor, **fields) -> Item:
        require_identity(actor)
        item = self.items.create(user_id=actor.id, **fields)
        self.db.commit()
        return item

    def update_item(self, actor, item_id: int, **fields) -> Item:
        require_identity(actor)
        item = self.get_item(item_id)
        authorize_owner_or(actor, item.user_id, UPDATE_OVERRIDE)
        self.items.update(
            item, **{k: v for k, v in fields.items() if v is not None or k in CLEARABLE_FIELDS}
        )
        self.db.commit()
        return item

    def delete_item(self, actor, item_id: int) -> Item:
        require_identity(actor)
        item = self.get_item(item_id)
        authorize_owner_or(actor, item.user_id, DELETE_OVERRIDE)
        removed = Item(
            id=item.id,
            title=item.title,
            description=item.description,
            image=item.image,
            large_image=item.large_image,
            price=item.price,
            user_id=item.user_id,
        )
        self.items.delete(item)
        self.db.commit()
        return removed
