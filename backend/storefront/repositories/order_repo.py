from typing import Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from storefront.models.order import Order, OrderItem


class OrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, order_id: int) -> Optional[Order]:
        return (
            self.db.query(Order)
            .options(selectinload(Order.items))
            .filter(Order.id == order_id)
            .first()
        )

    def list_for_user(self, user_id: int) -> List[Order]:
        return (
            self.db.query(Order)
            .options(selectinload(Order.items))
            .filter(Order.user_id == user_id)
            .order_by(Order.id.desc())
            .all()
        )

    def create(self, user_id: int, total: int, charge: str, lines: List[Dict]) -> Order:
        order = Order(user_id=user_id, total=total, charge=charge)
        for line in lines:
            order.items.append(OrderItem(user_id=user_id, **line))
        self.db.add(order)
        self.db.flush()
        return order
