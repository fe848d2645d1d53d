import logging
from typing import Dict, List, Optional
from uuid import uuid4

from sqlalchemy.orm import Session

from storefront.auth.permissions import Permission, authorize_owner_or, require_identity
from storefront.config import Settings, settings as default_settings
from storefront.errors import (
    CheckoutInProgress,
    EmptyCart,
    NotFound,
    PaymentError,
    PaymentTransientError,
    StorefrontError,
)
from storefront.models.idempotency import IdempotencyRecord, IdempotencyStatus
from storefront.models.order import Order
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.idempotency_repo import IdempotencyRepository
from storefront.repositories.order_repo import OrderRepository

log = logging.getLogger("checkout")

OPERATION = "create_order"
# item fields copied onto each order line
SNAPSHOT_FIELDS = ("title", "price", "description", "image", "large_image")


class OrderService:
    def __init__(self, db: Session, payment_adapter, settings: Settings = default_settings):
        self.db = db
        self.payment_adapter = payment_adapter
        self.settings = settings
        self.cart_repo = CartRepository(db)
        self.order_repo = OrderRepository(db)
        self.idem_repo = IdempotencyRepository(db)

    def create_order(self, actor, payment_token: str, idempotency_key: Optional[str] = None) -> Order:
        """
        Turn the actor's cart into a paid order.

        Stages: snapshot the cart, price it, capture payment, then persist the
        order and delete the snapshotted cart lines in one commit. Nothing is
        written to orders or carts before the capture succeeds. Should the
        commit fail after capture, the charge is refunded; if that refund fails
        too, the ledger record is left FAILED for the reconciliation job.

        Every run is tracked by an idempotency record scoped to the user, so a
        replayed request returns the order it already created instead of
        charging twice.
        """
        require_identity(actor)
        key = f"{actor.id}:{idempotency_key or uuid4().hex}"

        rec, created = self.idem_repo.begin(key, OPERATION, user_id=actor.id)
        if not created:
            if rec.status == IdempotencyStatus.COMPLETED:
                log.info("replaying completed checkout key=%s", key)
                return self.order_repo.get(rec.response_body["order_id"])
            if rec.status == IdempotencyStatus.IN_PROGRESS:
                raise CheckoutInProgress()
            self._restart(rec)

        # snapshot the cart as plain data; ORM state is expired by later commits
        lines = self.cart_repo.list_for_user(actor.id)
        if not lines:
            self.idem_repo.mark_failed(rec, "cart is empty")
            self.db.commit()
            raise EmptyCart()
        snapshot = [
            {
                "cart_item_id": line.id,
                "quantity": line.quantity,
                "item": {f: getattr(line.item, f) for f in SNAPSHOT_FIELDS},
            }
            for line in lines
        ]
        total = sum(s["item"]["price"] * s["quantity"] for s in snapshot)
        log.info("checkout key=%s user=%s lines=%d total=%d", key, actor.id, len(snapshot), total)

        txn = self._reusable_capture(rec, total)
        if txn is None:
            txn = self._capture(rec, total, payment_token)

        try:
            order = self.order_repo.create(
                user_id=actor.id,
                total=txn["amount"],
                charge=txn["charge_id"],
                lines=self._order_lines(snapshot),
            )
            removed = self.cart_repo.delete_many(s["cart_item_id"] for s in snapshot)
            self.idem_repo.mark_completed(rec, order_id=order.id)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            log.error("order persistence failed after capture key=%s charge=%s: %s", key, txn["charge_id"], e)
            self._compensate(key, txn, e)
            raise

        if txn["amount"] != total:
            log.warning("captured amount %s differs from cart total %s (order=%s)", txn["amount"], total, order.id)
        log.info("order=%s created key=%s charge=%s cleared_lines=%d", order.id, key, txn["charge_id"], removed)
        return self.order_repo.get(order.id)

    def get_order(self, actor, order_id: int) -> Order:
        require_identity(actor)
        order = self.order_repo.get(order_id)
        if not order:
            raise NotFound(f"No order with id {order_id}")
        authorize_owner_or(actor, order.user_id, {Permission.ADMIN})
        return order

    def list_orders(self, actor) -> List[Order]:
        require_identity(actor)
        return self.order_repo.list_for_user(actor.id)

    def _restart(self, rec: IdempotencyRecord):
        body = rec.response_body or {}
        if body.get("payment_result") and not body.get("refund_result"):
            # a previous attempt captured money but recorded no order
            new_body = body
        else:
            new_body = {"attempt": body.get("attempt", 0) + 1}
        self.idem_repo.restart(rec, new_body)
        self.db.commit()
        log.info("restarting checkout key=%s attempt=%s", rec.key, new_body.get("attempt", 0))

    def _reusable_capture(self, rec: IdempotencyRecord, total: int) -> Optional[Dict]:
        body = rec.response_body or {}
        txn = body.get("payment_result")
        if not txn or body.get("refund_result"):
            return None
        if txn["amount"] == total:
            log.info("reusing captured charge=%s for key=%s", txn["charge_id"], rec.key)
            return txn
        # the cart changed since that capture; give the money back and charge afresh
        try:
            refund = self.payment_adapter.refund(txn["charge_id"])
        except StorefrontError as e:
            # payment_result stays on the record for the next retry or reconciliation
            self.idem_repo.mark_failed(rec, f"refund of superseded charge failed: {e.detail}")
            self.db.commit()
            log.error("refund of superseded charge=%s failed key=%s: %s", txn["charge_id"], rec.key, e.detail)
            raise
        self.idem_repo.restart(rec, {"attempt": body.get("attempt", 0) + 1, "superseded": [txn, refund]})
        self.db.commit()
        log.info("refunded superseded charge=%s for key=%s", txn["charge_id"], rec.key)
        return None

    def _capture(self, rec: IdempotencyRecord, total: int, payment_token: str) -> Dict:
        attempt = (rec.response_body or {}).get("attempt", 0)
        processor_key = f"{rec.key}#{attempt}"
        max_retries = self.settings.PAYMENT_MAX_RETRIES
        retries = 0
        try:
            while True:
                try:
                    txn = self.payment_adapter.charge(
                        total,
                        self.settings.PAYMENT_CURRENCY,
                        payment_token,
                        idempotency_key=processor_key,
                    )
                    break
                except PaymentTransientError as e:
                    retries += 1
                    if retries > max_retries:
                        raise PaymentError(f"Payment failed after {retries} attempts: {e.detail}")
                    log.warning("transient payment error key=%s retry=%d: %s", rec.key, retries, e.detail)
        except StorefrontError as e:
            self.idem_repo.mark_failed(rec, e.detail)
            self.db.commit()
            log.info("payment failed key=%s: %s", rec.key, e.detail)
            raise

        # durable before any order write, so a crash can be reconciled
        self.idem_repo.store(rec, payment_result=txn)
        self.db.commit()
        log.info("captured charge=%s amount=%s key=%s", txn["charge_id"], txn["amount"], rec.key)
        return txn

    def _order_lines(self, snapshot: List[Dict]) -> List[Dict]:
        # no item id is carried over: the order line gets its own identity
        return [dict(s["item"], quantity=s["quantity"]) for s in snapshot]

    def _compensate(self, key: str, txn: Dict, error: Exception):
        rec = self.idem_repo.get(key)
        try:
            refund = self.payment_adapter.refund(txn["charge_id"])
        except StorefrontError as refund_error:
            log.error(
                "refund of charge=%s failed, left for reconciliation key=%s: %s",
                txn["charge_id"], key, refund_error.detail,
            )
            self.idem_repo.store(rec, payment_result=txn)
            self.idem_repo.mark_failed(rec, f"order not persisted: {error}; refund failed: {refund_error.detail}")
            self.db.commit()
            return
        self.idem_repo.store(rec, payment_result=txn)
        self.idem_repo.mark_refunded(rec, refund)
        rec.last_error = f"order not persisted: {error}"
        self.db.commit()
        log.info("refunded charge=%s after failed order persistence key=%s", txn["charge_id"], key)
