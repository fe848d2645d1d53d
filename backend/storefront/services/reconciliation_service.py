import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from sqlalchemy.orm import Session

from storefront.config import Settings, settings as default_settings
from storefront.errors import StorefrontError
from storefront.models.idempotency import IdempotencyStatus
from storefront.repositories.idempotency_repo import IdempotencyRepository
from storefront.repositories.token_repo import RevokedTokenRepository
from storefront.repositories.user_repo import UserRepository
from storefront.services.order_service import OPERATION as CHECKOUT_OPERATION

log = logging.getLogger("reconciliation")


class ReconciliationService:
    """
    Periodic clean-up: settles checkouts that captured money without
    recording an order, and drops credentials that can no longer be used.
    """

    def __init__(self, db: Session, payment_adapter, settings: Settings = default_settings):
        self.db = db
        self.payment_adapter = payment_adapter
        self.settings = settings
        self.idem_repo = IdempotencyRepository(db)

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def reconcile_checkouts(self, now: Optional[datetime] = None) -> Dict:
        now = now or self._now()
        stale_before = now - timedelta(seconds=self.settings.RECONCILE_STALE_SECONDS)
        summary = {"refunded": [], "abandoned": [], "errors": []}

        for rec in self.idem_repo.list_unsettled(CHECKOUT_OPERATION, stale_before):
            body = rec.response_body or {}
            txn = body.get("payment_result")
            if txn and not body.get("refund_result"):
                try:
                    refund = self.payment_adapter.refund(txn["charge_id"])
                except StorefrontError as e:
                    log.error("refund of charge=%s failed key=%s: %s", txn["charge_id"], rec.key, e.detail)
                    rec.last_error = f"reconciliation refund failed: {e.detail}"
                    self.db.commit()
                    summary["errors"].append(rec.key)
                    continue
                self.idem_repo.mark_refunded(rec, refund)
                self.db.commit()
                log.info("refunded orphaned charge=%s key=%s", txn["charge_id"], rec.key)
                summary["refunded"].append(rec.key)
            elif rec.status == IdempotencyStatus.IN_PROGRESS:
                self.idem_repo.mark_failed(rec, "abandoned before payment capture")
                self.db.commit()
                summary["abandoned"].append(rec.key)
        return summary

    def purge_expired_credentials(self, now: Optional[datetime] = None) -> Dict:
        now = now or self._now()
        # reset tokens stay usable until one TTL past their expiry
        cutoff = now - timedelta(seconds=self.settings.RESET_TOKEN_TTL_SECONDS)
        resets = UserRepository(self.db).clear_expired_reset_tokens(cutoff)
        revoked = RevokedTokenRepository(self.db).purge_expired(now)
        self.db.commit()
        if resets or revoked:
            log.info("purged %d reset tokens, %d revoked sessions", resets, revoked)
        return {"reset_tokens": resets, "revoked_tokens": revoked}

    def run(self) -> Dict:
        summary = self.reconcile_checkouts()
        summary.update(self.purge_expired_credentials())
        return summary
