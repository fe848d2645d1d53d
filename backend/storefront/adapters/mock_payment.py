import logging
import random
import time
from typing import Dict, Optional
from uuid import uuid4

from storefront.errors import PaymentDeclined, PaymentTransientError

log = logging.getLogger("payment")

# processor test tokens that always decline
DECLINE_TOKENS = {"tok_chargeDeclined", "tok_visa_chargeDeclined", "force_decline"}


class MockPaymentAdapter:
    """
    In-process stand-in for the payment processor. Charges made with the same
    idempotency key return the first result, as a real processor does.
    """

    def __init__(self, delay_ms: int = 200, failure_rate: float = 0.01):
        self.delay_seconds = delay_ms / 1000.0
        self.failure_rate = failure_rate
        self.charges: Dict[str, Dict] = {}
        self.refunds: Dict[str, Dict] = {}
        self._by_key: Dict[str, Dict] = {}

    def charge(self, amount: int, currency: str, source: str, idempotency_key: Optional[str] = None) -> Dict:
        """
        Simulates capturing ``amount`` (minor units) from the payment method
        ``source``. Returns ``{"charge_id", "amount", "currency", "status"}``.

        Raises:
            PaymentDeclined: for the decline test tokens or a non-positive amount.
            PaymentTransientError: randomly, at ``failure_rate``.
        """
        if idempotency_key and idempotency_key in self._by_key:
            return self._by_key[idempotency_key]

        time.sleep(self.delay_seconds)

        if source in DECLINE_TOKENS:
            raise PaymentDeclined("Your card was declined.")
        if amount <= 0:
            raise PaymentDeclined("Amount must be at least 1")

        if random.random() < self.failure_rate:
            raise PaymentTransientError("Simulated transient gateway error")

        txn = {
            "charge_id": f"ch_mock_{uuid4().hex}",
            "amount": amount,
            "currency": currency,
            "status": "captured",
        }
        self.charges[txn["charge_id"]] = txn
        if idempotency_key:
            self._by_key[idempotency_key] = txn
        log.debug("mock charge %s for %s %s", txn["charge_id"], amount, currency)
        return txn

    def refund(self, charge_id: str) -> Dict:
        time.sleep(self.delay_seconds)
        if charge_id in self.refunds:
            return self.refunds[charge_id]
        refund = {
            "refund_id": f"re_mock_{uuid4().hex}",
            "status": "refunded",
            "charge_id": charge_id,
        }
        self.refunds[charge_id] = refund
        return refund

    def health_check(self) -> bool:
        return True
