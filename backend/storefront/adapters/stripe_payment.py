import logging
from typing import Dict, Optional

import stripe

from storefront.errors import PaymentDeclined, PaymentError, PaymentTransientError

log = logging.getLogger("payment")


class StripePaymentAdapter:
    """Charges through Stripe. The API key is passed per call, never set globally."""

    def __init__(self, api_key: str):
        self.api_key = api_key

    def charge(self, amount: int, currency: str, source: str, idempotency_key: Optional[str] = None) -> Dict:
        try:
            ch = stripe.Charge.create(
                amount=amount,
                currency=currency.lower(),
                source=source,
                api_key=self.api_key,
                idempotency_key=idempotency_key,
            )
        except stripe.CardError as e:
            raise PaymentDeclined(e.user_message or "Your card was declined.")
        except stripe.InvalidRequestError as e:
            raise PaymentDeclined(e.user_message or "The payment method was rejected.")
        except (stripe.APIConnectionError, stripe.RateLimitError) as e:
            raise PaymentTransientError(f"Stripe unavailable: {e.__class__.__name__}")
        except stripe.StripeError as e:
            raise PaymentError(f"Stripe error: {e.__class__.__name__}")
        return {
            "charge_id": ch.id,
            "amount": ch.amount,
            "currency": ch.currency.upper(),
            "status": ch.status,
        }

    def refund(self, charge_id: str) -> Dict:
        try:
            refund = stripe.Refund.create(
                charge=charge_id,
                api_key=self.api_key,
                idempotency_key=f"refund-{charge_id}",
            )
        except (stripe.APIConnectionError, stripe.RateLimitError) as e:
            raise PaymentTransientError(f"Stripe unavailable: {e.__class__.__name__}")
        except stripe.StripeError as e:
            raise PaymentError(f"Stripe refund failed: {e.__class__.__name__}")
        return {"refund_id": refund.id, "status": refund.status, "charge_id": charge_id}

    def health_check(self) -> bool:
        return bool(self.api_key)
