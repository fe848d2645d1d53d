from datetime import datetime, timedelta, timezone

from storefront.adapters.mock_payment import MockPaymentAdapter
from storefront.errors import PaymentTransientError
from storefront.models.idempotency import IdempotencyRecord, IdempotencyStatus
from storefront.models.revoked_token import RevokedToken
from storefront.models.user import User
from storefront.services.reconciliation_service import ReconciliationService

LATER = datetime.now(timezone.utc) + timedelta(days=1)


def _record(db, key, status, body=None):
    rec = IdempotencyRecord(key=key, operation="create_order", status=status, response_body=body)
    db.add(rec)
    db.commit()
    return rec


def _capture(charge_id="ch_1", amount=1300):
    return {"payment_result": {"charge_id": charge_id, "amount": amount, "currency": "USD", "status": "captured"}}


def test_orphaned_capture_is_refunded(db, payment):
    _record(db, "1:a", IdempotencyStatus.IN_PROGRESS, _capture("ch_a"))
    _record(db, "1:b", IdempotencyStatus.FAILED, _capture("ch_b"))

    summary = ReconciliationService(db, payment).reconcile_checkouts(now=LATER)

    assert summary["refunded"] == ["1:a", "1:b"]
    assert set(payment.refunds) == {"ch_a", "ch_b"}
    db.expire_all()
    assert {r.status for r in db.query(IdempotencyRecord)} == {IdempotencyStatus.REFUNDED}


def test_abandoned_checkout_without_capture_is_failed(db, payment):
    _record(db, "1:a", IdempotencyStatus.IN_PROGRESS, {"attempt": 0})

    summary = ReconciliationService(db, payment).reconcile_checkouts(now=LATER)

    assert summary["abandoned"] == ["1:a"]
    assert payment.refunds == {}
    assert db.query(IdempotencyRecord).one().status == IdempotencyStatus.FAILED


def test_fresh_and_settled_records_are_left_alone(db, payment):
    _record(db, "1:fresh", IdempotencyStatus.IN_PROGRESS, _capture("ch_f"))
    _record(db, "1:done", IdempotencyStatus.COMPLETED, dict(_capture("ch_d"), order_id=1))
    _record(db, "1:refunded", IdempotencyStatus.REFUNDED, dict(_capture("ch_r"), refund_result={"status": "refunded"}))

    summary = ReconciliationService(db, payment).reconcile_checkouts()

    assert summary == {"refunded": [], "abandoned": [], "errors": []}
    assert payment.refunds == {}


def test_refund_failure_is_reported_and_retried_later(db):
    class DownPayment(MockPaymentAdapter):
        def refund(self, charge_id):
            raise PaymentTransientError("down")

    _record(db, "1:a", IdempotencyStatus.FAILED, _capture("ch_a"))

    summary = ReconciliationService(db, DownPayment(delay_ms=0)).reconcile_checkouts(now=LATER)
    assert summary["errors"] == ["1:a"]
    rec = db.query(IdempotencyRecord).one()
    assert rec.status == IdempotencyStatus.FAILED
    assert "refund failed" in rec.last_error

    ok = MockPaymentAdapter(delay_ms=0)
    summary = ReconciliationService(db, ok).reconcile_checkouts(now=LATER)
    assert summary["refunded"] == ["1:a"]


def test_purge_expired_credentials(db, make_user):
    now = datetime.now(timezone.utc)
    stale = make_user("old@example.com")
    stale.reset_token, stale.reset_token_expiry = "a" * 40, now - timedelta(hours=3)
    live = make_user("new@example.com")
    live.reset_token, live.reset_token_expiry = "b" * 40, now + timedelta(minutes=30)
    db.add(RevokedToken(jti="gone", user_id=stale.id, expires_at=now - timedelta(days=1)))
    db.add(RevokedToken(jti="kept", user_id=stale.id, expires_at=now + timedelta(days=1)))
    db.commit()

    summary = ReconciliationService(db, MockPaymentAdapter(delay_ms=0)).purge_expired_credentials(now=now)

    assert summary == {"reset_tokens": 1, "revoked_tokens": 1}
    db.expire_all()
    assert db.query(User).filter(User.reset_token.isnot(None)).one().email == "new@example.com"
    assert [t.jti for t in db.query(RevokedToken)] == ["kept"]
