import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.models.idempotency import IdempotencyRecord, IdempotencyStatus

log = logging.getLogger("idempotency")


class IdempotencyRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> Optional[IdempotencyRecord]:
        return self.db.query(IdempotencyRecord).filter(IdempotencyRecord.key == key).first()

    def begin(self, key: str, operation: str, user_id: Optional[int] = None) -> Tuple[IdempotencyRecord, bool]:
        """
        Atomically ensure an idempotency row exists.
        Returns (record, created):
          - created == True  -> this call inserted the IN_PROGRESS row (owner)
          - created == False -> the row already existed (concurrent / previous request)

        Commits the caller's session so the marker is visible to other requests
        immediately.
        """
        rec = IdempotencyRecord(
            key=key, operation=operation, user_id=user_id, status=IdempotencyStatus.IN_PROGRESS
        )
        self.db.add(rec)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            log.debug("begin(): insert collision for key=%r", key)
            return self.get(key), False
        log.debug("begin(): created key=%r", key)
        return rec, True

    def restart(self, rec: IdempotencyRecord, response_body: dict) -> IdempotencyRecord:
        rec.status = IdempotencyStatus.IN_PROGRESS
        rec.last_error = None
        rec.response_body = response_body
        self.db.flush()
        return rec

    def store(self, rec: IdempotencyRecord, **partial) -> IdempotencyRecord:
        """
        Merge partial results into ``response_body`` without changing status,
        e.g. the payment result while the overall checkout is still running.
        """
        rec.response_body = {**(rec.response_body or {}), **partial}
        self.db.flush()
        return rec

    def mark_completed(self, rec: IdempotencyRecord, **partial) -> IdempotencyRecord:
        rec.status = IdempotencyStatus.COMPLETED
        rec.last_error = None
        return self.store(rec, **partial)

    def mark_failed(self, rec: IdempotencyRecord, error_message: str) -> IdempotencyRecord:
        rec.status = IdempotencyStatus.FAILED
        rec.last_error = error_message[:1024]
        self.db.flush()
        return rec

    def mark_refunded(self, rec: IdempotencyRecord, refund_result: dict) -> IdempotencyRecord:
        rec.status = IdempotencyStatus.REFUNDED
        return self.store(rec, refund_result=refund_result)

    def list_unsettled(self, operation: str, stale_before: datetime) -> List[IdempotencyRecord]:
        """IN_PROGRESS or FAILED records untouched since ``stale_before``, oldest first."""
        return (
            self.db.query(IdempotencyRecord)
            .filter(
                IdempotencyRecord.operation == operation,
                IdempotencyRecord.status.in_(
                    [IdempotencyStatus.IN_PROGRESS, IdempotencyStatus.FAILED]
                ),
                IdempotencyRecord.updated_at <= stale_before,
            )
            .order_by(IdempotencyRecord.id)
            .all()
        )
