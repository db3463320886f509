"""Eligibility engine orchestrator.

Ties the window aggregator and the evaluator to the store:

  1. check()            -> read-only verdict for a requested amount
  2. record_transfer()  -> re-check and write under the client's lock
  3. complete_transfer()-> pending -> completed, re-checked under the lock
  4. cancel_transfer()  -> -> cancelled (frees capacity, no check)

A verdict from check() is advisory only. The write paths never trust it:
they aggregate again inside the per-document lock, so two businesses
racing to send for the same person cannot jointly exceed the cap.
"""

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from safetransfer.eligibility.evaluator import evaluate
from safetransfer.eligibility.rolling import days_until, reset_date, window_start
from safetransfer.eligibility.window import aggregate, peak_aggregate
from safetransfer.exceptions import (
    InvalidStatusTransitionError,
    InvalidTransferDateError,
    TransferBlockedError,
)
from safetransfer.models import (
    EligibilityVerdict,
    RegulatoryLimits,
    StoredTransfer,
    TransferRequest,
    TransferResponse,
    WindowAggregate,
)
from safetransfer.observability.logging import log_eligibility
from safetransfer.storage.memory import MemoryStore

logger = logging.getLogger(__name__)

# status -> statuses it may move to
ALLOWED_TRANSITIONS = {
    "pending": {"completed", "cancelled"},
    "completed": {"cancelled"},
    "cancelled": set(),
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


class EligibilityEngine:
    """Evaluates and enforces the rolling per-client transfer cap."""

    def __init__(
        self,
        store: MemoryStore,
        limits: Optional[RegulatoryLimits] = None,
        lock_timeout: float = 5.0,
    ) -> None:
        self.store = store
        self.limits = limits or RegulatoryLimits()
        self.lock_timeout = lock_timeout

    def check(
        self,
        business_id: str,
        document_number: str,
        requested_amount,
        as_of: Optional[datetime] = None,
    ) -> EligibilityVerdict:
        """Evaluate a requested amount against the client's window.

        The window covers every business's completed transfers for the
        document number. Data-source errors propagate; callers must
        treat them as ineligible.
        """
        limits = self.limits
        as_of = as_of or _now()
        verdict = self._evaluate(document_number, requested_amount, as_of, as_of, limits)
        log_eligibility(business_id, document_number, verdict)
        return verdict

    def record_transfer(
        self,
        request: TransferRequest,
        as_of: Optional[datetime] = None,
    ) -> TransferResponse:
        """Record a transfer for a client registered with the business.

        ``transfer_date`` defaults to ``as_of`` and may be backdated only
        within the current window. Completed transfers are re-validated
        against every window containing their date and written while
        holding the client's lock. Pending transfers only need to respect
        the per-transfer cap; they are checked again on completion.

        Raises:
            ClientNotFoundError: client unknown to this business.
            InvalidTransferDateError: date in the future or before the window.
            TransferBlockedError: the transfer would breach a cap.
            DataSourceUnavailableError: history or lock unavailable.
        """
        limits = self.limits
        ledger = self.store.ledger(request.business_id)
        ledger.get_client(request.document_number)

        as_of = as_of or _now()
        transfer_date = request.transfer_date or as_of
        self._check_transfer_date(transfer_date, as_of, limits)

        with self.store.document_lock(request.document_number, timeout=self.lock_timeout):
            if request.status == "completed":
                verdict = self._evaluate(
                    request.document_number, request.amount, transfer_date, as_of, limits
                )
                log_eligibility(
                    request.business_id, request.document_number, verdict, step="record_transfer"
                )
                if not verdict.allowed:
                    raise TransferBlockedError(verdict)
            elif request.amount > limits.max_amount_per_transfer:
                raise TransferBlockedError(
                    self._evaluate(request.document_number, request.amount, as_of, as_of, limits)
                )

            stored = StoredTransfer(
                transfer_id=str(uuid.uuid4()),
                business_id=request.business_id,
                document_number=request.document_number,
                amount=request.amount,
                currency=request.currency,
                recipient_name=request.recipient_name,
                destination_country=request.destination_country,
                transfer_date=transfer_date,
                status=request.status,
                notes=request.notes,
                created_at=as_of,
            )
            ledger.add(stored)
            after = self._window(request.document_number, as_of, limits)

        logger.info(
            "Transfer recorded",
            extra={"transfer_id": stored.transfer_id, "business_id": stored.business_id, "status": stored.status},
        )
        amount_available = max(limits.max_window_amount - after.amount_used, Decimal("0"))
        days_remaining = 0
        if after.oldest_transfer_date is not None:
            days_remaining = days_until(
                reset_date(after.oldest_transfer_date, limits.period_days), as_of
            )
        return TransferResponse(
            transfer=stored,
            amount_available=amount_available,
            days_remaining=days_remaining,
        )

    def complete_transfer(
        self,
        business_id: str,
        transfer_id: str,
        as_of: Optional[datetime] = None,
    ) -> StoredTransfer:
        """Move a pending transfer to completed if it still fits the window."""
        limits = self.limits
        ledger = self.store.ledger(business_id)
        tx = ledger.get(transfer_id)
        as_of = as_of or _now()

        with self.store.document_lock(tx.document_number, timeout=self.lock_timeout):
            tx = ledger.get(transfer_id)
            self._check_transition(tx.status, "completed")
            if tx.transfer_date > as_of:
                raise InvalidTransferDateError("Transfer date is in the future")
            verdict = self._evaluate(tx.document_number, tx.amount, tx.transfer_date, as_of, limits)
            log_eligibility(business_id, tx.document_number, verdict, step="complete_transfer")
            if not verdict.allowed:
                raise TransferBlockedError(verdict)
            return ledger.set_status(transfer_id, "completed")

    def cancel_transfer(
        self,
        business_id: str,
        transfer_id: str,
        reason: Optional[str] = None,
    ) -> StoredTransfer:
        """Cancel one of the business's transfers, keeping the record."""
        ledger = self.store.ledger(business_id)
        tx = ledger.get(transfer_id)

        with self.store.document_lock(tx.document_number, timeout=self.lock_timeout):
            tx = ledger.get(transfer_id)
            self._check_transition(tx.status, "cancelled")
            notes = f"Cancelled: {reason}" if reason else "Cancelled by user"
            updated = ledger.set_status(transfer_id, "cancelled", notes=notes)

        logger.info(
            "Transfer cancelled",
            extra={"transfer_id": transfer_id, "business_id": business_id},
        )
        return updated

    def _window(self, document_number: str, as_of: datetime, limits: RegulatoryLimits) -> WindowAggregate:
        return aggregate(
            self.store.reader(),
            document_number,
            as_of,
            period_days=limits.period_days,
        )

    def _evaluate(
        self,
        document_number: str,
        requested_amount,
        transfer_date: datetime,
        as_of: datetime,
        limits: RegulatoryLimits,
    ) -> EligibilityVerdict:
        window = peak_aggregate(
            self.store.reader(),
            document_number,
            transfer_date,
            as_of,
            period_days=limits.period_days,
        )
        return evaluate(
            window.amount_used,
            requested_amount,
            window.oldest_transfer_date,
            as_of,
            limits=limits,
        )

    @staticmethod
    def _check_transfer_date(transfer_date: datetime, as_of: datetime, limits: RegulatoryLimits) -> None:
        if transfer_date > as_of:
            raise InvalidTransferDateError("Transfer date cannot be in the future")
        if transfer_date <= window_start(as_of, limits.period_days):
            raise InvalidTransferDateError(
                f"Transfer date must be within the last {limits.period_days} days"
            )

    @staticmethod
    def _check_transition(current: str, target: str) -> None:
        if target not in ALLOWED_TRANSITIONS.get(current, set()):
            raise InvalidStatusTransitionError(
                f"Cannot move transfer from {current} to {target}"
            )
