import logging
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Session

from src.exceptions import LedgerNotInitializedError
from src.models import RevenueLedgerRecord, Payment, Cancellation, PaymentStatus, CancellationStatus

logger = logging.getLogger(__name__)

ACCRUE = "accrue"
REVERSE = "reverse"

CENTS = Decimal("0.01")

def _money(amount) -> Decimal:
    return Decimal(str(amount)).quantize(CENTS)

def payment_revenue_effect(previous: Optional[str], current: str) -> Optional[str]:
    """
    Revenue effect of a payment status edge.

    ``previous`` is None when the payment row is being created. Only edges
    into or out of Successful move revenue; rewriting the same status does not.
    """
    was_successful = previous == PaymentStatus.SUCCESSFUL.value
    is_successful = current == PaymentStatus.SUCCESSFUL.value

    if is_successful and not was_successful:
        return ACCRUE
    if was_successful and not is_successful:
        return REVERSE
    return None

class RevenueLedger:
    """Running total of collected revenue, kept in a single ledger row"""

    def __init__(self, db: Session):
        self.db = db

    def initialize(self) -> RevenueLedgerRecord:
        """Create the ledger row at zero if it does not exist yet; safe to call repeatedly"""
        record = self.db.query(RevenueLedgerRecord).order_by(RevenueLedgerRecord.id).first()
        if record is None:
            record = RevenueLedgerRecord(total_revenue=Decimal("0.00"))
            self.db.add(record)
            self.db.flush()
            logger.info("Revenue ledger initialized")
        return record

    def _locked_record(self) -> RevenueLedgerRecord:
        record = (
            self.db.query(RevenueLedgerRecord)
            .order_by(RevenueLedgerRecord.id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if record is None:
            raise LedgerNotInitializedError()
        return record

    def balance(self) -> Decimal:
        record = self.db.query(RevenueLedgerRecord).order_by(RevenueLedgerRecord.id).first()
        if record is None:
            raise LedgerNotInitializedError()
        return _money(record.total_revenue)

    def accrue(self, amount) -> Decimal:
        record = self._locked_record()
        record.total_revenue = _money(record.total_revenue) + _money(amount)
        self.db.flush()
        return _money(record.total_revenue)

    def reverse(self, amount) -> Decimal:
        """Take ``amount`` back out; a reversal larger than the balance is skipped"""
        record = self._locked_record()
        current = _money(record.total_revenue)
        amount = _money(amount)

        if current >= amount:
            record.total_revenue = current - amount
            self.db.flush()
        else:
            logger.info("Revenue reversal of %s skipped, balance is only %s", amount, current)

        return _money(record.total_revenue)

    # Transition handlers

    def on_payment_written(
        self,
        payment: Payment,
        previous_status: Optional[str] = None,
        previous_amount=None
    ) -> Optional[str]:
        """Apply the revenue effect of a created or updated payment row"""
        effect = payment_revenue_effect(previous_status, payment.status)

        if effect == ACCRUE:
            self.accrue(payment.amount)
        elif effect == REVERSE:
            self.reverse(previous_amount if previous_amount is not None else payment.amount)

        return effect

    def on_cancellation_recorded(self, cancellation: Cancellation) -> Optional[str]:
        """Processed refunds come out of revenue"""
        if cancellation.status != CancellationStatus.PROCESSED.value:
            return None
        self.reverse(cancellation.refund_amount)
        return REVERSE
