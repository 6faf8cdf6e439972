from typing import List, Optional
from sqlalchemy.orm import Session
from decimal import Decimal, ROUND_HALF_UP
import logging

from src.bookings.state_machine import BookingStateMachine
from src.config import settings
from src.exceptions import (
    RailBookerError, BookingNotFoundError, BookingAlreadyCancelledError, CancellationFailedError
)
from src.ledger.revenue import RevenueLedger
from src.models import Booking, Cancellation, BookingStatus, PaymentStatus, CancellationStatus

logger = logging.getLogger(__name__)

def calculate_refund(amount_paid, fee_rate: Decimal = None) -> Decimal:
    """Amount paid less the flat cancellation fee, in whole currency units"""
    if fee_rate is None:
        fee_rate = settings.CANCELLATION_FEE_RATE
    refund = Decimal(str(amount_paid)) * (Decimal("1") - Decimal(str(fee_rate)))
    return refund.quantize(Decimal("1"), rounding=ROUND_HALF_UP)

class CancellationService:
    """Cancels bookings: frees the seat, records the refund and reverses revenue"""

    def __init__(self, db: Session):
        self.db = db
        self.state_machine = BookingStateMachine(db)
        self.revenue = RevenueLedger(db)

    def cancel_booking(
        self,
        pnr: str,
        amount_paid: Optional[Decimal] = None,
        reason: Optional[str] = None
    ) -> Cancellation:
        """
        Cancel a confirmed booking and refund it.

        The status change and the refund record commit together; if recording
        the refund fails the booking stays confirmed.
        """
        booking = self.db.query(Booking).filter(Booking.pnr == pnr).with_for_update().first()
        if not booking:
            raise BookingNotFoundError(pnr)

        if booking.booking_status == BookingStatus.CANCELLED.value:
            raise BookingAlreadyCancelledError(pnr)

        try:
            if amount_paid is None:
                amount_paid = booking.fare.fare_amount

            # Step 1: release the seat
            self.state_machine.transition(booking, BookingStatus.CANCELLED)
            booking.payment_status = PaymentStatus.REFUNDED.value

            # Step 2: record the refund
            cancellation = Cancellation(
                pnr=booking.pnr,
                refund_amount=calculate_refund(amount_paid),
                status=CancellationStatus.PROCESSED.value
            )
            self.db.add(cancellation)
            self.db.flush()
            self.revenue.on_cancellation_recorded(cancellation)

            self.db.commit()

        except RailBookerError:
            self.db.rollback()
            logger.warning("Cancellation of booking %s rolled back", pnr)
            raise
        except Exception as e:
            self.db.rollback()
            logger.exception("Cancelling booking %s failed", pnr)
            raise CancellationFailedError(f"Failed to cancel booking: {str(e)}") from e

        self.db.refresh(cancellation)
        logger.info(
            "Cancelled booking %s, refund %s%s",
            pnr, cancellation.refund_amount, f" ({reason})" if reason else ""
        )
        return cancellation

    def list_cancellations(self) -> List[Cancellation]:
        """All cancellations, newest first"""
        return self.db.query(Cancellation).order_by(
            Cancellation.cancellation_date.desc(), Cancellation.id.desc()
        ).all()
