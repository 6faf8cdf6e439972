import logging
from typing import Dict, Optional, Tuple
from sqlalchemy.orm import Session

from src.ledger.inventory import InventoryLedger
from src.models import Booking, BookingStatus

logger = logging.getLogger(__name__)

CONFIRMED = BookingStatus.CONFIRMED.value
CANCELLED = BookingStatus.CANCELLED.value

# (previous status, new status) -> seat delta on the train.
# None as the previous status means the booking row is being created.
SEAT_TRANSITIONS: Dict[Tuple[Optional[str], str], int] = {
    (None, CONFIRMED): -1,
    (CANCELLED, CONFIRMED): -1,
    (CONFIRMED, CANCELLED): 1,
}

def seat_effect(previous: Optional[str], new: str) -> int:
    """Seat delta for a status edge; 0 for same-status rewrites and unlisted edges"""
    if previous == new:
        return 0
    return SEAT_TRANSITIONS.get((previous, new), 0)

class BookingStateMachine:
    """Applies booking status edges to the train's seat inventory"""

    def __init__(self, db: Session):
        self.db = db
        self.inventory = InventoryLedger(db)

    def record_created(self, booking: Booking) -> int:
        """Run the creation edge for a freshly added booking row"""
        return self._apply(booking, None, booking.booking_status)

    def transition(self, booking: Booking, new_status: str) -> int:
        """Set the booking's status and apply the seat effect of that edge"""
        new_status = BookingStatus(new_status).value
        previous = booking.booking_status
        booking.booking_status = new_status
        self.db.flush()
        return self._apply(booking, previous, new_status)

    def _apply(self, booking: Booking, previous: Optional[str], new: str) -> int:
        delta = seat_effect(previous, new)
        if delta:
            self.inventory.apply(booking.train_id, delta)
            logger.debug(
                "Booking %s %s -> %s moved %d seat(s) on train %s",
                booking.pnr, previous or "(new)", new, delta, booking.train_id
            )
        return delta
