import logging
from sqlalchemy.orm import Session

from src.exceptions import TrainNotFoundError
from src.models import Train

logger = logging.getLogger(__name__)

class InventoryLedger:
    """
    Bounded seat counter per train.

    Both operations lock the train row for the rest of the transaction and
    clamp at the bounds instead of failing: a decrement past zero leaves
    0 seats, an increment past capacity leaves ``total_seats``.
    """

    def __init__(self, db: Session):
        self.db = db

    def lock_train(self, train_id: int) -> Train:
        """Load the train row locked for the rest of the transaction"""
        train = (
            self.db.query(Train)
            .filter(Train.id == train_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not train:
            raise TrainNotFoundError(train_id)
        return train

    def decrement(self, train_id: int, n: int = 1) -> int:
        """Take ``n`` seats; returns the new available count"""
        train = self.lock_train(train_id)
        current = train.available_seats

        if current >= n:
            train.available_seats = current - n
        else:
            logger.info(
                "Seat decrement of %d on train %s clamped at 0 (had %d)", n, train_id, current
            )
            train.available_seats = 0

        self.db.flush()
        return train.available_seats

    def increment(self, train_id: int, n: int = 1) -> int:
        """Release ``n`` seats; returns the new available count"""
        train = self.lock_train(train_id)
        current = train.available_seats

        if current + n <= train.total_seats:
            train.available_seats = current + n
        else:
            logger.info(
                "Seat increment of %d on train %s clamped at capacity %d (had %d)",
                n, train_id, train.total_seats, current
            )
            train.available_seats = train.total_seats

        self.db.flush()
        return train.available_seats

    def apply(self, train_id: int, delta: int) -> int:
        """Apply a signed seat delta: negative takes seats, positive releases them"""
        if delta < 0:
            return self.decrement(train_id, -delta)
        if delta > 0:
            return self.increment(train_id, delta)
        return self.available(train_id)

    def available(self, train_id: int) -> int:
        train = self.db.query(Train).filter(Train.id == train_id).first()
        if not train:
            raise TrainNotFoundError(train_id)
        return train.available_seats
