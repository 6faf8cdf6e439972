from typing import List, Optional, Set
from sqlalchemy.orm import Session, joinedload
from decimal import Decimal
import logging
import secrets

from src.bookings.schemas import BookingRequest, BookingUpdate
from src.bookings.state_machine import BookingStateMachine
from src.exceptions import (
    RailBookerError, BookingFailedError, BookingNotFoundError, SeatAllocationError
)
from src.ledger.revenue import RevenueLedger
from src.models import (
    Booking, Passenger, Payment, BookingStatus, PaymentStatus
)
from src.trains.service import TrainService

logger = logging.getLogger(__name__)

SEAT_NUMBERS = range(10, 100)

class BookingService:
    """
    Books seats for a group of passengers.

    Passengers, bookings and the group payment are written in one
    transaction: if any step fails nothing is kept, including the seat and
    revenue effects of the steps that already ran.
    """

    def __init__(self, db: Session):
        self.db = db
        self.state_machine = BookingStateMachine(db)
        self.revenue = RevenueLedger(db)

    def create_booking(self, request: BookingRequest) -> str:
        """Book every passenger and take one payment; returns the first PNR"""
        fare_class = request.fare_class.value

        try:
            # train row stays locked until commit, covering seat numbers and the seat count
            train = self.state_machine.inventory.lock_train(request.train_id)

            # Step 1: passengers
            passengers = [
                Passenger(
                    name=info.name,
                    age=info.age,
                    gender=info.gender,
                    contact=info.contact
                )
                for info in request.passengers
            ]
            self.db.add_all(passengers)
            self.db.flush()

            # Step 2: fare for the class, or any fare on the train
            fare = TrainService.resolve_fare(self.db, train.id, fare_class)

            total_amount = request.total_amount
            if total_amount is None:
                total_amount = TrainService.quote_fare(
                    self.db, train.id, request.fare_class, len(passengers)
                ).total_amount

            # Step 3: one confirmed booking per passenger
            held = self._held_seats(train.id, fare_class)
            bookings = []
            for passenger in passengers:
                seat_no = self._allocate_seat(fare_class, held)
                held.add(seat_no)

                booking = Booking(
                    pnr=self._generate_pnr(),
                    passenger_id=passenger.id,
                    train_id=train.id,
                    fare_id=fare.id,
                    fare_class=fare_class,
                    seat_no=seat_no,
                    booking_status=BookingStatus.CONFIRMED.value,
                    payment_status=PaymentStatus.PENDING.value
                )
                self.db.add(booking)
                self.db.flush()
                self.state_machine.record_created(booking)
                bookings.append(booking)

            first_pnr = bookings[0].pnr

            # Step 4: a single payment for the group, against the first PNR
            payment = Payment(
                pnr=first_pnr,
                amount=Decimal(total_amount),
                payment_method=request.payment_method.value,
                status=PaymentStatus.SUCCESSFUL.value  # no gateway, payments always succeed
            )
            self.db.add(payment)
            self.db.flush()
            self.revenue.on_payment_written(payment)

            for booking in bookings:
                booking.payment_status = PaymentStatus.SUCCESSFUL.value

            self.db.commit()

        except RailBookerError:
            self.db.rollback()
            logger.warning("Booking on train %s rolled back", request.train_id)
            raise
        except Exception as e:
            self.db.rollback()
            logger.exception("Booking on train %s failed", request.train_id)
            raise BookingFailedError(f"Failed to create booking: {str(e)}") from e

        logger.info(
            "Booked %d seat(s) on train %s in %s, PNR %s, amount %s",
            len(bookings), request.train_id, fare_class, first_pnr, total_amount
        )
        return first_pnr

    def get_booking(self, pnr: str) -> Optional[Booking]:
        """Get booking by PNR with passenger and train"""
        return self.db.query(Booking).options(
            joinedload(Booking.passenger),
            joinedload(Booking.train)
        ).filter(Booking.pnr == pnr).first()

    def get_booking_or_raise(self, pnr: str) -> Booking:
        booking = self.get_booking(pnr)
        if not booking:
            raise BookingNotFoundError(pnr)
        return booking

    def list_bookings(self) -> List[Booking]:
        """All bookings, newest first"""
        return self.db.query(Booking).options(
            joinedload(Booking.passenger),
            joinedload(Booking.train)
        ).order_by(Booking.created_at.desc(), Booking.pnr).all()

    def update_booking(self, pnr: str, update: BookingUpdate) -> Booking:
        """
        Change a booking's seat or status.

        Status changes go through the state machine, so rewriting the current
        status leaves the seat count alone. Cancellation has its own workflow
        because it also refunds, and a cancelled booking stays cancelled: its
        refund is already recorded.
        """
        booking = self.db.query(Booking).filter(Booking.pnr == pnr).with_for_update().first()
        if not booking:
            raise BookingNotFoundError(pnr)

        if update.booking_status == BookingStatus.CANCELLED and \
                booking.booking_status != BookingStatus.CANCELLED.value:
            raise ValueError("Use the cancellation endpoint to cancel a booking")

        if update.booking_status == BookingStatus.CONFIRMED and \
                booking.booking_status == BookingStatus.CANCELLED.value:
            raise ValueError(f"Booking {pnr} is cancelled and cannot be reinstated; make a new booking")

        try:
            target_status = (update.booking_status or BookingStatus(booking.booking_status)).value
            seat_no = update.seat_no or booking.seat_no

            if target_status == BookingStatus.CONFIRMED.value:
                # seat numbers are read under the train lock, like the seat count
                self.state_machine.inventory.lock_train(booking.train_id)
                held = self._held_seats(booking.train_id, booking.fare_class, exclude_pnr=booking.pnr)
                if seat_no in held:
                    if update.seat_no:
                        raise SeatAllocationError(
                            f"Seat {seat_no} is already taken on train {booking.train_id}"
                        )
                    seat_no = self._allocate_seat(booking.fare_class, held)

            booking.seat_no = seat_no
            self.state_machine.transition(booking, target_status)
            self.db.commit()

        except RailBookerError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.exception("Updating booking %s failed", pnr)
            raise BookingFailedError(f"Failed to update booking: {str(e)}") from e

        return self.get_booking(pnr)

    def _held_seats(self, train_id: int, fare_class: str, exclude_pnr: str = None) -> Set[str]:
        """Seat numbers held by confirmed bookings in a class on a train"""
        query = self.db.query(Booking.seat_no).filter(
            Booking.train_id == train_id,
            Booking.fare_class == fare_class,
            Booking.booking_status == BookingStatus.CONFIRMED.value
        )
        if exclude_pnr:
            query = query.filter(Booking.pnr != exclude_pnr)
        return {row.seat_no for row in query.all()}

    def _allocate_seat(self, fare_class: str, held: Set[str]) -> str:
        """Random free seat number: class initial followed by 10-99"""
        prefix = fare_class[0].upper()
        free = [f"{prefix}{n}" for n in SEAT_NUMBERS if f"{prefix}{n}" not in held]
        if not free:
            raise SeatAllocationError(f"No seat numbers left in {fare_class}")
        return secrets.choice(free)

    def _generate_pnr(self) -> str:
        """Ten-digit PNR not used by any existing booking"""
        while True:
            pnr = f"{secrets.randbelow(10 ** 10):010d}"
            if self.db.get(Booking, pnr) is None:
                return pnr
