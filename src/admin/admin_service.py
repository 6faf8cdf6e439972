from typing import List
from datetime import datetime
from sqlalchemy import func
from sqlalchemy.orm import Session
from decimal import Decimal
import logging

from src.admin.schemas import DashboardData, TrainOccupancy
from src.exceptions import RailBookerError, PaymentNotFoundError
from src.ledger.revenue import RevenueLedger
from src.models import Booking, Cancellation, Payment, Train, BookingStatus, PaymentStatus

logger = logging.getLogger(__name__)

class AdminManagementService:
    """Service for revenue, payment and dashboard administration"""

    def __init__(self, db: Session):
        self.db = db
        self.revenue = RevenueLedger(db)

    def get_revenue(self) -> Decimal:
        return self.revenue.balance()

    def list_payments(self) -> List[Payment]:
        return self.db.query(Payment).order_by(Payment.payment_date.desc(), Payment.id.desc()).all()

    def update_payment_status(self, payment_id: int, new_status: PaymentStatus) -> Payment:
        """
        Move a payment to another status and apply the revenue effect of the edge.

        Leaving Successful reverses the amount that was collected; entering
        it collects the amount again.
        """
        payment = self.db.query(Payment).filter(Payment.id == payment_id).with_for_update().first()
        if not payment:
            raise PaymentNotFoundError(payment_id)

        previous_status = payment.status
        previous_amount = payment.amount

        try:
            payment.status = PaymentStatus(new_status).value
            self.db.flush()
            effect = self.revenue.on_payment_written(
                payment,
                previous_status=previous_status,
                previous_amount=previous_amount
            )
            self.db.commit()
        except RailBookerError:
            self.db.rollback()
            raise
        except Exception:
            self.db.rollback()
            logger.exception("Updating payment %s failed", payment_id)
            raise

        self.db.refresh(payment)
        logger.info(
            "Payment %s moved %s -> %s (revenue effect: %s)",
            payment_id, previous_status, payment.status, effect or "none"
        )
        return payment

    def get_dashboard(self) -> DashboardData:
        """Booking counts, revenue and seat occupancy for the overview"""

        status_counts = dict(
            self.db.query(Booking.booking_status, func.count(Booking.pnr))
            .group_by(Booking.booking_status)
            .all()
        )
        confirmed = status_counts.get(BookingStatus.CONFIRMED.value, 0)
        cancelled = status_counts.get(BookingStatus.CANCELLED.value, 0)

        bookings_by_class = dict(
            self.db.query(Booking.fare_class, func.count(Booking.pnr))
            .filter(Booking.booking_status == BookingStatus.CONFIRMED.value)
            .group_by(Booking.fare_class)
            .all()
        )

        total_refunded = self.db.query(
            func.coalesce(func.sum(Cancellation.refund_amount), 0)
        ).scalar()

        trains = []
        for train in self.db.query(Train).order_by(Train.schedule, Train.id).all():
            booked = train.total_seats - train.available_seats
            trains.append(TrainOccupancy(
                train_id=train.id,
                train_number=train.train_number,
                train_name=train.train_name,
                total_seats=train.total_seats,
                available_seats=train.available_seats,
                booked_seats=booked,
                occupancy_percentage=round(booked / train.total_seats * 100, 2) if train.total_seats else 0.0
            ))

        return DashboardData(
            total_revenue=self.get_revenue(),
            total_bookings=sum(status_counts.values()),
            confirmed_bookings=confirmed,
            cancelled_bookings=cancelled,
            total_refunded=Decimal(str(total_refunded)),
            bookings_by_class=bookings_by_class,
            trains=trains,
            generated_at=datetime.now()
        )
