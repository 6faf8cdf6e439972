import unittest
from decimal import Decimal

from tests.support import DatabaseTestCase, booking_request

from src.bookings.booking_service import BookingService
from src.bookings.cancellation_service import CancellationService
from src.bookings.schemas import BookingUpdate
from src.bookings.state_machine import CANCELLED, CONFIRMED, seat_effect
from src.exceptions import BookingAlreadyCancelledError
from src.models import BookingStatus, Cancellation


class SeatEffectTests(unittest.TestCase):
    def test_creating_confirmed_takes_a_seat(self):
        self.assertEqual(seat_effect(None, CONFIRMED), -1)

    def test_cancelling_releases_a_seat(self):
        self.assertEqual(seat_effect(CONFIRMED, CANCELLED), 1)

    def test_reconfirming_takes_a_seat(self):
        self.assertEqual(seat_effect(CANCELLED, CONFIRMED), -1)

    def test_same_status_rewrite_is_neutral(self):
        self.assertEqual(seat_effect(CONFIRMED, CONFIRMED), 0)
        self.assertEqual(seat_effect(CANCELLED, CANCELLED), 0)

    def test_creating_cancelled_is_neutral(self):
        self.assertEqual(seat_effect(None, CANCELLED), 0)


class SeatInventoryScenarioTests(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.train = self.add_train(seats=2)
        self.bookings = BookingService(self.db)
        self.cancellations = CancellationService(self.db)

    def book(self):
        return self.bookings.create_booking(booking_request(self.train.id, total_amount=Decimal("1000")))

    def seats(self):
        return self.reload_train(self.train.id).available_seats

    def test_overbooking_clamps_and_cancel_releases(self):
        b1 = self.book()
        self.book()
        self.assertEqual(self.seats(), 0)

        b3 = self.book()
        self.assertEqual(self.seats(), 0)
        self.assertEqual(self.bookings.get_booking(b3).booking_status, "Confirmed")

        self.cancellations.cancel_booking(b1)
        self.assertEqual(self.seats(), 1)

    def test_release_clamps_at_capacity(self):
        pnrs = [self.book() for _ in range(3)]
        for pnr in pnrs:
            self.cancellations.cancel_booking(pnr)
        self.assertEqual(self.seats(), 2)

    def test_rewriting_confirmed_leaves_seats_alone(self):
        pnr = self.book()
        self.bookings.update_booking(pnr, BookingUpdate(booking_status=BookingStatus.CONFIRMED))
        self.assertEqual(self.seats(), 1)

    def test_cancelled_booking_cannot_be_reinstated(self):
        pnr = self.book()
        self.cancellations.cancel_booking(pnr)
        self.assertEqual(self.seats(), 2)

        with self.assertRaises(ValueError):
            self.bookings.update_booking(pnr, BookingUpdate(booking_status=BookingStatus.CONFIRMED))
        self.db.rollback()

        booking = self.bookings.get_booking(pnr)
        self.assertEqual(booking.booking_status, "Cancelled")
        self.assertEqual(booking.payment_status, "Refunded")
        self.assertEqual(self.seats(), 2)

        with self.assertRaises(BookingAlreadyCancelledError):
            self.cancellations.cancel_booking(pnr)
        self.assertEqual(self.db.query(Cancellation).filter(Cancellation.pnr == pnr).count(), 1)

    def test_cancelled_booking_seat_can_still_change(self):
        pnr = self.book()
        self.cancellations.cancel_booking(pnr)

        booking = self.bookings.update_booking(pnr, BookingUpdate(seat_no="A42"))
        self.assertEqual(booking.seat_no, "A42")
        self.assertEqual(booking.booking_status, "Cancelled")
        self.assertEqual(self.seats(), 2)

    def test_patching_to_cancelled_is_rejected(self):
        pnr = self.book()
        with self.assertRaises(ValueError):
            self.bookings.update_booking(pnr, BookingUpdate(booking_status=BookingStatus.CANCELLED))
        self.assertEqual(self.seats(), 1)


if __name__ == "__main__":
    unittest.main()
