"""
Shared fixtures: an isolated in-memory database per test case.
"""
import os
import unittest
from datetime import date, time, timedelta
from decimal import Decimal

# Keep the application's default engine off the filesystem during tests.
os.environ.setdefault("DATABASE_URL", "sqlite://")

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.bookings.schemas import BookingRequest, PassengerInfo
from src.database import drop_db, init_db, instrument
from src.models import FareClass, PaymentMethod, Train
from src.trains.schemas import TrainCreate
from src.trains.service import TrainService

def make_database():
    """Fresh in-memory SQLite database with tables and an initialized revenue ledger"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    instrument(engine, session_factory)
    init_db(engine, session_factory)
    return engine, session_factory

def passenger(name="Asha Rao", age=34, gender="female", contact="9876543210"):
    return PassengerInfo(name=name, age=age, gender=gender, contact=contact)

def booking_request(train_id, passengers=1, fare_class=FareClass.AC_FIRST_CLASS,
                    total_amount=None, payment_method=PaymentMethod.CARD):
    return BookingRequest(
        passengers=[passenger(name=f"Passenger {i + 1}") for i in range(passengers)],
        train_id=train_id,
        fare_class=fare_class,
        payment_method=payment_method,
        total_amount=total_amount,
    )

def train_request(**overrides):
    fields = dict(
        name="Rajdhani Express",
        number="12951",
        origin="Mumbai Central",
        destination="New Delhi",
        departure_time=time(17, 0),
        arrival_time=time(8, 35),
        travel_date=date.today() + timedelta(days=1),
        price=Decimal("1000"),
        seats=100,
    )
    fields.update(overrides)
    return TrainCreate(**fields)

class DatabaseTestCase(unittest.TestCase):
    """Gives each test its own database and a session on it"""

    def setUp(self):
        self.engine, self.SessionLocal = make_database()
        self.db = self.SessionLocal()

    def tearDown(self):
        self.db.close()
        drop_db(self.engine)
        self.engine.dispose()

    def add_train(self, **overrides) -> Train:
        return TrainService.add_train(self.db, train_request(**overrides))

    def reload_train(self, train_id) -> Train:
        self.db.expire_all()
        return self.db.get(Train, train_id)
