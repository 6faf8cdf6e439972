#!/usr/bin/env python3

from datetime import date, time, timedelta
from decimal import Decimal

from src.database import SessionLocal, init_db
from src.models import Cancellation, Payment, Booking, Passenger, Fare, Train, RevenueLedgerRecord
from src.trains.schemas import TrainCreate
from src.trains.service import TrainService

SAMPLE_TRAINS = [
    # name, number, origin, destination, departs, arrives, days from today, first class price, seats
    ("Rajdhani Express", "12951", "Mumbai Central", "New Delhi", time(17, 0), time(8, 35), 1, Decimal("4200"), 120),
    ("Shatabdi Express", "12009", "Mumbai Central", "Ahmedabad", time(6, 25), time(13, 10), 1, Decimal("1850"), 80),
    ("Duronto Express", "12213", "Delhi Sarai Rohilla", "Yesvantpur", time(23, 40), time(6, 0), 2, Decimal("5100"), 150),
    ("Vande Bharat Express", "22439", "New Delhi", "Katra", time(6, 0), time(14, 0), 2, Decimal("3050"), 60),
    ("Chennai Mail", "12163", "Chennai Central", "Mumbai CST", time(20, 50), time(19, 45), 3, Decimal("2600"), 100),
]

def create_seed_data():
    init_db()
    db = SessionLocal()

    try:
        print("🚆 Creating seed data for RailBooker...")

        # Clear existing data (in reverse dependency order)
        print("Clearing existing data...")
        db.query(Cancellation).delete()
        db.query(Payment).delete()
        db.query(Booking).delete()
        db.query(Passenger).delete()
        db.query(Fare).delete()
        db.query(Train).delete()
        db.query(RevenueLedgerRecord).update({"total_revenue": 0})
        db.commit()

        print("Creating trains and fares...")
        for name, number, origin, destination, departs, arrives, days, price, seats in SAMPLE_TRAINS:
            train = TrainService.add_train(db, TrainCreate(
                name=name,
                number=number,
                origin=origin,
                destination=destination,
                departure_time=departs,
                arrival_time=arrives,
                travel_date=date.today() + timedelta(days=days),
                price=price,
                seats=seats
            ))
            print(f"  {train.train_number} {train.train_name}: {train.source} -> {train.destination}")

        print(f"✅ Seed data created: {len(SAMPLE_TRAINS)} trains")

    except Exception as e:
        db.rollback()
        print(f"❌ Error creating seed data: {e}")
        raise
    finally:
        db.close()

if __name__ == "__main__":
    create_seed_data()
