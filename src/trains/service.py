import logging
from sqlalchemy.orm import Session, joinedload
from typing import List, Optional
from decimal import Decimal, ROUND_HALF_UP
from datetime import time

from src.config import settings
from src.exceptions import TrainNotFoundError, FareNotFoundError
from src.models import Train, Fare, FareClass
from src.trains.schemas import TrainCreate, TrainDetail, TrainFareSummary, TrainSearch, FareQuote

logger = logging.getLogger(__name__)

# Fare for each class as a share of the AC First Class price
FARE_MULTIPLIERS = {
    FareClass.AC_FIRST_CLASS: Decimal("1.0"),
    FareClass.AC_2_TIER: Decimal("0.8"),
    FareClass.AC_3_TIER: Decimal("0.6"),
    FareClass.SLEEPER: Decimal("0.4"),
}

def round_fare(amount: Decimal) -> Decimal:
    """Whole currency units, halves rounded up"""
    return Decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP)

def format_time(value: time) -> str:
    return value.strftime("%H:%M") if value else ""

def journey_duration(departure: time, arrival: time) -> str:
    """``"<h>h <m>m"`` between two times of day, wrapping past midnight"""
    minutes = (arrival.hour * 60 + arrival.minute) - (departure.hour * 60 + departure.minute)
    if minutes < 0:
        minutes += 24 * 60
    return f"{minutes // 60}h {minutes % 60}m"

class TrainService:
    @staticmethod
    def list_trains(db: Session, search: Optional[TrainSearch] = None) -> List[Train]:
        """Trains matching origin/destination substrings and an exact travel date"""
        query = db.query(Train).options(joinedload(Train.fares))

        if search:
            if search.origin:
                query = query.filter(Train.source.ilike(f"%{search.origin}%"))

            if search.destination:
                query = query.filter(Train.destination.ilike(f"%{search.destination}%"))

            if search.travel_date:
                query = query.filter(Train.schedule == search.travel_date)

        return query.order_by(Train.schedule, Train.departure_time).all()

    @staticmethod
    def get_train(db: Session, train_id: int) -> Optional[Train]:
        return db.query(Train).options(
            joinedload(Train.fares)
        ).filter(Train.id == train_id).first()

    @staticmethod
    def get_train_or_raise(db: Session, train_id: int) -> Train:
        train = TrainService.get_train(db, train_id)
        if not train:
            raise TrainNotFoundError(train_id)
        return train

    @staticmethod
    def get_train_fares(db: Session, train_id: int) -> List[Fare]:
        return db.query(Fare).filter(Fare.train_id == train_id).order_by(Fare.fare_amount.desc()).all()

    @staticmethod
    def resolve_fare(db: Session, train_id: int, fare_class: str) -> Fare:
        """
        Fare row for the class on a train.

        When the train has no fare for that class, any fare of the train is
        used instead; only a train with no fares at all is an error.
        """
        fare = db.query(Fare).filter(
            Fare.train_id == train_id,
            Fare.fare_class == fare_class
        ).first()
        if fare:
            return fare

        fallback = db.query(Fare).filter(Fare.train_id == train_id).order_by(Fare.id).first()
        if not fallback:
            raise FareNotFoundError(train_id, fare_class)

        logger.warning(
            "No %s fare on train %s, falling back to %s fare %s",
            fare_class, train_id, fallback.fare_class, fallback.id
        )
        return fallback

    @staticmethod
    def base_price(train: Train) -> Decimal:
        """AC First Class fare, or the configured default when the train has none"""
        for fare in train.fares:
            if fare.fare_class == FareClass.AC_FIRST_CLASS.value:
                return Decimal(fare.fare_amount)
        return settings.DEFAULT_BASE_PRICE

    @staticmethod
    def quote_fare(db: Session, train_id: int, fare_class: FareClass, passengers: int) -> FareQuote:
        """Total price for a group: class fare per passenger plus the service fee"""
        train = TrainService.get_train_or_raise(db, train_id)
        fare_class = FareClass(fare_class)

        class_fare = next((f for f in train.fares if f.fare_class == fare_class.value), None)
        if class_fare is not None:
            per_passenger = Decimal(class_fare.fare_amount)
        else:
            per_passenger = round_fare(TrainService.base_price(train) * FARE_MULTIPLIERS[fare_class])

        return FareQuote(
            train_id=train.id,
            fare_class=fare_class,
            passengers=passengers,
            fare_per_passenger=per_passenger,
            service_fee=settings.SERVICE_FEE,
            total_amount=per_passenger * passengers + settings.SERVICE_FEE,
            from_class_fare=class_fare is not None
        )

    @staticmethod
    def add_train(db: Session, request: TrainCreate) -> Train:
        """Create a train with all seats available and one fare per class"""
        train = Train(
            train_name=request.name,
            train_number=request.number,
            source=request.origin,
            destination=request.destination,
            departure_time=request.departure_time,
            arrival_time=request.arrival_time,
            schedule=request.travel_date,
            total_seats=request.seats,
            available_seats=request.seats
        )

        try:
            db.add(train)
            db.flush()

            db.add_all([
                Fare(
                    train_id=train.id,
                    fare_class=fare_class.value,
                    fare_amount=round_fare(request.price * multiplier)
                )
                for fare_class, multiplier in FARE_MULTIPLIERS.items()
            ])
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Failed to add train %s", request.number)
            raise

        db.refresh(train)
        logger.info("Added train %s (%s) with %d seats", train.train_number, train.id, train.total_seats)
        return train

    @staticmethod
    def to_train_detail(train: Train) -> TrainDetail:
        return TrainDetail(
            id=train.id,
            name=train.train_name,
            number=train.train_number,
            origin=train.source,
            destination=train.destination,
            departure_time=format_time(train.departure_time),
            arrival_time=format_time(train.arrival_time),
            travel_date=train.schedule,
            price=TrainService.base_price(train),
            available_seats=train.available_seats,
            total_seats=train.total_seats,
            duration=journey_duration(train.departure_time, train.arrival_time),
            fares=[
                TrainFareSummary(id=fare.id, fare_class=fare.fare_class, amount=fare.fare_amount)
                for fare in train.fares
            ]
        )
