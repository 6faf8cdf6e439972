from enum import Enum
from sqlalchemy import (
    Column, Integer, BigInteger, String, DateTime, Date, Time, ForeignKey, Numeric,
    CheckConstraint, UniqueConstraint, Index, text
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from src.database import Base

# SQLite only autoincrements INTEGER PRIMARY KEY columns
BigIntPK = BigInteger().with_variant(Integer, "sqlite")

# ================================
# Status & Class Enumerations
# ================================
class BookingStatus(str, Enum):
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"

class PaymentStatus(str, Enum):
    SUCCESSFUL = "Successful"
    PENDING = "Pending"
    FAILED = "Failed"
    REFUNDED = "Refunded"

class CancellationStatus(str, Enum):
    PROCESSED = "Processed"
    PENDING = "Pending"

class PaymentMethod(str, Enum):
    CARD = "card"
    UPI = "upi"
    NETBANKING = "netbanking"

class FareClass(str, Enum):
    AC_FIRST_CLASS = "AC First Class"
    AC_2_TIER = "AC 2 Tier"
    AC_3_TIER = "AC 3 Tier"
    SLEEPER = "Sleeper"

# ================================
# Trains & Fares
# ================================
class Train(Base):
    __tablename__ = "trains"
    __table_args__ = (
        CheckConstraint("total_seats >= 0", name="ck_trains_total_seats_nonnegative"),
        CheckConstraint("available_seats >= 0", name="ck_trains_available_seats_nonnegative"),
        CheckConstraint("available_seats <= total_seats", name="ck_trains_available_lte_total"),
    )

    id = Column(BigIntPK, primary_key=True, index=True)
    train_name = Column(String(255), nullable=False)
    train_number = Column(String(20), nullable=False, index=True)
    source = Column(String(255), nullable=False, index=True)
    destination = Column(String(255), nullable=False, index=True)
    departure_time = Column(Time, nullable=False)
    arrival_time = Column(Time, nullable=False)
    schedule = Column(Date, nullable=False, index=True)
    total_seats = Column(Integer, nullable=False)
    available_seats = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    fares = relationship("Fare", back_populates="train", order_by="Fare.fare_amount.desc()")
    bookings = relationship("Booking", back_populates="train")

class Fare(Base):
    __tablename__ = "fares"
    __table_args__ = (
        UniqueConstraint("train_id", "fare_class", name="uq_fares_train_class"),
    )

    id = Column(BigIntPK, primary_key=True, index=True)
    train_id = Column(BigInteger, ForeignKey("trains.id"), nullable=False, index=True)
    fare_class = Column(String(50), nullable=False)
    fare_amount = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    train = relationship("Train", back_populates="fares")
    bookings = relationship("Booking", back_populates="fare")

# ================================
# Passengers & Bookings
# ================================
class Passenger(Base):
    __tablename__ = "passengers"

    id = Column(BigIntPK, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    age = Column(Integer, nullable=False)
    gender = Column(String(20), nullable=False)
    contact = Column(String(50), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    bookings = relationship("Booking", back_populates="passenger")

class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        # one confirmed holder per seat; cancelled rows keep their seat number for history
        Index(
            "uq_bookings_confirmed_seat",
            "train_id", "fare_class", "seat_no",
            unique=True,
            sqlite_where=text("booking_status = 'Confirmed'"),
            postgresql_where=text("booking_status = 'Confirmed'"),
        ),
    )

    pnr = Column(String(10), primary_key=True)
    passenger_id = Column(BigInteger, ForeignKey("passengers.id"), nullable=False, index=True)
    train_id = Column(BigInteger, ForeignKey("trains.id"), nullable=False, index=True)
    fare_id = Column(BigInteger, ForeignKey("fares.id"), nullable=False)
    fare_class = Column(String(50), nullable=False)
    seat_no = Column(String(10), nullable=False)
    booking_date = Column(DateTime(timezone=True), server_default=func.now())
    booking_status = Column(String(20), nullable=False, default=BookingStatus.CONFIRMED.value, index=True)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    passenger = relationship("Passenger", back_populates="bookings")
    train = relationship("Train", back_populates="bookings")
    fare = relationship("Fare", back_populates="bookings")
    payments = relationship("Payment", back_populates="booking")
    cancellations = relationship("Cancellation", back_populates="booking")

# ================================
# Payments, Cancellations & Revenue
# ================================
class Payment(Base):
    __tablename__ = "payments"

    id = Column(BigIntPK, primary_key=True, index=True)
    pnr = Column(String(10), ForeignKey("bookings.pnr"), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    payment_method = Column(String(20), nullable=False)
    payment_date = Column(DateTime(timezone=True), server_default=func.now())
    status = Column(String(20), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    booking = relationship("Booking", back_populates="payments")

class Cancellation(Base):
    __tablename__ = "cancellations"

    id = Column(BigIntPK, primary_key=True, index=True)
    pnr = Column(String(10), ForeignKey("bookings.pnr"), nullable=False, unique=True)
    refund_amount = Column(Numeric(10, 2), nullable=False)
    cancellation_date = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    status = Column(String(20), nullable=False, default=CancellationStatus.PROCESSED.value)

    # Relationships
    booking = relationship("Booking", back_populates="cancellations")

class RevenueLedgerRecord(Base):
    __tablename__ = "revenue_ledger"
    __table_args__ = (
        CheckConstraint("total_revenue >= 0", name="ck_revenue_ledger_nonnegative"),
    )

    id = Column(BigIntPK, primary_key=True)
    total_revenue = Column(Numeric(14, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
