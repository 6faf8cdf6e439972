from pydantic import BaseModel, Field, validator
from typing import List, Optional, Literal
from datetime import datetime, date, time
from decimal import Decimal

from src.config import settings
from src.models import BookingStatus, PaymentStatus, PaymentMethod, FareClass, CancellationStatus

# Passenger Information
class PassengerInfo(BaseModel):
    """Individual passenger on a booking"""
    name: str = Field(..., min_length=1, max_length=255)
    age: int = Field(..., gt=0, le=120)
    gender: Literal["male", "female", "other"] = "male"
    contact: str = Field(..., description="Contact phone number")

    @validator('name')
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Passenger name is required')
        return v.strip()

    @validator('contact')
    def validate_contact(cls, v):
        v = v.strip()
        if len(v) < 10:
            raise ValueError('Please enter a valid phone number')
        return v

# Booking Request Models
class BookingRequest(BaseModel):
    """Request to book seats on a train for a group of passengers"""
    passengers: List[PassengerInfo]
    train_id: int
    fare_class: FareClass = FareClass.AC_FIRST_CLASS
    payment_method: PaymentMethod = PaymentMethod.CARD
    total_amount: Optional[Decimal] = Field(
        None, gt=0, description="Amount charged for the whole group; quoted when omitted"
    )

    @validator('passengers')
    def validate_passengers(cls, v):
        if not v or len(v) == 0:
            raise ValueError('At least one passenger is required')
        if len(v) > settings.MAX_PASSENGERS_PER_BOOKING:
            raise ValueError(f'Maximum {settings.MAX_PASSENGERS_PER_BOOKING} passengers per booking')
        return v

class BookingCreated(BaseModel):
    pnr: str
    message: str = "Booking successful! Your tickets have been reserved."

class BookingUpdate(BaseModel):
    """Admin changes to a single booking row"""
    seat_no: Optional[str] = Field(None, min_length=2, max_length=10)
    booking_status: Optional[BookingStatus] = None

class BookingCancellationRequest(BaseModel):
    """Request to cancel a booking"""
    amount_paid: Optional[Decimal] = Field(
        None, gt=0, description="Amount paid for this booking; defaults to its fare"
    )
    cancellation_reason: Optional[str] = None

# Booking Response Models
class PassengerSummary(BaseModel):
    id: int
    name: str
    age: int
    gender: str
    contact: str

    class Config:
        from_attributes = True

class TrainSummary(BaseModel):
    id: int
    train_name: str
    train_number: str
    source: str
    destination: str
    departure_time: time
    arrival_time: time
    schedule: date

    class Config:
        from_attributes = True

class BookingDetail(BaseModel):
    pnr: str
    train_id: int
    passenger_id: int
    fare_id: int
    fare_class: str
    seat_no: str
    booking_date: Optional[datetime] = None
    booking_status: BookingStatus
    payment_status: PaymentStatus
    passenger: Optional[PassengerSummary] = None
    train: Optional[TrainSummary] = None

    class Config:
        from_attributes = True

class PaymentDetail(BaseModel):
    id: int
    pnr: str
    amount: Decimal
    payment_method: str
    payment_date: Optional[datetime] = None
    status: PaymentStatus

    class Config:
        from_attributes = True

class CancellationDetail(BaseModel):
    id: int
    pnr: str
    refund_amount: Decimal
    cancellation_date: Optional[datetime] = None
    status: CancellationStatus

    class Config:
        from_attributes = True

class CancellationResult(BaseModel):
    message: str
    pnr: str
    refund_amount: Decimal
    cancellation: CancellationDetail
