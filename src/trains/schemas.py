from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import datetime, date, time
from decimal import Decimal

from src.models import FareClass

class Fare(BaseModel):
    id: int
    train_id: int
    fare_class: str
    fare_amount: Decimal

    class Config:
        from_attributes = True

class TrainFareSummary(BaseModel):
    id: int
    fare_class: str
    amount: Decimal

class TrainDetail(BaseModel):
    """Train as presented to the booking screens"""
    id: int
    name: str
    number: str
    origin: str
    destination: str
    departure_time: str  # HH:MM
    arrival_time: str  # HH:MM
    travel_date: date
    price: Decimal
    available_seats: int
    total_seats: int
    duration: str
    fares: List[TrainFareSummary] = []

class TrainSearch(BaseModel):
    origin: Optional[str] = None
    destination: Optional[str] = None
    travel_date: Optional[date] = None

class TrainCreate(BaseModel):
    """Admin request to add a train; fares for every class derive from ``price``"""
    name: str = Field(..., min_length=1, max_length=255)
    number: str = Field(..., min_length=1, max_length=20)
    origin: str = Field(..., min_length=1, max_length=255)
    destination: str = Field(..., min_length=1, max_length=255)
    departure_time: time
    arrival_time: time
    travel_date: date
    price: Decimal = Field(..., gt=0, description="AC First Class fare")
    seats: int = Field(..., gt=0, le=5000, description="Total and initially available seats")

    @validator('destination')
    def validate_destination(cls, v, values):
        if 'origin' in values and values['origin'].strip().lower() == v.strip().lower():
            raise ValueError('Origin and destination must differ')
        return v

class TrainCreated(BaseModel):
    id: int
    train_number: str
    fares: List[Fare]
    created_at: Optional[datetime] = None

class FareQuote(BaseModel):
    train_id: int
    fare_class: FareClass
    passengers: int
    fare_per_passenger: Decimal
    service_fee: Decimal
    total_amount: Decimal
    from_class_fare: bool = True  # False when derived from the base price multiplier
