from pydantic import BaseModel
from typing import Dict, List
from datetime import datetime
from decimal import Decimal

from src.models import PaymentStatus

class RevenueSummary(BaseModel):
    total_revenue: Decimal
    currency: str = "INR"

class PaymentStatusUpdate(BaseModel):
    status: PaymentStatus

class TrainOccupancy(BaseModel):
    train_id: int
    train_number: str
    train_name: str
    total_seats: int
    available_seats: int
    booked_seats: int
    occupancy_percentage: float

class DashboardData(BaseModel):
    """Figures for the admin overview tab"""
    total_revenue: Decimal
    total_bookings: int
    confirmed_bookings: int
    cancelled_bookings: int
    total_refunded: Decimal
    bookings_by_class: Dict[str, int]
    trains: List[TrainOccupancy]
    generated_at: datetime

class QueryLogEntry(BaseModel):
    id: str
    sql: str
    operation: str
    timestamp: str

class QueryLogResponse(BaseModel):
    queries: List[QueryLogEntry]
    total: int
