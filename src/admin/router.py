from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List

from src.database import get_db
from src.admin.schemas import (
    RevenueSummary, PaymentStatusUpdate, DashboardData, QueryLogResponse
)
from src.admin.admin_service import AdminManagementService
from src.bookings.cancellation_service import CancellationService
from src.bookings.schemas import CancellationDetail, PaymentDetail
from src.realtime.query_log import query_log
from src.realtime.websocket import websocket_endpoint
from src.trains.schemas import TrainCreate, TrainCreated, Fare
from src.trains.service import TrainService

router = APIRouter()

# Train Management
@router.post("/trains", response_model=TrainCreated, status_code=status.HTTP_201_CREATED)
def add_train(
    request: TrainCreate,
    db: Session = Depends(get_db)
):
    """Add a train with fares for every class derived from the first class price"""

    try:
        train = TrainService.add_train(db, request)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to add train: {str(e)}"
        )

    return TrainCreated(
        id=train.id,
        train_number=train.train_number,
        fares=[Fare.model_validate(fare) for fare in train.fares],
        created_at=train.created_at
    )

# Revenue & Payments
@router.get("/revenue", response_model=RevenueSummary)
def get_revenue(db: Session = Depends(get_db)):
    """Total revenue collected, net of reversals and refunds"""

    admin_service = AdminManagementService(db)
    return RevenueSummary(total_revenue=admin_service.get_revenue())

@router.get("/payments", response_model=List[PaymentDetail])
def list_payments(db: Session = Depends(get_db)):
    """List all payments, newest first"""

    admin_service = AdminManagementService(db)
    return admin_service.list_payments()

@router.patch("/payments/{payment_id}", response_model=PaymentDetail)
def update_payment_status(
    payment_id: int,
    update: PaymentStatusUpdate,
    db: Session = Depends(get_db)
):
    """Change a payment's status; revenue follows the status change"""

    admin_service = AdminManagementService(db)
    return admin_service.update_payment_status(payment_id, update.status)

# Cancellations
@router.get("/cancellations", response_model=List[CancellationDetail])
def list_cancellations(db: Session = Depends(get_db)):
    """List all cancellations, newest first"""

    cancellation_service = CancellationService(db)
    return cancellation_service.list_cancellations()

# Dashboard
@router.get("/dashboard", response_model=DashboardData)
def get_dashboard(db: Session = Depends(get_db)):
    """Booking, revenue and occupancy figures for the admin overview"""

    admin_service = AdminManagementService(db)
    return admin_service.get_dashboard()

# SQL Query Log
@router.get("/query-log", response_model=QueryLogResponse)
def get_query_log(
    limit: int = Query(100, ge=1, le=100, description="Maximum number of queries")
):
    """Most recent SQL statements, newest first"""

    queries = query_log.entries(limit)
    return QueryLogResponse(queries=queries, total=len(queries))

@router.delete("/query-log", status_code=status.HTTP_204_NO_CONTENT)
def clear_query_log():
    """Clear the SQL query log"""

    query_log.clear()

# Realtime change feed
router.add_api_websocket_route("/changes", websocket_endpoint)
