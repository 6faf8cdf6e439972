from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from src.database import get_db
from src.bookings.schemas import (
    BookingRequest, BookingCreated, BookingDetail, BookingUpdate,
    BookingCancellationRequest, CancellationResult, CancellationDetail
)
from src.bookings.booking_service import BookingService
from src.bookings.cancellation_service import CancellationService

router = APIRouter()

# Booking Management Endpoints
@router.post("/", response_model=BookingCreated, status_code=status.HTTP_201_CREATED)
def create_booking(
    request: BookingRequest,
    db: Session = Depends(get_db)
):
    """Book seats for every passenger and take the group payment"""

    booking_service = BookingService(db)

    try:
        pnr = booking_service.create_booking(request)
        return BookingCreated(pnr=pnr)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

@router.get("/", response_model=List[BookingDetail])
def list_bookings(db: Session = Depends(get_db)):
    """List all bookings, newest first"""

    booking_service = BookingService(db)
    return booking_service.list_bookings()

@router.get("/{pnr}", response_model=BookingDetail)
def get_booking(
    pnr: str,
    db: Session = Depends(get_db)
):
    """Get booking details by PNR"""

    booking_service = BookingService(db)
    booking = booking_service.get_booking(pnr)

    if not booking:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Booking not found"
        )

    return booking

@router.patch("/{pnr}", response_model=BookingDetail)
def update_booking(
    pnr: str,
    update: BookingUpdate,
    db: Session = Depends(get_db)
):
    """Change a booking's seat; cancelled bookings cannot be reinstated"""

    booking_service = BookingService(db)

    try:
        return booking_service.update_booking(pnr, update)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

@router.post("/{pnr}/cancel", response_model=CancellationResult)
def cancel_booking(
    pnr: str,
    cancellation: BookingCancellationRequest,
    db: Session = Depends(get_db)
):
    """Cancel a booking and refund the amount paid less the cancellation fee"""

    cancellation_service = CancellationService(db)

    try:
        record = cancellation_service.cancel_booking(
            pnr,
            amount_paid=cancellation.amount_paid,
            reason=cancellation.cancellation_reason
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    return CancellationResult(
        message=f"Booking cancelled successfully. Refund of {record.refund_amount:.2f} will be processed.",
        pnr=pnr,
        refund_amount=record.refund_amount,
        cancellation=CancellationDetail.model_validate(record)
    )
