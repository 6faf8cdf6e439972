from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from src.database import get_db
from src.exceptions import TrainNotFoundError
from src.models import FareClass
from src.trains.schemas import TrainDetail, TrainSearch, Fare, FareQuote
from src.trains.service import TrainService

router = APIRouter()

@router.get("/", response_model=List[TrainDetail])
def list_trains(
    origin: Optional[str] = Query(None, description="Origin station (partial match)"),
    destination: Optional[str] = Query(None, description="Destination station (partial match)"),
    travel_date: Optional[date] = Query(None, alias="date", description="Travel date"),
    db: Session = Depends(get_db)
):
    """Search trains by origin, destination and travel date"""
    search = TrainSearch(origin=origin, destination=destination, travel_date=travel_date)
    trains = TrainService.list_trains(db, search)
    return [TrainService.to_train_detail(train) for train in trains]

@router.get("/{train_id}", response_model=TrainDetail)
def get_train(train_id: int, db: Session = Depends(get_db)):
    """Get train details with fares"""
    train = TrainService.get_train(db, train_id)
    if not train:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Train not found"
        )

    return TrainService.to_train_detail(train)

@router.get("/{train_id}/fares", response_model=List[Fare])
def get_train_fares(train_id: int, db: Session = Depends(get_db)):
    """Get the fare for every class on a train"""
    if not TrainService.get_train(db, train_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Train not found"
        )

    return TrainService.get_train_fares(db, train_id)

@router.get("/{train_id}/quote", response_model=FareQuote)
def quote_fare(
    train_id: int,
    fare_class: FareClass = Query(FareClass.AC_FIRST_CLASS, description="Travel class"),
    passengers: int = Query(1, ge=1, le=6, description="Number of passengers"),
    db: Session = Depends(get_db)
):
    """Price a booking before it is made"""
    try:
        return TrainService.quote_fare(db, train_id, fare_class, passengers)
    except TrainNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
