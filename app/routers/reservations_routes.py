# app/routers/reservations_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends

from app.auth import get_current_email
from app.booking import BookingEngine
from app.deps import get_engine
from app.schemas import Reservation, ReservationCreate

router = APIRouter(
    prefix="/reservations",
    tags=["reservations"],
)


@router.post("", response_model=Reservation, status_code=201)
def book(
    body: Optional[ReservationCreate] = None,
    email: str = Depends(get_current_email),
    engine: BookingEngine = Depends(get_engine),
):
    body = body or ReservationCreate()
    return engine.book(body.slot_id or "", email)


@router.get("/me", response_model=List[Reservation])
def my_reservations(
    email: str = Depends(get_current_email),
    engine: BookingEngine = Depends(get_engine),
):
    return engine.my_reservations(email)


@router.delete("/{reservation_id}")
def cancel(
    reservation_id: str,
    email: str = Depends(get_current_email),
    engine: BookingEngine = Depends(get_engine),
):
    engine.cancel(reservation_id, email)
    return {"status": "deleted"}
