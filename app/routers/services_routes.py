# app/routers/services_routes.py

from typing import List

from fastapi import APIRouter, Depends

from app.booking import BookingEngine
from app.deps import get_engine
from app.schemas import Service, Slot

router = APIRouter(
    prefix="/services",
    tags=["services"],
)


@router.get("", response_model=List[Service], response_model_exclude_none=True)
def list_services(engine: BookingEngine = Depends(get_engine)):
    return engine.list_services()


@router.get("/{service_id}/slots", response_model=List[Slot])
def list_slots(service_id: str, engine: BookingEngine = Depends(get_engine)):
    return engine.list_slots_by_service(service_id)
