# app/routers/admin_routes.py

from typing import Optional

from fastapi import APIRouter, Depends

from app.booking import BookingEngine
from app.deps import get_engine, require_privileged
from app.schemas import Service, ServiceCreate, Slot, SlotCreate

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_privileged)],
)


@router.post("/services", response_model=Service, response_model_exclude_none=True, status_code=201)
def create_service(
    body: Optional[ServiceCreate] = None,
    engine: BookingEngine = Depends(get_engine),
):
    body = body or ServiceCreate()
    return engine.create_service(body.name, body.description, body.duration)


@router.post("/services/{service_id}/slots", response_model=Slot, status_code=201)
def add_slot(
    service_id: str,
    body: Optional[SlotCreate] = None,
    engine: BookingEngine = Depends(get_engine),
):
    body = body or SlotCreate()
    return engine.add_slot(service_id, body.datetime or "", body.capacity)
