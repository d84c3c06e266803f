# app/schemas.py

from datetime import datetime as DateTime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Entity(BaseModel):
    # snake_case in Python, camelCase on the wire and on disk
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Service(Entity):
    id: str = ""
    name: str
    description: Optional[str] = None
    duration_minutes: Optional[int] = None


class Slot(Entity):
    id: str = ""
    service_id: str
    datetime: DateTime
    capacity: int = 1


class Reservation(Entity):
    id: str = ""
    slot_id: str
    user_email: str
    created_at: DateTime


# Request bodies. Missing or null fields fall back to the engine defaults.

class LoginRequest(BaseModel):
    email: Optional[str] = None


class ServiceCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    duration: Optional[int] = None


class SlotCreate(BaseModel):
    datetime: Optional[str] = None
    capacity: Optional[int] = None


class ReservationCreate(BaseModel):
    slot_id: Optional[str] = Field(default=None, alias="slotId")
