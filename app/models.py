# app/models.py

from typing import Optional
from datetime import datetime

from sqlalchemy import Column, DateTime
from sqlmodel import SQLModel, Field


# pk keeps insertion order; id is the public identifier
class Service(SQLModel, table=True):
    pk: Optional[int] = Field(default=None, primary_key=True)
    id: str = Field(index=True, unique=True)

    name: str
    description: Optional[str] = None
    duration_minutes: Optional[int] = None


class Slot(SQLModel, table=True):
    pk: Optional[int] = Field(default=None, primary_key=True)
    id: str = Field(index=True, unique=True)

    service_id: str = Field(index=True)
    starts_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))  # UTC
    capacity: int


class Reservation(SQLModel, table=True):
    pk: Optional[int] = Field(default=None, primary_key=True)
    id: str = Field(index=True, unique=True)

    slot_id: str = Field(index=True)
    user_email: str = Field(index=True)
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))  # UTC
