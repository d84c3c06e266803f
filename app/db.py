# app/db.py

import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, List

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, Session, create_engine, select

from app.errors import NotFound, StorageError
from app.models import (
    Reservation as ReservationModel,
    Service as ServiceModel,
    Slot as SlotModel,
)
from app.schemas import Reservation, Service, Slot
from app.store import Store, new_id

logger = logging.getLogger(__name__)


def create_db_engine(database_url: str):
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False  # required for SQLite + FastAPI
    return create_engine(database_url, echo=False, connect_args=connect_args)


def _to_db(value: datetime) -> datetime:
    return value.astimezone(timezone.utc)


def _from_db(value: datetime) -> datetime:
    # SQLite hands back naive values holding the UTC wall time
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _service(row: ServiceModel) -> Service:
    return Service(
        id=row.id,
        name=row.name,
        description=row.description,
        duration_minutes=row.duration_minutes,
    )


def _slot(row: SlotModel) -> Slot:
    return Slot(
        id=row.id,
        service_id=row.service_id,
        datetime=_from_db(row.starts_at),
        capacity=row.capacity,
    )


def _reservation(row: ReservationModel) -> Reservation:
    return Reservation(
        id=row.id,
        slot_id=row.slot_id,
        user_email=row.user_email,
        created_at=_from_db(row.created_at),
    )


class SQLStore(Store):
    """Store backed by SQLModel tables; one session per call."""

    def __init__(self, engine):
        self.engine = engine
        self._lock = threading.Lock()
        self._ready = False

    @contextmanager
    def _session(self) -> Iterator[Session]:
        with self._lock:
            try:
                if not self._ready:
                    SQLModel.metadata.create_all(self.engine)
                    self._ready = True
                with Session(self.engine) as session:
                    yield session
            except SQLAlchemyError as exc:
                logger.error("Database error: %s", exc)
                raise StorageError("database error") from exc

    def _add(self, row):
        with self._session() as session:
            session.add(row)
            session.commit()
            session.refresh(row)
            return row

    # Services

    def list_services(self) -> List[Service]:
        with self._session() as session:
            rows = session.exec(select(ServiceModel).order_by(ServiceModel.pk)).all()
            return [_service(row) for row in rows]

    def create_service(self, service: Service) -> Service:
        row = ServiceModel(
            id=service.id or new_id("svc"),
            name=service.name,
            description=service.description,
            duration_minutes=service.duration_minutes,
        )
        return _service(self._add(row))

    # Slots

    def add_slot(self, slot: Slot) -> Slot:
        row = SlotModel(
            id=slot.id or new_id("slt"),
            service_id=slot.service_id,
            starts_at=_to_db(slot.datetime),
            capacity=slot.capacity,
        )
        return _slot(self._add(row))

    def list_slots_by_service(self, service_id: str) -> List[Slot]:
        with self._session() as session:
            rows = session.exec(
                select(SlotModel)
                .where(SlotModel.service_id == service_id)
                .order_by(SlotModel.pk)
            ).all()
            return [_slot(row) for row in rows]

    def get_slot(self, slot_id: str) -> Slot:
        with self._session() as session:
            row = session.exec(select(SlotModel).where(SlotModel.id == slot_id)).first()
            if row is None:
                raise NotFound("slot not found")
            return _slot(row)

    # Reservations

    def create_reservation(self, reservation: Reservation) -> Reservation:
        row = ReservationModel(
            id=reservation.id or new_id("res"),
            slot_id=reservation.slot_id,
            user_email=reservation.user_email,
            created_at=_to_db(reservation.created_at),
        )
        return _reservation(self._add(row))

    def list_reservations_by_email(self, email: str) -> List[Reservation]:
        with self._session() as session:
            rows = session.exec(
                select(ReservationModel)
                .where(ReservationModel.user_email == email)
                .order_by(ReservationModel.pk)
            ).all()
            return [_reservation(row) for row in rows]

    def list_reservations_by_slot(self, slot_id: str) -> List[Reservation]:
        with self._session() as session:
            rows = session.exec(
                select(ReservationModel)
                .where(ReservationModel.slot_id == slot_id)
                .order_by(ReservationModel.pk)
            ).all()
            return [_reservation(row) for row in rows]

    def get_reservation(self, reservation_id: str) -> Reservation:
        with self._session() as session:
            row = session.exec(
                select(ReservationModel).where(ReservationModel.id == reservation_id)
            ).first()
            if row is None:
                raise NotFound("reservation not found")
            return _reservation(row)

    def delete_reservation(self, reservation_id: str) -> None:
        with self._session() as session:
            row = session.exec(
                select(ReservationModel).where(ReservationModel.id == reservation_id)
            ).first()
            if row is None:
                raise NotFound("reservation not found")
            session.delete(row)
            session.commit()
