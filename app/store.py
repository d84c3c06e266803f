# app/store.py

import json
import logging
import os
import secrets
import threading
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from app.errors import NotFound, StorageError
from app.schemas import Reservation, Service, Slot

logger = logging.getLogger(__name__)

SERVICES_FILE = "services.json"
SLOTS_FILE = "slots.json"
RESERVATIONS_FILE = "reservations.json"


def new_id(prefix: str) -> str:
    # <prefix>_<nanosecond timestamp><random hex>
    return f"{prefix}_{time.time_ns()}{secrets.token_hex(4)}"


class Store(ABC):
    """Persistence contract the booking engine is written against.

    Implementations keep services, slots and reservations, assign ids and
    raise ``StorageError`` on I/O failure. They enforce no booking rules.
    """

    @abstractmethod
    def list_services(self) -> List[Service]: ...

    @abstractmethod
    def create_service(self, service: Service) -> Service: ...

    @abstractmethod
    def add_slot(self, slot: Slot) -> Slot: ...

    @abstractmethod
    def list_slots_by_service(self, service_id: str) -> List[Slot]: ...

    @abstractmethod
    def get_slot(self, slot_id: str) -> Slot: ...

    @abstractmethod
    def create_reservation(self, reservation: Reservation) -> Reservation: ...

    @abstractmethod
    def list_reservations_by_email(self, email: str) -> List[Reservation]: ...

    @abstractmethod
    def list_reservations_by_slot(self, slot_id: str) -> List[Reservation]: ...

    @abstractmethod
    def get_reservation(self, reservation_id: str) -> Reservation: ...

    @abstractmethod
    def delete_reservation(self, reservation_id: str) -> None: ...


class MemoryStore(Store):
    """Keeps the three collections in memory behind one lock.

    Subclasses hook ``_load`` and ``_persist`` to make the data durable.
    Every mutation is load -> mutate -> persist inside the lock; a failed
    persist restores the collections as they were before the call.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._loaded = False
        self._services: List[Service] = []
        self._slots: List[Slot] = []
        self._reservations: List[Reservation] = []

    def _load(self) -> None:
        pass

    def _persist(self) -> None:
        pass

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self._load()
            self._loaded = True

    @contextmanager
    def _reading(self) -> Iterator[None]:
        with self._lock:
            self._ensure_loaded()
            yield

    @contextmanager
    def _mutating(self) -> Iterator[None]:
        with self._lock:
            self._ensure_loaded()
            before = (list(self._services), list(self._slots), list(self._reservations))
            yield
            try:
                self._persist()
            except StorageError:
                self._services, self._slots, self._reservations = before
                raise

    # Services

    def list_services(self) -> List[Service]:
        with self._reading():
            return [s.model_copy() for s in self._services]

    def create_service(self, service: Service) -> Service:
        service = service.model_copy()
        if not service.id:
            service.id = new_id("svc")
        with self._mutating():
            self._services.append(service)
        return service.model_copy()

    # Slots

    def add_slot(self, slot: Slot) -> Slot:
        slot = slot.model_copy()
        if not slot.id:
            slot.id = new_id("slt")
        with self._mutating():
            self._slots.append(slot)
        return slot.model_copy()

    def list_slots_by_service(self, service_id: str) -> List[Slot]:
        with self._reading():
            return [s.model_copy() for s in self._slots if s.service_id == service_id]

    def get_slot(self, slot_id: str) -> Slot:
        with self._reading():
            for slot in self._slots:
                if slot.id == slot_id:
                    return slot.model_copy()
        raise NotFound("slot not found")

    # Reservations

    def create_reservation(self, reservation: Reservation) -> Reservation:
        reservation = reservation.model_copy()
        if not reservation.id:
            reservation.id = new_id("res")
        with self._mutating():
            self._reservations.append(reservation)
        return reservation.model_copy()

    def list_reservations_by_email(self, email: str) -> List[Reservation]:
        with self._reading():
            return [r.model_copy() for r in self._reservations if r.user_email == email]

    def list_reservations_by_slot(self, slot_id: str) -> List[Reservation]:
        with self._reading():
            return [r.model_copy() for r in self._reservations if r.slot_id == slot_id]

    def get_reservation(self, reservation_id: str) -> Reservation:
        with self._reading():
            for reservation in self._reservations:
                if reservation.id == reservation_id:
                    return reservation.model_copy()
        raise NotFound("reservation not found")

    def delete_reservation(self, reservation_id: str) -> None:
        with self._mutating():
            for i, reservation in enumerate(self._reservations):
                if reservation.id == reservation_id:
                    del self._reservations[i]
                    break
            else:
                raise NotFound("reservation not found")


_services_adapter = TypeAdapter(List[Service])
_slots_adapter = TypeAdapter(List[Slot])
_reservations_adapter = TypeAdapter(List[Reservation])


class JSONStore(MemoryStore):
    """MemoryStore backed by one JSON array file per collection under ``root``.

    Missing files are seeded with ``[]`` on first use. Each mutation writes
    all three files to temporaries first and only then moves them into place.
    """

    def __init__(self, root):
        super().__init__()
        self.root = Path(root)

    def _path(self, name: str) -> Path:
        return self.root / name

    def _load(self) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            for name in (SERVICES_FILE, SLOTS_FILE, RESERVATIONS_FILE):
                path = self._path(name)
                if not path.exists():
                    path.write_text("[]", encoding="utf-8")

            self._services = self._read(SERVICES_FILE, _services_adapter)
            self._slots = self._read(SLOTS_FILE, _slots_adapter)
            self._reservations = self._read(RESERVATIONS_FILE, _reservations_adapter)
        except (OSError, json.JSONDecodeError, PydanticValidationError) as exc:
            logger.error("Failed to load store from %s: %s", self.root, exc)
            raise StorageError(f"could not load data from {self.root}") from exc

        logger.debug(
            "Loaded %s services, %s slots, %s reservations from %s",
            len(self._services), len(self._slots), len(self._reservations), self.root,
        )

    def _read(self, name: str, adapter: TypeAdapter) -> list:
        raw = self._path(name).read_text(encoding="utf-8")
        if not raw.strip():
            return []
        return adapter.validate_python(json.loads(raw))

    def _persist(self) -> None:
        # every .tmp file is complete before any live file is replaced
        collections = (
            (SERVICES_FILE, self._services),
            (SLOTS_FILE, self._slots),
            (RESERVATIONS_FILE, self._reservations),
        )
        written = []
        try:
            for name, items in collections:
                written.append((self._write_tmp(name, items), self._path(name)))
            for tmp, path in written:
                os.replace(tmp, path)
        except OSError as exc:
            for tmp, _ in written:
                tmp.unlink(missing_ok=True)
            logger.error("Failed to save store to %s: %s", self.root, exc)
            raise StorageError(f"could not save data to {self.root}") from exc
        logger.debug("Store saved to %s", self.root)

    def _write_tmp(self, name: str, items) -> Path:
        path = self._path(name)
        payload = [item.model_dump(mode="json", by_alias=True, exclude_none=True) for item in items]
        tmp = path.with_name(path.name + ".tmp")
        with tmp.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2, ensure_ascii=False)
        return tmp
