# app/booking.py

import logging
import re
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from app.errors import Conflict, Forbidden, NotFound, ValidationError
from app.schemas import Reservation, Service, Slot
from app.store import Store

logger = logging.getLogger(__name__)

# date, time and offset are all mandatory; fractions up to nanoseconds
RFC3339 = re.compile(
    r"(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(\.\d{1,9})?(Z|[+-]\d{2}:\d{2})"
)


def parse_rfc3339(value: str) -> datetime:
    match = RFC3339.fullmatch(value) if value else None
    if match is None:
        raise ValidationError("invalid datetime (use RFC3339)")

    base, fraction, offset = match.groups()
    if offset == "Z":
        offset = "+00:00"
    # datetime holds microseconds, extra digits are dropped
    fraction = (fraction or "")[:7]
    try:
        return datetime.fromisoformat(base + fraction + offset)
    except ValueError:
        raise ValidationError("invalid datetime (use RFC3339)") from None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def admin_policy(*emails: str) -> Callable[[str], bool]:
    """Privilege check that accepts exactly the given emails."""
    allowed = frozenset(e for e in emails if e)

    def is_privileged(email: str) -> bool:
        return email in allowed

    return is_privileged


def nobody(email: str) -> bool:
    return False


class SlotLocks:
    """One lock per slot id, created on demand.

    Callers only ask for ids of slots that exist, so the map is bounded by
    the number of slots.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def __call__(self, slot_id: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(slot_id, threading.Lock())

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


class BookingEngine:
    """Booking rules on top of a Store.

    ``is_privileged`` decides who may create services and slots. ``now`` is
    the clock used for ``createdAt`` and the cancellation window.
    """

    def __init__(
        self,
        store: Store,
        *,
        is_privileged: Optional[Callable[[str], bool]] = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.is_privileged = is_privileged or nobody
        self.now = now or utcnow
        self._slot_locks = SlotLocks()

    def ensure_privileged(self, email: str) -> None:
        if not self.is_privileged(email):
            raise Forbidden("admin only")

    # Admin

    def create_service(
        self,
        name: Optional[str],
        description: Optional[str] = None,
        duration_minutes: Optional[int] = None,
    ) -> Service:
        if not name or not name.strip():
            raise ValidationError("name required")

        service = self.store.create_service(
            Service(name=name, description=description, duration_minutes=duration_minutes)
        )
        logger.info("Created service %s (%s)", service.id, service.name)
        return service

    def add_slot(self, service_id: str, iso_datetime: str, capacity: Optional[int] = None) -> Slot:
        starts_at = parse_rfc3339(iso_datetime)
        if not capacity or capacity <= 0:
            capacity = 1

        # service_id is not checked against existing services
        slot = self.store.add_slot(
            Slot(service_id=service_id, datetime=starts_at, capacity=capacity)
        )
        logger.info("Added slot %s for service %s at %s", slot.id, service_id, starts_at.isoformat())
        return slot

    # Public

    def list_services(self) -> List[Service]:
        return self.store.list_services()

    def list_slots_by_service(self, service_id: str) -> List[Slot]:
        return self.store.list_slots_by_service(service_id)

    def book(self, slot_id: str, user_email: str) -> Reservation:
        if not user_email:
            raise ValidationError("missing user email")

        # slots are immutable; the lock only has to cover the reservations
        slot = self.store.get_slot(slot_id)

        with self._slot_locks(slot_id):
            # 1) one reservation per user per slot
            existing = self.store.list_reservations_by_slot(slot_id)
            for r in existing:
                if r.user_email == user_email:
                    logger.debug("Rejected booking of %s by %s: duplicate", slot_id, user_email)
                    raise Conflict("already booked this slot")

            # 2) capacity
            if len(existing) >= slot.capacity:
                logger.debug("Rejected booking of %s by %s: full", slot_id, user_email)
                raise Conflict("slot is full")

            reservation = self.store.create_reservation(
                Reservation(slot_id=slot_id, user_email=user_email, created_at=self.now())
            )

        logger.info("Booked %s on slot %s for %s", reservation.id, slot_id, user_email)
        return reservation

    def my_reservations(self, user_email: str) -> List[Reservation]:
        return self.store.list_reservations_by_email(user_email)

    def cancel(self, reservation_id: str, user_email: str) -> None:
        reservation = self.store.get_reservation(reservation_id)

        if reservation.user_email != user_email:
            raise Forbidden("not your reservation")

        try:
            slot = self.store.get_slot(reservation.slot_id)
        except NotFound:
            # orphaned reservation: nothing to check the window against
            self.store.delete_reservation(reservation_id)
            logger.info("Cancelled %s for %s (slot %s missing)", reservation_id, user_email, reservation.slot_id)
            return

        with self._slot_locks(slot.id):
            if not slot.datetime > self.now():
                raise ValidationError("cannot cancel past reservations")

            self.store.delete_reservation(reservation_id)

        logger.info("Cancelled %s for %s", reservation_id, user_email)
