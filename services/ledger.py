"""Booking status changes, listing and administrative purge.

Bookings are only ever created by services.reservations.reserve.
"""
from datetime import datetime

from sqlalchemy import select, update

from models import db
from models.booking import Booking, BOOKING_STATUSES, CONFIRMED, COMPLETED, CANCELLED
from services.errors import (
    BookingNotFound,
    InvalidInput,
    InvalidTransition,
    storage_errors,
)
from utils.audit import log_event

# COMPLETED and CANCELLED are terminal; re-entering the same state is a no-op
ALLOWED_TRANSITIONS = {
    CONFIRMED: {CONFIRMED, COMPLETED, CANCELLED},
    COMPLETED: {COMPLETED},
    CANCELLED: {CANCELLED},
}


def _normalize_status(value) -> str:
    status = value.strip().upper() if isinstance(value, str) else ""
    if status not in BOOKING_STATUSES:
        raise InvalidInput(f"Unknown booking status: {value!r}")
    return status


def get_booking(booking_id: int) -> Booking:
    with storage_errors("get_booking"):
        booking = db.session.get(Booking, booking_id)
    if booking is None:
        raise BookingNotFound(booking_id)
    return booking


def list_bookings(trip_id=None, status=None):
    """Newest first, optionally narrowed to one trip and/or one status."""
    q = select(Booking)
    if trip_id is not None:
        q = q.where(Booking.trip_id == trip_id)
    if status:
        q = q.where(Booking.status == _normalize_status(status))

    with storage_errors("list_bookings"):
        return db.session.scalars(q.order_by(Booking.id.desc())).all()


def set_status(booking_id: int, new_status: str, actor=None) -> Booking:
    """
    Move a booking to new_status. Allowed: CONFIRMED -> COMPLETED or
    CANCELLED, and any status to itself (no write). Moving to CANCELLED frees
    the seat for new reservations on the trip.

    The UPDATE only applies if the status is still the one we validated
    against; a concurrent change makes it raise InvalidTransition.
    """
    new_status = _normalize_status(new_status)
    booking = get_booking(booking_id)
    current = booking.status

    if new_status not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransition(booking_id, current, new_status)
    if new_status == current:
        return booking

    values = {"status": new_status}
    if new_status == CANCELLED:
        values["cancelled_at"] = datetime.utcnow()

    with storage_errors("set_status"):
        result = db.session.execute(
            update(Booking)
            .where(Booking.id == booking_id, Booking.status == current)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.session.rollback()
            latest = get_booking(booking_id)
            raise InvalidTransition(booking_id, latest.status, new_status)

        log_event(
            "BOOKING_STATUS_CHANGE",
            actor=actor,
            entity="booking",
            entity_id=booking_id,
            metadata={"from": current, "to": new_status},
        )
        db.session.commit()

    # commit expired the instance; the next attribute access reloads the new status
    return booking


def delete_booking(booking_id: int, actor=None) -> None:
    """Administrative purge. Removes the row outright, freeing the seat if it was live."""
    booking = get_booking(booking_id)
    with storage_errors("delete_booking"):
        metadata = {"trip_id": booking.trip_id, "seat_no": booking.seat_no, "status": booking.status}
        db.session.delete(booking)
        log_event("BOOKING_DELETE", actor=actor, entity="booking", entity_id=booking_id, metadata=metadata)
        db.session.commit()
