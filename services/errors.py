from contextlib import contextmanager

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from models import db


class BookingError(Exception):
    """Base class for every error raised by the booking core."""


class NotFound(BookingError):
    entity = "resource"

    def __init__(self, entity_id):
        self.entity_id = entity_id
        super().__init__(f"{self.entity} not found: {entity_id}")


class BusNotFound(NotFound):
    entity = "Bus"


class RouteNotFound(NotFound):
    entity = "Route"


class TripNotFound(NotFound):
    entity = "Trip"


class BookingNotFound(NotFound):
    entity = "Booking"


class InvalidInput(BookingError):
    pass


class InvalidCapacity(BookingError):
    pass


class SeatOutOfRange(BookingError):
    def __init__(self, seat_no, capacity: int):
        self.seat_no = seat_no
        self.capacity = capacity
        super().__init__(f"Seat {seat_no!r} is outside 1..{capacity}")


class SeatAlreadyTaken(BookingError):
    """Expected, recoverable: the caller may offer another seat."""

    def __init__(self, trip_id: int, seat_no: int):
        self.trip_id = trip_id
        self.seat_no = seat_no
        super().__init__(f"Seat {seat_no} on trip {trip_id} is already booked")


class InvalidTransition(BookingError):
    def __init__(self, booking_id: int, current: str, requested: str):
        self.booking_id = booking_id
        self.current = current
        self.requested = requested
        super().__init__(f"Booking {booking_id} cannot move from {current} to {requested}")


class StorageFailure(BookingError):
    """Wraps an underlying persistence error. Never retried inside the core."""


@contextmanager
def storage_errors(action: str):
    """
    Rolls back the session and re-raises any SQLAlchemyError as StorageFailure.
    Booking errors raised inside the block pass through untouched.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Storage failure during %s", action)
        raise StorageFailure(f"{action} failed: {exc}") from exc
