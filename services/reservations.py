"""Seat reservation.

The only guard against double booking is the partial unique index
uq_bookings_trip_seat_active on bookings(trip_id, seat_no) for rows that are
not CANCELLED. reserve() never asks "is the seat free?" before writing: it
inserts, and the database rejects the row atomically if a live booking for
the same seat exists. Concurrent attempts on one (trip, seat) therefore
produce exactly one booking, whatever the interleaving.
"""
from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from models import db
from models.booking import Booking, CONFIRMED
from models.bus import Bus
from models.trip import Trip
from services.errors import (
    InvalidInput,
    SeatAlreadyTaken,
    SeatOutOfRange,
    TripNotFound,
    storage_errors,
)
from utils.audit import log_event

SEAT_INDEX_NAME = "uq_bookings_trip_seat_active"
SEAT_INDEX_COLUMNS = "bookings.trip_id, bookings.seat_no"


def _is_seat_conflict(exc: IntegrityError) -> bool:
    # sqlite: "UNIQUE constraint failed: bookings.trip_id, bookings.seat_no"
    # postgres: 'duplicate key value violates unique constraint "uq_bookings_trip_seat_active"'
    message = str(exc.orig).lower()
    return SEAT_INDEX_NAME in message or SEAT_INDEX_COLUMNS in message


def _is_missing_trip(exc: IntegrityError) -> bool:
    return "foreign key" in str(exc.orig).lower()


def _clean(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def reserve(trip_id: int, seat_no: int, rider_name: str, rider_phone: str, actor=None) -> Booking:
    """
    Book seat_no on trip_id for the rider and return the CONFIRMED booking.

    Checks, in order: the trip exists (TripNotFound), the seat lies in
    1..capacity (SeatOutOfRange), name and phone are non-blank (InvalidInput).
    A live booking on the same seat raises SeatAlreadyTaken. Nothing is
    written unless the booking is.

    The booking total is the route fare at this moment; later fare edits do
    not touch it.
    """
    with storage_errors("reserve"):
        trip = db.session.get(Trip, trip_id)
        if trip is None:
            raise TripNotFound(trip_id)

        capacity = trip.bus.capacity
        if isinstance(seat_no, bool) or not isinstance(seat_no, int) or not 1 <= seat_no <= capacity:
            raise SeatOutOfRange(seat_no, capacity)

        name = _clean(rider_name)
        phone = _clean(rider_phone)
        if not name or not phone:
            raise InvalidInput("Rider name and phone are required")

        booking = Booking(
            rider_name=name,
            rider_phone=phone,
            trip_id=trip.id,
            seat_no=seat_no,
            status=CONFIRMED,
            total=trip.route.fare,
        )
        db.session.add(booking)

        try:
            # the INSERT and the uniqueness check are one statement
            db.session.flush()
        except IntegrityError as exc:
            db.session.rollback()
            if _is_missing_trip(exc):
                # trip deleted between our read and the insert
                current_app.logger.info("Reservation rejected, trip %s is gone", trip_id)
                raise TripNotFound(trip_id) from exc
            if _is_seat_conflict(exc):
                current_app.logger.info(
                    "Reservation rejected, seat %s on trip %s already taken", seat_no, trip_id
                )
                raise SeatAlreadyTaken(trip_id, seat_no) from exc
            raise

        # a capacity edit may have committed since the range check above; the
        # flush holds the write lock, so this read cannot go stale before commit
        capacity = db.session.scalar(
            select(Bus.capacity)
            .join(Trip, Trip.bus_id == Bus.id)
            .where(Trip.id == trip_id)
            .with_for_update()
        )
        if seat_no > capacity:
            db.session.rollback()
            current_app.logger.info(
                "Reservation rejected, seat %s on trip %s is beyond capacity %s", seat_no, trip_id, capacity
            )
            raise SeatOutOfRange(seat_no, capacity)

        log_event(
            "BOOKING_CREATE",
            actor=actor,
            entity="booking",
            entity_id=booking.id,
            metadata={"trip_id": trip_id, "seat_no": seat_no, "total": booking.total},
        )
        db.session.commit()
        return booking
