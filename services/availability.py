"""Free-seat counts and trip search.

Reads here are plain snapshots of the ledger. A rider can see a seat as free
and still lose it to a concurrent reservation; that surfaces from
services.reservations.reserve as SeatAlreadyTaken.
"""
from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, select

from models import db
from models.booking import Booking, CANCELLED
from models.bus import Bus
from models.route import Route
from models.trip import Trip
from services.catalog import get_trip, parse_travel_date
from services.errors import TripNotFound, storage_errors


@dataclass(frozen=True)
class TripAvailability:
    trip_id: int
    bus_name: str
    bus_category: Optional[str]
    origin: str
    destination: str
    fare: Decimal
    travel_date: date
    departure_time: time
    capacity: int
    available: int

    @property
    def is_full(self) -> bool:
        return self.available <= 0


def _booked_count():
    # correlated: non-cancelled bookings of the outer Trip row
    return (
        select(func.count(Booking.id))
        .where(Booking.trip_id == Trip.id, Booking.status != CANCELLED)
        .correlate(Trip)
        .scalar_subquery()
    )


def _availability_query():
    return (
        select(Trip, Bus, Route, (Bus.capacity - _booked_count()).label("available"))
        .join(Bus, Trip.bus_id == Bus.id)
        .join(Route, Trip.route_id == Route.id)
    )


def _to_availability(trip: Trip, bus: Bus, route: Route, available: int) -> TripAvailability:
    return TripAvailability(
        trip_id=trip.id,
        bus_name=bus.name,
        bus_category=bus.category,
        origin=route.origin,
        destination=route.destination,
        fare=route.fare,
        travel_date=trip.travel_date,
        departure_time=trip.departure_time,
        capacity=bus.capacity,
        available=max(available, 0),
    )


def _occupied_seats(trip_id: int) -> set:
    return set(
        db.session.scalars(
            select(Booking.seat_no).where(Booking.trip_id == trip_id, Booking.status != CANCELLED)
        ).all()
    )


def available_seats(trip_id: int) -> int:
    """capacity - number of non-cancelled bookings on the trip."""
    return trip_availability(trip_id).available


def free_seats(trip_id: int) -> List[int]:
    """Seat numbers in 1..capacity with no live booking, ascending."""
    trip = get_trip(trip_id)
    with storage_errors("free_seats"):
        occupied = _occupied_seats(trip.id)
        capacity = trip.bus.capacity
    return [seat for seat in range(1, capacity + 1) if seat not in occupied]


def trip_availability(trip_id: int) -> TripAvailability:
    with storage_errors("trip_availability"):
        row = db.session.execute(_availability_query().where(Trip.id == trip_id)).first()
    if row is None:
        raise TripNotFound(trip_id)
    return _to_availability(*row)


def search_trips(origin: str = "", destination: str = "", travel_date=None) -> List[TripAvailability]:
    """
    Trips whose origin/destination contain the given text (case-insensitive,
    blank matches everything) and, when given, running on travel_date.
    Ordered by date, time, then trip id.
    """
    origin = (origin or "").strip()
    destination = (destination or "").strip()
    day = parse_travel_date(travel_date) if travel_date not in (None, "") else None

    q = _availability_query()
    if origin:
        q = q.where(Route.origin.icontains(origin, autoescape=True))
    if destination:
        q = q.where(Route.destination.icontains(destination, autoescape=True))
    if day is not None:
        q = q.where(Trip.travel_date == day)
    q = q.order_by(Trip.travel_date.asc(), Trip.departure_time.asc(), Trip.id.asc())

    with storage_errors("search_trips"):
        rows = db.session.execute(q).all()
    return [_to_availability(*row) for row in rows]
