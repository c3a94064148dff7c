"""Buses, routes and trips.

Deleting a bus or a route deletes every trip that uses it, and those trips
take their bookings with them (ON DELETE CASCADE all the way down). There is
no soft delete: an operator removing a bus with sold seats wipes those
bookings.
"""
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation

from sqlalchemy import func, select, update

from models import db
from models.booking import Booking, CANCELLED
from models.bus import Bus
from models.route import Route
from models.trip import Trip
from services.errors import (
    BusNotFound,
    InvalidCapacity,
    InvalidInput,
    RouteNotFound,
    TripNotFound,
    storage_errors,
)
from utils.audit import log_event


def _require_text(value, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"{field} is required")
    return value.strip()


def _parse_capacity(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidCapacity(f"Capacity must be an integer, got {value!r}")
    if value < 1:
        raise InvalidCapacity(f"Capacity must be at least 1, got {value}")
    return value


def _parse_fare(value) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise InvalidInput(f"Invalid fare: {value!r}")
    try:
        fare = Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidInput(f"Invalid fare: {value!r}") from None
    if not fare.is_finite() or fare < 0:
        raise InvalidInput(f"Fare must be a non-negative amount, got {value!r}")
    return fare.quantize(Decimal("0.01"))


def parse_travel_date(value) -> date:
    # Expect ISO format like "2026-01-20"
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat((value or "").strip())
    except (TypeError, ValueError, AttributeError):
        raise InvalidInput(f"Invalid date {value!r}. Use YYYY-MM-DD") from None


def _parse_departure_time(value) -> time:
    if isinstance(value, time):
        return value.replace(microsecond=0)
    try:
        return time.fromisoformat((value or "").strip())
    except (TypeError, ValueError, AttributeError):
        raise InvalidInput(f"Invalid time {value!r}. Use HH:MM") from None


# ---------- buses ----------

def create_bus(name: str, category, capacity: int, actor=None) -> Bus:
    name = _require_text(name, "Bus name")
    capacity = _parse_capacity(capacity)
    category = (category or "").strip() or None

    with storage_errors("create_bus"):
        bus = Bus(name=name, category=category, capacity=capacity)
        db.session.add(bus)
        db.session.flush()
        log_event("BUS_CREATE", actor=actor, entity="bus", entity_id=bus.id,
                  metadata={"capacity": capacity})
        db.session.commit()
        return bus


def get_bus(bus_id: int) -> Bus:
    with storage_errors("get_bus"):
        bus = db.session.get(Bus, bus_id)
    if bus is None:
        raise BusNotFound(bus_id)
    return bus


def list_buses():
    with storage_errors("list_buses"):
        return db.session.scalars(select(Bus).order_by(Bus.id.desc())).all()


def _highest_live_seat(bus_id: int) -> int:
    return db.session.scalar(
        select(func.coalesce(func.max(Booking.seat_no), 0))
        .join(Trip, Booking.trip_id == Trip.id)
        .where(Trip.bus_id == bus_id, Booking.status != CANCELLED)
    )


def _live_seat_above(bus_id: int, capacity: int):
    return (
        select(Booking.id)
        .join(Trip, Booking.trip_id == Trip.id)
        .where(Trip.bus_id == bus_id, Booking.status != CANCELLED, Booking.seat_no > capacity)
        .exists()
    )


def update_bus(bus_id: int, name=None, category=None, capacity=None, actor=None) -> Bus:
    """
    Edit a bus. A capacity change is refused while any live booking on the
    bus's trips holds a seat above the new capacity; the check and the write
    are one UPDATE statement, so a reservation committing in between cannot
    slip past it.
    """
    bus = get_bus(bus_id)
    changes = {}

    if name is not None:
        changes["name"] = _require_text(name, "Bus name")
    if category is not None:
        changes["category"] = str(category).strip() or None
    if capacity is not None:
        changes["capacity"] = _parse_capacity(capacity)

    if not changes:
        return bus

    with storage_errors("update_bus"):
        stmt = update(Bus).where(Bus.id == bus.id)
        if "capacity" in changes:
            stmt = stmt.where(~_live_seat_above(bus.id, changes["capacity"]))
        result = db.session.execute(
            stmt.values(**changes).execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.session.rollback()
            if db.session.get(Bus, bus_id) is None:
                raise BusNotFound(bus_id)
            highest = _highest_live_seat(bus_id)
            raise InvalidCapacity(
                f"Capacity {changes['capacity']} is below seat {highest}, which is still booked on this bus"
            )

        log_event("BUS_UPDATE", actor=actor, entity="bus", entity_id=bus.id, metadata=changes)
        db.session.commit()

    # commit expired the instance; the next attribute access reloads the edit
    return bus


def _count_cascade(trip_filter):
    trips = db.session.scalar(select(func.count(Trip.id)).where(trip_filter))
    bookings = db.session.scalar(
        select(func.count(Booking.id))
        .join(Trip, Booking.trip_id == Trip.id)
        .where(trip_filter)
    )
    return {"trips": trips, "bookings": bookings}


def delete_bus(bus_id: int, actor=None) -> dict:
    """Delete a bus with all of its trips and their bookings. Returns the cascade counts."""
    bus = get_bus(bus_id)
    with storage_errors("delete_bus"):
        removed = _count_cascade(Trip.bus_id == bus.id)
        db.session.delete(bus)
        log_event("BUS_DELETE", actor=actor, entity="bus", entity_id=bus_id, metadata=removed)
        db.session.commit()
        return removed


# ---------- routes ----------

def create_route(origin: str, destination: str, fare, actor=None) -> Route:
    origin = _require_text(origin, "Origin")
    destination = _require_text(destination, "Destination")
    fare = _parse_fare(fare)

    with storage_errors("create_route"):
        route = Route(origin=origin, destination=destination, fare=fare)
        db.session.add(route)
        db.session.flush()
        log_event("ROUTE_CREATE", actor=actor, entity="route", entity_id=route.id,
                  metadata={"fare": fare})
        db.session.commit()
        return route


def get_route(route_id: int) -> Route:
    with storage_errors("get_route"):
        route = db.session.get(Route, route_id)
    if route is None:
        raise RouteNotFound(route_id)
    return route


def list_routes():
    with storage_errors("list_routes"):
        return db.session.scalars(select(Route).order_by(Route.id.desc())).all()


def update_route(route_id: int, origin=None, destination=None, fare=None, actor=None) -> Route:
    """Edit a route. Bookings keep the fare they were sold at."""
    route = get_route(route_id)
    changes = {}
    if origin is not None:
        changes["origin"] = _require_text(origin, "Origin")
    if destination is not None:
        changes["destination"] = _require_text(destination, "Destination")
    if fare is not None:
        changes["fare"] = _parse_fare(fare)

    if not changes:
        return route

    with storage_errors("update_route"):
        for field, value in changes.items():
            setattr(route, field, value)
        log_event("ROUTE_UPDATE", actor=actor, entity="route", entity_id=route.id, metadata=changes)
        db.session.commit()
        return route


def delete_route(route_id: int, actor=None) -> dict:
    """Delete a route with all of its trips and their bookings. Returns the cascade counts."""
    route = get_route(route_id)
    with storage_errors("delete_route"):
        removed = _count_cascade(Trip.route_id == route.id)
        db.session.delete(route)
        log_event("ROUTE_DELETE", actor=actor, entity="route", entity_id=route_id, metadata=removed)
        db.session.commit()
        return removed


# ---------- trips ----------

def create_trip(bus_id: int, route_id: int, travel_date, departure_time, actor=None) -> Trip:
    bus = get_bus(bus_id)
    route = get_route(route_id)
    travel_date = parse_travel_date(travel_date)
    departure_time = _parse_departure_time(departure_time)

    with storage_errors("create_trip"):
        trip = Trip(bus=bus, route=route, travel_date=travel_date, departure_time=departure_time)
        db.session.add(trip)
        db.session.flush()
        log_event("TRIP_CREATE", actor=actor, entity="trip", entity_id=trip.id,
                  metadata={"bus_id": bus.id, "route_id": route.id})
        db.session.commit()
        return trip


def get_trip(trip_id: int) -> Trip:
    with storage_errors("get_trip"):
        trip = db.session.get(Trip, trip_id)
    if trip is None:
        raise TripNotFound(trip_id)
    return trip


def list_trips():
    with storage_errors("list_trips"):
        return db.session.scalars(
            select(Trip).order_by(Trip.travel_date, Trip.departure_time, Trip.id)
        ).all()


def delete_trip(trip_id: int, actor=None) -> dict:
    """Delete a trip and its bookings. Returns the cascade counts."""
    trip = get_trip(trip_id)
    with storage_errors("delete_trip"):
        removed = _count_cascade(Trip.id == trip.id)
        db.session.delete(trip)
        log_event("TRIP_DELETE", actor=actor, entity="trip", entity_id=trip_id, metadata=removed)
        db.session.commit()
        return removed
