import threading

from sqlalchemy import func, select

import pytest

from app import create_app
from models import db
from models.audit_log import AuditLog
from models.booking import Booking
from services import catalog


@pytest.fixture
def app(tmp_path):
    """App bound to a throwaway SQLite file (threads need a real file, not :memory:)."""
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///" + str(tmp_path / "busline-test.db"),
        "BCRYPT_ROUNDS": 4,
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def make_trip(app):
    """Trip factory: a fresh bus and route per call (Factories as fixtures pattern)."""

    def _factory(
        capacity: int = 2,
        fare: str = "700.00",
        origin: str = "Dhaka",
        destination: str = "Chattogram",
        travel_date: str = "2026-11-01",
        departure_time: str = "09:00",
        bus_name: str = "Dhaka-Chattogram 01",
    ):
        bus = catalog.create_bus(bus_name, "Non-AC", capacity)
        route = catalog.create_route(origin, destination, fare)
        return catalog.create_trip(bus.id, route.id, travel_date, departure_time)

    return _factory


@pytest.fixture
def count_bookings(app):
    def _count(**filters) -> int:
        q = select(func.count(Booking.id))
        for field, value in filters.items():
            q = q.where(getattr(Booking, field) == value)
        return db.session.scalar(q)

    return _count


@pytest.fixture
def audit_actions(app):
    def _actions():
        return db.session.scalars(select(AuditLog.action).order_by(AuditLog.id)).all()

    return _actions


@pytest.fixture
def in_other_context(app):
    """Run action() to completion on another thread with its own app context and session."""

    def _run(action):
        failures = []

        def worker():
            with app.app_context():
                try:
                    action()
                except Exception as exc:  # re-raised in the calling test below
                    failures.append(exc)

        thread = threading.Thread(target=worker)
        thread.start()
        thread.join(timeout=60)
        if failures:
            raise failures[0]

    return _run
