from datetime import date, time, timedelta
from decimal import Decimal

from flask import current_app
from sqlalchemy import select

from models import db
from models.bus import Bus
from models.route import Route
from models.trip import Trip
from models.user import ROLE_ADMIN, ROLE_USER
from security.accounts import ensure_account

DEMO_BUSES = [
    ("Dhaka-Chattogram 01", "Non-AC", 40),
    ("Dhaka-Sylhet 02", "AC", 30),
]

DEMO_ROUTES = [
    ("Dhaka", "Chattogram", Decimal("700.00")),
    ("Dhaka", "Sylhet", Decimal("550.00")),
]

# (bus index, route index, days from today, departure)
DEMO_TRIPS = [
    (0, 0, 1, "09:00"),
    (1, 1, 2, "14:00"),
]


def seed_accounts():
    ensure_account("admin", current_app.config["DEMO_ADMIN_PASSWORD"], ROLE_ADMIN)
    ensure_account("user", current_app.config["DEMO_USER_PASSWORD"], ROLE_USER)
    db.session.commit()


def seed_catalog(today=None):
    """
    Demo buses, routes and trips. Each table is only seeded while empty, so
    running this twice changes nothing. Returns the number of rows added.
    """
    today = today or date.today()
    added = 0

    if db.session.scalar(select(Bus.id).limit(1)) is None:
        db.session.add_all(Bus(name=n, category=c, capacity=cap) for n, c, cap in DEMO_BUSES)
        added += len(DEMO_BUSES)
    if db.session.scalar(select(Route.id).limit(1)) is None:
        db.session.add_all(Route(origin=o, destination=d, fare=f) for o, d, f in DEMO_ROUTES)
        added += len(DEMO_ROUTES)
    db.session.flush()

    if db.session.scalar(select(Trip.id).limit(1)) is None:
        buses = db.session.scalars(select(Bus).order_by(Bus.id)).all()
        routes = db.session.scalars(select(Route).order_by(Route.id)).all()
        for bus_idx, route_idx, days, departure in DEMO_TRIPS:
            if bus_idx >= len(buses) or route_idx >= len(routes):
                continue
            db.session.add(Trip(
                bus=buses[bus_idx],
                route=routes[route_idx],
                travel_date=today + timedelta(days=days),
                departure_time=time.fromisoformat(departure),
            ))
            added += 1

    db.session.commit()
    return added
