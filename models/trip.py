from datetime import datetime
from models.db import db

class Trip(db.Model):
    __tablename__ = "trips"

    id = db.Column(db.Integer, primary_key=True)

    bus_id = db.Column(db.Integer, db.ForeignKey("buses.id", ondelete="CASCADE"), nullable=False, index=True)
    route_id = db.Column(db.Integer, db.ForeignKey("routes.id", ondelete="CASCADE"), nullable=False, index=True)

    travel_date = db.Column(db.Date, nullable=False, index=True)
    departure_time = db.Column(db.Time, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    bus = db.relationship("Bus", back_populates="trips")
    route = db.relationship("Route", back_populates="trips")
    bookings = db.relationship(
        "Booking",
        back_populates="trip",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
