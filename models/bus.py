from datetime import datetime
from models.db import db

class Bus(db.Model):
    __tablename__ = "buses"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    category = db.Column(db.String(40), nullable=True)  # e.g. AC, Non-AC
    capacity = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    # Deleting a bus deletes its trips, and through them their bookings
    trips = db.relationship(
        "Trip",
        back_populates="bus",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        db.CheckConstraint("capacity >= 1", name="ck_buses_capacity_positive"),
    )
