from datetime import datetime
from models.db import db

CONFIRMED = "CONFIRMED"
COMPLETED = "COMPLETED"
CANCELLED = "CANCELLED"

BOOKING_STATUSES = (CONFIRMED, COMPLETED, CANCELLED)


class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)

    rider_name = db.Column(db.String(120), nullable=False)
    rider_phone = db.Column(db.String(30), nullable=False)

    trip_id = db.Column(db.Integer, db.ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    seat_no = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(20), nullable=False, default=CONFIRMED)
    # status values: CONFIRMED, COMPLETED, CANCELLED

    # fare snapshot taken when the booking was made
    total = db.Column(db.Numeric(10, 2), nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    trip = db.relationship("Trip", back_populates="bookings")

    __table_args__ = (
        # Hard business-rule: one live booking per (trip, seat). Cancelled rows
        # fall out of the index, which is what frees the seat for reuse.
        db.Index(
            "uq_bookings_trip_seat_active",
            "trip_id",
            "seat_no",
            unique=True,
            sqlite_where=db.text("status != 'CANCELLED'"),
            postgresql_where=db.text("status != 'CANCELLED'"),
        ),
        db.CheckConstraint("seat_no >= 1", name="ck_bookings_seat_positive"),
        db.CheckConstraint(
            "status IN ('CONFIRMED', 'COMPLETED', 'CANCELLED')",
            name="ck_bookings_status",
        ),
        {"sqlite_autoincrement": True},
    )
