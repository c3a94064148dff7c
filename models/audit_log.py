from datetime import datetime
from models.db import db

class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)
    actor = db.Column(db.String(80), nullable=True)  # username, or None for system events
    action = db.Column(db.String(80), nullable=False)  # e.g. BOOKING_CREATE, TRIP_DELETE
    entity = db.Column(db.String(80), nullable=True)   # e.g. booking, trip
    entity_id = db.Column(db.String(80), nullable=True)

    metadata_json = db.Column(db.Text, nullable=True)

    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
