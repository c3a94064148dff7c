from datetime import datetime
from models.db import db

ROLE_ADMIN = "admin"
ROLE_USER = "user"


class User(db.Model):
    __tablename__ = "users"

    # the two fixed operator/rider accounts; login itself lives outside this package
    username = db.Column(db.String(80), primary_key=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False)  # admin, user

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
