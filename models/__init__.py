from .db import db
from .user import User
from .audit_log import AuditLog
from .bus import Bus
from .route import Route
from .trip import Trip
from .booking import Booking
