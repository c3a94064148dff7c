import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


def sqlite_engine_options(uri: str, busy_timeout: float) -> dict:
    """
    Engine options for SQLite URIs: concurrent writers wait up to
    busy_timeout seconds for the write lock instead of failing at once.
    """
    if not uri.startswith("sqlite"):
        return {}
    return {"connect_args": {"timeout": busy_timeout, "check_same_thread": False}}


class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the code as busline.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "busline.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # How long a reservation waits on a locked SQLite file before giving up
    SQLITE_BUSY_TIMEOUT_SECONDS = float(os.getenv("SQLITE_BUSY_TIMEOUT_SECONDS", "30"))

    SQLALCHEMY_ENGINE_OPTIONS = sqlite_engine_options(
        SQLALCHEMY_DATABASE_URI, SQLITE_BUSY_TIMEOUT_SECONDS
    )

    # Audit trail rows written alongside every successful mutation
    AUDIT_LOG_ENABLED = os.getenv("AUDIT_LOG_ENABLED", "true").lower() == "true"

    # Password hashing cost
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # Seed passwords for the two fixed accounts (admin / user)
    DEMO_ADMIN_PASSWORD = os.getenv("DEMO_ADMIN_PASSWORD", "admin123")
    DEMO_USER_PASSWORD = os.getenv("DEMO_USER_PASSWORD", "user123")

    # Basic app settings
    DEBUG = False
