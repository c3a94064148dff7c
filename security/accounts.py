from models import db
from models.user import User, ROLE_ADMIN, ROLE_USER
from security.password import hash_password, verify_password

ROLES = (ROLE_ADMIN, ROLE_USER)


def authenticate(username: str, password: str):
    """
    Returns the User for a correct username/password pair, else None.
    Session handling is left to the presentation layer.
    """
    username = (username or "").strip()
    if not username or not password:
        return None
    user = db.session.get(User, username)
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


def has_role(user, role_name: str) -> bool:
    return user is not None and user.role == role_name


def ensure_account(username: str, password: str, role: str) -> User:
    """Create the account if missing. Existing accounts are left as they are."""
    if role not in ROLES:
        raise ValueError(f"Unknown role: {role}")
    user = db.session.get(User, username)
    if user is None:
        user = User(username=username, password_hash=hash_password(password), role=role)
        db.session.add(user)
    return user
